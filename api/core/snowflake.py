"""
Snowflake id generator for users (and anything else that wants sortable ids).

Layout, most significant bit first:

    | milliseconds since EPOCH_MS | worker (8 bits) | increment (14 bits) |

Ids are returned as strings so they survive JSON clients that parse numbers
as doubles. They are predictable, so never use them as secrets (session ids
come from `secrets`, see `sessions/store.py`).
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from fastapi import Request

EPOCH_MS = 1_577_836_800_000  # 2020-01-01T00:00:00Z
WORKER_BITS = 8
INCREMENT_BITS = 14

_MAX_WORKER = (1 << WORKER_BITS) - 1
_INCREMENT_MASK = (1 << INCREMENT_BITS) - 1


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class Snowflake:
    def __init__(
        self,
        *,
        worker_id: int,
        epoch_ms: int = EPOCH_MS,
        clock: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        if not 0 <= worker_id <= _MAX_WORKER:
            raise ValueError(f"worker_id must be within 0..{_MAX_WORKER}, got {worker_id}.")
        self.worker_id = worker_id
        self.epoch_ms = epoch_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._last_ms = -1
        self._increment = 0

    def generate(self) -> str:
        with self._lock:
            now = max(self._clock(), self._last_ms)
            if now == self._last_ms:
                self._increment = (self._increment + 1) & _INCREMENT_MASK
                if self._increment == 0:
                    # Sequence exhausted for this millisecond: borrow the next one.
                    now = self._last_ms + 1
            else:
                self._increment = 0
            self._last_ms = now

            value = (
                ((now - self.epoch_ms) << (WORKER_BITS + INCREMENT_BITS))
                | (self.worker_id << INCREMENT_BITS)
                | self._increment
            )
        return str(value)

    def timestamp_ms(self, snowflake: str) -> int:
        return (int(snowflake) >> (WORKER_BITS + INCREMENT_BITS)) + self.epoch_ms


def get_snowflake(request: Request) -> Snowflake:
    return request.app.state.ids
