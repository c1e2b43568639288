"""
User API schemas (request models).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=8, max_length=128)
    email: str = Field(..., min_length=3, max_length=320)


class UpdateSelfRequest(BaseModel):
    # Loosely typed on purpose: each key gets its own 406 message in the service.
    data: dict[str, Any]
