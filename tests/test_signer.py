import pytest

from sessions.signer import CookieSigner
from sessions.store import new_session_id


@pytest.fixture
def signer() -> CookieSigner:
    return CookieSigner("cookie-secret")


@pytest.mark.parametrize("session_id", ["abc", "a-b_c", "1234567890", new_session_id()])
def test_unsign_recovers_signed_id(signer, session_id):
    assert signer.unsign(signer.sign(session_id)) == session_id


def test_signature_is_stable_for_same_id(signer):
    assert signer.sign("abc") == signer.sign("abc")


def test_any_single_character_change_is_rejected(signer):
    signed = signer.sign(new_session_id())
    for index, original in enumerate(signed):
        for replacement in ("A", "z", "0", "-", "_", "."):
            if replacement == original:
                continue
            tampered = signed[:index] + replacement + signed[index + 1:]
            assert signer.unsign(tampered) is None, (index, replacement)


def test_truncated_and_extended_values_are_rejected(signer):
    signed = signer.sign("abc")
    assert signer.unsign(signed[:-1]) is None
    assert signer.unsign(signed + "A") is None


def test_other_secret_is_rejected(signer):
    other = CookieSigner("another-secret")
    assert signer.unsign(other.sign("abc")) is None


@pytest.mark.parametrize("value", [None, "", "abc", "abc.", ".sig", "no-separator-here", "ü.ü"])
def test_garbage_is_rejected(signer, value):
    assert signer.unsign(value) is None


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        CookieSigner("")


@pytest.mark.parametrize("suffix", ["é", "ÿ", "ü.ü"])
def test_non_ascii_suffix_is_rejected(signer, suffix):
    assert signer.unsign(signer.sign("abc") + suffix) is None
