from __future__ import annotations

import pytest

from app.core.referral_codes import (
    ALPHABET,
    REFERRAL_CODE_PREFIX,
    generate_referral_code,
    normalize_referral_code,
)


def test_generate_referral_code_length_and_charset() -> None:
    code = generate_referral_code("1234567890", salt="salt")

    assert code.startswith(REFERRAL_CODE_PREFIX)
    body = code[len(REFERRAL_CODE_PREFIX) :]
    assert len(body) == 8
    assert set(body).issubset(set(ALPHABET))


def test_generate_referral_code_is_deterministic_per_user_and_salt() -> None:
    assert generate_referral_code("user-1", salt="salt") == generate_referral_code("user-1", salt="salt")
    assert generate_referral_code("user-1", salt="salt") != generate_referral_code("user-2", salt="salt")
    assert generate_referral_code("user-1", salt="salt") != generate_referral_code("user-1", salt="other")


def test_generate_referral_code_honours_custom_length() -> None:
    code = generate_referral_code("user-1", salt="salt", length=12)
    assert len(code) == len(REFERRAL_CODE_PREFIX) + 12


@pytest.mark.parametrize("length", [0, -1, 33])
def test_generate_referral_code_rejects_invalid_length(length: int) -> None:
    with pytest.raises(ValueError):
        generate_referral_code("user-1", salt="salt", length=length)


def test_generate_referral_code_rejects_empty_user_id() -> None:
    with pytest.raises(ValueError):
        generate_referral_code("", salt="salt")


def test_normalize_referral_code_strips_and_uppercases() -> None:
    assert normalize_referral_code("  rbabc23xyz \n") == "RBABC23XYZ"
