from __future__ import annotations

import hashlib
import hmac

ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
REFERRAL_CODE_PREFIX = "RB"
REFERRAL_CODE_BODY_LENGTH = 8


def generate_referral_code(
    user_id: str,
    *,
    salt: str,
    length: int = REFERRAL_CODE_BODY_LENGTH,
) -> str:
    """Derives the user's referral code from a keyed hash of their identity id.

    The same user always gets the same code, so no lookup table is needed to
    recover it; the code is still persisted for reverse lookup.
    """
    if length <= 0:
        raise ValueError("length must be positive")
    if length > 32:
        raise ValueError("length must not exceed digest size")
    if not user_id:
        raise ValueError("user_id must not be empty")

    digest = hmac.new(salt.encode("utf-8"), user_id.encode("utf-8"), hashlib.sha256).digest()
    body = "".join(ALPHABET[byte % len(ALPHABET)] for byte in digest[:length])
    return f"{REFERRAL_CODE_PREFIX}{body}"


def normalize_referral_code(raw_code: str) -> str:
    return raw_code.strip().upper()
