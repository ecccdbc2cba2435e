from __future__ import annotations

REFERRAL_BONUS_REFERRER = 250
REFERRAL_BONUS_REFERRED = 150
MAX_REFERRAL_BONUS = 25_000
REFERRAL_OVERVIEW_LIST_LIMIT = 50
FIRST_SIGNUP_MAX_LOGINS = 1
