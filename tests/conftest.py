import os

# Settings refuse to load without these; tests never sign with production values.
os.environ.setdefault("SCORE_TOKEN_SECRET", "test_score_token_secret_0123456789")
os.environ.setdefault("REFERRAL_CODE_SALT", "test_referral_code_salt_0123456789")
os.environ.setdefault("INTERNAL_API_TOKEN", "test_internal_api_token_0123456789")
