from app.db.models.base import Base
from app.db.models.referrals import Referral
from app.db.models.scores import Score
from app.db.models.users import User

__all__ = [
    "Base",
    "Referral",
    "Score",
    "User",
]
