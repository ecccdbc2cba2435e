from app.db.repo.referrals_repo import ReferralsRepo
from app.db.repo.scores_repo import ScoresRepo
from app.db.repo.users_repo import UsersRepo

__all__ = [
    "ReferralsRepo",
    "ScoresRepo",
    "UsersRepo",
]
