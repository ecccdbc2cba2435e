from app.economy.leaderboard.service import LeaderboardService
from app.economy.referrals import ReferralService
from app.economy.rewards.ledger import ScoreLedgerService

__all__ = [
    "LeaderboardService",
    "ReferralService",
    "ScoreLedgerService",
]
