class RewardsError(Exception):
    pass


class ScoreValidationError(RewardsError):
    pass


class InvalidBoxTypeError(ScoreValidationError):
    pass


class DuplicateBoxTypeError(ScoreValidationError):
    pass


class PointsOutOfRangeError(ScoreValidationError):
    pass


class TotalOutOfBoundsError(ScoreValidationError):
    pass


class TotalMismatchError(ScoreValidationError):
    pass


class InvalidShareUrlError(ScoreValidationError):
    pass


class ScoreIntegrityError(RewardsError):
    pass


class ScoreTokenExpiredError(ScoreIntegrityError):
    pass


class ScoreTokenInvalidError(ScoreIntegrityError):
    pass


class ScoreForgeryError(ScoreIntegrityError):
    def __init__(self, *, box_type: str, reason: str) -> None:
        super().__init__(f"{box_type}: {reason}")
        self.box_type = box_type
        self.reason = reason
