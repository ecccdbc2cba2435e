class ReferralError(Exception):
    pass


class NotFirstSignupError(ReferralError):
    pass


class AlreadyReferredError(ReferralError):
    pass


class InvalidReferralCodeError(ReferralError):
    pass


class SelfReferralError(ReferralError):
    pass
