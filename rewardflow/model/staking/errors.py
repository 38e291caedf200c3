class RewardsError(ValueError):
    """Base class for every rejected pool operation. Nothing in the ledger changes when one is raised."""
    kind: str = 'RewardsError'

    def __init__(self, message: str = ''):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def __repr__(self):
        return f'{self.kind}({self.message!r})'


class ZeroAmount(RewardsError):
    kind = 'ZeroAmount'


class InsufficientBalance(RewardsError):
    kind = 'InsufficientBalance'


class StakeLocked(RewardsError):
    kind = 'StakeLocked'


class StakeNotFound(RewardsError):
    kind = 'StakeNotFound'


class PeriodNotYetExpired(RewardsError):
    kind = 'PeriodNotYetExpired'


class RewardTokenCapExceeded(RewardsError):
    kind = 'RewardTokenCapExceeded'


class InsufficientFundingForRenewal(RewardsError):
    kind = 'InsufficientFundingForRenewal'


class Unauthorized(RewardsError):
    kind = 'Unauthorized'


class PoolShutdown(RewardsError):
    kind = 'PoolShutdown'


class RewardRateOverflow(RewardsError):
    kind = 'RewardRateOverflow'


class InvalidLockDuration(RewardsError):
    kind = 'InvalidLockDuration'


class UnknownRewardToken(RewardsError):
    kind = 'UnknownRewardToken'


class ReentrantCall(RewardsError):
    kind = 'ReentrantCall'
