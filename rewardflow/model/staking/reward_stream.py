"""
Reward-per-share accrual for one reward token.

reward_rate and reward_per_share_stored are fixed-point (scaled by PRECISION):
reward_rate is base units per second * PRECISION, reward_per_share_stored is
base units per unit of weight * PRECISION.
"""
from .errors import RewardRateOverflow, InsufficientFundingForRenewal, PeriodNotYetExpired, ZeroAmount
from .fixed_point import PRECISION, SECONDS_PER_DAY

DEFAULT_REWARD_DURATION = 7 * SECONDS_PER_DAY
NEW_REWARD_RATIO = 830  # per mille
MAX_REWARD_RATE = 10 ** 24 * PRECISION


class RewardStream:
    def __init__(
            self,
            token: str,
            duration: int = DEFAULT_REWARD_DURATION,
            period_finish: int = 0,
            last_update_time: int = 0,
            reward_rate: int = 0,
            reward_per_share_stored: int = 0,
            queued_amount: int = 0,
            historical_total: int = 0,
            max_reward_rate: int = MAX_REWARD_RATE
    ):
        if duration <= 0:
            raise ValueError('reward duration must be positive')
        self.token = token
        self.duration = duration
        self.period_finish = period_finish
        self.last_update_time = last_update_time
        self.reward_rate = reward_rate
        self.reward_per_share_stored = reward_per_share_stored
        self.queued_amount = queued_amount
        self.historical_total = historical_total
        self.max_reward_rate = max_reward_rate

    def __repr__(self):
        return (
            f'RewardStream({self.token}: rate={self.reward_rate}, rps={self.reward_per_share_stored}, '
            f'finish={self.period_finish}, updated={self.last_update_time}, queued={self.queued_amount})'
        )

    def copy(self):
        return RewardStream(**self.to_dict())

    def to_dict(self) -> dict:
        return {
            'token': self.token,
            'duration': self.duration,
            'period_finish': self.period_finish,
            'last_update_time': self.last_update_time,
            'reward_rate': self.reward_rate,
            'reward_per_share_stored': self.reward_per_share_stored,
            'queued_amount': self.queued_amount,
            'historical_total': self.historical_total,
            'max_reward_rate': self.max_reward_rate
        }

    def last_time_applicable(self, now: int) -> int:
        return min(now, self.period_finish)

    def reward_per_share(self, total_weight: int, now: int) -> int:
        """reward_per_share_stored as it would be after settle(total_weight, now), without changing anything"""
        if total_weight == 0:
            return self.reward_per_share_stored
        elapsed = max(self.last_time_applicable(now) - self.last_update_time, 0)
        return self.reward_per_share_stored + elapsed * self.reward_rate // total_weight

    def settle(self, total_weight: int, now: int):
        self.reward_per_share_stored = self.reward_per_share(total_weight, now)
        self.last_update_time = max(self.last_time_applicable(now), self.last_update_time)
        return self

    def fund(self, amount: int, now: int):
        """
        Add amount to the stream. Must be called right after settle(..., now).
        A top-up arriving mid-period is folded in only while less than NEW_REWARD_RATIO / 1000 of it
        has already been streamed at the current rate; otherwise it waits in queued_amount.
        """
        if amount <= 0:
            raise ZeroAmount(f'cannot fund {self.token} with {amount}')
        if now >= self.period_finish:
            new_rate = (amount + self.queued_amount) * PRECISION // self.duration
            self._check_rate(new_rate)
            self.reward_rate = new_rate
            self.queued_amount = 0
            self.last_update_time = now
            self.period_finish = now + self.duration
        else:
            elapsed = now - (self.period_finish - self.duration)
            current_at_now = self.reward_rate * elapsed // PRECISION
            queued_ratio = current_at_now * 1000 // amount
            if queued_ratio < NEW_REWARD_RATIO:
                remaining = self.period_finish - now
                leftover = remaining * self.reward_rate
                new_rate = (leftover + (amount + self.queued_amount) * PRECISION) // remaining
                self._check_rate(new_rate)
                self.reward_rate = new_rate
                self.queued_amount = 0
                self.last_update_time = now
            else:
                self.queued_amount += amount
        self.historical_total += amount
        return self

    def _check_rate(self, rate: int):
        if rate >= self.max_reward_rate:
            raise RewardRateOverflow(f'{self.token} reward rate {rate} would reach the ceiling {self.max_reward_rate}')

    def renewal_requirement(self, now: int) -> tuple[int, int]:
        """(periods to add, holdings needed to cover them) for renewing an expired period at now"""
        if now <= self.period_finish:
            return 0, 0
        periods_elapsed = (now - self.period_finish) // self.duration
        periods = periods_elapsed + 1
        return periods, self.reward_rate * self.duration * periods // PRECISION

    def renew(self, now: int, holdings: int):
        """
        Roll an expired period forward at the same rate, by as many whole periods as needed to cover now.
        Must be called right after settle(..., now), so accrual up to the old finish is already stored.
        """
        if now <= self.period_finish:
            raise PeriodNotYetExpired(f'{self.token} period runs until {self.period_finish}, now is {now}')
        periods, required = self.renewal_requirement(now)
        if holdings < required:
            raise InsufficientFundingForRenewal(
                f'{self.token}: holding {holdings}, {required} needed for {periods} more period(s)'
            )
        self.period_finish += periods * self.duration
        return self


def earned(weight: int, reward_per_share: int, reward_per_share_paid: int, accrued: int) -> int:
    return weight * (reward_per_share - reward_per_share_paid) // PRECISION + accrued
