from typing import Protocol

from .agents import Agent
from .errors import RewardsError
from .reward_pool import MultiRewardPool


class RewardSource(Protocol):
    """Where a checkpoint pool's capital is put to work and where its rewards come from."""

    def harvest(self, pool) -> None:
        """move any pending rewards into pool.liquidity"""

    def deposit_position(self, pool, amount: int) -> None:
        """take amount of the staking token out of pool.liquidity and stake it"""

    def withdraw_position(self, pool, amount: int) -> None:
        """unstake amount and put it back into pool.liquidity"""


class StakingPoolSource:
    """Stakes a checkpoint pool's capital in a MultiRewardPool, holding the position as holder."""

    def __init__(self, underlying: MultiRewardPool, holder: Agent = None):
        self.underlying = underlying
        self.holder = holder or Agent(unique_id=f'{underlying.unique_id}_position')

    def __repr__(self):
        return f'StakingPoolSource({self.underlying.unique_id}, holder={self.holder.unique_id})'

    @property
    def staked(self) -> int:
        return self.underlying.balance_of(self.holder.unique_id)

    def harvest(self, pool) -> None:
        claimed = self.underlying.claim(self.holder)
        for tkn, amount in claimed.items():
            if amount == 0:
                continue
            self.holder.transfer_from(tkn, amount)
            pool._add_asset(tkn)
            pool.liquidity[tkn] += amount

    def deposit_position(self, pool, amount: int) -> None:
        pool.liquidity[pool.stake_token] -= amount
        self.holder.transfer_to(pool.stake_token, amount)
        try:
            self.underlying.deposit(self.holder, amount)
        except RewardsError:
            self.holder.transfer_from(pool.stake_token, amount)
            raise

    def withdraw_position(self, pool, amount: int) -> None:
        self.underlying.withdraw(self.holder, amount)
        self.holder.transfer_from(pool.stake_token, amount)
        pool.liquidity[pool.stake_token] += amount
