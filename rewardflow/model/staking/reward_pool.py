from .agents import Agent
from .errors import (
    ZeroAmount, InsufficientBalance, PoolShutdown, RewardTokenCapExceeded, UnknownRewardToken,
    InsufficientFundingForRenewal
)
from .reward_stream import RewardStream, earned, DEFAULT_REWARD_DURATION, MAX_REWARD_RATE
from .venue import Venue, transaction

MAX_REWARD_TOKENS = 5


class ParticipantAccount:
    def __init__(
            self,
            raw_balance: int = 0,
            weight: int = 0,
            reward_per_share_paid: dict[str, int] = None,
            accrued_rewards: dict[str, int] = None
    ):
        self.raw_balance = raw_balance
        self.weight = weight
        self.reward_per_share_paid = dict(reward_per_share_paid or {})
        self.accrued_rewards = dict(accrued_rewards or {})

    def __repr__(self):
        return f'ParticipantAccount(balance={self.raw_balance}, weight={self.weight}, accrued={self.accrued_rewards})'

    def to_dict(self) -> dict:
        return {
            'raw_balance': self.raw_balance,
            'weight': self.weight,
            'reward_per_share_paid': dict(self.reward_per_share_paid),
            'accrued_rewards': dict(self.accrued_rewards)
        }


class RewardPool(Venue):
    """
    Shared plumbing for pools that stream rewards by reward-per-share.
    Subclasses decide what an account's weight is; the pool keeps total_weight equal to the sum of account weights.
    """
    unique_id: str = 'reward_pool'
    ledger_fields = ('liquidity', 'is_shutdown', 'streams', 'accounts', 'total_weight')

    def __init__(
            self,
            stake_token: str,
            reward_tokens: list[str] = None,
            duration: int = DEFAULT_REWARD_DURATION,
            owner: str = '',
            unique_id: str = '',
            timestamp: int = 0,
            auto_renew: bool = False,
            max_reward_rate: int = MAX_REWARD_RATE
    ):
        super().__init__(stake_token=stake_token, owner=owner, unique_id=unique_id, timestamp=timestamp)
        if duration <= 0:
            raise ValueError('reward duration must be positive')
        self.duration = duration
        self.auto_renew = auto_renew
        self.max_reward_rate = max_reward_rate
        self.streams: dict[str, RewardStream] = {}
        self.accounts: dict[str, ParticipantAccount] = {}
        self.total_weight = 0
        reward_tokens = reward_tokens or []
        if len(reward_tokens) > MAX_REWARD_TOKENS:
            raise ValueError(f'at most {MAX_REWARD_TOKENS} reward tokens')
        for tkn in reward_tokens:
            self._register(tkn, duration)

    def __repr__(self):
        newline = '\n'
        return (
            f'{type(self).__name__}: {self.unique_id}\n'
            f'********************************\n'
            f'stake token: {self.stake_token}\n'
            f'total weight: {self.total_weight}\n'
            f'holdings: {self.liquidity}\n'
            f'streams:\n'
            f'{newline.join([f"    {stream}" for stream in self.streams.values()])}\n'
        )

    @property
    def reward_tokens(self) -> list[str]:
        return list(self.streams.keys())

    def protected_tokens(self) -> set[str]:
        return {self.stake_token, *self.streams.keys()}

    def _register(self, tkn: str, duration: int):
        if tkn == self.stake_token:
            raise ValueError('the staking token cannot also be a reward token')
        if tkn in self.streams:
            raise ValueError(f'{tkn} is already a reward token')
        self.streams[tkn] = RewardStream(
            tkn, duration=duration, last_update_time=self.timestamp, max_reward_rate=self.max_reward_rate
        )
        self._add_asset(tkn)

    def _account(self, agent_id: str) -> ParticipantAccount:
        if agent_id not in self.accounts:
            self.accounts[agent_id] = ParticipantAccount()
        return self.accounts[agent_id]

    # settlement

    def _check_renewals(self) -> list[RewardStream]:
        """streams that need renewing now; raises before anything is touched if any of them cannot be covered"""
        expired = [
            stream for stream in self.streams.values()
            if self.timestamp > stream.period_finish and stream.reward_rate > 0
        ]
        for stream in expired:
            # measured against holdings only: rewards already owed are not netted out, so a renewal
            # can commit more than the pool holds and the last claimant's claim fails until it is funded
            periods, required = stream.renewal_requirement(self.timestamp)
            if self.liquidity[stream.token] < required:
                raise InsufficientFundingForRenewal(
                    f'{stream.token}: holding {self.liquidity[stream.token]}, '
                    f'{required} needed for {periods} more period(s)'
                )
        return expired

    def sync(self):
        if not self.auto_renew:
            return self
        for stream in self._check_renewals():
            stream.settle(self.total_weight, self.timestamp)
            stream.renew(self.timestamp, self.liquidity[stream.token])
        return self

    def _update_account(self, agent_id: str = None, renew: bool = True):
        """bring every stream up to now, then snapshot what agent_id has earned so far"""
        if renew:
            self.sync()
        for stream in self.streams.values():
            stream.settle(self.total_weight, self.timestamp)
        if agent_id is None:
            return
        account = self._account(agent_id)
        for tkn, stream in self.streams.items():
            account.accrued_rewards[tkn] = earned(
                account.weight,
                stream.reward_per_share_stored,
                account.reward_per_share_paid.get(tkn, 0),
                account.accrued_rewards.get(tkn, 0)
            )
            account.reward_per_share_paid[tkn] = stream.reward_per_share_stored
        self._update_weight(agent_id)

    def _update_weight(self, agent_id: str):
        pass

    def _set_weight(self, account: ParticipantAccount, new_weight: int):
        # adjust by the delta; the total is never recomputed from scratch
        self.total_weight += new_weight - account.weight
        account.weight = new_weight

    def _take_rewards(self, agent_id: str) -> dict[str, int]:
        """zero the account's accrued rewards and return what is owed; call _update_account first"""
        account = self._account(agent_id)
        owed = {tkn: account.accrued_rewards.get(tkn, 0) for tkn in self.streams}
        for tkn, amount in owed.items():
            if self.liquidity[tkn] < amount:
                raise InsufficientBalance(f'{self.unique_id} holds {self.liquidity[tkn]} {tkn}, owes {amount}')
        for tkn in owed:
            account.accrued_rewards[tkn] = 0
        return owed

    # views

    def reward_per_share(self, tkn: str) -> int:
        if tkn not in self.streams:
            raise UnknownRewardToken(f'{tkn} is not a reward token of {self.unique_id}')
        stream = self.streams[tkn]
        return stream.reward_per_share(self.total_weight, self.timestamp)

    def earned(self, agent_id: str) -> dict[str, int]:
        if agent_id not in self.accounts:
            return {tkn: 0 for tkn in self.streams}
        account = self.accounts[agent_id]
        return {
            tkn: earned(
                account.weight,
                self.reward_per_share(tkn),
                account.reward_per_share_paid.get(tkn, 0),
                account.accrued_rewards.get(tkn, 0)
            )
            for tkn in self.streams
        }

    def balance_of(self, agent_id: str) -> int:
        return self.accounts[agent_id].raw_balance if agent_id in self.accounts else 0

    def weight_of(self, agent_id: str) -> int:
        return self.accounts[agent_id].weight if agent_id in self.accounts else 0

    # entry points

    @transaction
    def claim(self, agent: Agent) -> dict[str, int]:
        self._update_account(agent.unique_id)
        owed = self._take_rewards(agent.unique_id)
        self._after_claim(agent.unique_id)
        self._pay_rewards(agent, owed)
        return owed

    def _after_claim(self, agent_id: str):
        pass

    @transaction
    def fund(self, agent: Agent, tkn: str, amount: int):
        if amount <= 0:
            raise ZeroAmount(f'cannot fund {tkn} with {amount}')
        if tkn not in self.streams:
            raise UnknownRewardToken(f'{tkn} is not a reward token of {self.unique_id}')
        if not agent.validate_holdings(tkn, amount):
            raise InsufficientBalance(f'{agent.unique_id} holds {agent.get_holdings(tkn)} {tkn}, funding {amount}')
        # settle without renewing: an under-funded renewal must not block the funding that covers it
        self._update_account(renew=False)
        self.streams[tkn].fund(amount, self.timestamp)
        self._collect(agent, tkn, amount)
        return self

    @transaction
    def add_reward_token(self, origin: str, tkn: str, duration: int = None):
        self._require_owner(origin)
        if len(self.streams) >= MAX_REWARD_TOKENS:
            raise RewardTokenCapExceeded(f'{self.unique_id} already streams {len(self.streams)} reward tokens')
        self._update_account()
        self._register(tkn, duration or self.duration)
        return self

    @transaction
    def renew_period(self, origin: str, tkn: str):
        self._require_owner(origin)
        if tkn not in self.streams:
            raise UnknownRewardToken(f'{tkn} is not a reward token of {self.unique_id}')
        stream = self.streams[tkn]
        stream.settle(self.total_weight, self.timestamp)
        stream.renew(self.timestamp, self.liquidity[tkn])
        return self


class MultiRewardPool(RewardPool):
    """Continuous-accrual pool: an account's weight is its staked balance."""
    unique_id: str = 'multi_reward_pool'

    @transaction
    def deposit(self, agent: Agent, amount: int):
        if amount <= 0:
            raise ZeroAmount('deposit amount must be positive')
        if self.is_shutdown:
            raise PoolShutdown(f'{self.unique_id} is shut down')
        if not agent.validate_holdings(self.stake_token, amount):
            raise InsufficientBalance(
                f'{agent.unique_id} holds {agent.get_holdings(self.stake_token)} {self.stake_token}, depositing {amount}'
            )
        self._update_account(agent.unique_id)
        account = self._account(agent.unique_id)
        account.raw_balance += amount
        self._set_weight(account, account.raw_balance)
        self._collect(agent, self.stake_token, amount)
        return self

    @transaction
    def withdraw(self, agent: Agent, amount: int, take_rewards: bool = False, receiver: Agent = None):
        """withdraw amount of agent's stake to receiver (agent itself by default), optionally claiming too"""
        if amount <= 0:
            raise ZeroAmount('withdraw amount must be positive')
        if self.balance_of(agent.unique_id) < amount:
            raise InsufficientBalance(
                f'{agent.unique_id} has {self.balance_of(agent.unique_id)} staked, withdrawing {amount}'
            )
        receiver = receiver or agent
        self._update_account(agent.unique_id)
        account = self._account(agent.unique_id)
        account.raw_balance -= amount
        self._set_weight(account, account.raw_balance)
        owed = self._take_rewards(agent.unique_id) if take_rewards else {}
        self._pay_rewards(agent, owed, stake_payment=(receiver, amount))
        return self
