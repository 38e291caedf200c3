from .agents import Agent
from .errors import ZeroAmount, InsufficientBalance, PoolShutdown, InvalidLockDuration, StakeNotFound, StakeLocked
from .fixed_point import ONE, SECONDS_PER_DAY
from .lock_weighting import LockedStake, lock_multiplier, combined_weight, stake_id, remove_stake
from .reward_pool import RewardPool
from .reward_stream import DEFAULT_REWARD_DURATION, MAX_REWARD_RATE
from .venue import transaction

DEFAULT_LOCK_TIME_MIN = SECONDS_PER_DAY
DEFAULT_LOCK_TIME_FOR_MAX_MULTIPLIER = 3 * 365 * SECONDS_PER_DAY
DEFAULT_LOCK_MAX_MULTIPLIER = 3 * ONE


class TimeLockedPool(RewardPool):
    """
    Rewards are shared by combined weight: the sum over an account's locked stakes of
    principal * multiplier. Weights are refreshed whenever the account is settled.
    """
    unique_id: str = 'locked_pool'
    ledger_fields = (
        'liquidity', 'is_shutdown', 'streams', 'accounts', 'total_weight', 'locked_stakes', 'last_claim_time',
        'unlock_override'
    )

    def __init__(
            self,
            stake_token: str,
            reward_tokens: list[str] = None,
            duration: int = DEFAULT_REWARD_DURATION,
            lock_time_min: int = DEFAULT_LOCK_TIME_MIN,
            lock_time_for_max_multiplier: int = DEFAULT_LOCK_TIME_FOR_MAX_MULTIPLIER,
            lock_max_multiplier: int = DEFAULT_LOCK_MAX_MULTIPLIER,
            owner: str = '',
            unique_id: str = '',
            timestamp: int = 0,
            auto_renew: bool = True,
            max_reward_rate: int = MAX_REWARD_RATE
    ):
        super().__init__(
            stake_token=stake_token,
            reward_tokens=reward_tokens,
            duration=duration,
            owner=owner,
            unique_id=unique_id,
            timestamp=timestamp,
            auto_renew=auto_renew,
            max_reward_rate=max_reward_rate
        )
        if lock_time_for_max_multiplier <= 0:
            raise ValueError('lock_time_for_max_multiplier must be positive')
        if not 0 <= lock_time_min <= lock_time_for_max_multiplier:
            raise ValueError('lock_time_min must be between 0 and lock_time_for_max_multiplier')
        if lock_max_multiplier < ONE:
            raise ValueError('lock_max_multiplier must be at least 1x')
        self.lock_time_min = lock_time_min
        self.lock_time_for_max_multiplier = lock_time_for_max_multiplier
        self.lock_max_multiplier = lock_max_multiplier
        self.unlock_override = False
        self.locked_stakes: dict[str, list[LockedStake]] = {}
        self.last_claim_time: dict[str, int] = {}

    def lock_multiplier(self, lock_duration: int) -> int:
        return lock_multiplier(lock_duration, self.lock_time_for_max_multiplier, self.lock_max_multiplier)

    def locked_stakes_of(self, agent_id: str) -> list[LockedStake]:
        return list(self.locked_stakes.get(agent_id, []))

    def combined_weight_of(self, agent_id: str) -> int:
        """combined weight as it would be recomputed now (the stored weight lags until the next settlement)"""
        return combined_weight(
            self.locked_stakes.get(agent_id, []),
            self.last_claim_time.get(agent_id, self.timestamp),
            self.timestamp
        )

    def _update_weight(self, agent_id: str):
        account = self._account(agent_id)
        self._set_weight(account, self.combined_weight_of(agent_id))

    def _after_claim(self, agent_id: str):
        self.last_claim_time[agent_id] = self.timestamp

    def _find_stake(self, agent_id: str, target_id: str) -> int:
        for i, stake in enumerate(self.locked_stakes.get(agent_id, [])):
            if stake.stake_id == target_id:
                return i
        raise StakeNotFound(f'{agent_id} has no stake {target_id}')

    @transaction
    def lock(self, agent: Agent, amount: int, duration: int) -> str:
        if amount <= 0:
            raise ZeroAmount('lock amount must be positive')
        if self.is_shutdown:
            raise PoolShutdown(f'{self.unique_id} is shut down')
        if duration < self.lock_time_min:
            raise InvalidLockDuration(f'minimum lock is {self.lock_time_min}s, got {duration}s')
        if duration > self.lock_time_for_max_multiplier:
            raise InvalidLockDuration(f'maximum lock is {self.lock_time_for_max_multiplier}s, got {duration}s')
        if not agent.validate_holdings(self.stake_token, amount):
            raise InsufficientBalance(
                f'{agent.unique_id} holds {agent.get_holdings(self.stake_token)} {self.stake_token}, locking {amount}'
            )
        agent_id = agent.unique_id
        if agent_id not in self.last_claim_time:
            self.last_claim_time[agent_id] = self.timestamp
        self._update_account(agent_id)

        account = self._account(agent_id)
        new_stake = LockedStake(
            stake_id=stake_id(agent_id, self.timestamp, amount, account.raw_balance),
            start_time=self.timestamp,
            end_time=self.timestamp + duration,
            principal=amount,
            initial_multiplier=self.lock_multiplier(duration)
        )
        self.locked_stakes.setdefault(agent_id, []).append(new_stake)
        account.raw_balance += amount
        self._update_weight(agent_id)
        self._collect(agent, self.stake_token, amount)
        return new_stake.stake_id

    @transaction
    def unlock(self, agent: Agent, target_id: str, take_rewards: bool = False, receiver: Agent = None) -> int:
        """withdraw an expired stake (any stake, while unlock_override is set); returns the principal"""
        agent_id = agent.unique_id
        index = self._find_stake(agent_id, target_id)
        stake = self.locked_stakes[agent_id][index]
        if not stake.is_expired(self.timestamp) and not self.unlock_override:
            raise StakeLocked(f'stake {target_id} is locked until {stake.end_time}')
        receiver = receiver or agent
        self._update_account(agent_id)

        remove_stake(self.locked_stakes[agent_id], index)
        account = self._account(agent_id)
        account.raw_balance -= stake.principal
        self._update_weight(agent_id)
        owed = {}
        if take_rewards:
            owed = self._take_rewards(agent_id)
            self._after_claim(agent_id)
        self._pay_rewards(agent, owed, stake_payment=(receiver, stake.principal))
        return stake.principal

    @transaction
    def set_unlock_override(self, origin: str, value: bool = True):
        self._require_owner(origin)
        self.unlock_override = value
        return self
