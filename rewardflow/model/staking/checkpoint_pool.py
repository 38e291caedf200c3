from .agents import Agent
from .checkpoint_proration import Checkpoint, TransactionEvent, prorated_earned
from .errors import ZeroAmount, InsufficientBalance, PoolShutdown, UnknownRewardToken
from .reward_curve import RewardCurve
from .reward_source import RewardSource
from .venue import Venue, transaction

DEFAULT_HARVEST_COOLDOWN = 3600


class CheckpointPool(Venue):
    """
    Single-underlying pool: deposits are staked with a reward source, rewards arrive in lumps
    when the pool harvests, and each harvest is recorded as a checkpoint. What an account is owed
    is rebuilt from its own deposit/withdraw log and the checkpoints (see checkpoint_proration).
    """
    unique_id: str = 'checkpoint_pool'
    ledger_fields = (
        'liquidity', 'is_shutdown', 'total_supply', 'balances', 'deposits', 'withdrawals', 'checkpoints',
        'claimed', 'unallocated', 'minted', 'last_harvest'
    )

    def __init__(
            self,
            stake_token: str,
            reward_tokens: list[str],
            reward_source: RewardSource,
            harvest_cooldown: int = DEFAULT_HARVEST_COOLDOWN,
            reward_curve: RewardCurve = None,
            owner: str = '',
            unique_id: str = '',
            timestamp: int = 0
    ):
        super().__init__(stake_token=stake_token, owner=owner, unique_id=unique_id, timestamp=timestamp)
        if not reward_tokens:
            raise ValueError('a checkpoint pool needs at least one reward token')
        if stake_token in reward_tokens:
            raise ValueError('the staking token cannot also be a reward token')
        if harvest_cooldown < 0:
            raise ValueError('harvest_cooldown must be non-negative')
        if reward_curve is not None:
            if reward_curve.base_token not in reward_tokens:
                raise ValueError(f'curve base token {reward_curve.base_token} is not a reward token')
            if reward_curve.derived_token in reward_tokens or reward_curve.derived_token == stake_token:
                raise ValueError('the derived token must be separate from the pool tokens')
        self.reward_tokens = list(reward_tokens)
        self.reward_source = reward_source
        self.harvest_cooldown = harvest_cooldown
        self.reward_curve = reward_curve
        for tkn in self.reward_tokens:
            self._add_asset(tkn)

        self.total_supply = 0
        self.balances: dict[str, int] = {}
        self.deposits: dict[str, list[TransactionEvent]] = {}
        self.withdrawals: dict[str, list[TransactionEvent]] = {}
        self.checkpoints: dict[str, list[Checkpoint]] = {tkn: [] for tkn in self.reward_tokens}
        self.claimed: dict[str, dict[str, int]] = {}
        self.unallocated: dict[str, int] = {tkn: 0 for tkn in self.reward_tokens}
        self.minted: dict[str, int] = {reward_curve.derived_token: 0} if reward_curve else {}
        self.last_harvest: int = None

    def __repr__(self):
        return (
            f'CheckpointPool: {self.unique_id}\n'
            f'********************************\n'
            f'stake token: {self.stake_token}\n'
            f'total supply: {self.total_supply}\n'
            f'holdings: {self.liquidity}\n'
            f'checkpoints: {({tkn: len(cps) for tkn, cps in self.checkpoints.items()})}\n'
            f'last harvest: {self.last_harvest}\n'
        )

    def protected_tokens(self) -> set[str]:
        return {self.stake_token, *self.reward_tokens}

    def balance_of(self, agent_id: str) -> int:
        return self.balances.get(agent_id, 0)

    def harvest_due(self) -> bool:
        if self.last_harvest is None:
            return True
        return self.timestamp > self.last_harvest and self.timestamp >= self.last_harvest + self.harvest_cooldown

    def _harvest(self) -> bool:
        if not self.harvest_due():
            return False
        before = {tkn: self.liquidity[tkn] for tkn in self.reward_tokens}
        self.reward_source.harvest(self)
        for tkn in self.reward_tokens:
            received = self.liquidity[tkn] - before[tkn]
            checkpoints = self.checkpoints[tkn]
            if not checkpoints:
                checkpoints.append(Checkpoint(self.total_supply, self.timestamp, 0))
                self.unallocated[tkn] += received
            elif received > 0 and self.total_supply == 0:
                # nobody to prorate over
                self.unallocated[tkn] += received
            elif received > 0:
                checkpoints.append(Checkpoint(self.total_supply, self.timestamp, received))
        self.last_harvest = self.timestamp
        return True

    @transaction
    def harvest(self) -> bool:
        """checkpoint whatever the reward source has for us; False if rate limited"""
        return self._harvest()

    def _earned(self, agent_id: str, tkn: str) -> int:
        return prorated_earned(
            self.checkpoints[tkn],
            self.deposits.get(agent_id, []),
            self.withdrawals.get(agent_id, []),
            self.claimed.get(agent_id, {}).get(tkn, 0)
        )

    def earned(self, agent_id: str) -> dict[str, int]:
        """
        Base reward tokens owed to agent_id.
        Harvests first when the cooldown has run out, so this can change pool state.
        """
        if not self._entered:
            self.harvest()
        return {tkn: self._earned(agent_id, tkn) for tkn in self.reward_tokens}

    def _take_rewards(self, agent_id: str) -> dict[str, int]:
        owed = {tkn: self._earned(agent_id, tkn) for tkn in self.reward_tokens}
        for tkn, amount in owed.items():
            if self.liquidity[tkn] < amount:
                raise InsufficientBalance(f'{self.unique_id} holds {self.liquidity[tkn]} {tkn}, owes {amount}')
        claimed = self.claimed.setdefault(agent_id, {})
        for tkn, amount in owed.items():
            claimed[tkn] = claimed.get(tkn, 0) + amount
        if self.reward_curve is not None:
            derived = self.reward_curve.derived_amount_at(owed[self.reward_curve.base_token], self.timestamp)
            self.minted[self.reward_curve.derived_token] += derived
            owed[self.reward_curve.derived_token] = derived
        return owed

    def minted_tokens(self) -> tuple:
        return (self.reward_curve.derived_token,) if self.reward_curve else ()

    def _harvest_and_commit(self):
        # the reward source has already paid out by the time _harvest returns
        if self._harvest():
            self._commit()

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
        self._harvest_and_commit()
        agent_id = agent.unique_id
        self.deposits.setdefault(agent_id, []).append(TransactionEvent(amount, self.timestamp))
        self.balances[agent_id] = self.balance_of(agent_id) + amount
        self.total_supply += amount
        self.liquidity[self.stake_token] += amount
        self.reward_source.deposit_position(self, amount)
        agent.transfer_from(self.stake_token, amount)
        return self

    @transaction
    def withdraw(self, agent: Agent, amount: int, take_rewards: bool = False, receiver: Agent = None):
        if amount <= 0:
            raise ZeroAmount('withdraw amount must be positive')
        agent_id = agent.unique_id
        if self.balance_of(agent_id) < amount:
            raise InsufficientBalance(f'{agent_id} has {self.balance_of(agent_id)} deposited, withdrawing {amount}')
        receiver = receiver or agent
        self._harvest_and_commit()
        self.withdrawals.setdefault(agent_id, []).append(TransactionEvent(amount, self.timestamp))
        self.balances[agent_id] -= amount
        self.total_supply -= amount
        owed = self._take_rewards(agent_id) if take_rewards else {}
        self.reward_source.withdraw_position(self, amount)
        self._pay_rewards(agent, owed, stake_payment=(receiver, amount))
        return self

    @transaction
    def claim(self, agent: Agent) -> dict[str, int]:
        self._harvest_and_commit()
        owed = self._take_rewards(agent.unique_id)
        self._pay_rewards(agent, owed)
        return owed

    def claimable(self, agent_id: str, tkn: str) -> int:
        if tkn not in self.reward_tokens:
            raise UnknownRewardToken(f'{tkn} is not a reward token of {self.unique_id}')
        return self._earned(agent_id, tkn)
