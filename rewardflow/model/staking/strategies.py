from typing import Callable

from .global_state import GlobalState


class Strategy:
    """
    A named agent behaviour, executed on the agent's turn in each time step.
    It runs on time steps start, start + frequency, start + 2 * frequency...
    and, with run_once, only on the first of those.
    """
    def __init__(
            self,
            strategy_function: Callable[[GlobalState, str], GlobalState],
            name: str,
            run_once: bool = False,
            frequency: int = 1,
            start: int = 1
    ):
        if frequency < 1:
            raise ValueError('frequency must be at least one time step')
        self.function = strategy_function
        self.run_once = run_once
        self.frequency = frequency
        self.start = start
        self.done = False
        self.name = name

    def is_due(self, time_step: int) -> bool:
        if self.done or time_step < self.start:
            return False
        return (time_step - self.start) % self.frequency == 0

    def execute(self, state: GlobalState, agent_id: str) -> GlobalState:
        if not self.is_due(state.time_step):
            return state
        if self.run_once:
            self.done = True
        return_val = self.function(state, agent_id)
        if return_val is not state:
            raise AssertionError(f'{self.name} returned a different state object.')
        return return_val

    def __add__(self, other):
        assert isinstance(other, Strategy)

        def combo_function(state, agent_id) -> GlobalState:
            new_state = self.execute(state, agent_id)
            return other.execute(new_state, agent_id)

        return Strategy(combo_function, name='\n'.join([self.name, other.name]))


def schedule_actions(pool_id: str, actions: list[dict]) -> Strategy:
    """
    actions[i] is run at time step i + 1 and should be None or in the form of:
    {
        'action': 'deposit' | 'withdraw' | 'claim' | 'fund' | 'lock' | 'unlock',
        ...keyword arguments for that pool method
    }
    """

    def strategy(state: GlobalState, agent_id: str):
        step = state.time_step - 1
        if step < len(actions) and actions[step]:
            kwargs = {k: v for k, v in actions[step].items() if k != 'action'}
            state.execute(pool_id, agent_id, actions[step]['action'], **kwargs)
        return state

    return Strategy(strategy, name=f'scheduled actions ({pool_id})')


def stake_all(pool_id: str, when: int = 1, lock_duration: int = 0) -> Strategy:
    """deposit (or lock for lock_duration, in a time-locked pool) everything the agent holds of the staking token"""

    def strategy(state: GlobalState, agent_id: str):
        pool = state.pools[pool_id]
        amount = state.agents[agent_id].get_holdings(pool.stake_token)
        if amount == 0:
            return state
        if lock_duration:
            state.execute(pool_id, agent_id, 'lock', amount=amount, duration=lock_duration)
        else:
            state.execute(pool_id, agent_id, 'deposit', amount=amount)
        return state

    return Strategy(strategy, name=f'stake all ({pool_id}) at time step {when}', run_once=True, start=when)


def claim_every(pool_id: str, frequency: int = 1) -> Strategy:

    def strategy(state: GlobalState, agent_id: str):
        state.execute(pool_id, agent_id, 'claim')
        return state

    return Strategy(
        strategy, name=f'claim every {frequency} steps ({pool_id})', frequency=frequency, start=frequency
    )


def fund_every(pool_id: str, tkn: str, amount: int, frequency: int = 1) -> Strategy:

    def strategy(state: GlobalState, agent_id: str):
        state.execute(pool_id, agent_id, 'fund', tkn=tkn, amount=amount)
        return state

    return Strategy(
        strategy, name=f'fund {amount} {tkn} every {frequency} steps ({pool_id})', frequency=frequency, start=frequency
    )


def withdraw_all(pool_id: str, when: int) -> Strategy:
    """withdraw the agent's whole balance and rewards; in a time-locked pool, unlock every stake that has expired"""

    def strategy(state: GlobalState, agent_id: str):
        pool = state.pools[pool_id]
        if hasattr(pool, 'locked_stakes'):
            for stake in pool.locked_stakes_of(agent_id):
                if stake.is_expired(pool.timestamp) or pool.unlock_override:
                    state.execute(pool_id, agent_id, 'unlock', target_id=stake.stake_id, take_rewards=True)
        else:
            amount = pool.balance_of(agent_id)
            if amount > 0:
                state.execute(pool_id, agent_id, 'withdraw', amount=amount, take_rewards=True)
        return state

    return Strategy(strategy, name=f'withdraw all at time step {when}', run_once=True, start=when)
