import copy
from typing import Callable

from .agents import Agent, AgentArchiveState
from .errors import RewardsError
from .venue import Venue


class GlobalState:
    def __init__(self,
                 agents: dict[str, Agent],
                 pools: dict[str, Venue],
                 evolve_function: Callable = None,
                 block_time: int = 12,
                 timestamp: int = 0,
                 archive_all: bool = True
                 ):
        """
        block_time is the number of seconds the shared clock advances per time step.
        Every pool sees the same timestamp.
        """
        if block_time <= 0:
            raise ValueError('block_time must be positive')
        self.asset_list = list(set(
            [asset for pool in pools.values() for asset in pool.asset_list]
            + [asset for agent in agents.values() for asset in agent.asset_list]
        ))
        self.agents = agents
        for agent_name in self.agents:
            self.agents[agent_name].unique_id = agent_name
        self.pools = pools
        for pool_name in self.pools:
            self.pools[pool_name].unique_id = pool_name
        for agent in self.agents.values():
            for asset in self.asset_list:
                if asset not in agent.holdings:
                    agent.holdings[asset] = 0
        self._evolve_function = evolve_function
        self.evolve_function = evolve_function.__name__ if evolve_function else 'None'
        self.block_time = block_time
        self.timestamp = timestamp
        self.time_step = 0
        self.archive_all = archive_all
        for pool in self.pools.values():
            pool.update(timestamp)

    def __repr__(self):
        newline = "\n"
        indent = '    '
        return (
                f'global state {newline}'
                f'time step: {self.time_step}, timestamp: {self.timestamp}{newline}'
                f'pools: {newline + newline + indent}' +
                ((newline + indent).join([
                    (newline + indent).join(pool_desc.split('\n'))
                    for pool_desc in [repr(pool) for pool in self.pools.values()]
                ])) +
                newline + newline +
                f'agents: {newline + newline}    ' +
                ((newline + indent).join([
                    (newline + indent).join(agent_desc.split('\n'))
                    for agent_desc in [repr(agent) for agent in self.agents.values()]
                ])) + newline +
                f'evolution function: {self.evolve_function}'
                f'{newline}'
        )

    def copy(self):
        # pools can hold references to each other (a checkpoint pool staking in another pool),
        # so the whole state is copied in one go to keep those references pointing inside the copy
        copy_state = copy.deepcopy(self)
        for pool in copy_state.pools.values():
            pool.fail = ''
        return copy_state

    def archive(self):
        if self.archive_all:
            return self.copy()
        else:
            return ArchiveState(self)

    def evolve(self):
        self.time_step += 1
        self.timestamp += self.block_time
        for pool in self.pools.values():
            pool.fail = ''
            pool.update(self.timestamp)
        for agent_id, agent in self.agents.items():
            if agent.trade_strategy:
                agent.trade_strategy.execute(self, agent_id)
        if self._evolve_function:
            return self._evolve_function(self)

    def execute(self, pool_id: str, agent_id: str, action: str, **kwargs):
        """
        Call pool_id.action(agent, **kwargs) on behalf of agent_id.
        A rejected operation is recorded on the pool's fail attribute instead of stopping the simulation.
        """
        pool = self.pools[pool_id]
        try:
            getattr(pool, action)(self.agents[agent_id], **kwargs)
        except RewardsError as error:
            pool.fail_transaction(error)
        return self

    def total_asset(self, tkn: str) -> int:
        return (
                sum([pool.liquidity[tkn] if tkn in pool.liquidity else 0 for pool in self.pools.values()])
                + sum([agent.holdings[tkn] if tkn in agent.holdings else 0 for agent in self.agents.values()])
        )

    def total_assets(self) -> dict[str, int]:
        return {tkn: self.total_asset(tkn) for tkn in self.asset_list}


class ArchiveState:
    def __init__(self, state: GlobalState):
        self.time_step = state.time_step
        self.timestamp = state.timestamp
        self.pools = {k: v.archive() for (k, v) in state.pools.items()}
        self.agents = {k: AgentArchiveState(v) for (k, v) in state.agents.items()}
