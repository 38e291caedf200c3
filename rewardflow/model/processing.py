import json
import os
import time

import pandas as pd
from mpmath import mpf

from .staking.checkpoint_pool import CheckpointPool
from .staking.checkpoint_proration import Checkpoint, TransactionEvent
from .staking.global_state import GlobalState
from .staking.lock_weighting import LockedStake
from .staking.reward_pool import RewardPool, ParticipantAccount
from .staking.reward_stream import RewardStream
from .staking.venue import Venue


def to_units(amount: int, decimals: int = 18) -> mpf:
    return mpf(amount) / 10 ** decimals


def pending_rewards(pool: Venue, agent_id: str) -> dict[str, int]:
    """what agent_id could claim from pool right now, without harvesting or settling anything"""
    if isinstance(pool, CheckpointPool):
        return {tkn: pool.claimable(agent_id, tkn) for tkn in pool.reward_tokens}
    return pool.earned(agent_id)


def participants(pool: Venue) -> list[str]:
    if isinstance(pool, CheckpointPool):
        return list(pool.deposits.keys())
    return list(pool.accounts.keys())


def conservation_report(pool: Venue) -> dict[str, dict[str, int]]:
    """
    Per reward token: how much came in, how much went out, what the pool holds and what it still owes.
    slack = held - owed, which is never negative.
    """
    report = {}
    if isinstance(pool, CheckpointPool):
        for tkn in pool.reward_tokens:
            funded = sum([cp.reward_amount for cp in pool.checkpoints[tkn]]) + pool.unallocated[tkn]
            paid = sum([claimed.get(tkn, 0) for claimed in pool.claimed.values()])
            owed = sum([pool.claimable(agent_id, tkn) for agent_id in participants(pool)])
            report[tkn] = {'funded': funded, 'paid': paid, 'held': pool.liquidity[tkn], 'owed': owed}
    else:
        for tkn, stream in pool.streams.items():
            owed = sum([pool.earned(agent_id)[tkn] for agent_id in participants(pool)])
            report[tkn] = {
                'funded': stream.historical_total,
                'paid': stream.historical_total - pool.liquidity[tkn],
                'held': pool.liquidity[tkn],
                'owed': owed
            }
    for tkn in report:
        report[tkn]['slack'] = report[tkn]['held'] - report[tkn]['owed']
    return report


def postprocessing(events: list, optional_params: list[str] = ()) -> list:
    """
    Definition:
    Compute more abstract metrics from the simulation

    Optional parameters:
    'earned': per agent, {pool_id: {tkn: claimable amount}} at each step
    'reward_holdings': per agent, the total of every reward token they hold at each step
    'undistributed': per pool, {tkn: slack} from conservation_report at each step
    """
    optional_params = set(optional_params)
    agent_params = {'earned', 'reward_holdings'}
    pool_params = {'undistributed'}
    unrecognized_params = optional_params.difference(agent_params | pool_params)
    if unrecognized_params:
        raise ValueError(f'Unrecognized parameter {unrecognized_params}')

    for step in events:
        state: GlobalState = step
        reward_tokens = set()
        for pool in state.pools.values():
            reward_tokens.update(pool.reward_tokens)
            if 'undistributed' in optional_params:
                pool.undistributed = {tkn: row['slack'] for tkn, row in conservation_report(pool).items()}

        for agent in state.agents.values():
            if 'earned' in optional_params:
                agent.earned = {
                    pool_id: pending_rewards(pool, agent.unique_id)
                    for pool_id, pool in state.pools.items()
                    if agent.unique_id in participants(pool)
                }
            if 'reward_holdings' in optional_params:
                agent.reward_holdings = sum([agent.holdings.get(tkn, 0) for tkn in reward_tokens])

    return events


def events_to_dataframe(events: list, pool_id: str, in_units: bool = False, decimals: int = 18) -> pd.DataFrame:
    """one row per (time step, participant) of pool_id: staked balance, claimable rewards and rewards held"""
    rows = []
    for state in events:
        pool = state.pools[pool_id]
        for agent_id in participants(pool):
            row = {
                'time_step': state.time_step,
                'timestamp': state.timestamp,
                'agent': agent_id,
                'balance': pool.balance_of(agent_id)
            }
            for tkn, amount in pending_rewards(pool, agent_id).items():
                row[f'earned_{tkn}'] = amount
                row[f'held_{tkn}'] = state.agents[agent_id].holdings.get(tkn, 0) if agent_id in state.agents else 0
            rows.append(row)
    # amounts overflow int64, keep them as python ints
    df = pd.DataFrame(rows, dtype=object)
    if df.empty:
        return df
    df = df.astype({'time_step': 'int64', 'timestamp': 'int64', 'agent': str})
    if in_units:
        amount_columns = [c for c in df.columns if c == 'balance' or c.startswith(('earned_', 'held_'))]
        for column in amount_columns:
            df[column] = df[column].apply(lambda x: float(to_units(x, decimals)))
    return df


# persisted ledger: configuration comes from the pool's constructor, state from the file

_record_types = {
    'streams': RewardStream,
    'accounts': ParticipantAccount,
    'locked_stakes': LockedStake,
    'checkpoints': Checkpoint,
    'deposits': TransactionEvent,
    'withdrawals': TransactionEvent,
}


def _encode(value):
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_encode(v) for v in value]
    return value


def _decode(field: str, value):
    record_type = _record_types.get(field)
    if record_type is None:
        return value
    decoded = {}
    for key, item in value.items():
        if isinstance(item, list):
            decoded[key] = [record_type(**record) for record in item]
        else:
            decoded[key] = record_type(**item)
    return decoded


def save_ledger(pool: Venue, path: str = './archive', filename: str = '') -> str:
    filename = filename or f'{pool.unique_id}_ledger_{time.time()}.json'
    with open(os.path.join(path, filename), 'w+') as output_file:
        json.dump(
            {
                'pool_type': type(pool).__name__,
                'unique_id': pool.unique_id,
                'timestamp': pool.timestamp,
                'ledger': {field: _encode(getattr(pool, field)) for field in pool.ledger_fields}
            },
            output_file
        )
    return filename


def load_ledger(pool: Venue, path: str = './archive', filename: str = '') -> Venue:
    """restore ledger state saved by save_ledger into pool, which must be configured like the saved one"""
    if filename:
        file_ls = [filename]
    else:
        file_ls = list(filter(lambda file: file.startswith(f'{pool.unique_id}_ledger'), os.listdir(path)))
    for filename in reversed(sorted(file_ls)):  # by default, load the latest first
        with open(os.path.join(path, filename), 'r') as input_file:
            json_state = json.load(input_file)
        if json_state['pool_type'] != type(pool).__name__:
            raise ValueError(f"{filename} holds a {json_state['pool_type']} ledger, not {type(pool).__name__}")
        for field in pool.ledger_fields:
            setattr(pool, field, _decode(field, json_state['ledger'][field]))
        pool.update(json_state['timestamp'])
        if isinstance(pool, RewardPool):
            for tkn in pool.streams:
                if tkn not in pool.asset_list:
                    pool.asset_list.append(tkn)
        return pool
    raise FileNotFoundError(f'Ledger file for {pool.unique_id} not found in {path}.')
