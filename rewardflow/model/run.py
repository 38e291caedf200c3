import time

from .processing import conservation_report
from .staking.global_state import GlobalState


def shortfalls(state: GlobalState) -> dict[str, dict[str, int]]:
    """{pool_id: {tkn: amount}} for every reward token a pool owes more of than it holds"""
    found = {}
    for pool_id, pool in state.pools.items():
        short = {tkn: -row['slack'] for tkn, row in conservation_report(pool).items() if row['slack'] < 0}
        if short:
            found[pool_id] = short
    return found


def run(initial_state: GlobalState, time_steps: int, silent: bool = False, check_solvency: bool = False) -> list:
    """
    Definition:
    Run the simulation for time_steps steps and return the archived state after each one.

    With check_solvency, each archived step also carries a shortfalls attribute (see shortfalls())
    and, unless silent, every shortfall is printed as it appears.
    """

    start_time = time.time()
    events = []
    new_global_state = initial_state.copy()

    if not silent:
        print('Starting simulation...')

    for i in range(time_steps):

        new_global_state.evolve()

        event = new_global_state.archive()
        if check_solvency:
            event.shortfalls = shortfalls(new_global_state)
            if not silent:
                for pool_id, short in event.shortfalls.items():
                    print(f'step {new_global_state.time_step}: {pool_id} is short {short}')
        events.append(event)

    if not silent:
        print(f'Execution time: {round(time.time() - start_time, 3)} seconds.')
    return events
