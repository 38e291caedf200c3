from hypothesis import given, strategies as st

from rewardflow.model.staking.fixed_point import ONE, SECONDS_PER_DAY
from rewardflow.model.staking.lock_weighting import (
    LockedStake, lock_multiplier, effective_multiplier, combined_weight, remove_stake, stake_id
)

DAY = SECONDS_PER_DAY
THREE_YEARS = 3 * 365 * DAY


def test_lock_multiplier_ramp():
    if lock_multiplier(0, 100, 3 * ONE) != ONE:
        raise AssertionError('no lock means 1x')
    if lock_multiplier(50, 100, 3 * ONE) != 2 * ONE:
        raise AssertionError('half the max duration means half the boost')
    if lock_multiplier(100, 100, 3 * ONE) != 3 * ONE:
        raise AssertionError()
    if lock_multiplier(1000, 100, 3 * ONE) != 3 * ONE:
        raise AssertionError('multiplier is capped')


def test_expired_multiplier_blends_toward_one():
    stake = LockedStake('a', 0, THREE_YEARS, 100 * ONE, 3 * ONE)
    last_claim = THREE_YEARS - 10 * DAY
    now = THREE_YEARS + 10 * DAY
    if effective_multiplier(stake, last_claim, now) != 2 * ONE:
        raise AssertionError('10 days at 3x and 10 days at 1x should average 2x')
    if combined_weight([stake], last_claim, now) != 200 * ONE:
        raise AssertionError()
    if effective_multiplier(stake, last_claim, THREE_YEARS - 1) != 3 * ONE:
        raise AssertionError('full multiplier until the lock ends')
    if effective_multiplier(stake, last_claim, THREE_YEARS) != 3 * ONE:
        raise AssertionError('nothing to blend at the moment the lock ends')


def test_expired_multiplier_after_claim_past_expiry():
    stake = LockedStake('a', 0, 100, 10, 3 * ONE)
    if effective_multiplier(stake, 100, 200) != ONE:
        raise AssertionError('a claim at or after expiry leaves only the 1x part')
    if effective_multiplier(stake, 150, 200) != ONE:
        raise AssertionError()


def test_blend_starts_at_stake_start():
    stake = LockedStake('a', 100 * DAY, 110 * DAY, ONE, 3 * ONE)
    # the last claim predates the stake; only its own 10 locked days count
    if effective_multiplier(stake, 0, 120 * DAY) != 2 * ONE:
        raise AssertionError()


@given(
    st.integers(min_value=0, max_value=10 ** 9),
    st.integers(min_value=1, max_value=10 ** 8),
    st.integers(min_value=0, max_value=2 * 10 ** 9),
    st.integers(min_value=0, max_value=2 * 10 ** 9),
    st.integers(min_value=ONE, max_value=10 * ONE)
)
def test_multiplier_stays_between_one_and_initial(start, lock, last_claim, now, initial):
    stake = LockedStake('a', start, start + lock, ONE, initial)
    multiplier = effective_multiplier(stake, last_claim, max(now, start))
    if not ONE <= multiplier <= initial:
        raise AssertionError(f'multiplier {multiplier} outside [1x, {initial}]')


def test_combined_weight_sums_stakes():
    stakes = [
        LockedStake('a', 0, 100, 10 * ONE, 2 * ONE),
        LockedStake('b', 0, 200, 5 * ONE, 3 * ONE),
    ]
    if combined_weight(stakes, 0, 50) != 35 * ONE:
        raise AssertionError()
    if combined_weight([], 0, 50) != 0:
        raise AssertionError()


def test_remove_stake_swaps_last_into_place():
    stakes = [LockedStake(name, 0, 1, 1, ONE) for name in 'abc']
    removed = remove_stake(stakes, 0)
    if removed.stake_id != 'a' or [s.stake_id for s in stakes] != ['c', 'b']:
        raise AssertionError()
    remove_stake(stakes, 1)
    if [s.stake_id for s in stakes] != ['c']:
        raise AssertionError()


def test_stake_id():
    if stake_id('alice', 10, 5, 0) != stake_id('alice', 10, 5, 0):
        raise AssertionError('ids are deterministic')
    if stake_id('alice', 10, 5, 0) == stake_id('alice', 10, 5, 5):
        raise AssertionError('a second identical lock gets a new id')
    if len(stake_id('alice', 10, 5, 0)) != 64:
        raise AssertionError()
