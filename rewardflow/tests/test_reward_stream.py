import pytest
from hypothesis import given, strategies as st

from rewardflow.model.staking.errors import (
    ZeroAmount, RewardRateOverflow, PeriodNotYetExpired, InsufficientFundingForRenewal
)
from rewardflow.model.staking.fixed_point import ONE, PRECISION, SECONDS_PER_DAY
from rewardflow.model.staking.reward_stream import RewardStream, earned, NEW_REWARD_RATIO
from rewardflow.tests.strategies_staking import amount_strategy, time_gap_strategy

DAY = SECONDS_PER_DAY


def test_fund_starts_period():
    stream = RewardStream('RWD', duration=10 * DAY)
    stream.settle(0, 100)
    stream.fund(1000 * ONE, 100)
    if stream.reward_rate != 1000 * ONE * PRECISION // (10 * DAY):
        raise AssertionError('rate should spread the funding over one duration')
    if stream.period_finish != 100 + 10 * DAY or stream.last_update_time != 100:
        raise AssertionError('period should start now')
    if stream.historical_total != 1000 * ONE:
        raise AssertionError()


def test_no_accrual_without_weight():
    stream = RewardStream('RWD', duration=10 * DAY)
    stream.fund(1000 * ONE, 0)
    stream.settle(0, 5 * DAY)
    if stream.reward_per_share_stored != 0:
        raise AssertionError('nothing accrues while total weight is zero')
    if stream.last_update_time != 5 * DAY:
        raise AssertionError('the clock still moves forward')
    # the first weight only earns from here on
    weight = ONE
    stream.settle(weight, 10 * DAY)
    owed = earned(weight, stream.reward_per_share_stored, 0, 0)
    if owed > 500 * ONE or 500 * ONE - owed > 10 ** 6:
        raise AssertionError(f'expected half the funding, got {owed}')


def test_fund_queues_late_top_up():
    stream = RewardStream('RWD', duration=10 * DAY)
    stream.fund(1000 * ONE, 0)
    stream.settle(ONE, 9 * DAY)
    rate_before = stream.reward_rate
    stream.fund(100 * ONE, 9 * DAY)
    # ~900 already streamed against a 100 top-up: ratio 9000 per mille
    if stream.queued_amount != 100 * ONE:
        raise AssertionError('top-up should wait in the queue')
    if stream.reward_rate != rate_before or stream.period_finish != 10 * DAY:
        raise AssertionError('a queued top-up must not touch the rate or the period')

    stream.fund(2000 * ONE, 9 * DAY)
    remaining = DAY
    expected_rate = (remaining * rate_before + 2100 * ONE * PRECISION) // remaining
    if stream.queued_amount != 0:
        raise AssertionError('folding in a top-up empties the queue')
    if stream.reward_rate != expected_rate:
        raise AssertionError(f'rate {stream.reward_rate} != {expected_rate}')
    if stream.period_finish != 10 * DAY:
        raise AssertionError('folding keeps the current period end')
    if stream.historical_total != 3100 * ONE:
        raise AssertionError()


def test_queued_amount_joins_next_period():
    stream = RewardStream('RWD', duration=10 * DAY)
    stream.fund(1000 * ONE, 0)
    stream.settle(ONE, 9 * DAY)
    stream.fund(100 * ONE, 9 * DAY)
    stream.settle(ONE, 11 * DAY)
    stream.fund(50 * ONE, 11 * DAY)
    if stream.reward_rate != 150 * ONE * PRECISION // (10 * DAY):
        raise AssertionError('queued funding should be spread over the new period')
    if stream.queued_amount != 0 or stream.period_finish != 21 * DAY:
        raise AssertionError()


def test_fund_threshold():
    stream = RewardStream('RWD', duration=1000)
    stream.fund(1000, 0)
    stream.settle(1, 500)
    # 500 streamed; a top-up of 500 * 1000 // 830 + 1 is just under the ratio
    stream.fund(500 * 1000 // NEW_REWARD_RATIO + 1, 500)
    if stream.queued_amount != 0:
        raise AssertionError('top-up under the ratio should be folded in')
    stream.fund(1, 500)
    if stream.queued_amount != 1:
        raise AssertionError('tiny top-up should be queued')


def test_fund_rejects_zero_and_ceiling():
    stream = RewardStream('RWD', duration=100, max_reward_rate=10 * PRECISION)
    with pytest.raises(ZeroAmount):
        stream.fund(0, 0)
    with pytest.raises(RewardRateOverflow):
        stream.fund(1000, 0)
    if stream.reward_rate != 0 or stream.period_finish != 0 or stream.historical_total != 0:
        raise AssertionError('rejected funding must leave the stream alone')
    stream.fund(999, 0)
    if stream.reward_rate != 999 * PRECISION // 100:
        raise AssertionError()


@given(st.lists(st.tuples(time_gap_strategy, amount_strategy), min_size=1, max_size=20), amount_strategy)
def test_reward_per_share_never_decreases(steps, funding):
    stream = RewardStream('RWD', duration=7 * DAY)
    now = 0
    stream.fund(funding, now)
    last_rps = stream.reward_per_share_stored
    for gap, weight in steps:
        now += gap
        view = stream.reward_per_share(weight, now)
        stream.settle(weight, now)
        if stream.reward_per_share_stored != view:
            raise AssertionError('view and settle disagree')
        if stream.reward_per_share_stored < last_rps:
            raise AssertionError('reward per share went down')
        if stream.last_update_time > max(now, stream.period_finish):
            raise AssertionError()
        last_rps = stream.reward_per_share_stored


def test_accrual_stops_at_period_finish():
    stream = RewardStream('RWD', duration=100)
    stream.fund(100, 0)
    stream.settle(1, 100)
    at_finish = stream.reward_per_share_stored
    stream.settle(1, 1000)
    if stream.reward_per_share_stored != at_finish:
        raise AssertionError('nothing accrues after the period ends')


def test_renewal():
    stream = RewardStream('RWD', duration=100)
    stream.fund(100, 0)
    with pytest.raises(PeriodNotYetExpired):
        stream.renew(50, 10 ** 6)
    if stream.renewal_requirement(100) != (0, 0):
        raise AssertionError('a period that ends right now does not need renewing')

    periods, required = stream.renewal_requirement(350)
    if periods != 3 or required != 300:
        raise AssertionError(f'expected 3 periods needing 300, got {periods} needing {required}')
    with pytest.raises(InsufficientFundingForRenewal):
        stream.renew(350, 299)
    if stream.period_finish != 100:
        raise AssertionError()

    stream.settle(1, 350)
    stream.renew(350, 300)
    if stream.period_finish != 400:
        raise AssertionError()
    stream.settle(1, 400)
    if stream.reward_per_share_stored != 400 * PRECISION:
        raise AssertionError('renewed periods accrue back to the old finish')
