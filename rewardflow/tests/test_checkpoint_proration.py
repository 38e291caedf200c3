from hypothesis import given, strategies as st

from rewardflow.model.staking.checkpoint_proration import (
    Checkpoint, TransactionEvent, prorated_fraction, prorated_earned
)


def test_single_deposit_at_anchor():
    checkpoints = [Checkpoint(0, 0, 0), Checkpoint(200, 100, 50)]
    deposits = [TransactionEvent(200, 0)]
    if prorated_earned(checkpoints, deposits, []) != 50:
        raise AssertionError('a depositor holding the whole supply all interval gets the whole reward')
    if prorated_earned(checkpoints, deposits, [], already_claimed=20) != 30:
        raise AssertionError('claimed rewards are subtracted')


def test_prorated_fraction_boundaries():
    if prorated_fraction(0, 0, 100) != (100, 100):
        raise AssertionError('deposit at the interval start counts in full')
    if prorated_fraction(50, 0, 100) != (50, 100):
        raise AssertionError()
    if prorated_fraction(100, 0, 100) != (0, 100):
        raise AssertionError('deposit at the interval end counts for nothing')
    if prorated_fraction(-10, 0, 100) != (100, 100):
        raise AssertionError()


def test_deposit_at_checkpoint_counts_from_next_interval():
    checkpoints = [Checkpoint(0, 0, 0), Checkpoint(100, 100, 10), Checkpoint(100, 200, 10)]
    deposits = [TransactionEvent(100, 100)]
    if prorated_earned(checkpoints, deposits, []) != 10:
        raise AssertionError('only the second interval should pay')


def test_mid_interval_deposit_is_prorated():
    checkpoints = [Checkpoint(0, 0, 0), Checkpoint(200, 100, 50), Checkpoint(200, 200, 50)]
    deposits = [TransactionEvent(200, 50)]
    # half of the first interval, all of the second
    if prorated_earned(checkpoints, deposits, []) != 25 + 50:
        raise AssertionError()


def test_withdrawals_take_oldest_capital_first():
    checkpoints = [Checkpoint(0, 0, 0), Checkpoint(200, 100, 100), Checkpoint(100, 200, 100)]
    deposits = [TransactionEvent(100, 0), TransactionEvent(100, 50)]
    withdrawals = [TransactionEvent(100, 150)]
    # first interval: 100 + 50 of 200; second: the 100 left over all interval
    if prorated_earned(checkpoints, deposits, withdrawals) != 75 + 100:
        raise AssertionError()


def test_withdrawal_nets_against_same_interval_deposit():
    checkpoints = [Checkpoint(0, 0, 0), Checkpoint(60, 100, 60)]
    deposits = [TransactionEvent(100, 10)]
    withdrawals = [TransactionEvent(40, 50)]
    if prorated_earned(checkpoints, deposits, withdrawals) != 54:
        raise AssertionError('60 left, present for 90% of the interval')


def test_no_checkpoints_no_rewards():
    if prorated_earned([], [TransactionEvent(5, 0)], []) != 0:
        raise AssertionError()
    if prorated_earned([Checkpoint(0, 0, 0)], [TransactionEvent(5, 0)], []) != 0:
        raise AssertionError()


@given(
    st.lists(st.tuples(st.integers(min_value=1, max_value=10 ** 24), st.integers(min_value=0, max_value=10 ** 6)),
             min_size=1, max_size=10),
    st.lists(st.integers(min_value=1, max_value=10 ** 4), min_size=1, max_size=10),
    st.lists(st.integers(min_value=0, max_value=10 ** 24), min_size=1, max_size=10)
)
def test_sole_depositor_never_gets_more_than_rewards(deposit_list, gaps, rewards):
    deposit_times = sorted([t for _, t in deposit_list])
    deposits = [TransactionEvent(amount, t) for (amount, _), t in zip(deposit_list, deposit_times)]
    checkpoints = [Checkpoint(0, 0, 0)]
    now = 0
    for gap, reward in zip(gaps, rewards):
        now += gap * 100
        supply = sum([d.amount for d in deposits if d.timestamp < now])
        checkpoints.append(Checkpoint(supply, now, reward if supply else 0))
    total = prorated_earned(checkpoints, deposits, [])
    if not 0 <= total <= sum([cp.reward_amount for cp in checkpoints]):
        raise AssertionError(f'earned {total} out of {sum([cp.reward_amount for cp in checkpoints])}')
