"""
Reconstruct what an account is owed by replaying its deposit and withdraw history against
the pool's reward checkpoints.

Each checkpoint closes an interval that started at the previous one. Capital held through the
whole interval is credited in full; capital deposited during the interval is credited for the part
of the interval it was present (straight-line). Withdrawals come out of the oldest capital first and
forfeit the interval they happen in.
"""


class Checkpoint:
    def __init__(self, total_supply: int, timestamp: int, reward_amount: int):
        self.total_supply = total_supply
        self.timestamp = timestamp
        self.reward_amount = reward_amount

    def __repr__(self):
        return f'Checkpoint(t={self.timestamp}, supply={self.total_supply}, reward={self.reward_amount})'

    def to_dict(self) -> dict:
        return {'total_supply': self.total_supply, 'timestamp': self.timestamp, 'reward_amount': self.reward_amount}


class TransactionEvent:
    def __init__(self, amount: int, timestamp: int):
        self.amount = amount
        self.timestamp = timestamp

    def __repr__(self):
        return f'TransactionEvent({self.amount} at {self.timestamp})'

    def to_dict(self) -> dict:
        return {'amount': self.amount, 'timestamp': self.timestamp}


def prorated_fraction(deposit_time: int, interval_start: int, interval_length: int) -> tuple[int, int]:
    """(numerator, denominator) of the share of an interval that capital deposited at deposit_time was present for"""
    elapsed = min(max(deposit_time - interval_start, 0), interval_length)
    return interval_length - elapsed, interval_length


def prorated_earned(
        checkpoints: list[Checkpoint],
        deposits: list[TransactionEvent],
        withdrawals: list[TransactionEvent],
        already_claimed: int = 0
) -> int:
    """
    All three sequences must be in increasing timestamp order.
    Cost is O(checkpoints + deposits + withdrawals).
    """
    rewards_earned = 0
    carried_over = 0
    d = 0
    w = 0
    for i in range(1, len(checkpoints)):
        prev, cur = checkpoints[i - 1], checkpoints[i]
        duration = max(cur.timestamp - prev.timestamp, 1)

        withdrawn = 0
        while w < len(withdrawals) and withdrawals[w].timestamp < cur.timestamp:
            withdrawn += withdrawals[w].amount
            w += 1

        # oldest capital leaves first
        if withdrawn <= carried_over:
            carried_over -= withdrawn
            withdrawn = 0
        else:
            withdrawn -= carried_over
            carried_over = 0

        prorated_tokens = carried_over
        while d < len(deposits) and deposits[d].timestamp < cur.timestamp:
            amount = deposits[d].amount
            d += 1
            if withdrawn > 0:
                netted = min(withdrawn, amount)
                amount -= netted
                withdrawn -= netted
            if amount == 0:
                continue
            numerator, denominator = prorated_fraction(deposits[d - 1].timestamp, prev.timestamp, duration)
            prorated_tokens += amount * numerator // denominator
            carried_over += amount

        prorated_tokens = min(prorated_tokens, cur.total_supply)
        if cur.reward_amount > 0 and cur.total_supply > 0:
            rewards_earned += cur.reward_amount * prorated_tokens // cur.total_supply

    return rewards_earned - already_claimed
