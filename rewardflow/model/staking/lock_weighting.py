"""
Time-locked stake weighting.

A stake locked for longer earns at a higher multiplier, ramping linearly from 1x (no lock) to
max_multiplier (locked for max_duration or more). Once a stake's lock ends, its multiplier falls back
to 1x and never rises above what it was locked at.
"""
import hashlib

from .fixed_point import ONE, PRECISION, clamp


class LockedStake:
    def __init__(self, stake_id: str, start_time: int, end_time: int, principal: int, initial_multiplier: int):
        self.stake_id = stake_id
        self.start_time = start_time
        self.end_time = end_time
        self.principal = principal
        self.initial_multiplier = initial_multiplier

    def __repr__(self):
        return (
            f'LockedStake({self.stake_id[:10]}, {self.principal} from {self.start_time} to {self.end_time}, '
            f'multiplier={self.initial_multiplier})'
        )

    def to_dict(self) -> dict:
        return {
            'stake_id': self.stake_id,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'principal': self.principal,
            'initial_multiplier': self.initial_multiplier
        }

    def is_expired(self, now: int) -> bool:
        return now >= self.end_time


def stake_id(owner: str, start_time: int, principal: int, prior_locked_total: int) -> str:
    """Deterministic id for a new stake. The owner's locked total grows with every lock, so ids never repeat."""
    return hashlib.sha256(f'{owner}:{start_time}:{principal}:{prior_locked_total}'.encode()).hexdigest()


def lock_multiplier(lock_duration: int, max_duration: int, max_multiplier: int) -> int:
    return clamp(ONE + lock_duration * (max_multiplier - ONE) // max_duration, ONE, max_multiplier)


def effective_multiplier(stake: LockedStake, last_claim: int, now: int) -> int:
    if now < stake.end_time:
        return stake.initial_multiplier
    # a claim from before the stake existed says nothing about this stake
    since = max(last_claim, stake.start_time)
    if since < stake.end_time:
        time_before_expiry = stake.end_time - since
        time_after_expiry = now - stake.end_time
        total_time = time_before_expiry + time_after_expiry
        if total_time == 0:
            multiplier = ONE
        else:
            multiplier = (
                stake.initial_multiplier * time_before_expiry + ONE * time_after_expiry
            ) // total_time
    else:
        multiplier = ONE
    return min(multiplier, stake.initial_multiplier)


def combined_weight(stakes: list[LockedStake], last_claim: int, now: int) -> int:
    return sum(
        stake.principal * effective_multiplier(stake, last_claim, now) // PRECISION
        for stake in stakes
    )


def remove_stake(stakes: list[LockedStake], index: int) -> LockedStake:
    """unordered O(1) removal: move the last stake into the hole"""
    removed = stakes[index]
    stakes[index] = stakes[-1]
    stakes.pop()
    return removed
