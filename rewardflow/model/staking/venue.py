import copy
import functools
from typing import Callable

from .agents import Agent
from .errors import RewardsError, ReentrantCall, Unauthorized, InsufficientBalance


def transaction(method: Callable) -> Callable:
    """
    Wrap a pool entry point so that it runs to completion or not at all.
    Re-entering any entry point of the same pool while one is running raises ReentrantCall.
    If a RewardsError escapes, every field named in ledger_fields is restored to its value on entry,
    or to its value at the last _commit() if the method committed part of its work.
    A ReentrantCall coming back out of a payout is the exception: payouts are credited in full
    before any recipient is notified, so by then the call has nothing left to undo.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self._entered:
            raise ReentrantCall(f'{self.unique_id}.{method.__name__} called while another call is in progress')
        self._entered = True
        self._commit()
        try:
            return method(self, *args, **kwargs)
        except ReentrantCall:
            raise
        except RewardsError:
            for field, value in self._savepoint.items():
                setattr(self, field, value)
            raise
        finally:
            self._entered = False
            self._savepoint = None
    return wrapper


class Venue:
    unique_id: str = 'venue'
    ledger_fields: tuple = ('liquidity', 'is_shutdown')

    def __init__(self, stake_token: str, owner: str = '', unique_id: str = '', timestamp: int = 0):
        self.stake_token = stake_token
        self.owner = owner
        if unique_id:
            self.unique_id = unique_id
        self.timestamp = timestamp
        self.liquidity: dict[str, int] = {stake_token: 0}
        self.asset_list: list[str] = [stake_token]
        self.is_shutdown = False
        self.fail = ''
        self._entered = False
        self._savepoint: dict = None

    def copy(self):
        copy_self = copy.deepcopy(self)
        copy_self.fail = ''
        return copy_self

    def update(self, timestamp: int = None):
        if timestamp is None:
            return
        if timestamp < self.timestamp:
            raise ValueError(f'{self.unique_id}: clock cannot go back from {self.timestamp} to {timestamp}')
        self.timestamp = timestamp

    def fail_transaction(self, error: RewardsError):
        self.fail = error
        return self

    def archive(self):
        return self.copy()

    def protected_tokens(self) -> set[str]:
        return {self.stake_token}

    def _require_owner(self, origin: str):
        if not self.owner or origin != self.owner:
            raise Unauthorized(f'{origin} is not the owner of {self.unique_id}')

    def _add_asset(self, tkn: str):
        if tkn not in self.liquidity:
            self.liquidity[tkn] = 0
            self.asset_list.append(tkn)

    def _collect(self, agent: Agent, tkn: str, amount: int):
        agent.transfer_from(tkn, amount)
        self._add_asset(tkn)
        self.liquidity[tkn] += amount

    def _commit(self):
        """work done so far in the current call survives a later failure of that call"""
        self._savepoint = {field: copy.deepcopy(getattr(self, field)) for field in self.ledger_fields}

    def _pay_out(self, payments: list[tuple[Agent, str, int]], minted: tuple = ()):
        """
        Send every (agent, tkn, amount) in payments out of the pool's holdings, tokens in minted excepted.
        Nothing moves unless the pool can cover all of it, and recipients are only notified
        once every transfer has been credited.
        """
        due = {}
        for _, tkn, amount in payments:
            if tkn not in minted:
                due[tkn] = due.get(tkn, 0) + amount
        for tkn, amount in due.items():
            if self.liquidity.get(tkn, 0) < amount:
                raise InsufficientBalance(f'{self.unique_id} holds {self.liquidity.get(tkn, 0)} {tkn}, owes {amount}')
        payments = [(agent, tkn, amount) for agent, tkn, amount in payments if amount > 0]
        for agent, tkn, amount in payments:
            if tkn not in minted:
                self.liquidity[tkn] -= amount
            agent.transfer_to(tkn, amount, notify=False)
        for agent, tkn, amount in payments:
            agent.notify(tkn, amount)

    def _pay(self, agent: Agent, tkn: str, amount: int):
        self._pay_out([(agent, tkn, amount)])

    def minted_tokens(self) -> tuple:
        """tokens this pool creates when it pays them, rather than paying them out of its holdings"""
        return ()

    def _pay_rewards(self, agent: Agent, owed: dict[str, int], stake_payment: tuple = None):
        """pay owed to agent, along with a (receiver, amount) of the staking token if given, as one payout"""
        payments = []
        if stake_payment is not None:
            receiver, amount = stake_payment
            payments.append((receiver, self.stake_token, amount))
        payments += [(agent, tkn, amount) for tkn, amount in owed.items()]
        self._pay_out(payments, minted=self.minted_tokens())

    @transaction
    def shutdown(self, origin: str):
        self._require_owner(origin)
        self.is_shutdown = True
        return self

    @transaction
    def recover_tokens(self, origin: str, tkn: str, amount: int, receiver: Agent):
        """Send a stray token (anything the pool does not account for) to receiver."""
        self._require_owner(origin)
        if tkn in self.protected_tokens():
            raise Unauthorized(f'{tkn} is accounted for by {self.unique_id} and cannot be recovered')
        self._pay(receiver, tkn, amount)
        return self
