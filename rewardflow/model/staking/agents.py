from typing import Callable


class Agent:
    unique_id: str = ''

    def __init__(self,
                 holdings: dict[str, int] = None,
                 trade_strategy: any = None,
                 unique_id: str = 'agent',
                 on_receive: Callable = None,
                 enforce_holdings: bool = True
                 ):
        """
        holdings should be in the form of:
        {
            token_name: quantity
        }
        Quantities are integers in the token's smallest unit.
        on_receive, if given, is called as on_receive(agent, tkn, amount) after every incoming transfer,
        which is how a recipient gets control back during a payout. Pools credit every transfer
        of a payout before notifying anyone.
        If enforce_holdings is False, validate_holdings will always return True.
        """
        self.holdings = {tkn: val for tkn, val in holdings.items()} if holdings is not None else {}
        self.initial_holdings = {tkn: val for tkn, val in holdings.items()} if holdings is not None else {}
        self.trade_strategy = trade_strategy
        self.asset_list = list(self.holdings.keys())
        self.unique_id = unique_id
        self.on_receive = on_receive
        self.enforce_holdings = enforce_holdings

    def __repr__(self):
        return (
                f'Agent: {self.unique_id}\n'
                f'********************************\n'
                f'strategy: {self.trade_strategy.name if self.trade_strategy else "None"}\n' +
                f'holdings: (\n\n' +
                f'\n'.join([f'    *{tkn}*: {self.holdings[tkn]}\n' for tkn in self.holdings]) + ')\n'
        )

    def copy(self):
        copy_self = Agent(
            holdings={k: v for k, v in self.holdings.items()},
            trade_strategy=self.trade_strategy,
            unique_id=self.unique_id,
            on_receive=self.on_receive,
            enforce_holdings=self.enforce_holdings
        )
        copy_self.initial_holdings = {k: v for k, v in self.initial_holdings.items()}
        copy_self.asset_list = [tkn for tkn in self.asset_list]
        return copy_self

    def get_holdings(self, tkn) -> int:
        if tkn not in self.holdings:
            return 0
        return self.holdings[tkn]

    def validate_holdings(self, tkn, amt=None) -> bool:
        if not self.enforce_holdings:
            return True
        if amt is None:
            return self.get_holdings(tkn) > 0
        else:
            return self.get_holdings(tkn) >= amt

    def transfer_to(self, tkn: str, amt: int, notify: bool = True) -> None:
        if amt < 0:
            raise ValueError(f"Cannot transfer a negative amount of {tkn}")
        if tkn not in self.holdings:
            self.holdings[tkn] = 0
            self.asset_list.append(tkn)
        self.holdings[tkn] += amt
        if notify:
            self.notify(tkn, amt)

    def notify(self, tkn: str, amt: int) -> None:
        if self.on_receive is not None and amt > 0:
            self.on_receive(self, tkn, amt)

    def transfer_from(self, tkn: str, amt: int) -> None:
        if amt < 0:
            raise ValueError(f"Cannot transfer a negative amount of {tkn}")
        if self.enforce_holdings:
            if not self.validate_holdings(tkn, amt):
                raise ValueError(f"Agent {self.unique_id} does not have enough {tkn} to transfer {amt}")
        elif tkn not in self.holdings:
            self.holdings[tkn] = 0
        self.holdings[tkn] -= amt


class AgentArchiveState:
    def __init__(self, agent: Agent):
        self.unique_id = agent.unique_id
        self.holdings = {k: v for k, v in agent.holdings.items()}
        self.asset_list = [tkn for tkn in agent.asset_list]
