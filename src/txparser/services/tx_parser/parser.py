"""Query facade used by the HTTP layer."""

from abc import ABC, abstractmethod

from txparser.services.tx_parser.schemas import Transaction
from txparser.services.tx_parser.store import Store


class Parser(ABC):
    """Narrow read/write capability exposed to transports."""

    @abstractmethod
    def current_block(self) -> int:
        """Get the last fully indexed block height."""
        ...

    @abstractmethod
    def subscribe(self, address: str) -> bool:
        """Add an address to the watchlist."""
        ...

    @abstractmethod
    def transactions_for(self, address: str) -> list[Transaction]:
        """Get inbound and outbound transactions recorded for an address."""
        ...


class TxParser(Parser):
    """Parser backed directly by a store."""

    def __init__(self, store: Store):
        self.store = store

    def current_block(self) -> int:
        return self.store.get_cursor()

    def subscribe(self, address: str) -> bool:
        return self.store.subscribe(address)

    def transactions_for(self, address: str) -> list[Transaction]:
        return self.store.list_transactions(address)
