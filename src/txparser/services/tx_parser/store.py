"""Subscription and transaction store."""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from txparser.services.tx_parser.schemas import Transaction

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer.

    Writers are preferred: once a writer is waiting, new readers queue behind
    it so a steady stream of queries cannot starve ingestion.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the shared side of the lock."""
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Hold the exclusive side of the lock."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class Store(ABC):
    """Owner of the cursor, the watchlist and the per-address transactions.

    Every operation must be safe under arbitrary concurrent invocation.
    """

    @abstractmethod
    def subscribe(self, address: str) -> bool:
        """Watch an address.

        Returns:
            True on first registration, False if already watched
        """
        ...

    @abstractmethod
    def is_subscribed(self, address: str) -> bool:
        """Check whether an address is watched."""
        ...

    @abstractmethod
    def record_transaction(self, address: str, tx: Transaction) -> None:
        """Append a transaction for an address if, and only if, it is watched."""
        ...

    @abstractmethod
    def list_transactions(self, address: str) -> list[Transaction]:
        """Get a copy of an address's transactions in insertion order."""
        ...

    @abstractmethod
    def get_cursor(self) -> int:
        """Get the height of the last fully indexed block."""
        ...

    @abstractmethod
    def set_cursor(self, height: int) -> None:
        """Set the height of the last fully indexed block."""
        ...

    @abstractmethod
    def subscription_count(self) -> int:
        """Get the number of watched addresses."""
        ...


class MemoryStore(Store):
    """In-process store guarded by a single reader/writer lock.

    The lock covers the cursor, the watchlist and all transaction lists
    together, so a reader never sees a half-applied mutation.
    """

    def __init__(self, initial_cursor: int = 0):
        """Initialize memory store.

        Args:
            initial_cursor: Height treated as already processed
        """
        if initial_cursor < 0:
            raise ValueError("initial_cursor must be >= 0")

        self._lock = ReadWriteLock()
        self._cursor = initial_cursor
        self._transactions: dict[str, list[Transaction]] = {}

    def subscribe(self, address: str) -> bool:
        if not address:
            raise ValueError("address must be a non-empty string")

        with self._lock.write():
            if address in self._transactions:
                return False
            self._transactions[address] = []

        logger.info(f"Subscribed to address {address}")
        return True

    def is_subscribed(self, address: str) -> bool:
        with self._lock.read():
            return address in self._transactions

    def record_transaction(self, address: str, tx: Transaction) -> None:
        with self._lock.write():
            txs = self._transactions.get(address)
            if txs is not None:
                txs.append(tx)

    def list_transactions(self, address: str) -> list[Transaction]:
        with self._lock.read():
            return list(self._transactions.get(address, ()))

    def get_cursor(self) -> int:
        with self._lock.read():
            return self._cursor

    def set_cursor(self, height: int) -> None:
        with self._lock.write():
            self._cursor = height

    def subscription_count(self) -> int:
        with self._lock.read():
            return len(self._transactions)
