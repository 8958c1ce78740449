"""Block ingestion loop feeding the transaction store."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import ValidationError

from txparser.infrastructure.blockchain.client import ChainClient, ChainClientError
from txparser.infrastructure.blockchain.hexutil import hex_to_int, hex_to_int_or_zero
from txparser.services.tx_parser.schemas import RawBlock, Transaction
from txparser.services.tx_parser.store import Store

logger = logging.getLogger(__name__)


class BlockDecodeError(Exception):
    """Raised when a fetched block cannot be decoded. Retryable."""


class IngestionState(str, Enum):
    """Ingestion loop state."""

    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class IngestionStats:
    """Statistics for the ingestion loop."""

    state: IngestionState = IngestionState.STOPPED
    current_block: int = 0
    latest_chain_block: int = 0
    blocks_processed: int = 0
    transactions_recorded: int = 0
    errors: int = 0
    last_error: str = ""
    started_at: datetime | None = None
    uptime_seconds: float = 0.0


def decode_block(block: dict[str, Any], requested_height: int) -> list[Transaction]:
    """Convert a raw block object into indexed transactions.

    The height stamped on every transaction is the block's own ``number``
    field; an unparseable number becomes 0 rather than failing the block.

    Args:
        block: Block object from eth_getBlockByNumber
        requested_height: Height that was asked for

    Returns:
        Transactions in block order

    Raises:
        BlockDecodeError: If the block or its transactions are malformed
    """
    try:
        raw = RawBlock.model_validate(block)
    except ValidationError as e:
        raise BlockDecodeError(
            f"block {requested_height} has an unexpected shape: {e}"
        ) from e

    height = hex_to_int_or_zero(raw.number)
    if height != requested_height:
        # The node's own number is trusted; flag the mismatch
        logger.warning(
            f"Block {requested_height} reports number {raw.number!r}, "
            f"indexing its transactions at height {height}"
        )

    return [
        Transaction(
            hash=tx.hash,
            from_address=tx.from_address,
            to_address=tx.to_address,
            value=tx.value,
            block_height=height,
        )
        for tx in raw.transactions
    ]


class IngestionLoop:
    """Polls the chain one block at a time and indexes watched transactions.

    The cursor in the store only moves after every matching transaction of
    the block has been recorded, so a failed iteration is retried from the
    same block (at-least-once).
    """

    def __init__(
        self,
        client: ChainClient,
        store: Store,
        poll_interval: float = 3.0,
    ):
        """Initialize ingestion loop.

        Args:
            client: Blockchain client for RPC calls
            store: Store receiving transactions and the cursor
            poll_interval: Seconds to wait between iterations
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")

        self.client = client
        self.store = store
        self.poll_interval = poll_interval

        self._state = IngestionState.STOPPED
        self._stats = IngestionStats()
        self._running = False
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def state(self) -> IngestionState:
        """Get current loop state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check whether a run is active or a started task is pending."""
        return self._running or (self._task is not None and not self._task.done())

    @property
    def stats(self) -> IngestionStats:
        """Get loop statistics."""
        self._stats.state = self._state
        self._stats.current_block = self.store.get_cursor()
        if self._stats.started_at:
            self._stats.uptime_seconds = (
                datetime.now(timezone.utc) - self._stats.started_at
            ).total_seconds()
        return self._stats

    async def start(self) -> bool:
        """Start the loop as a background task.

        Returns:
            False if the loop is already running
        """
        if self.is_running:
            logger.warning("Ingestion loop is already running; ignoring start")
            return False

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run(self._stop_event))
        return True

    async def stop(self, grace_period: float = 5.0) -> None:
        """Signal the loop to stop and wait for it.

        The loop finishes its in-flight iteration; if that takes longer than
        the grace period the task is cancelled.

        Args:
            grace_period: Seconds to wait before cancelling
        """
        if self._task is None:
            return

        logger.info("Stopping ingestion loop...")
        self._state = IngestionState.STOPPING
        if self._stop_event is not None:
            self._stop_event.set()

        task, self._task = self._task, None
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=grace_period)
        except asyncio.TimeoutError:
            logger.warning(
                f"Ingestion loop did not stop within {grace_period}s, cancelling"
            )
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        self._state = IngestionState.STOPPED

    async def run(self, stop_event: asyncio.Event) -> None:
        """Run iterations until ``stop_event`` is set.

        The event is checked at the top of every iteration; an in-flight RPC
        call is never interrupted by it.

        Args:
            stop_event: Cooperative cancellation signal
        """
        if self._running:
            logger.warning("Ingestion loop is already running; ignoring second run")
            return

        self._running = True
        self._state = IngestionState.RUNNING
        self._stats.started_at = datetime.now(timezone.utc)
        logger.info(
            f"Ingestion loop started from block {self.store.get_cursor()} "
            f"(interval {self.poll_interval}s)"
        )

        try:
            while not stop_event.is_set():
                await self._run_iteration()
                await self._wait(stop_event)
        finally:
            self._running = False
            self._state = IngestionState.STOPPED
            logger.info("Ingestion loop stopped")

    async def _run_iteration(self) -> None:
        """Run one iteration, containing every failure inside it."""
        try:
            await self.process_next_block()

        except (ChainClientError, BlockDecodeError) as e:
            self._record_error(e)
            logger.error(f"Error processing next block: {e}")

        except Exception as e:
            self._record_error(e)
            logger.exception(f"Unexpected error processing next block: {e}")

    async def _wait(self, stop_event: asyncio.Event) -> None:
        """Sleep for the poll interval, waking early if stop is requested."""
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass

    def _record_error(self, error: Exception) -> None:
        self._stats.errors += 1
        self._stats.last_error = str(error)

    async def process_next_block(self) -> bool:
        """Index the block after the cursor if the chain has it.

        Returns:
            True if the cursor advanced, False if already at the chain tip

        Raises:
            ChainClientError: If the node could not be queried
            BlockDecodeError: If the fetched block is malformed
        """
        cursor = self.store.get_cursor()

        latest_hex = await self.client.block_number()
        try:
            latest = hex_to_int(latest_hex)
        except ValueError as e:
            raise ChainClientError(f"unparseable chain tip {latest_hex!r}") from e
        self._stats.latest_chain_block = latest

        if cursor >= latest:
            logger.debug(
                f"Already at or past the chain tip (latest={latest}, current={cursor})"
            )
            return False

        next_block = cursor + 1
        block = await self.client.get_block_by_number(next_block)
        transactions = decode_block(block, next_block)

        recorded = self._store_transactions(transactions)

        # Only after every match is recorded
        self.store.set_cursor(next_block)

        self._stats.blocks_processed += 1
        self._stats.transactions_recorded += recorded
        logger.info(
            f"Parsed block {next_block}: {len(transactions)} transactions, "
            f"{recorded} recorded"
        )
        return True

    def _store_transactions(self, transactions: list[Transaction]) -> int:
        """Record each transaction under every watched side.

        Sender and recipient are checked independently, so a watched
        self-transfer is recorded under that address twice.

        Returns:
            Number of (address, transaction) pairs recorded
        """
        recorded = 0
        for tx in transactions:
            if self.store.is_subscribed(tx.from_address):
                self.store.record_transaction(tx.from_address, tx)
                recorded += 1
            if self.store.is_subscribed(tx.to_address):
                self.store.record_transaction(tx.to_address, tx)
                recorded += 1
        return recorded

    def get_sync_status(self) -> dict[str, Any]:
        """Get synchronization status.

        Returns:
            Sync status dictionary
        """
        stats = self.stats
        return {
            "state": stats.state.value,
            "current_block": stats.current_block,
            "latest_block": stats.latest_chain_block,
            "blocks_behind": max(stats.latest_chain_block - stats.current_block, 0),
            "blocks_processed": stats.blocks_processed,
            "transactions_recorded": stats.transactions_recorded,
            "errors": stats.errors,
            "last_error": stats.last_error,
            "uptime_seconds": stats.uptime_seconds,
            "synced": stats.current_block >= stats.latest_chain_block,
        }
