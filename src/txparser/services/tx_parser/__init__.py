"""Transaction parser service module."""

from txparser.services.tx_parser.ingestion import (
    BlockDecodeError,
    IngestionLoop,
    IngestionState,
    IngestionStats,
    decode_block,
)
from txparser.services.tx_parser.parser import Parser, TxParser
from txparser.services.tx_parser.schemas import (
    CurrentBlockResponse,
    RawBlock,
    RawTransaction,
    SubscribeRequest,
    SubscribeResponse,
    Transaction,
)
from txparser.services.tx_parser.store import MemoryStore, ReadWriteLock, Store

__all__ = [
    # Ingestion
    "BlockDecodeError",
    "IngestionLoop",
    "IngestionState",
    "IngestionStats",
    "decode_block",
    # Facade
    "Parser",
    "TxParser",
    # Schemas
    "CurrentBlockResponse",
    "RawBlock",
    "RawTransaction",
    "SubscribeRequest",
    "SubscribeResponse",
    "Transaction",
    # Store
    "MemoryStore",
    "ReadWriteLock",
    "Store",
]
