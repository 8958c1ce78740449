"""Blockchain infrastructure module."""

from txparser.infrastructure.blockchain.client import (
    ChainClient,
    ChainClientError,
    JSONRPCClient,
)
from txparser.infrastructure.blockchain.hexutil import hex_to_int, hex_to_int_or_zero

__all__ = [
    # Client
    "ChainClient",
    "ChainClientError",
    "JSONRPCClient",
    # Hex helpers
    "hex_to_int",
    "hex_to_int_or_zero",
]
