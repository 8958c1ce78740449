"""Hex quantity parsing for JSON-RPC values."""

import string

from eth_utils import remove_0x_prefix

_HEX_DIGITS = frozenset(string.hexdigits)


def hex_to_int(value: str) -> int:
    """Parse a JSON-RPC hex quantity such as ``"0x1b4"``.

    The ``0x`` prefix is optional.

    Raises:
        ValueError: If the value is not a non-empty hex string
    """
    if not isinstance(value, str):
        raise ValueError(f"invalid hex quantity: {value!r}")

    digits = remove_0x_prefix(value)
    if not digits or not _HEX_DIGITS.issuperset(digits):
        raise ValueError(f"invalid hex quantity: {value!r}")

    return int(digits, 16)


def hex_to_int_or_zero(value: str | None) -> int:
    """Parse a hex quantity, falling back to 0 when it is missing or malformed."""
    try:
        return hex_to_int(value)
    except ValueError:
        return 0
