"""Shared type definitions for swap requests and on-chain identifiers.

These types are used by the API models and by the routing/execution layers.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

# Maximum uint256 value
UINT256_MAX = 2**256 - 1

_TX_HASH_RE = re.compile(r"^0x[0-9a-f]{64}$")


def validate_decimal_amount(value: Any) -> str:
    """Validate that a value is a positive human-readable decimal amount.

    Args:
        value: Value to validate (string, int or Decimal)

    Returns:
        The amount as a plain decimal string

    Raises:
        ValueError: If value is not a finite, strictly positive decimal
    """
    if isinstance(value, bool):
        raise ValueError(f"Amount must be a decimal string, got {type(value).__name__}")
    if isinstance(value, int | Decimal):
        value = str(value)
    if not isinstance(value, str):
        raise ValueError(f"Amount must be a decimal string, got {type(value).__name__}")

    try:
        amount = Decimal(value.strip())
    except InvalidOperation as err:
        raise ValueError(f"Amount must be a decimal number: '{value}'") from err

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: '{value}'")
    if amount <= 0:
        raise ValueError(f"Amount must be positive: '{value}'")

    return value.strip()


# Ethereum address (40 hex chars after 0x prefix)
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# Human-readable token amount (e.g. "12.5"), converted to base units later
DecimalAmount = Annotated[
    str,
    BeforeValidator(validate_decimal_amount),
    Field(description="Positive token amount as a decimal string"),
]

# Transaction hash (32 bytes = 64 hex chars)
TxHash = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{64}$")]


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an Ethereum address to lowercase.

    Args:
        address: An Ethereum address (with or without 0x prefix)
        validate: If True, raises ValueError for invalid addresses.

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and address is not a valid Ethereum address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid Ethereum address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def normalize_tx_hash(value: str | bytes) -> str:
    """Render a transaction hash as lowercase 0x-prefixed hex.

    Accepts raw bytes (including HexBytes) or hex strings with or without prefix.
    """
    if isinstance(value, bytes | bytearray):
        text = value.hex()
    else:
        text = str(value)
    text = text.lower()
    if not text.startswith("0x"):
        text = "0x" + text
    return text


def is_tx_hash(value: str) -> bool:
    """Check if a string has the shape of a transaction hash."""
    return isinstance(value, str) and _TX_HASH_RE.match(value.lower()) is not None
