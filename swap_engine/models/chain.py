"""Transaction receipt structures parsed from JSON-RPC responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from swap_engine.models.types import normalize_address, normalize_tx_hash


def to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    raise ValueError(f"Cannot convert {value!r} to int")


def _to_hex(value: Any) -> str:
    if isinstance(value, bytes | bytearray):
        return "0x" + bytes(value).hex()
    text = str(value).lower()
    return text if text.startswith("0x") else "0x" + text


@dataclass(frozen=True)
class Log:
    """An event log entry."""

    address: str
    topics: tuple[str, ...]
    data: str

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> Log:
        return cls(
            address=normalize_address(str(raw["address"])),
            topics=tuple(_to_hex(t) for t in raw.get("topics", [])),
            data=_to_hex(raw.get("data", "0x")),
        )


@dataclass(frozen=True)
class Receipt:
    """A mined transaction's receipt."""

    tx_hash: str
    status: int
    block_number: int
    logs: tuple[Log, ...] = field(default_factory=tuple)
    gas_used: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> Receipt:
        """Parse an eth_getTransactionReceipt result (hex-encoded fields)."""
        gas_used = raw.get("gasUsed")
        return cls(
            tx_hash=normalize_tx_hash(raw["transactionHash"]),
            status=to_int(raw.get("status", 0)),
            block_number=to_int(raw["blockNumber"]),
            logs=tuple(Log.from_rpc(entry) for entry in raw.get("logs", [])),
            gas_used=to_int(gas_used) if gas_used is not None else None,
        )


__all__ = ["Log", "Receipt", "to_int"]
