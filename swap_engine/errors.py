"""Error taxonomy and classification for swap operations.

Raw provider and contract errors are mapped onto a fixed set of kinds with
user-safe messages. Classification is pure: retry policy lives in the
components that call it.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Stable error kinds surfaced to callers."""

    VALIDATION = "ValidationError"
    NO_ROUTE_FOUND = "NoRouteFound"
    APPROVAL_FAILED = "ApprovalFailed"
    APPROVAL_VERIFICATION_FAILED = "ApprovalVerificationFailed"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    SLIPPAGE_EXCEEDED = "SlippageExceeded"
    GAS_ESTIMATION_FAILED = "GasEstimationFailed"
    USER_REJECTED = "UserRejected"
    NETWORK_TIMEOUT = "NetworkTimeout"
    NETWORK_ERROR = "NetworkError"
    # Not an error: tags results produced by the testnet fallback
    SIMULATED_FALLBACK_USED = "SimulatedFallbackUsed"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "The swap request is invalid. Check the tokens and amount.",
    ErrorKind.NO_ROUTE_FOUND: (
        "No exchange route is available for this token pair. Try a different pair."
    ),
    ErrorKind.APPROVAL_FAILED: "Token approval failed. Please try again.",
    ErrorKind.APPROVAL_VERIFICATION_FAILED: (
        "Token approval was sent but the allowance did not update. Please try again."
    ),
    ErrorKind.INSUFFICIENT_BALANCE: (
        "Insufficient balance for this swap or its network fees."
    ),
    ErrorKind.SLIPPAGE_EXCEEDED: (
        "The price moved beyond your slippage tolerance. Try again or raise the tolerance."
    ),
    ErrorKind.GAS_ESTIMATION_FAILED: (
        "The network could not estimate fees for this swap. Check your balance and approval."
    ),
    ErrorKind.USER_REJECTED: "Transaction was rejected. Please try again when ready.",
    ErrorKind.NETWORK_TIMEOUT: (
        "Transaction timed out. The network may be congested. Please check your wallet."
    ),
    ErrorKind.NETWORK_ERROR: "A network error occurred. Please try again shortly.",
    ErrorKind.SIMULATED_FALLBACK_USED: (
        "This swap was simulated because no on-chain route exists on this test network."
    ),
}

# Ordered: first matching rule wins. Substrings are matched case-insensitively.
_RULES: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (
        ErrorKind.USER_REJECTED,
        ("user rejected", "user denied", "rejected by user", "action_rejected"),
    ),
    (ErrorKind.NETWORK_TIMEOUT, ("timeout", "timed out", "timeexhausted")),
    (
        ErrorKind.INSUFFICIENT_BALANCE,
        (
            "insufficient funds",
            "insufficient balance",
            "exceeds balance",
            "transfer amount exceeds",
        ),
    ),
    # Oracle has no price for the pair
    (ErrorKind.NO_ROUTE_FOUND, ("no valid median", "no exchange found")),
    (
        ErrorKind.GAS_ESTIMATION_FAILED,
        (
            "gas required exceeds",
            "cannot estimate gas",
            "unpredictable_gas_limit",
            "out of gas",
        ),
    ),
    (
        ErrorKind.SLIPPAGE_EXCEEDED,
        (
            "amountoutmin not met",
            "slippage",
            "execution reverted",
            "always failing transaction",
            "transaction reverted",
        ),
    ),
)

# EIP-1193 "user rejected request"
USER_REJECTED_CODE = 4001


class SwapError(Exception):
    """A classified swap failure.

    Attributes:
        kind: The error kind from the fixed taxonomy
        detail: Internal diagnostic detail (logged, never shown to users)
        tx_hashes: Hashes of transactions that were confirmed before the failure
    """

    def __init__(
        self,
        kind: ErrorKind,
        detail: str | None = None,
        tx_hashes: Iterable[str] = (),
    ) -> None:
        super().__init__(detail or kind.value)
        self.kind = kind
        self.detail = detail
        self.tx_hashes = list(tx_hashes)

    @property
    def user_message(self) -> str:
        return user_message(self.kind)

    def __repr__(self) -> str:
        return f"SwapError(kind={self.kind.value!r}, detail={self.detail!r})"


def _error_code(raw: Any) -> Any:
    code = getattr(raw, "code", None)
    if code is None and isinstance(raw, dict):
        code = raw.get("code")
    if code is None and getattr(raw, "args", None):
        first = raw.args[0]
        if isinstance(first, dict):
            code = first.get("code")
    return code


def _error_text(raw: Any) -> str:
    if isinstance(raw, dict):
        return str(raw.get("message", raw))
    return f"{type(raw).__name__}: {raw}"


def classify(raw: Any) -> ErrorKind:
    """Map a raw provider/contract error onto an ErrorKind.

    Args:
        raw: An exception, a JSON-RPC error dict, or a message string

    Returns:
        The matching ErrorKind; NETWORK_ERROR when nothing more specific applies
    """
    if isinstance(raw, SwapError):
        return raw.kind
    if isinstance(raw, TimeoutError):
        return ErrorKind.NETWORK_TIMEOUT

    code = _error_code(raw)
    if code == USER_REJECTED_CODE or code == "ACTION_REJECTED":
        return ErrorKind.USER_REJECTED

    text = _error_text(raw).lower()
    for kind, needles in _RULES:
        if any(needle in text for needle in needles):
            return kind

    return ErrorKind.NETWORK_ERROR


def to_swap_error(
    raw: Any,
    default: ErrorKind | None = None,
    reverted: ErrorKind | None = None,
) -> SwapError:
    """Wrap a raw error into a SwapError.

    Args:
        raw: The raw error
        default: Kind to use instead of NETWORK_ERROR when the classifier finds
            nothing specific (e.g. APPROVAL_FAILED in the approval stage)
        reverted: Kind to use instead of SLIPPAGE_EXCEEDED for reverts. Passed by
            read-only calls, where nothing was sent.
    """
    if isinstance(raw, SwapError):
        return raw
    kind = classify(raw)
    if kind is ErrorKind.SLIPPAGE_EXCEEDED and reverted is not None:
        kind = reverted
    if kind is ErrorKind.NETWORK_ERROR and default is not None:
        kind = default
    return SwapError(kind, detail=_error_text(raw))


def user_message(kind: ErrorKind) -> str:
    """Return the user-safe message for an error kind."""
    return USER_MESSAGES[kind]


__all__ = [
    "ErrorKind",
    "SwapError",
    "USER_MESSAGES",
    "classify",
    "to_swap_error",
    "user_message",
]
