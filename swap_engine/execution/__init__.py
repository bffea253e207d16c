"""On-chain execution: transaction profiles, approvals and swaps."""

from swap_engine.execution.approval import ApprovalManager, ApprovalResult
from swap_engine.execution.executor import (
    HopExecution,
    SwapAttempt,
    SwapCallbacks,
    SwapExecutor,
    SwapStatus,
)
from swap_engine.execution.profile import TransactionProfile, select_profile
from swap_engine.execution.transactions import TransactionClient

__all__ = [
    "ApprovalManager",
    "ApprovalResult",
    "HopExecution",
    "SwapAttempt",
    "SwapCallbacks",
    "SwapExecutor",
    "SwapStatus",
    "TransactionClient",
    "TransactionProfile",
    "select_profile",
]
