"""
Services package - Chain access and background work for GalaChain Wallet.

Contains:
- GalaChainClient: registration and balance calls with retry
- TaskScheduler: single-slot background tasks polled from the UI tick
- RegistrationReconciler: registration status state machine
- WalletSession: top-level owner of identity and status
"""

from .exceptions import (
    GalaChainError,
    NetworkError,
    AuthError,
    ParseError,
    ApiError,
    NotRegisteredError,
)
from .galachain import GalaChainClient, parse_balance_records
from .registration import RegistrationReconciler
from .retry import RetryPolicy, run_blocking
from .session import WalletSession
from .tasks import OperationKind, TaskResult, TaskScheduler

__all__ = [
    # Client
    "GalaChainClient",
    "parse_balance_records",
    "RetryPolicy",
    "run_blocking",
    # Errors
    "GalaChainError",
    "NetworkError",
    "AuthError",
    "ParseError",
    "ApiError",
    "NotRegisteredError",
    # Background work
    "OperationKind",
    "TaskResult",
    "TaskScheduler",
    "RegistrationReconciler",
    "WalletSession",
]
