"""
Status records shared between the tick's poll phase and the UI.

Registration lifecycle:
- unknown: address not yet checked (also after an address change)
- checking: lookup in flight
- registered: the network knows this address
- not_registered: lookup succeeded, no public key on record
- registering: registration request in flight
- failed: check or registration failed (reason in RegistrationState.error)
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RegistrationStatus(Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    REGISTERED = "registered"
    NOT_REGISTERED = "not_registered"
    REGISTERING = "registering"
    FAILED = "failed"

    @property
    def label(self) -> str:
        """Human-readable label for display."""
        return self.value.replace("_", " ").title()


@dataclass
class RegistrationState:
    """Registration status for the currently observed address."""
    status: RegistrationStatus = RegistrationStatus.UNKNOWN
    address: Optional[str] = None     # chain address (eth|...) the status refers to
    error: Optional[str] = None       # failure reason when status is FAILED
    updated_at: Optional[float] = None

    def set(self, status: RegistrationStatus, error: Optional[str] = None) -> None:
        self.status = status
        self.error = error
        self.updated_at = time.time()

    def reset(self, address: Optional[str]) -> None:
        """Back to UNKNOWN for a new (or no) address."""
        self.address = address
        self.set(RegistrationStatus.UNKNOWN)

    @property
    def is_failed(self) -> bool:
        return self.status is RegistrationStatus.FAILED


@dataclass
class BalanceState:
    """Token balance for the current address."""
    available: float = 0.0
    locked: float = 0.0
    loading: bool = False
    error: Optional[str] = None
    updated_at: Optional[float] = None

    def apply(self, available: float, locked: float) -> None:
        self.available = available
        self.locked = locked
        self.loading = False
        self.error = None
        self.updated_at = time.time()

    def fail(self, reason: str) -> None:
        # Keep the last known figures; only flag the error
        self.loading = False
        self.error = reason

    def clear(self) -> None:
        self.available = 0.0
        self.locked = 0.0
        self.loading = False
        self.error = None
        self.updated_at = None

    @property
    def total(self) -> float:
        return self.available + self.locked


@dataclass
class WalletStatus:
    """Everything the UI reads each tick."""
    address: Optional[str] = None         # 0x... checksummed
    chain_address: Optional[str] = None   # eth|...
    balance: BalanceState = field(default_factory=BalanceState)
    registration: RegistrationState = field(default_factory=RegistrationState)
    storage_error: Optional[str] = None
    last_activity: Optional[str] = None

    @property
    def has_wallet(self) -> bool:
        return self.address is not None
