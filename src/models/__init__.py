"""
Models package - Data models for GalaChain Wallet.

Contains:
- StoredCredential: The record kept in the platform secret store
- RegistrationStatus / RegistrationState: Chain registration lifecycle
- BalanceState: Token balance snapshot
- WalletStatus: Status record read by the UI each tick
"""

from .credential import StoredCredential, CredentialFormatError
from .status import (
    RegistrationStatus,
    RegistrationState,
    BalanceState,
    WalletStatus,
)

__all__ = [
    "StoredCredential",
    "CredentialFormatError",
    "RegistrationStatus",
    "RegistrationState",
    "BalanceState",
    "WalletStatus",
]
