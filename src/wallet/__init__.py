"""
Wallet package - Key derivation and credential storage for GalaChain Wallet.

Contains:
- Wallet: identity derived from a 12-word recovery phrase
- CredentialStore: persistence through the platform secret store
- Dialogs (wallet.dialogs): UI for seed import and backup, imported by the UI only
"""

from .crypto import (
    Wallet,
    RecoveryPhrase,
    InvalidMnemonic,
    InvalidDerivedKey,
    generate,
    parse,
    derive,
    checksum,
    to_chain_address,
)
from .keychain import (
    CredentialStore,
    SecretStore,
    KeyringSecretStore,
    EncryptedFileSecretStore,
    MemorySecretStore,
    default_secret_store,
    KeychainError,
    KeychainNotFound,
    KeychainAccessError,
    KeychainSerializeError,
    KeychainDeserializeError,
)

__all__ = [
    # Crypto
    "Wallet",
    "RecoveryPhrase",
    "InvalidMnemonic",
    "InvalidDerivedKey",
    "generate",
    "parse",
    "derive",
    "checksum",
    "to_chain_address",
    # Storage
    "CredentialStore",
    "SecretStore",
    "KeyringSecretStore",
    "EncryptedFileSecretStore",
    "MemorySecretStore",
    "default_secret_store",
    "KeychainError",
    "KeychainNotFound",
    "KeychainAccessError",
    "KeychainSerializeError",
    "KeychainDeserializeError",
]
