"""
Keychain - Credential persistence through a platform secret store.

Backends:
- KeyringSecretStore: OS keychain (macOS Keychain, Windows Credential
  Locker, Secret Service on Linux) via the keyring library
- EncryptedFileSecretStore: Argon2id + AES-256-GCM file, for systems
  without a usable keyring backend
- MemorySecretStore: in-process, for tests and headless runs

CredentialStore sits on top and reads/writes the single StoredCredential
kept under a fixed (service, account) key.
"""

import hashlib
import json
import logging
import os
import secrets
from pathlib import Path
from typing import Optional, Protocol

import keyring
from argon2.low_level import hash_secret_raw, Type
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordDeleteError

from models.credential import StoredCredential, CredentialFormatError

logger = logging.getLogger(__name__)


# ============================================
# Constants
# ============================================

SERVICE_NAME = "galachain-wallet"
ACCOUNT_NAME = "default"

# Argon2id parameters (OWASP recommendations for high-security)
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 65536  # 64 MB
ARGON2_PARALLELISM = 4
ARGON2_HASH_LEN = 32  # 256 bits for AES-256

AES_IV_SIZE = 12  # 96 bits (recommended for GCM)
AES_TAG_SIZE = 16

SECRET_FILE_VERSION = 1

# Secure file permissions (Unix only)
SECURE_FILE_MODE = 0o600  # Owner read/write only


def set_secure_permissions(filepath: Path) -> None:
    """
    Set restrictive file permissions on Unix systems.

    No-op on Windows (NTFS uses ACLs, not Unix permissions).
    """
    if os.name == 'posix':
        try:
            os.chmod(filepath, SECURE_FILE_MODE)
        except OSError:
            # Best effort - don't fail save operation if chmod fails
            pass


# ============================================
# Errors
# ============================================

class KeychainError(Exception):
    """Base class for credential storage failures."""


class KeychainNotFound(KeychainError):
    """No entry for the (service, account) key. Normal on first run."""


class KeychainAccessError(KeychainError):
    """The platform store refused or failed the operation."""


class KeychainSerializeError(KeychainError):
    """The credential could not be encoded for storage."""


class KeychainDeserializeError(KeychainError):
    """The stored text is not a valid credential record."""


# ============================================
# Secret Store Boundary
# ============================================

class SecretStore(Protocol):
    """Minimal capability: string secrets keyed by (service, account)."""

    def set(self, service: str, account: str, value: str) -> None: ...

    def get(self, service: str, account: str) -> str:
        """Raises KeychainNotFound when no entry exists."""
        ...

    def delete(self, service: str, account: str) -> None: ...


class MemorySecretStore:
    """In-process secret store. Set should_fail to simulate platform denial."""

    def __init__(self):
        self._entries: dict[tuple[str, str], str] = {}
        self.should_fail = False

    def _check(self) -> None:
        if self.should_fail:
            raise KeychainAccessError("Secret store unavailable")

    def set(self, service: str, account: str, value: str) -> None:
        self._check()
        self._entries[(service, account)] = value

    def get(self, service: str, account: str) -> str:
        self._check()
        try:
            return self._entries[(service, account)]
        except KeyError:
            raise KeychainNotFound(f"No entry for {service}/{account}") from None

    def delete(self, service: str, account: str) -> None:
        self._check()
        self._entries.pop((service, account), None)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._entries


class KeyringSecretStore:
    """OS keychain through the keyring library."""

    def __init__(self, backend=None):
        """
        Args:
            backend: keyring backend instance, or None for the system default
        """
        self._keyring = backend if backend is not None else keyring.get_keyring()

    @property
    def backend_name(self) -> str:
        return type(self._keyring).__name__

    def set(self, service: str, account: str, value: str) -> None:
        try:
            self._keyring.set_password(service, account, value)
        except KeyringError as e:
            raise KeychainAccessError(f"Keychain write failed: {e}") from e

    def get(self, service: str, account: str) -> str:
        try:
            value = self._keyring.get_password(service, account)
        except KeyringError as e:
            raise KeychainAccessError(f"Keychain read failed: {e}") from e
        if value is None:
            raise KeychainNotFound(f"No entry for {service}/{account}")
        return value

    def delete(self, service: str, account: str) -> None:
        try:
            self._keyring.delete_password(service, account)
        except PasswordDeleteError:
            # Already absent
            pass
        except KeyringError as e:
            raise KeychainAccessError(f"Keychain delete failed: {e}") from e


# ============================================
# Encrypted File Store
# ============================================

def derive_key(passphrase: str, salt: bytes) -> bytes:
    """
    Derive an encryption key from a passphrase using Argon2id.

    Memory-hard: each guess costs ~64MB RAM and about a second.
    """
    return hash_secret_raw(
        secret=passphrase.encode('utf-8'),
        salt=salt,
        time_cost=ARGON2_TIME_COST,
        memory_cost=ARGON2_MEMORY_COST,
        parallelism=ARGON2_PARALLELISM,
        hash_len=ARGON2_HASH_LEN,
        type=Type.ID
    )


class EncryptedFileSecretStore:
    """
    One AES-256-GCM encrypted file per (service, account).

    The key is derived from a user passphrase with Argon2id and a per-file
    random salt. Files are written atomically and chmod 0600.
    """

    def __init__(self, directory: str | Path, passphrase: str):
        if not passphrase:
            raise ValueError("A passphrase is required for the encrypted file store")
        self.directory = Path(directory)
        self._passphrase = passphrase

    def _path_for(self, service: str, account: str) -> Path:
        digest = hashlib.sha256(f"{service}\x00{account}".encode('utf-8')).hexdigest()
        return self.directory / f"{digest[:32]}.secret"

    def set(self, service: str, account: str, value: str) -> None:
        salt = secrets.token_bytes(16)
        iv = secrets.token_bytes(AES_IV_SIZE)
        key = derive_key(self._passphrase, salt)
        ciphertext_and_tag = AESGCM(key).encrypt(iv, value.encode('utf-8'), None)

        data = {
            "version": SECRET_FILE_VERSION,
            "kdf": {
                "algorithm": "argon2id",
                "salt": salt.hex(),
                "time_cost": ARGON2_TIME_COST,
                "memory_cost": ARGON2_MEMORY_COST,
                "parallelism": ARGON2_PARALLELISM
            },
            "ciphertext": ciphertext_and_tag[:-AES_TAG_SIZE].hex(),
            "iv": iv.hex(),
            "tag": ciphertext_and_tag[-AES_TAG_SIZE:].hex(),
        }

        path = self._path_for(service, account)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            temp_path = path.with_suffix('.tmp')
            with open(temp_path, 'w') as f:
                json.dump(data, f, indent=2)
            temp_path.replace(path)
        except OSError as e:
            raise KeychainAccessError(f"Could not write secret file: {e}") from e
        set_secure_permissions(path)

    def get(self, service: str, account: str) -> str:
        path = self._path_for(service, account)
        if not path.exists():
            raise KeychainNotFound(f"No entry for {service}/{account}")

        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except OSError as e:
            raise KeychainAccessError(f"Could not read secret file: {e}") from e
        except json.JSONDecodeError as e:
            raise KeychainAccessError(f"Corrupted secret file: {e}") from e

        if data.get("version") != SECRET_FILE_VERSION:
            raise KeychainAccessError(f"Unsupported secret file version: {data.get('version')}")

        try:
            salt = bytes.fromhex(data["kdf"]["salt"])
            iv = bytes.fromhex(data["iv"])
            ciphertext = bytes.fromhex(data["ciphertext"]) + bytes.fromhex(data["tag"])
        except (KeyError, ValueError, TypeError) as e:
            raise KeychainAccessError(f"Corrupted secret file: {e}") from e

        key = derive_key(self._passphrase, salt)
        try:
            plaintext = AESGCM(key).decrypt(iv, ciphertext, None)
        except InvalidTag as e:
            raise KeychainAccessError("Wrong passphrase or corrupted secret file") from e
        return plaintext.decode('utf-8')

    def delete(self, service: str, account: str) -> None:
        path = self._path_for(service, account)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise KeychainAccessError(f"Could not delete secret file: {e}") from e


def keyring_available() -> bool:
    """True unless keyring resolved to its 'fail' backend."""
    try:
        backend = keyring.get_keyring()
    except KeyringError:
        return False
    return not isinstance(backend, fail.Keyring)


def default_secret_store(secrets_dir: Optional[Path] = None,
                         passphrase: Optional[str] = None) -> SecretStore:
    """
    Pick the best available secret store.

    OS keychain first; otherwise an encrypted file store if a passphrase is
    configured; otherwise memory only (nothing survives a restart).
    """
    if keyring_available():
        store = KeyringSecretStore()
        logger.info(f"Using OS keychain backend: {store.backend_name}")
        return store

    if passphrase and secrets_dir is not None:
        logger.info(f"No OS keychain available, using encrypted files in {secrets_dir}")
        return EncryptedFileSecretStore(secrets_dir, passphrase)

    logger.warning("No OS keychain or store passphrase; credentials will not persist")
    return MemorySecretStore()


# ============================================
# Credential Store
# ============================================

class CredentialStore:
    """Single-slot credential persistence under a fixed (service, account)."""

    def __init__(self, secret_store: SecretStore,
                 service: str = SERVICE_NAME, account: str = ACCOUNT_NAME):
        self.secret_store = secret_store
        self.service = service
        self.account = account

    def store(self, credential: StoredCredential) -> None:
        """
        Write the credential, replacing any previous one.

        Raises:
            KeychainSerializeError: if the record cannot be encoded
            KeychainAccessError: if the platform store refuses the write
        """
        try:
            text = credential.serialize()
        except (TypeError, ValueError) as e:
            raise KeychainSerializeError(f"Could not serialize credential: {e}") from e

        try:
            self.secret_store.set(self.service, self.account, text)
        except KeychainError:
            raise
        except Exception as e:
            raise KeychainAccessError(f"Secret store write failed: {e}") from e
        logger.info("Credential saved to secret store")

    def load(self) -> StoredCredential:
        """
        Read the credential.

        Raises:
            KeychainNotFound: no credential stored yet
            KeychainAccessError: platform failure
            KeychainDeserializeError: stored text is malformed
        """
        try:
            text = self.secret_store.get(self.service, self.account)
        except KeychainError:
            raise
        except Exception as e:
            raise KeychainAccessError(f"Secret store read failed: {e}") from e

        try:
            return StoredCredential.parse(text)
        except CredentialFormatError as e:
            raise KeychainDeserializeError(str(e)) from e

    def exists(self) -> bool:
        """Display helper; never raises. Use load() to tell errors apart."""
        try:
            self.load()
        except KeychainError:
            return False
        return True

    def delete(self) -> None:
        """Remove the credential. Missing entry is not an error."""
        try:
            self.secret_store.delete(self.service, self.account)
        except KeychainNotFound:
            pass
        except KeychainError:
            raise
        except Exception as e:
            raise KeychainAccessError(f"Secret store delete failed: {e}") from e
        logger.info("Credential removed from secret store")
