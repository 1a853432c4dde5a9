"""
Wallet Crypto - Recovery phrase and key derivation.

- BIP-39 recovery phrases (12 words, 128-bit entropy + 4-bit checksum)
- Seed derived with an empty passphrase
- Private key = first 32 bytes of the seed (no HD derivation)
- Ethereum-style address: Keccak-256 of the uncompressed public key,
  EIP-55 checksummed
- GalaChain addresses use the "eth|" namespace prefix

Secrets never leave this module as log output.
"""

import re
import secrets
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from eth_keys import keys
from eth_utils import keccak
from mnemonic import Mnemonic
from web3 import Web3


# ============================================
# Constants
# ============================================

MNEMONIC_WORD_COUNT = 12
ENTROPY_BYTES = 16  # 128 bits -> 12 words

# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

CHAIN_ADDRESS_PREFIX = "eth|"

_ADDRESS_PATTERN = re.compile(r'^(0x)?[0-9a-fA-F]{40}$')

_mnemo = Mnemonic("english")
_WORDSET = frozenset(_mnemo.wordlist)


# ============================================
# Errors
# ============================================

class InvalidMnemonic(ValueError):
    """Recovery phrase failed word-count, dictionary or checksum validation."""

    def __init__(self, message: str, word: Optional[str] = None, position: Optional[int] = None):
        super().__init__(message)
        self.word = word
        self.position = position


class InvalidDerivedKey(ValueError):
    """The derived scalar is zero or not below the curve order."""


# ============================================
# Recovery Phrase
# ============================================

@dataclass(frozen=True)
class RecoveryPhrase:
    """A validated 12-word recovery phrase."""
    words: tuple

    def __str__(self) -> str:
        return " ".join(self.words)

    def __repr__(self) -> str:
        # Never echo the words themselves
        return f"RecoveryPhrase(<{len(self.words)} words>)"

    @property
    def phrase(self) -> str:
        return str(self)


def normalize_phrase(text: str) -> str:
    """Collapse whitespace runs to single spaces and lowercase."""
    return " ".join(text.split()).lower()


def generate(entropy: Optional[bytes] = None) -> RecoveryPhrase:
    """
    Create a new recovery phrase.

    Args:
        entropy: 16 bytes to encode. Drawn from the OS CSPRNG when omitted;
                 supplying it is only meant for tests and vectors.

    Returns:
        RecoveryPhrase with a valid checksum word
    """
    if entropy is None:
        entropy = secrets.token_bytes(ENTROPY_BYTES)
    if len(entropy) != ENTROPY_BYTES:
        raise ValueError(f"Entropy must be {ENTROPY_BYTES} bytes, got {len(entropy)}")

    phrase = _mnemo.to_mnemonic(bytes(entropy))
    return RecoveryPhrase(tuple(phrase.split(" ")))


def parse(words: Union[str, Iterable[str]]) -> RecoveryPhrase:
    """
    Validate user-supplied words and return a RecoveryPhrase.

    Accepts a single string or a sequence of words (e.g. one per input
    field). Whitespace and case are normalized before validation.

    Raises:
        InvalidMnemonic: wrong word count, unknown word, or bad checksum
    """
    if isinstance(words, str):
        text = words
    else:
        text = " ".join(words)

    normalized = normalize_phrase(text)
    word_list = normalized.split(" ") if normalized else []

    if len(word_list) != MNEMONIC_WORD_COUNT:
        raise InvalidMnemonic(
            f"Expected {MNEMONIC_WORD_COUNT} words, got {len(word_list)}"
        )

    for position, word in enumerate(word_list, 1):
        if word not in _WORDSET:
            raise InvalidMnemonic(
                f"Word {position} is not in the recovery word list",
                word=word,
                position=position,
            )

    if not _mnemo.check(normalized):
        raise InvalidMnemonic("Checksum mismatch. Check the words and their order.")

    return RecoveryPhrase(tuple(word_list))


def is_valid_word(word: str) -> bool:
    """Check a single word against the dictionary (case-insensitive)."""
    return word.strip().lower() in _WORDSET


def suggest_words(prefix: str, limit: int = 8) -> list[str]:
    """Dictionary words starting with prefix, for input autocomplete."""
    prefix = prefix.strip().lower()
    if not prefix:
        return []
    return [w for w in _mnemo.wordlist if w.startswith(prefix)][:limit]


# ============================================
# Key Derivation
# ============================================

def seed_from_phrase(phrase: RecoveryPhrase) -> bytes:
    """64-byte BIP-39 seed with the empty passphrase."""
    return Mnemonic.to_seed(str(phrase), passphrase="")


def key_from_seed(seed: bytes) -> bytes:
    """
    Take the first 32 bytes of a seed as a secp256k1 private key.

    Raises:
        InvalidDerivedKey: if the scalar is zero or >= the curve order
    """
    if len(seed) < 32:
        raise InvalidDerivedKey(f"Seed too short: {len(seed)} bytes")

    key = bytes(seed[:32])
    scalar = int.from_bytes(key, "big")
    if scalar == 0 or scalar >= SECP256K1_N:
        raise InvalidDerivedKey("Derived private key is outside the valid secp256k1 range")
    return key


def public_key_from_private(private_key: bytes) -> bytes:
    """64-byte uncompressed public key (x || y, no 0x04 prefix)."""
    return keys.PrivateKey(private_key).public_key.to_bytes()


def address_from_public_key(public_key: bytes) -> str:
    """Checksummed 0x address from a 64-byte public key."""
    if len(public_key) != 64:
        raise ValueError(f"Expected 64-byte public key, got {len(public_key)}")
    raw = keccak(public_key)[-20:]
    return checksum("0x" + raw.hex())


def derive(phrase: RecoveryPhrase) -> tuple[bytes, str]:
    """
    Derive (private_key, checksummed_address) from a recovery phrase.

    Deterministic: restoring the same phrase always yields the same identity.
    """
    private_key = key_from_seed(seed_from_phrase(phrase))
    address = address_from_public_key(public_key_from_private(private_key))
    return private_key, address


# ============================================
# Address Formatting
# ============================================

def is_valid_address(address: str) -> bool:
    """Format check: 40 hex digits with optional 0x prefix."""
    return bool(_ADDRESS_PATTERN.match(address or ""))


def checksum(address: str) -> str:
    """
    EIP-55 checksum an address.

    Accepts lowercase, uppercase or already-checksummed input, with or
    without the 0x prefix. Idempotent.
    """
    if not is_valid_address(address):
        raise ValueError(f"Not a 20-byte hex address: {address!r}")
    if not address.startswith("0x"):
        address = "0x" + address
    return Web3.to_checksum_address(address.lower())


def to_chain_address(address: str) -> str:
    """Format an address for GalaChain requests: eth|<checksummed hex>."""
    if address.startswith(CHAIN_ADDRESS_PREFIX):
        address = address[len(CHAIN_ADDRESS_PREFIX):]
    return CHAIN_ADDRESS_PREFIX + checksum(address)[2:]


# ============================================
# Wallet Identity
# ============================================

class Wallet:
    """
    The running identity: phrase, key pair and addresses.

    Usage:
        # Create new wallet
        wallet = Wallet.create()
        phrase = wallet.seed_phrase  # Show once for offline backup

        # Restore from backup
        wallet = Wallet.restore("abandon abandon ... about")

        wallet.address          # 0x... (checksummed)
        wallet.chain_address    # eth|...
        wallet.public_key_hex   # 04... (registration payload)
    """

    def __init__(self, phrase: RecoveryPhrase):
        """Initialize wallet from a validated phrase (derives keys in memory)."""
        self._phrase: Optional[RecoveryPhrase] = phrase
        self._private_key, self._address = derive(phrase)
        self._public_key = public_key_from_private(self._private_key)

    @classmethod
    def create(cls, entropy: Optional[bytes] = None) -> 'Wallet':
        """Create a wallet with a freshly generated phrase."""
        return cls(generate(entropy))

    @classmethod
    def restore(cls, words: Union[str, Iterable[str]]) -> 'Wallet':
        """Restore a wallet from user-typed words."""
        return cls(parse(words))

    @property
    def phrase(self) -> Optional[RecoveryPhrase]:
        return self._phrase

    @property
    def seed_phrase(self) -> Optional[str]:
        """The recovery phrase (sensitive - only show during backup!)."""
        return str(self._phrase) if self._phrase else None

    @property
    def address(self) -> str:
        """Checksummed 0x address."""
        return self._address

    @property
    def chain_address(self) -> str:
        """GalaChain identifier (eth|...)."""
        return to_chain_address(self._address)

    @property
    def public_key_hex(self) -> str:
        """Uncompressed public key as hex with the 04 prefix."""
        return "04" + self._public_key.hex()

    @property
    def private_key(self) -> Optional[bytes]:
        """
        Raw private key, or None once locked.

        WARNING: Handle with extreme care!
        """
        return self._private_key

    @property
    def has_private_key(self) -> bool:
        return self._private_key is not None

    def lock(self) -> None:
        """Clear secret material from memory. The address stays readable."""
        if hasattr(self, '_private_key'):
            self._private_key = None
        if hasattr(self, '_phrase'):
            self._phrase = None

    def __repr__(self) -> str:
        return f"Wallet(address={getattr(self, '_address', '?')})"

    def __del__(self):
        """Attempt to clear sensitive data on destruction."""
        self.lock()
