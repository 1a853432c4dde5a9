"""
GalaChain client exceptions.

Network and transient API failures are retryable; parse errors and
client-side API errors surface immediately.
"""

from typing import Optional


# HTTP statuses treated as transient
RETRYABLE_STATUSES = frozenset({408, 429})


class GalaChainError(Exception):
    """Base class for chain client failures."""

    retryable = False


class NetworkError(GalaChainError):
    """Transport-level failure (no HTTP response)."""

    retryable = True

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    OTHER = "other"

    def __init__(self, message: str, kind: str = OTHER):
        super().__init__(message)
        self.kind = kind

    @property
    def is_timeout(self) -> bool:
        return self.kind == self.TIMEOUT


class AuthError(GalaChainError):
    """The API rejected our credentials (401/403)."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class ParseError(GalaChainError):
    """Response body did not have the expected shape."""


class ApiError(GalaChainError):
    """Non-success HTTP status or GalaChain status code."""

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def retryable(self) -> bool:
        if self.status is None:
            return False
        return self.status >= 500 or self.status in RETRYABLE_STATUSES

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            return f"{base} (HTTP {self.status})"
        return base


class NotRegisteredError(GalaChainError):
    """The address has no public key registered on chain."""

    def __init__(self, chain_address: str):
        super().__init__(f"{chain_address} is not registered")
        self.chain_address = chain_address
