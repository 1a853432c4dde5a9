"""
GalaChain Client - Registration and balance calls over HTTP.

Provides:
- check_registration: is a public key on record for this address?
- register: submit a public key to the identity service
- get_balance: available / locked quantity of the configured token; raises
  NotRegisteredError when the service reports the owner has no identity

Each call has an async form (`*_async`) and a blocking form with the plain
name. The blocking form runs the coroutine on a short-lived event loop so
worker threads can call it directly. Failed attempts are retried with
exponential backoff (1s, 2s, 4s, ...).
"""

import asyncio
import logging
import math
import re
from typing import Any, Optional

import requests

from networks import ChainConfig, format_address
from .exceptions import (
    ApiError,
    AuthError,
    NetworkError,
    NotRegisteredError,
    ParseError,
)
from .retry import RetryPolicy, Sleep, run_blocking

logger = logging.getLogger(__name__)


# GalaChain response "Status" value for success
SUCCESS_STATUS = 1

# Registration checks are latency sensitive and tolerate staleness
CHECK_MAX_RETRIES = 2
REGISTER_MAX_RETRIES = 3
BALANCE_MAX_RETRIES = 3

USER_AGENT = "GalaChainWallet/0.1"

# Phrasing the API uses when no public key exists for a user
_NOT_FOUND_PATTERN = re.compile(
    r"not\s+found|no\s+public\s*key|not\s+registered|does\s+not\s+exist",
    re.IGNORECASE,
)

# Phrasing the operations API uses when the owner has no identity on chain
_UNREGISTERED_PATTERN = re.compile(
    r"not\s+registered|no\s+public\s*key|user\s*profile\s+not\s+found",
    re.IGNORECASE,
)


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _has_payload(value: Any) -> bool:
    return value not in (None, "", {}, [])


def _parse_quantity(value: Any, field: str) -> float:
    """Quantities arrive as decimal strings (BigNumber); accept numbers too."""
    if isinstance(value, bool) or value is None:
        raise ParseError(f"Invalid {field}: {value!r}")
    try:
        quantity = float(str(value).strip())
    except ValueError as e:
        raise ParseError(f"Invalid {field}: {value!r}") from e
    if not math.isfinite(quantity):
        raise ParseError(f"Invalid {field}: {value!r}")
    return quantity


def parse_balance_records(records: Any) -> tuple[float, float]:
    """
    Reduce FetchBalances records to (available, locked).

    No records means no position in this token: (0.0, 0.0).
    available = quantity - sum(lockedHolds[].quantity)
    """
    if records is None:
        return 0.0, 0.0
    if not isinstance(records, list):
        raise ParseError(f"Expected a list of balances, got {type(records).__name__}")

    total = 0.0
    locked = 0.0
    for record in records:
        if not isinstance(record, dict):
            raise ParseError("Balance record is not an object")
        total += _parse_quantity(record.get("quantity"), "quantity")

        holds = record.get("lockedHolds") or []
        if not isinstance(holds, list):
            raise ParseError("lockedHolds is not a list")
        for hold in holds:
            if not isinstance(hold, dict):
                raise ParseError("Locked hold is not an object")
            locked += _parse_quantity(hold.get("quantity"), "locked hold quantity")

    return total - locked, locked


class GalaChainClient:
    """HTTP client for the GalaChain operations and identity APIs."""

    def __init__(
        self,
        config: ChainConfig,
        session: Optional[requests.Session] = None,
        sleep: Sleep = asyncio.sleep,
        base_delay: float = 1.0,
    ) -> None:
        """
        Args:
            config: Endpoint configuration
            session: requests session (a new one is created when omitted)
            sleep: Awaitable sleep used for backoff (injectable for tests)
            base_delay: First backoff delay in seconds
        """
        self.config = config
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        })
        self._check_retry = RetryPolicy(CHECK_MAX_RETRIES, base_delay, sleep)
        self._register_retry = RetryPolicy(REGISTER_MAX_RETRIES, base_delay, sleep)
        self._balance_retry = RetryPolicy(BALANCE_MAX_RETRIES, base_delay, sleep)

    # ============================================
    # Transport
    # ============================================

    def _post(self, url: str, payload: dict) -> requests.Response:
        """Single blocking POST. Transport failures become NetworkError."""
        timeout = self.config.request_timeout
        try:
            response = self.session.post(url, json=payload, timeout=timeout)
        except requests.Timeout as e:
            raise NetworkError(f"Request to {url} timed out after {timeout:g}s", NetworkError.TIMEOUT) from e
        except requests.ConnectionError as e:
            raise NetworkError(f"Connection to {url} failed: {e}", NetworkError.CONNECTION) from e
        except requests.RequestException as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

        logger.debug(f"POST {url} - Status: {response.status_code}")
        return response

    async def _post_async(self, url: str, payload: dict) -> requests.Response:
        return await asyncio.to_thread(self._post, url, payload)

    @staticmethod
    def _json(response: requests.Response) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Response is not JSON: {response.text[:200]!r}") from e
        if not isinstance(data, dict):
            raise ParseError(f"Expected a JSON object, got {type(data).__name__}")
        return data

    @staticmethod
    def _raise_for_auth(response: requests.Response) -> None:
        if response.status_code in (401, 403):
            raise AuthError(
                f"Request rejected: {response.text[:200]}", response.status_code, response.text or ""
            )

    # ============================================
    # Response Interpretation
    # ============================================

    def _interpret_lookup(self, response: requests.Response) -> bool:
        status = response.status_code
        text = response.text or ""

        if status in (400, 404):
            return False
        self._raise_for_auth(response)
        if status < 500 and _NOT_FOUND_PATTERN.search(text):
            return False
        if not _is_success(status):
            raise ApiError("Public key lookup failed", status, text)

        data = self._json(response)
        if data.get("Status") == SUCCESS_STATUS:
            return _has_payload(data.get("Data"))
        raise ApiError(
            f"Public key lookup returned status {data.get('Status')!r}: {data.get('Message', '')}",
            status,
            text,
        )

    def _interpret_register(self, response: requests.Response) -> None:
        if _is_success(response.status_code):
            return None
        self._raise_for_auth(response)
        raise ApiError("Registration failed", response.status_code, response.text or "")

    def _interpret_balance(self, response: requests.Response, chain_address: str) -> tuple[float, float]:
        status = response.status_code
        self._raise_for_auth(response)
        if status in (400, 404) and _UNREGISTERED_PATTERN.search(response.text or ""):
            raise NotRegisteredError(chain_address)
        if not _is_success(status):
            raise ApiError("Balance query failed", status, response.text or "")

        data = self._json(response)
        if "Status" in data and data["Status"] != SUCCESS_STATUS:
            raise ApiError(
                f"Balance query returned status {data['Status']!r}: {data.get('Message', '')}",
                status,
                response.text or "",
            )
        return parse_balance_records(data.get("Data"))

    # ============================================
    # Requests
    # ============================================

    def balance_request(self, chain_address: str) -> dict:
        """FetchBalances payload for the configured token class."""
        token = self.config.token
        return {
            "owner": chain_address,
            "collection": token.collection,
            "category": token.category,
            "type": token.type,
            "additionalKey": token.additional_key,
            "instance": token.instance,
        }

    async def check_registration_async(self, chain_address: str) -> bool:
        """True if the network has a public key on record for the address."""
        url = self.config.public_key_url
        payload = {"user": chain_address}

        async def attempt() -> bool:
            return self._interpret_lookup(await self._post_async(url, payload))

        registered = await self._check_retry.run(
            attempt, label=f"Registration check for {format_address(chain_address)}"
        )
        logger.info(f"{format_address(chain_address)} registered: {registered}")
        return registered

    async def register_async(self, public_key_hex: str) -> None:
        """Register a public key with the identity service."""
        url = self.config.registration_url
        payload = {"publicKey": public_key_hex}

        async def attempt() -> None:
            return self._interpret_register(await self._post_async(url, payload))

        await self._register_retry.run(attempt, label="Registration")
        logger.info("Public key registered")

    async def get_balance_async(self, chain_address: str) -> tuple[float, float]:
        """(available, locked) for the configured token."""
        url = self.config.balance_url
        payload = self.balance_request(chain_address)

        async def attempt() -> tuple[float, float]:
            return self._interpret_balance(await self._post_async(url, payload), chain_address)

        return await self._balance_retry.run(
            attempt, label=f"Balance fetch for {format_address(chain_address)}"
        )

    # ============================================
    # Blocking counterparts
    # ============================================

    def check_registration(self, chain_address: str) -> bool:
        return run_blocking(self.check_registration_async(chain_address))

    def register(self, public_key_hex: str) -> None:
        return run_blocking(self.register_async(public_key_hex))

    def get_balance(self, chain_address: str) -> tuple[float, float]:
        return run_blocking(self.get_balance_async(chain_address))

    def close(self) -> None:
        self.session.close()
