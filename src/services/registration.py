r"""
Registration Reconciliation - keep RegistrationState in sync with the chain.

Driven once per tick:

    UNKNOWN --submit check--> CHECKING --> REGISTERED
                                       \-> NOT_REGISTERED --auto--> REGISTERING --> REGISTERED
                                       \-> FAILED                              \-> FAILED

Any address change resets to UNKNOWN. FAILED is terminal until a manual
check restarts the cycle.
"""

import logging
from typing import Optional

from models.status import RegistrationState, RegistrationStatus
from networks import format_address
from wallet.crypto import Wallet
from .galachain import GalaChainClient
from .tasks import OperationKind, TaskResult, TaskScheduler

logger = logging.getLogger(__name__)


class RegistrationReconciler:
    """State machine over RegistrationStatus for the current wallet."""

    def __init__(self, client: GalaChainClient, scheduler: TaskScheduler,
                 state: RegistrationState, auto_register: bool = True):
        self.client = client
        self.scheduler = scheduler
        self.state = state
        self.auto_register = auto_register
        # Address each in-flight task was submitted for
        self._check_address: Optional[str] = None
        self._register_address: Optional[str] = None

    def observe(self, wallet: Optional[Wallet]) -> None:
        """Reset to UNKNOWN when the observed address changes."""
        address = wallet.chain_address if wallet is not None else None
        if address != self.state.address:
            if address:
                logger.info(f"Tracking registration for {format_address(address)}")
            self.state.reset(address)

    # ============================================
    # Manual actions
    # ============================================

    def request_check(self) -> bool:
        """Submit a registration lookup. False if no address or already in flight."""
        address = self.state.address
        if address is None:
            return False
        if not self.scheduler.submit(OperationKind.CHECK_REGISTRATION, self.client.check_registration, address):
            return False
        self._check_address = address
        self.state.set(RegistrationStatus.CHECKING)
        return True

    def request_register(self, wallet: Optional[Wallet]) -> bool:
        """Submit a registration. Needs the private key to be available."""
        if wallet is None or not wallet.has_private_key or self.state.address is None:
            return False
        if not self.scheduler.submit(OperationKind.REGISTER, self.client.register, wallet.public_key_hex):
            return False
        self._register_address = self.state.address
        self.state.set(RegistrationStatus.REGISTERING)
        logger.info(f"Registering {format_address(self.state.address)}")
        return True

    # ============================================
    # Tick
    # ============================================

    def tick(self, wallet: Optional[Wallet]) -> None:
        """Consume finished work, then apply automatic transitions. Never blocks."""
        self.observe(wallet)

        result = self.scheduler.poll(OperationKind.CHECK_REGISTRATION)
        if result is not None:
            self._apply_check(result)

        result = self.scheduler.poll(OperationKind.REGISTER)
        if result is not None:
            self._apply_register(result)

        if self.state.address is None:
            return

        if self.state.status is RegistrationStatus.UNKNOWN:
            self.request_check()
        elif (self.state.status is RegistrationStatus.NOT_REGISTERED
              and self.auto_register
              and wallet is not None and wallet.has_private_key):
            self.request_register(wallet)

    def _apply_check(self, result: TaskResult) -> None:
        address, self._check_address = self._check_address, None
        if address != self.state.address:
            logger.debug("Discarding registration check for a previous address")
            return

        if not result.ok:
            logger.warning(f"Registration check failed: {result.error}")
            self.state.set(RegistrationStatus.FAILED, str(result.error))
        elif result.value:
            self.state.set(RegistrationStatus.REGISTERED)
        else:
            self.state.set(RegistrationStatus.NOT_REGISTERED)

    def _apply_register(self, result: TaskResult) -> None:
        address, self._register_address = self._register_address, None
        if address != self.state.address:
            logger.debug("Discarding registration result for a previous address")
            return

        if result.ok:
            self.state.set(RegistrationStatus.REGISTERED)
        else:
            logger.warning(f"Registration failed: {result.error}")
            self.state.set(RegistrationStatus.FAILED, str(result.error))
