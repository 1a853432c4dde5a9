"""
Wallet Session - Single owner of the identity and everything derived from it.

The UI calls the entry points below from its event handlers and calls
tick() from its timer. Storage and network failures never propagate out
of the session; they land in `status` for the next render.
"""

import logging
from typing import Optional

from models.credential import StoredCredential
from models.status import RegistrationStatus, WalletStatus
from networks import format_address
from wallet.crypto import RecoveryPhrase, Wallet
from wallet.keychain import CredentialStore, KeychainError, KeychainNotFound
from .exceptions import NotRegisteredError
from .galachain import GalaChainClient
from .registration import RegistrationReconciler
from .tasks import OperationKind, TaskResult, TaskScheduler

logger = logging.getLogger(__name__)


class WalletSession:
    """
    Usage:
        session = WalletSession(CredentialStore(store), GalaChainClient(config))
        session.load_on_startup()

        # every frame / timer tick
        session.tick()
        render(session.status)
    """

    def __init__(self, credential_store: CredentialStore, client: GalaChainClient,
                 scheduler: Optional[TaskScheduler] = None, auto_register: bool = True):
        self.credential_store = credential_store
        self.client = client
        self.scheduler = scheduler or TaskScheduler()
        self.status = WalletStatus()
        self.registration = RegistrationReconciler(
            client, self.scheduler, self.status.registration, auto_register=auto_register
        )
        self._wallet: Optional[Wallet] = None
        self._balance_address: Optional[str] = None

    @property
    def wallet(self) -> Optional[Wallet]:
        return self._wallet

    @property
    def has_wallet(self) -> bool:
        return self._wallet is not None

    # ============================================
    # Identity lifecycle
    # ============================================

    def load_on_startup(self) -> bool:
        """
        Rehydrate the wallet from the credential store.

        Returns:
            True if a wallet was loaded. A missing credential is the normal
            first-run case and is not reported as an error.
        """
        try:
            credential = self.credential_store.load()
        except KeychainNotFound:
            logger.info("No stored wallet found")
            return False
        except KeychainError as e:
            logger.error(f"Could not read stored wallet: {e}")
            self.status.storage_error = str(e)
            return False

        try:
            wallet = Wallet.restore(credential.mnemonic)
        except ValueError as e:
            logger.error(f"Stored recovery phrase is invalid: {e}")
            self.status.storage_error = f"Stored recovery phrase is invalid: {e}"
            return False

        self.status.storage_error = None
        self._adopt(wallet)
        self.status.last_activity = "Wallet loaded"
        logger.info(f"Loaded wallet {format_address(wallet.address)}")
        return True

    def generate_wallet(self) -> RecoveryPhrase:
        """
        Create a new identity and persist it.

        Returns:
            The recovery phrase, for the one-time backup screen.
        """
        wallet = Wallet.create()
        phrase = wallet.phrase
        self._adopt(wallet)
        self._persist(wallet)
        self.status.last_activity = "Wallet created"
        logger.info(f"Generated wallet {format_address(wallet.address)}")
        return phrase

    def import_wallet(self, words) -> str:
        """
        Restore an identity from user-supplied words and persist it.

        Raises:
            InvalidMnemonic: the words are not a valid recovery phrase

        Returns:
            The checksummed address.
        """
        wallet = Wallet.restore(words)
        self._adopt(wallet)
        self._persist(wallet)
        self.status.last_activity = "Wallet imported"
        logger.info(f"Imported wallet {format_address(wallet.address)}")
        return wallet.address

    def export_mnemonic(self) -> Optional[str]:
        """The current recovery phrase (sensitive), or None without a wallet."""
        if self._wallet is None:
            return None
        return self._wallet.seed_phrase

    def wipe(self) -> None:
        """Forget the identity in memory and in the credential store."""
        try:
            self.credential_store.delete()
            self.status.storage_error = None
        except KeychainError as e:
            logger.error(f"Could not remove stored wallet: {e}")
            self.status.storage_error = str(e)

        if self._wallet is not None:
            self._wallet.lock()
        self._wallet = None
        self._balance_address = None
        self.status.address = None
        self.status.chain_address = None
        self.status.balance.clear()
        self.registration.observe(None)
        self.status.last_activity = "Wallet wiped"
        logger.info("Wallet wiped")

    def _adopt(self, wallet: Wallet) -> None:
        if self._wallet is not None and self._wallet is not wallet:
            self._wallet.lock()
        self._wallet = wallet
        self.status.address = wallet.address
        self.status.chain_address = wallet.chain_address
        self.status.balance.clear()
        self.registration.observe(wallet)
        self.refresh_balance()

    def _persist(self, wallet: Wallet) -> None:
        credential = StoredCredential.create(wallet.seed_phrase)
        try:
            self.credential_store.store(credential)
        except KeychainError as e:
            logger.error(f"Could not save wallet: {e}")
            self.status.storage_error = str(e)
            return
        self.status.storage_error = None

    # ============================================
    # Network entry points
    # ============================================

    def refresh_balance(self) -> bool:
        """Queue a balance fetch. False if no wallet or one is already running."""
        if self._wallet is None:
            return False
        address = self._wallet.chain_address
        if not self.scheduler.submit(OperationKind.BALANCE, self.client.get_balance, address):
            return False
        self._balance_address = address
        self.status.balance.loading = True
        return True

    def check_registration(self) -> bool:
        return self.registration.request_check()

    def register(self) -> bool:
        return self.registration.request_register(self._wallet)

    def tick(self) -> None:
        """Poll every slot once and apply finished results. Never blocks."""
        result = self.scheduler.poll(OperationKind.BALANCE)
        if result is not None:
            self._apply_balance(result)

        self.registration.tick(self._wallet)

    def _apply_balance(self, result: TaskResult) -> None:
        address, self._balance_address = self._balance_address, None
        if self._wallet is None or address != self._wallet.chain_address:
            logger.debug("Discarding balance for a previous address")
            self.refresh_balance()
            return

        if result.ok:
            available, locked = result.value
            self.status.balance.apply(available, locked)
            self.status.last_activity = "Balance updated"
        else:
            logger.warning(f"Balance fetch failed: {result.error}")
            self.status.balance.fail(str(result.error))
            # Our view of registration is out of date
            if (isinstance(result.error, NotRegisteredError)
                    and self.status.registration.status is RegistrationStatus.REGISTERED):
                self.registration.request_check()

    def close(self) -> None:
        """Stop the worker pool and release the HTTP session."""
        self.scheduler.shutdown(wait=False)
        self.client.close()
