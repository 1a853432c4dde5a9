"""
GalaChain Wallet - Self-custody identity and registration for GalaChain.

A desktop app that keeps a recovery phrase in the OS keychain, registers
the derived public key with GalaChain, and shows the token balance.

Entry point for the application.
"""

import logging
import os
import sys

from PyQt6.QtWidgets import QApplication

from networks import load_chain_config
from services import GalaChainClient, TaskScheduler, WalletSession
from services.logging import cleanup_old_logs, configure_logging
from ui import MainWindow
from utils import get_log_retention_days, get_logs_dir, get_secrets_dir, load_settings
from wallet.keychain import CredentialStore, default_secret_store

# Passphrase for the encrypted file store when no OS keychain is available
STORE_PASSPHRASE_ENV = "GALAWALLET_STORE_PASSPHRASE"


def main():
    """Application entry point."""
    settings = load_settings()

    # Configure logging before anything else
    log_retention = get_log_retention_days(settings)
    configure_logging(
        level=logging.DEBUG if settings.get("debug", False) else logging.INFO,
        log_dir=get_logs_dir() if log_retention > 0 else None,
    )
    if log_retention > 0:
        deleted = cleanup_old_logs(log_retention)
        if deleted > 0:
            logging.getLogger(__name__).info(f"Cleaned up {deleted} old log file(s)")

    app = QApplication(sys.argv)
    app.setApplicationName("GalaChain Wallet")
    app.setOrganizationName("GalaChain")

    chain_config = load_chain_config(settings)
    secret_store = default_secret_store(get_secrets_dir(), os.environ.get(STORE_PASSPHRASE_ENV))
    session = WalletSession(
        CredentialStore(secret_store),
        GalaChainClient(chain_config),
        TaskScheduler(),
        auto_register=settings.get("auto_register", True),
    )
    session.load_on_startup()

    # Show main window
    window = MainWindow(session, chain_config)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
