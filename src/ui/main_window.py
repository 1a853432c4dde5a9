"""
Main Window - The primary application window.

Contains the header, wallet panel, and status bar. A QTimer drives
WalletSession.tick(); the window only renders the session's status.
"""

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel,
    QStatusBar, QFrame, QTextEdit, QPushButton, QGridLayout, QGroupBox
)
from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QFont
from typing import Optional
from datetime import datetime
import logging

from .theme import Theme, ask_choice, ask_question, show_warning
from models import RegistrationStatus
from networks import ChainConfig, format_address
from services import WalletSession
from wallet.crypto import InvalidDerivedKey, InvalidMnemonic
from wallet.dialogs import SeedImportDialog, SeedBackupDialog

logger = logging.getLogger(__name__)

# Tick interval for polling background work
TICK_INTERVAL_MS = 100

REGISTRATION_COLORS = {
    RegistrationStatus.REGISTERED: Theme.SUCCESS,
    RegistrationStatus.NOT_REGISTERED: Theme.WARNING,
    RegistrationStatus.FAILED: Theme.ERROR,
}


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, session: WalletSession, chain_config: ChainConfig):
        super().__init__()
        self.session = session
        self.chain_config = chain_config

        self.activity_entries: list[str] = []
        self._last_activity: Optional[str] = None
        self._last_registration: Optional[tuple] = None
        self._last_balance_error: Optional[str] = None
        self._last_storage_error: Optional[str] = None

        self.setWindowTitle("GalaChain Wallet")
        self.setMinimumSize(640, 420)

        self.create_menu_bar()

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)

        self.header = self.create_header()
        layout.addWidget(self.header)
        layout.addWidget(self.create_wallet_panel())
        layout.addStretch()

        self.status = QStatusBar()
        self.setStatusBar(self.status)
        self.status.showMessage(
            f"{chain_config.display_name}  |  {chain_config.channel}/{chain_config.contract}"
        )

        self.render_status()

        self.tick_timer = QTimer(self)
        self.tick_timer.timeout.connect(self.on_tick)
        self.tick_timer.start(TICK_INTERVAL_MS)

        if not self.session.has_wallet and self.session.status.storage_error is None:
            QTimer.singleShot(0, self.show_welcome)

    # ============================================
    # Layout
    # ============================================

    def create_header(self) -> QFrame:
        header = QFrame()
        header.setStyleSheet(f"background-color: {Theme.BLACK};")
        header.setFixedHeight(90)

        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(16, 12, 16, 12)

        logo_label = QLabel("GALACHAIN WALLET")
        logo_label.setStyleSheet(f"color: {Theme.ACCENT}; font-weight: bold; font-size: 16px;")
        header_layout.addWidget(logo_label, alignment=Qt.AlignmentFlag.AlignTop)
        header_layout.addStretch()

        # Registration indicator
        status_layout = QHBoxLayout()
        status_layout.setSpacing(4)
        self.registration_indicator = QLabel("●")
        self.registration_indicator.setStyleSheet(f"color: {Theme.MUTED}; font-size: 12px;")
        self.registration_indicator.setFixedWidth(12)
        status_layout.addWidget(self.registration_indicator)
        self.registration_label = QLabel("No wallet")
        self.registration_label.setFont(QFont(Theme.MONO_FONT, 9))
        self.registration_label.setStyleSheet(f"color: {Theme.MUTED};")
        status_layout.addWidget(self.registration_label)
        header_layout.addLayout(status_layout)
        header_layout.addStretch()

        self.activity_log = QTextEdit()
        self.activity_log.setReadOnly(True)
        self.activity_log.setFont(QFont(Theme.MONO_FONT, 9))
        self.activity_log.setStyleSheet(f"""
            QTextEdit {{
                background-color: transparent;
                border: none;
                color: {Theme.ACCENT_DIM};
            }}
        """)
        self.activity_log.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.activity_log.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.activity_log.setMinimumWidth(320)
        self.activity_log.setMaximumHeight(66)
        header_layout.addWidget(self.activity_log)

        return header

    def create_wallet_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(16, 12, 16, 12)

        identity_group = QGroupBox("Identity")
        grid = QGridLayout(identity_group)
        mono = QFont(Theme.MONO_FONT, 10)

        grid.addWidget(QLabel("Address:"), 0, 0)
        self.address_label = QLabel("-")
        self.address_label.setFont(mono)
        self.address_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        grid.addWidget(self.address_label, 0, 1)

        grid.addWidget(QLabel("GalaChain:"), 1, 0)
        self.chain_address_label = QLabel("-")
        self.chain_address_label.setFont(mono)
        self.chain_address_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        grid.addWidget(self.chain_address_label, 1, 1)

        grid.addWidget(QLabel("Registration:"), 2, 0)
        self.registration_detail = QLabel("-")
        self.registration_detail.setWordWrap(True)
        grid.addWidget(self.registration_detail, 2, 1)
        layout.addWidget(identity_group)

        balance_group = QGroupBox(f"Balance ({self.chain_config.token.collection})")
        balance_grid = QGridLayout(balance_group)
        balance_grid.addWidget(QLabel("Available:"), 0, 0)
        self.available_label = QLabel("-")
        self.available_label.setFont(mono)
        balance_grid.addWidget(self.available_label, 0, 1)
        balance_grid.addWidget(QLabel("Locked:"), 1, 0)
        self.locked_label = QLabel("-")
        self.locked_label.setFont(mono)
        balance_grid.addWidget(self.locked_label, 1, 1)
        self.balance_error_label = QLabel("")
        self.balance_error_label.setStyleSheet(f"color: {Theme.ERROR};")
        self.balance_error_label.setWordWrap(True)
        balance_grid.addWidget(self.balance_error_label, 2, 0, 1, 2)
        layout.addWidget(balance_group)

        btn_layout = QHBoxLayout()
        self.refresh_btn = QPushButton("Refresh Balance")
        self.refresh_btn.clicked.connect(self.refresh_balance)
        btn_layout.addWidget(self.refresh_btn)

        self.check_btn = QPushButton("Check Registration")
        self.check_btn.clicked.connect(self.check_registration)
        btn_layout.addWidget(self.check_btn)

        self.register_btn = QPushButton("Register")
        self.register_btn.clicked.connect(self.register)
        btn_layout.addWidget(self.register_btn)
        btn_layout.addStretch()
        layout.addLayout(btn_layout)

        return panel

    def create_menu_bar(self):
        menubar = self.menuBar()

        file_menu = menubar.addMenu("File")
        file_menu.addAction("Create Wallet...", self.create_wallet)
        file_menu.addAction("Import Recovery Phrase...", self.import_wallet)
        file_menu.addAction("Backup Recovery Phrase...", self.backup_wallet)
        file_menu.addSeparator()
        file_menu.addAction("Wipe Wallet...", self.wipe_wallet)
        file_menu.addSeparator()
        file_menu.addAction("Quit", self.close)

    # ============================================
    # Tick / Render
    # ============================================

    def on_tick(self):
        self.session.tick()
        self.render_status()

    def render_status(self):
        """Copy the session status into the widgets."""
        status = self.session.status
        has_wallet = status.has_wallet

        self.address_label.setText(status.address or "-")
        self.chain_address_label.setText(status.chain_address or "-")

        balance = status.balance
        if not has_wallet or balance.updated_at is None:
            self.available_label.setText("Loading..." if balance.loading else "-")
            self.locked_label.setText("-")
        else:
            self.available_label.setText(f"{balance.available:,.8g}")
            self.locked_label.setText(f"{balance.locked:,.8g}")
        self.balance_error_label.setText(balance.error or "")

        registration = status.registration
        if has_wallet:
            label = registration.status.label
            color = REGISTRATION_COLORS.get(registration.status, Theme.MUTED)
        else:
            label = "No wallet"
            color = Theme.MUTED
        self.registration_indicator.setStyleSheet(f"color: {color}; font-size: 12px;")
        self.registration_label.setStyleSheet(f"color: {color};")
        self.registration_label.setText(label)
        self.registration_detail.setText(
            f"{label}: {registration.error}" if registration.error else label
        )

        self.refresh_btn.setEnabled(has_wallet)
        self.check_btn.setEnabled(has_wallet)
        self.register_btn.setEnabled(
            has_wallet and registration.status in (RegistrationStatus.NOT_REGISTERED, RegistrationStatus.FAILED)
        )

        self._report_changes()

    def _report_changes(self):
        """Mirror status transitions into the activity log."""
        status = self.session.status

        if status.last_activity != self._last_activity:
            self._last_activity = status.last_activity
            if status.last_activity:
                self.update_activity(status.last_activity)

        registration = (status.registration.status, status.registration.error)
        if registration != self._last_registration:
            self._last_registration = registration
            if status.has_wallet and status.registration.status is not RegistrationStatus.UNKNOWN:
                if status.registration.is_failed:
                    self.update_activity(f"Registration failed: {status.registration.error}", is_error=True)
                else:
                    self.update_activity(f"Registration: {status.registration.status.label}")

        if status.balance.error != self._last_balance_error:
            self._last_balance_error = status.balance.error
            if status.balance.error:
                self.update_activity(f"Balance unavailable: {status.balance.error}", is_warning=True)

        if status.storage_error != self._last_storage_error:
            self._last_storage_error = status.storage_error
            if status.storage_error:
                self.update_activity(f"Secret store: {status.storage_error}", is_error=True)

    def update_activity(self, message: str, is_error: bool = False, is_warning: bool = False):
        """Append a line to the activity log in the header."""
        timestamp = datetime.now().strftime("%H:%M:%S")

        if is_error:
            color = Theme.ERROR
        elif is_warning:
            color = Theme.WARNING
        else:
            color = Theme.ACCENT_DIM

        entry = f'<span style="color: {color};">[{timestamp}] {message}</span>'
        self.activity_entries.append(entry)

        if len(self.activity_entries) > 4:
            self.activity_entries = self.activity_entries[-4:]

        self.activity_log.setHtml("<br>".join(self.activity_entries))

        scrollbar = self.activity_log.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())

    # ============================================
    # Actions
    # ============================================

    def show_welcome(self):
        choice = ask_choice(
            self,
            "Welcome to GalaChain Wallet",
            "Create a new wallet or restore one from its recovery phrase.\n\n"
            "Your keys never leave this device.",
            [('create', "Create New Wallet"), ('import', "Import Recovery Phrase")],
        )
        if choice == 'create':
            self.create_wallet()
        elif choice == 'import':
            self.import_wallet()

    def _confirm_replace(self) -> bool:
        if not self.session.has_wallet:
            return True
        return ask_question(
            self,
            "Replace Wallet",
            "This replaces the current wallet. Make sure its recovery phrase is backed up.\n\nContinue?"
        )

    def create_wallet(self):
        if not self._confirm_replace():
            return
        phrase = self.session.generate_wallet()
        SeedBackupDialog(str(phrase), self).exec()
        self.render_status()

    def import_wallet(self):
        if not self._confirm_replace():
            return
        dialog = SeedImportDialog(self)
        if dialog.exec() != SeedImportDialog.DialogCode.Accepted or dialog.phrase is None:
            return
        try:
            address = self.session.import_wallet(dialog.phrase.words)
        except (InvalidMnemonic, InvalidDerivedKey) as e:
            logger.error(f"Import failed: {e}")
            show_warning(self, "Import Failed", str(e))
            return
        self.update_activity(f"Imported {format_address(address)}")
        self.render_status()

    def backup_wallet(self):
        seed_phrase = self.session.export_mnemonic()
        if seed_phrase is None:
            show_warning(self, "No Wallet", "There is no wallet to back up.")
            return
        SeedBackupDialog(seed_phrase, self, require_confirmation=False).exec()

    def wipe_wallet(self):
        if not self.session.has_wallet:
            return
        if not ask_question(
            self,
            "Wipe Wallet",
            "Remove this wallet from this device?\n\nWithout the recovery phrase it cannot be restored."
        ):
            return
        self.session.wipe()
        self.render_status()

    def refresh_balance(self):
        if not self.session.refresh_balance():
            self.status.showMessage("Balance fetch already in progress", 3000)

    def check_registration(self):
        if not self.session.check_registration():
            self.status.showMessage("Registration check already in progress", 3000)

    def register(self):
        if not self.session.register():
            self.status.showMessage("Registration already in progress", 3000)

    def closeEvent(self, event):
        """Stop polling and release background resources."""
        self.tick_timer.stop()
        self.session.close()
        event.accept()
