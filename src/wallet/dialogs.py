"""
Wallet UI Dialogs - Recovery phrase import and backup.

Both dialogs work on plain strings handed over by the session; neither
touches the credential store.
"""

from PyQt6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel, QPushButton,
    QTextEdit, QWidget, QCheckBox, QMessageBox, QApplication, QFrame
)
from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QFont
from typing import Optional

from .crypto import InvalidMnemonic, RecoveryPhrase, parse, suggest_words, MNEMONIC_WORD_COUNT

# Clipboard auto-clear timeout (seconds)
CLIPBOARD_CLEAR_TIMEOUT = 60

# Backup grid layout
BACKUP_COLUMNS = 3


def copy_sensitive_to_clipboard(text: str, parent: QWidget = None, timeout_sec: int = CLIPBOARD_CLEAR_TIMEOUT):
    """Put text on the clipboard and clear it after timeout_sec unless it changed."""
    clipboard = QApplication.clipboard()
    clipboard.setText(text)

    def clear_if_unchanged():
        if clipboard.text() == text:
            clipboard.clear()

    QTimer.singleShot(timeout_sec * 1000, clear_if_unchanged)

    if parent:
        QMessageBox.information(
            parent,
            "Copied",
            f"Recovery phrase copied. The clipboard is cleared in {timeout_sec} seconds."
        )


# ============================================
# Seed Import Dialog
# ============================================

class SeedImportDialog(QDialog):
    """Collects a recovery phrase; `phrase` holds the validated result on accept."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Import Recovery Phrase")
        self.setMinimumWidth(450)
        self.setModal(True)

        self.phrase: Optional[RecoveryPhrase] = None

        layout = QVBoxLayout(self)
        layout.setSpacing(12)

        intro = QLabel(f"Enter your {MNEMONIC_WORD_COUNT}-word recovery phrase. Spaces, tabs and line breaks all separate words.")
        intro.setWordWrap(True)
        layout.addWidget(intro)

        self.seed_input = QTextEdit()
        self.seed_input.setPlaceholderText("word1 word2 word3 ...")
        self.seed_input.setFont(QFont("Consolas", 10))
        self.seed_input.setMaximumHeight(80)
        self.seed_input.setAcceptRichText(False)
        self.seed_input.textChanged.connect(self.on_text_changed)
        layout.addWidget(self.seed_input)

        # Word count plus completions for the word being typed
        self.hint_label = QLabel()
        self.hint_label.setStyleSheet("color: gray;")
        layout.addWidget(self.hint_label)

        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: red;")
        self.error_label.setWordWrap(True)
        layout.addWidget(self.error_label)

        layout.addStretch()

        buttons = QHBoxLayout()
        buttons.addStretch()
        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        buttons.addWidget(cancel_btn)
        self.import_btn = QPushButton("Import")
        self.import_btn.setDefault(True)
        self.import_btn.clicked.connect(self.on_import)
        buttons.addWidget(self.import_btn)
        layout.addLayout(buttons)

        self.on_text_changed()

    def on_text_changed(self):
        text = self.seed_input.toPlainText()
        words = text.split()
        hint = f"{len(words)} / {MNEMONIC_WORD_COUNT} words"

        if words and not text[-1:].isspace():
            partial = words[-1].lower()
            suggestions = suggest_words(partial, limit=5)
            if not suggestions:
                hint += f"   '{partial}' is not in the word list"
            elif suggestions != [partial]:
                hint += "   " + ", ".join(suggestions)

        self.hint_label.setText(hint)
        self.error_label.setText("")
        self.import_btn.setEnabled(len(words) == MNEMONIC_WORD_COUNT)

    def on_import(self):
        try:
            self.phrase = parse(self.seed_input.toPlainText())
        except InvalidMnemonic as e:
            self.error_label.setText(str(e))
            return
        self.accept()


# ============================================
# Seed Backup Dialog
# ============================================

class SeedBackupDialog(QDialog):
    """Shows the recovery phrase as a numbered word grid."""

    def __init__(self, seed_phrase: str, parent=None, require_confirmation: bool = True):
        super().__init__(parent)
        self.setWindowTitle("Back Up Your Recovery Phrase")
        self.setFixedWidth(480)
        self.setModal(True)

        self.seed_phrase = seed_phrase
        self.require_confirmation = require_confirmation

        layout = QVBoxLayout(self)
        layout.setSpacing(12)

        warning = QLabel(
            "Anyone with these words controls this wallet, and they are the only way "
            "to restore it. Write them down in order and keep them offline."
        )
        warning.setWordWrap(True)
        layout.addWidget(warning)

        layout.addWidget(self._word_grid(seed_phrase.split()))

        copy_btn = QPushButton("Copy to Clipboard")
        copy_btn.clicked.connect(lambda: copy_sensitive_to_clipboard(self.seed_phrase, self))
        layout.addWidget(copy_btn, alignment=Qt.AlignmentFlag.AlignHCenter)

        self.confirm_check = QCheckBox("I have written down my recovery phrase")
        self.confirm_check.setVisible(require_confirmation)
        layout.addWidget(self.confirm_check)

        buttons = QHBoxLayout()
        buttons.addStretch()
        done_btn = QPushButton("Continue" if require_confirmation else "Close")
        done_btn.setDefault(True)
        done_btn.clicked.connect(self.on_done)
        buttons.addWidget(done_btn)
        layout.addLayout(buttons)

    @staticmethod
    def _word_grid(words: list[str]) -> QFrame:
        frame = QFrame()
        frame.setStyleSheet("QFrame { background-color: #ffffcc; border: 1px solid #cccc00; } QLabel { border: none; color: #000000; }")
        grid = QGridLayout(frame)
        grid.setContentsMargins(12, 12, 12, 12)
        font = QFont("Consolas", 11)
        for index, word in enumerate(words):
            label = QLabel(f"{index + 1:2}. {word}")
            label.setFont(font)
            grid.addWidget(label, index // BACKUP_COLUMNS, index % BACKUP_COLUMNS)
        return frame

    def on_done(self):
        if self.require_confirmation and not self.confirm_check.isChecked():
            QMessageBox.warning(self, "Backup Required", "Confirm that you have written down the recovery phrase.")
            return
        self.accept()

    def done(self, result):
        # Drop our reference to the phrase once the dialog closes
        self.seed_phrase = ""
        super().done(result)
