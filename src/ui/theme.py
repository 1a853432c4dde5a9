"""
UI Theme - Design system colors, fonts and message box helpers.
"""

from typing import Optional, Sequence

from PyQt6.QtWidgets import QMessageBox


class Theme:
    """GalaChain Wallet colors and fonts."""

    # Brand colors
    ACCENT = "#2b8cff"
    ACCENT_DIM = "#1d5fae"
    BLACK = "#0b0d12"          # Window background
    MUTED = "#8a93a6"

    # Status colors
    SUCCESS = "#22c55e"
    ERROR = "#ef4444"
    WARNING = "#f59e0b"

    # Typography
    MONO_FONT = "JetBrains Mono"

    MIN_POPUP_WIDTH = 300


def _message_box(parent, title: str, message: str, icon: QMessageBox.Icon) -> QMessageBox:
    msg = QMessageBox(parent)
    msg.setWindowTitle(title)
    msg.setText(message)
    msg.setIcon(icon)
    msg.setMinimumWidth(Theme.MIN_POPUP_WIDTH)
    return msg


def ask_question(parent, title: str, message: str, default_no: bool = True) -> bool:
    """Yes/No question. Returns True only for Yes."""
    msg = _message_box(parent, title, message, QMessageBox.Icon.Question)
    yes, no = QMessageBox.StandardButton.Yes, QMessageBox.StandardButton.No
    msg.setStandardButtons(yes | no)
    msg.setDefaultButton(no if default_no else yes)
    return msg.exec() == yes


def ask_choice(parent, title: str, message: str, choices: Sequence[tuple[str, str]]) -> Optional[str]:
    """
    Offer one button per (key, label) choice plus Cancel.

    Returns:
        The key of the clicked choice, or None when cancelled
    """
    msg = _message_box(parent, title, message, QMessageBox.Icon.NoIcon)
    buttons = {}
    for key, label in choices:
        buttons[msg.addButton(label, QMessageBox.ButtonRole.AcceptRole)] = key
    msg.addButton(QMessageBox.StandardButton.Cancel)
    if choices:
        msg.setDefaultButton(next(iter(buttons)))
    msg.exec()
    return buttons.get(msg.clickedButton())


def show_warning(parent, title: str, message: str) -> None:
    msg = _message_box(parent, title, message, QMessageBox.Icon.Warning)
    msg.setStandardButtons(QMessageBox.StandardButton.Ok)
    msg.exec()
