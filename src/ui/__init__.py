"""
UI package - PyQt6 user interface components.

Contains:
- Theme: Design system colors, fonts and message box helpers
- MainWindow: Wallet window driven by the session tick
"""

from .theme import Theme, ask_choice, ask_question, show_warning
from .main_window import MainWindow

__all__ = [
    "Theme",
    "ask_choice",
    "ask_question",
    "show_warning",
    "MainWindow",
]
