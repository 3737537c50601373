"""Textual screens for the TUI."""

from auox.screens.main import MainScreen, StatusBar

__all__ = [
    'MainScreen',
    'StatusBar',
]
