"""UI state: navigation, cursors, the transfer form and the quit gesture."""

from auox.state.cursor import SelectionCursor
from auox.state.navigation import MENU_ITEMS, MenuItem, NavigationStack, View
from auox.state.quit_gesture import QuitGesture
from auox.state.router import (
    AppState,
    Command,
    FetchTransactions,
    KeyPress,
    RefreshAccounts,
    SubmitTransfer,
    open_transactions,
    route_key,
)
from auox.state.transfer import ActiveField, TextField, TransferDraft, TransferWizard

__all__ = [
    'MENU_ITEMS',
    'ActiveField',
    'AppState',
    'Command',
    'FetchTransactions',
    'KeyPress',
    'MenuItem',
    'NavigationStack',
    'QuitGesture',
    'RefreshAccounts',
    'SelectionCursor',
    'SubmitTransfer',
    'TextField',
    'TransferDraft',
    'TransferWizard',
    'View',
    'open_transactions',
    'route_key',
]
