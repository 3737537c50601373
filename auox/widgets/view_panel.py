"""Widget rendering the view on top of the navigation stack."""

from decimal import Decimal

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text
from textual.widgets import Static

from auox.db.models import Account, Transaction
from auox.state.navigation import MENU_ITEMS, View
from auox.state.router import AppState
from auox.state.transfer import ActiveField, TextField

HIDDEN_BALANCE = "****"
HIGHLIGHT_STYLE = "bold white on blue"

VIEW_TITLES = {
    View.ACCOUNT_LIST: "Accounts",
    View.ACTION_MENU: "Menu",
    View.TRANSACTION_LIST: "Transactions",
    View.TRANSFER_ACCOUNT_PICKER: "Transfer to",
    View.TRANSFER_FORM: "Transfer",
}


def amount_cell(amount: Decimal, currency: str = "") -> Text:
    """Format amount with color based on sign."""
    formatted = f"{abs(amount):,.2f}"
    if currency:
        formatted = f"{formatted} {currency}"
    if amount < 0:
        return Text(f"-{formatted}", style="red")
    return Text(formatted, style="green")


def date_cell(transaction: Transaction) -> str:
    """Format transaction date for display."""
    return transaction.booked_at.strftime("%Y-%m-%d")


def truncate(value: str, max_len: int) -> str:
    """Shorten long text for a table cell."""
    if len(value) > max_len:
        return value[: max_len - 3] + "..."
    return value


def _account_table(state: AppState, cursor_index: int | None, show_balance: bool) -> Table:
    table = Table(expand=True, row_styles=["", "dim"])
    table.add_column("Name", ratio=3)
    table.add_column("Account", ratio=2)
    table.add_column("Owner", ratio=2)
    table.add_column("Type", ratio=1)
    table.add_column("Balance", justify="right", ratio=2)
    for row, index in enumerate(state.visible_accounts()):
        account = state.accounts[index]
        balance = (
            amount_cell(account.balance, account.currency)
            if show_balance
            else Text(HIDDEN_BALANCE, style="dim")
        )
        table.add_row(
            truncate(account.name, 40),
            account.account_number,
            account.owner.name if account.owner else "-",
            account.type,
            balance,
            style=HIGHLIGHT_STYLE if row == cursor_index else None,
        )
    return table


def render_accounts(state: AppState) -> RenderableType:
    if not state.visible_accounts():
        return Text("No accounts to show. Press r to reload.", style="dim italic")
    return _account_table(state, state.account_cursor.index, state.show_balance)


def render_menu(state: AppState) -> RenderableType:
    account = state.menu_account()
    lines = [Text(account.name if account else "", style="bold"), Text("")]
    for i, item in enumerate(MENU_ITEMS):
        if i == state.menu_cursor.index:
            lines.append(Text(f"> {item.label}", style=HIGHLIGHT_STYLE))
        else:
            lines.append(Text(f"  {item.label}"))
    return Group(*lines)


def render_transactions(state: AppState) -> RenderableType:
    if not state.transactions:
        return Text("No transactions.", style="dim italic")
    table = Table(expand=True)
    table.add_column("Date", width=12)
    table.add_column("Description", ratio=4)
    table.add_column("Type", ratio=1)
    table.add_column("Amount", justify="right", ratio=2)
    for row, txn in enumerate(state.transactions):
        table.add_row(
            date_cell(txn),
            truncate(txn.description, 50),
            txn.type,
            amount_cell(txn.amount, txn.currency),
            style=HIGHLIGHT_STYLE if row == state.transaction_cursor.index else None,
        )
    return table


def render_transfer_picker(state: AppState) -> RenderableType:
    source = _account_name(state.accounts, state.draft.from_account)
    header = Text(f"From {source}. Choose the account to transfer to:", style="bold")
    if not state.visible_accounts():
        return Group(header, Text("No accounts to show.", style="dim italic"))
    return Group(header, _account_table(state, state.picker_cursor.index, state.show_balance))


def _account_name(accounts: list[Account], index: int | None) -> str:
    if index is None or not 0 <= index < len(accounts):
        return "-"
    return accounts[index].name


def _field_text(field: TextField, active: bool) -> Text:
    if not active:
        return Text(field.value or " ", style="dim")
    text = Text(field.value[: field.cursor])
    under = field.value[field.cursor : field.cursor + 1] or " "
    text.append(under, style="reverse")
    text.append(field.value[field.cursor + 1 :])
    return text


def render_transfer_form(state: AppState) -> RenderableType:
    draft = state.draft
    destination = (
        state.accounts[draft.to_account]
        if draft.to_account is not None and draft.to_account < len(state.accounts)
        else None
    )
    to_credit_card = destination is not None and destination.is_credit_card
    form = Table.grid(padding=(0, 2))
    form.add_column(style="bold", width=10)
    form.add_column()
    form.add_row("From", _account_name(state.accounts, draft.from_account))
    form.add_row("To", destination.name if destination else "-")
    form.add_row("Amount", _field_text(draft.amount, draft.active_field is ActiveField.AMOUNT))
    if to_credit_card:
        form.add_row(
            "Message", Text("Not supported for credit card transfers", style="dim italic")
        )
    else:
        form.add_row(
            "Message", _field_text(draft.message, draft.active_field is ActiveField.MESSAGE)
        )
    return form


RENDERERS = {
    View.ACCOUNT_LIST: render_accounts,
    View.ACTION_MENU: render_menu,
    View.TRANSACTION_LIST: render_transactions,
    View.TRANSFER_ACCOUNT_PICKER: render_transfer_picker,
    View.TRANSFER_FORM: render_transfer_form,
}


def render_view(state: AppState) -> RenderableType:
    """Render the view on top of the stack."""
    return RENDERERS[state.view](state)


class ViewPanel(Static):
    """Shows whatever view is on top of the navigation stack."""

    DEFAULT_CSS = """
    ViewPanel {
        height: 1fr;
        border: solid $secondary;
        padding: 0 1;
    }
    """

    def show(self, state: AppState) -> None:
        """Redraw from the current state."""
        self.border_title = VIEW_TITLES[state.view]
        self.update(render_view(state))
