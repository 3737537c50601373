"""Transfer form state, validation and submission."""

import logging
from dataclasses import dataclass, field
from enum import Enum

from auox.api import BankAPIError, SpareBankClient
from auox.db.models import (
    Account,
    CreateTransferRequest,
    CreditCardTransferRequest,
    TransferError,
    TransferOutcome,
)
from auox.state.navigation import NavigationStack

AMOUNT_CHARACTERS = frozenset("0123456789.,")
REQUEST_FAILED_CODE = "REQUEST_FAILED"

log = logging.getLogger("auox.transfer")


class ActiveField(Enum):
    """Form field receiving typed characters."""

    AMOUNT = "amount"
    MESSAGE = "message"


@dataclass
class TextField:
    """Single-line text input with a caret."""

    value: str = ""
    cursor: int = 0

    def insert(self, text: str) -> None:
        """Insert text at the caret."""
        self.value = self.value[: self.cursor] + text + self.value[self.cursor :]
        self.cursor += len(text)

    def backspace(self) -> None:
        """Delete the character before the caret."""
        if self.cursor > 0:
            self.value = self.value[: self.cursor - 1] + self.value[self.cursor :]
            self.cursor -= 1

    def delete(self) -> None:
        """Delete the character under the caret."""
        self.value = self.value[: self.cursor] + self.value[self.cursor + 1 :]

    def left(self) -> None:
        self.cursor = max(self.cursor - 1, 0)

    def right(self) -> None:
        self.cursor = min(self.cursor + 1, len(self.value))

    def home(self) -> None:
        self.cursor = 0

    def end(self) -> None:
        self.cursor = len(self.value)

    def clear(self) -> None:
        self.value = ""
        self.cursor = 0


EDIT_KEYS = {
    "backspace": TextField.backspace,
    "delete": TextField.delete,
    "left": TextField.left,
    "right": TextField.right,
    "home": TextField.home,
    "end": TextField.end,
}


@dataclass
class TransferDraft:
    """In-progress transfer. Account references index the full account list."""

    from_account: int | None = None
    to_account: int | None = None
    amount: TextField = field(default_factory=TextField)
    message: TextField = field(default_factory=TextField)
    active_field: ActiveField = ActiveField.AMOUNT

    @property
    def active(self) -> TextField:
        """Field receiving input."""
        if self.active_field is ActiveField.AMOUNT:
            return self.amount
        return self.message

    def toggle_field(self) -> None:
        """Move input to the other field."""
        if self.active_field is ActiveField.AMOUNT:
            self.active_field = ActiveField.MESSAGE
        else:
            self.active_field = ActiveField.AMOUNT

    def type_character(self, char: str) -> bool:
        """Type into the active field. The amount field only takes digits, '.' and ','."""
        if self.active_field is ActiveField.AMOUNT and char not in AMOUNT_CHARACTERS:
            return False
        self.active.insert(char)
        return True

    def edit(self, key: str) -> bool:
        """Apply an editing key to the active field."""
        action = EDIT_KEYS.get(key)
        if action is None:
            return False
        action(self.active)
        return True

    def reset(self) -> None:
        """Back to an empty form with no accounts chosen."""
        self.from_account = None
        self.to_account = None
        self.amount.clear()
        self.message.clear()
        self.active_field = ActiveField.AMOUNT


TransferRequest = CreateTransferRequest | CreditCardTransferRequest


def _resolve(accounts: list[Account], index: int | None) -> Account | None:
    if index is None or not 0 <= index < len(accounts):
        return None
    return accounts[index]


def build_transfer_request(
    draft: TransferDraft, accounts: list[Account]
) -> TransferRequest | None:
    """Validate the draft and build the request body, or None if it is incomplete."""
    amount = draft.amount.value.strip()
    if not amount:
        log.debug("Amount is empty, not performing transfer")
        return None
    from_account = _resolve(accounts, draft.from_account)
    if from_account is None:
        log.debug("No from_account selected")
        return None
    to_account = _resolve(accounts, draft.to_account)
    if to_account is None:
        log.debug("No to_account selected")
        return None

    if to_account.is_credit_card:
        if not to_account.credit_card_account_id:
            log.error(f"Credit card account {to_account.key} has no credit card account id")
            return None
        return CreditCardTransferRequest(
            amount=amount,
            from_account=from_account.account_number,
            credit_card_account_id=to_account.credit_card_account_id,
        )

    message = draft.message.value.strip()
    return CreateTransferRequest(
        amount=amount,
        from_account=from_account.account_number,
        to_account=to_account.account_number,
        message=message or None,
    )


def log_outcome(outcome: TransferOutcome) -> None:
    """Write the outcome and every error to the transfer log."""
    if outcome.succeeded:
        log.info(f"Transfer successful, payment id: {outcome.payment_id}")
        return
    log.warning(f"Transfer failed with {len(outcome.errors)} error(s):")
    for error in outcome.errors:
        log.warning(f"  - [{error.code}] {error.trace_id} (HTTP {error.http_code}): {error.message}")
        if error.localized_message and error.localized_message.message:
            log.warning(f"    Localized: {error.localized_message.message}")


class TransferWizard:
    """Submits drafts and applies the outcome to the form and navigation."""

    def __init__(self, client: SpareBankClient):
        self._client = client

    async def submit(
        self, draft: TransferDraft, accounts: list[Account]
    ) -> TransferOutcome | None:
        """Send the draft. Returns None without a request when the draft is incomplete."""
        request = build_transfer_request(draft, accounts)
        if request is None:
            return None
        log.debug(f"Performing transfer: {request}")
        try:
            if isinstance(request, CreditCardTransferRequest):
                outcome = await self._client.create_credit_card_transfer(request)
            else:
                outcome = await self._client.create_transfer(request)
        except BankAPIError as e:
            outcome = TransferOutcome(
                errors=[
                    TransferError(
                        code=REQUEST_FAILED_CODE,
                        message=str(e),
                        http_code=e.status_code or 0,
                        trace_id="",
                    )
                ]
            )
        log_outcome(outcome)
        return outcome

    @staticmethod
    def complete(
        outcome: TransferOutcome, draft: TransferDraft, stack: NavigationStack
    ) -> bool:
        """Reset the form and return to the account list after a success.

        Returns True when the accounts should be fetched again. A failed
        outcome leaves the form and stack as they are.
        """
        if not outcome.succeeded:
            return False
        draft.reset()
        stack.collapse()
        return True
