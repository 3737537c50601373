"""Domain models for the token cache and the banking API."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class AccountType(Enum):
    """Account types reported by the accounts service."""

    CREDIT_CARD = "CREDITCARD"
    CURRENT = "CURRENT"
    SAVINGS = "SAVINGS"
    BSU = "BSU"
    LOAN = "LOAN"


@dataclass
class TokenRecord:
    """OAuth token set, stored as a single record."""

    access_token: str
    refresh_token: str
    expires_in: int
    refresh_token_expires_in: int
    refresh_token_absolute_expires_in: int
    token_type: str
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass
class Owner:
    """Account owner."""

    name: str
    first_name: str | None = None
    last_name: str | None = None


@dataclass
class Account:
    """Bank or credit card account."""

    key: str
    account_number: str
    name: str
    balance: Decimal
    currency: str
    type: str
    owner: Owner | None = None
    credit_card_account_id: str | None = None

    @property
    def is_credit_card(self) -> bool:
        """Check if this is a credit card account."""
        return self.type == AccountType.CREDIT_CARD.value


@dataclass
class Transaction:
    """Booked or reserved account transaction."""

    date: int
    description: str
    amount: Decimal
    currency: str
    type: str

    @property
    def booked_at(self) -> datetime:
        """Transaction date as a datetime (the API reports epoch millis)."""
        return datetime.fromtimestamp(self.date / 1000)


@dataclass
class LocalizedMessage:
    """Translated error text attached to a transfer error."""

    locale: str | None
    message: str | None


@dataclass
class TransferError:
    """Single error reported by a transfer endpoint."""

    code: str
    message: str
    http_code: int
    trace_id: str
    resource: str | None = None
    localized_message: LocalizedMessage | None = None

    @property
    def display_message(self) -> str:
        """Localized message when present, otherwise the raw message."""
        if self.localized_message and self.localized_message.message:
            return self.localized_message.message
        return self.message


@dataclass
class TransferOutcome:
    """Result of a transfer submission. No errors means success."""

    errors: list[TransferError] = field(default_factory=list)
    payment_id: str | None = None
    status: str | None = None

    @property
    def succeeded(self) -> bool:
        """Check if the transfer went through."""
        return not self.errors


@dataclass
class CreateTransferRequest:
    """Transfer between own accounts."""

    amount: str
    from_account: str
    to_account: str
    message: str | None = None
    due_date: str | None = None
    currency_code: str | None = None

    def to_payload(self) -> dict:
        """Build the JSON body, leaving out unset optional fields."""
        payload = {
            "amount": self.amount,
            "fromAccount": self.from_account,
            "toAccount": self.to_account,
        }
        if self.message is not None:
            payload["message"] = self.message
        if self.due_date is not None:
            payload["dueDate"] = self.due_date
        if self.currency_code is not None:
            payload["currencyCode"] = self.currency_code
        return payload


@dataclass
class CreditCardTransferRequest:
    """Transfer to a credit card account. Credit card transfers carry no message."""

    amount: str
    from_account: str
    credit_card_account_id: str
    due_date: str | None = None

    def to_payload(self) -> dict:
        """Build the JSON body, leaving out unset optional fields."""
        payload = {
            "amount": self.amount,
            "fromAccount": self.from_account,
            "creditCardAccountId": self.credit_card_account_id,
        }
        if self.due_date is not None:
            payload["dueDate"] = self.due_date
        return payload
