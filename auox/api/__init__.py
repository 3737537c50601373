"""SpareBank 1 personal banking API client module."""

import logging
from decimal import Decimal, InvalidOperation

import httpx

from auox.db.models import (
    Account,
    CreateTransferRequest,
    CreditCardTransferRequest,
    LocalizedMessage,
    Owner,
    Transaction,
    TransferError,
    TransferOutcome,
)

BASE_URL = "https://api.sparebank1.no"
ACCEPT_HEADER = "application/vnd.sparebank1.v1+json; charset=utf-8"

ACCOUNTS_PATH = "/personal/banking/accounts"
TRANSACTIONS_PATH = "/personal/banking/transactions"
TRANSFER_PATH = "/personal/banking/transfer/debit"
CREDIT_CARD_TRANSFER_PATH = "/personal/banking/transfer/creditcard/transferTo"
HELLO_WORLD_PATH = "/common/helloworld"

# Errors a malformed response body raises while being parsed into models.
MALFORMED_DATA_ERRORS = (KeyError, TypeError, ValueError, AttributeError, InvalidOperation)

log = logging.getLogger("auox.api")


class BankAPIError(Exception):
    """Exception raised for banking API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SpareBankClient:
    """Async client for the SpareBank 1 personal banking API."""

    def __init__(self, access_token: str, base_url: str = BASE_URL):
        self._access_token = access_token
        self._base_url = base_url
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "SpareBankClient":
        """Enter async context."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._get_headers(),
            timeout=30.0,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_headers(self) -> dict[str, str]:
        """Get request headers with authorization."""
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": ACCEPT_HEADER,
        }

    async def _get_json(self, path: str, params: dict | None = None) -> dict:
        """GET a resource, turning transport and HTTP failures into BankAPIError."""
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise BankAPIError(f"Request to {path} failed: {e}") from e
        if response.is_error:
            log.error(f"GET {path} returned HTTP {response.status_code}: {response.text}")
            raise BankAPIError(
                f"{path} returned HTTP {response.status_code}", response.status_code
            )
        try:
            return response.json()
        except ValueError as e:
            raise BankAPIError(f"{path} returned invalid JSON", response.status_code) from e

    async def hello_world(self) -> bool:
        """Probe whether the access token is still accepted."""
        try:
            response = await self._client.get(HELLO_WORLD_PATH)
        except httpx.HTTPError as e:
            log.warning(f"Token probe failed: {e}")
            return False
        log.debug(f"Token probe returned HTTP {response.status_code}")
        return response.is_success

    async def get_accounts(self) -> list[Account]:
        """Fetch all accounts, credit card accounts included."""
        data = await self._get_json(ACCOUNTS_PATH, {"includeCreditCardAccounts": "true"})
        try:
            accounts = [self._parse_account(a) for a in data.get("accounts") or []]
        except MALFORMED_DATA_ERRORS as e:
            log.error(f"Malformed account data from {ACCOUNTS_PATH}: {e!r}")
            raise BankAPIError(f"{ACCOUNTS_PATH} returned malformed account data") from e
        log.debug(f"Fetched {len(accounts)} accounts")
        return accounts

    async def get_transactions(self, account_key: str) -> list[Transaction]:
        """Fetch transactions for one account."""
        data = await self._get_json(TRANSACTIONS_PATH, {"accountKey": account_key})
        try:
            transactions = [
                self._parse_transaction(t) for t in data.get("transactions") or []
            ]
        except MALFORMED_DATA_ERRORS as e:
            log.error(f"Malformed transaction data from {TRANSACTIONS_PATH}: {e!r}")
            raise BankAPIError(
                f"{TRANSACTIONS_PATH} returned malformed transaction data"
            ) from e
        log.debug(f"Fetched {len(transactions)} transactions for {account_key}")
        return transactions

    async def create_transfer(self, transfer: CreateTransferRequest) -> TransferOutcome:
        """Transfer money between own accounts."""
        return await self._post_transfer(TRANSFER_PATH, transfer.to_payload())

    async def create_credit_card_transfer(
        self, transfer: CreditCardTransferRequest
    ) -> TransferOutcome:
        """Transfer money to a credit card account."""
        return await self._post_transfer(CREDIT_CARD_TRANSFER_PATH, transfer.to_payload())

    async def _post_transfer(self, path: str, payload: dict) -> TransferOutcome:
        """POST a transfer and parse the outcome.

        Declined transfers come back as HTTP errors with an ``errors`` list in
        the body; those are returned as a failed outcome rather than raised.
        """
        log.debug(f"POST {path} payload: {payload}")
        try:
            response = await self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            raise BankAPIError(f"Transfer request failed: {e}") from e
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and (response.is_success or data.get("errors")):
            try:
                return self._parse_transfer_outcome(data)
            except MALFORMED_DATA_ERRORS as e:
                log.error(f"Malformed transfer response from {path}: {response.text}")
                raise BankAPIError(
                    "Transfer API returned an unreadable response", response.status_code
                ) from e
        log.error(f"Transfer API returned HTTP {response.status_code}: {response.text}")
        raise BankAPIError(
            f"Transfer API returned HTTP {response.status_code}", response.status_code
        )

    def _parse_account(self, data: dict) -> Account:
        """Parse account data from API response."""
        owner_data = data.get("owner")
        owner = None
        if owner_data:
            owner = Owner(
                name=owner_data.get("name", ""),
                first_name=owner_data.get("firstName"),
                last_name=owner_data.get("lastName"),
            )
        return Account(
            key=data["key"],
            account_number=data.get("accountNumber", ""),
            name=data.get("name", ""),
            balance=Decimal(str(data.get("balance", 0))),
            currency=data.get("currencyCode", ""),
            type=data.get("type", ""),
            owner=owner,
            credit_card_account_id=data.get("creditCardAccountId")
            or data.get("creditCardAccountID"),
        )

    def _parse_transaction(self, data: dict) -> Transaction:
        """Parse transaction data from API response."""
        return Transaction(
            date=int(data.get("date", 0)),
            description=data.get("cleanedDescription") or data.get("description", ""),
            amount=Decimal(str(data.get("amount", 0))),
            currency=data.get("currencyCode", ""),
            type=data.get("typeCode") or data.get("type", ""),
        )

    def _parse_transfer_outcome(self, data: dict) -> TransferOutcome:
        """Parse a transfer response body."""
        return TransferOutcome(
            errors=[self._parse_transfer_error(e) for e in data.get("errors") or []],
            payment_id=data.get("paymentId"),
            status=data.get("status"),
        )

    def _parse_transfer_error(self, data: dict) -> TransferError:
        """Parse one transfer error."""
        localized = data.get("localizedMessage")
        return TransferError(
            code=data.get("code", ""),
            message=data.get("message", ""),
            http_code=int(data.get("httpCode") or 0),
            trace_id=data.get("traceId", ""),
            resource=data.get("resource"),
            localized_message=LocalizedMessage(
                locale=localized.get("locale"), message=localized.get("message")
            )
            if localized
            else None,
        )
