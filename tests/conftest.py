"""Shared test fixtures."""

import tempfile
from pathlib import Path

import pytest

from auox.config import (
    BankConfig,
    Config,
    DatabaseConfig,
    LoggingConfig,
    SecurityConfig,
)
from auox.db.repository import TokenStore
from factories import make_account, make_token


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_db_path(temp_dir):
    """Create a temporary database path."""
    return temp_dir / "test.db"


@pytest.fixture
def bank_config():
    """Create a test bank config."""
    return BankConfig(
        client_id="test-client-id",
        client_secret="test-client-secret",
        financial_institution="fid-smn",
        redirect_uri="http://localhost:8085/callback",
    )


@pytest.fixture
def security_config():
    """Create a test security config without encryption."""
    return SecurityConfig(encryption_key=None)


@pytest.fixture
def encryption_key():
    """Create a Fernet key."""
    from cryptography.fernet import Fernet

    return Fernet.generate_key().decode()


@pytest.fixture
def config(bank_config, temp_db_path, temp_dir, security_config):
    """Create a test config."""
    return Config(
        bank=bank_config,
        database=DatabaseConfig(path=temp_db_path),
        security=security_config,
        logging=LoggingConfig(path=temp_dir / "auox.log", level="DEBUG"),
    )


@pytest.fixture
def token_record():
    """Create a test token record."""
    return make_token()


@pytest.fixture
def accounts():
    """Two current accounts, a savings account and a credit card."""
    return [
        make_account(key="a", account_number="11111111111", name="Brukskonto"),
        make_account(key="b", account_number="22222222222", name="Sparekonto", type="SAVINGS"),
        make_account(
            key="c",
            account_number="33333333333",
            name="Mastercard",
            type="CREDITCARD",
            credit_card_account_id="cc-42",
        ),
        make_account(key="d", account_number="44444444444", name="Regningskonto"),
    ]


@pytest.fixture
async def token_store(temp_db_path):
    """Create a token store with a temporary database."""
    store = TokenStore(temp_db_path)
    await store.connect()
    yield store
    await store.close()
