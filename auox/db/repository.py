"""Token cache backed by SQLite."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol

import aiosqlite
from cryptography.fernet import InvalidToken

from auox.db.migrations import SCHEMA_VERSION, get_migration_sql
from auox.db.models import TokenRecord

log = logging.getLogger("auox.db")

TOKEN_ROW_ID = 1


class TokenCipher(Protocol):
    """Encrypts token values before they touch the disk."""

    def encrypt(self, value: str) -> str: ...

    def decrypt(self, value: str) -> str: ...


class TokenStoreError(Exception):
    """Exception raised when the token cache cannot be read or written."""

    pass


class TokenStore:
    """Async store holding the single cached token record.

    The record lives in one row with a fixed id, so every save replaces it
    wholesale inside a single transaction.
    """

    def __init__(self, db_path: Path, cipher: TokenCipher | None = None):
        self._db_path = db_path
        self._cipher = cipher
        self._connection: aiosqlite.Connection | None = None

    async def __aenter__(self) -> "TokenStore":
        """Connect on entering the async context."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close on leaving the async context."""
        await self.close()

    async def connect(self) -> None:
        """Connect to the database and run migrations."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._db_path)
            self._connection.row_factory = aiosqlite.Row
            await self._run_migrations()
        except (OSError, aiosqlite.Error) as e:
            raise TokenStoreError(f"Could not open token store {self._db_path}: {e}") from e

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _run_migrations(self) -> None:
        """Run pending database migrations."""
        current_version = await self._get_schema_version()
        if current_version < SCHEMA_VERSION:
            migrations = get_migration_sql(current_version, SCHEMA_VERSION)
            for sql in migrations:
                await self._connection.executescript(sql)
            await self._connection.commit()

    async def _get_schema_version(self) -> int:
        """Get current schema version from database."""
        try:
            cursor = await self._connection.execute(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            )
            row = await cursor.fetchone()
            return row["version"] if row else 0
        except aiosqlite.OperationalError:
            return 0

    async def load(self) -> TokenRecord | None:
        """Read the cached token record, or None when nothing is stored."""
        try:
            cursor = await self._connection.execute(
                "SELECT * FROM token WHERE id = ?", (TOKEN_ROW_ID,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise TokenStoreError(f"Could not read token store: {e}") from e
        if row is None:
            log.debug("No cached token")
            return None
        return self._row_to_record(row)

    async def save(self, record: TokenRecord) -> TokenRecord:
        """Replace the cached token record."""
        record.updated_at = datetime.now()
        try:
            await self._connection.execute(
                """INSERT INTO token (id, access_token, refresh_token, expires_in,
                   refresh_token_expires_in, refresh_token_absolute_expires_in,
                   token_type, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                   access_token=excluded.access_token,
                   refresh_token=excluded.refresh_token,
                   expires_in=excluded.expires_in,
                   refresh_token_expires_in=excluded.refresh_token_expires_in,
                   refresh_token_absolute_expires_in=excluded.refresh_token_absolute_expires_in,
                   token_type=excluded.token_type,
                   updated_at=excluded.updated_at""",
                (
                    TOKEN_ROW_ID,
                    self._encrypt(record.access_token),
                    self._encrypt(record.refresh_token),
                    record.expires_in,
                    record.refresh_token_expires_in,
                    record.refresh_token_absolute_expires_in,
                    record.token_type,
                    record.updated_at.isoformat(),
                ),
            )
            await self._connection.commit()
        except aiosqlite.Error as e:
            raise TokenStoreError(f"Could not write token store: {e}") from e
        log.debug(f"Token saved to {self._db_path}")
        return record

    def _encrypt(self, value: str) -> str:
        return self._cipher.encrypt(value) if self._cipher else value

    def _decrypt(self, value: str) -> str:
        if not self._cipher:
            return value
        try:
            return self._cipher.decrypt(value)
        except InvalidToken as e:
            raise TokenStoreError(
                "Cached token could not be decrypted; check the encryption key"
            ) from e

    def _row_to_record(self, row: aiosqlite.Row) -> TokenRecord:
        """Convert database row to TokenRecord."""
        return TokenRecord(
            access_token=self._decrypt(row["access_token"]),
            refresh_token=self._decrypt(row["refresh_token"]),
            expires_in=row["expires_in"],
            refresh_token_expires_in=row["refresh_token_expires_in"],
            refresh_token_absolute_expires_in=row["refresh_token_absolute_expires_in"],
            token_type=row["token_type"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
