"""Configuration loading from TOML files with environment variable fallbacks."""

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import tomli

CONFIG_DIR = Path.home() / ".config" / "auox"
DATA_DIR = Path.home() / ".local" / "share" / "auox"

DEFAULT_CONFIG_PATHS = [
    Path("config.toml"),
    CONFIG_DIR / "config.toml",
]

DEFAULT_REDIRECT_URI = "http://localhost:8085/callback"
DEFAULT_FINANCIAL_INSTITUTION = "fid-smn"
DEFAULT_DB_PATH = DATA_DIR / "auox.db"
DEFAULT_LOG_PATH = DATA_DIR / "auox.log"
DEFAULT_LOG_LEVEL = "WARNING"

CONFIG_TEMPLATE = """# Auox configuration file
# Add your SpareBank 1 API credentials below.

[bank]
client_id = "your-client-id-here"
client_secret = "your-client-secret-here"

# Your financial institution ID, e.g. fid-smn (SpareBank 1 Midt-Norge)
# or fid-snn (SpareBank 1 Nord-Norge).
financial_institution = "fid-smn"

[security]
# Optional Fernet key used to encrypt the cached token.
# encryption_key = ""
"""


class ConfigError(Exception):
    """Exception raised when configuration is missing or unusable."""

    pass


@dataclass(frozen=True)
class BankConfig:
    """SpareBank 1 API credentials."""

    client_id: str
    client_secret: str
    financial_institution: str
    redirect_uri: str

    @property
    def callback_port(self) -> int:
        """Port the local OAuth callback listener binds to."""
        return urlparse(self.redirect_uri).port or 8085

    @property
    def is_configured(self) -> bool:
        """Check that the credentials are not the template placeholders."""
        return bool(self.client_id) and not self.client_id.startswith("your-")


@dataclass(frozen=True)
class DatabaseConfig:
    """Token cache database configuration."""

    path: Path


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    encryption_key: str | None


@dataclass(frozen=True)
class LoggingConfig:
    """Log file configuration."""

    path: Path
    level: str


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    bank: BankConfig
    database: DatabaseConfig
    security: SecurityConfig
    logging: LoggingConfig


def find_config_file() -> Path | None:
    """Find the first existing config file from default paths."""
    for path in DEFAULT_CONFIG_PATHS:
        if path.exists():
            return path
    return None


def create_config_template(path: Path) -> None:
    """Write a config template the user can fill in."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(CONFIG_TEMPLATE)
    except OSError as e:
        raise ConfigError(f"Could not create config template at {path}: {e}") from e


def ensure_config_file() -> Path:
    """Return the config file path, creating a template when none exists.

    A freshly written template holds placeholder credentials, so this raises
    ConfigError asking the user to edit it before running again.
    """
    path = find_config_file()
    if path is not None:
        return path
    path = DEFAULT_CONFIG_PATHS[-1]
    create_config_template(path)
    raise ConfigError(
        f"Config file created at: {path}\n"
        "Please edit this file and add your SpareBank 1 API credentials.\n"
        "Then run auox again."
    )


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from TOML file with environment variable fallbacks."""
    toml_data = _load_toml_data(config_path)
    return _build_config(toml_data, config_path)


def _load_toml_data(config_path: Path | None) -> dict:
    """Load TOML data from file if it exists."""
    path = config_path or find_config_file()
    if path and path.exists():
        try:
            with open(path, "rb") as f:
                return tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigError(f"{path} is not in proper format: {e}") from e
        except OSError as e:
            raise ConfigError(f"Could not read {path}: {e}") from e
    return {}


def _build_config(toml_data: dict, config_path: Path | None) -> Config:
    """Build Config object from TOML data and environment variables."""
    bank_config = _build_bank_config(toml_data.get("bank", {}))
    db_config = _build_database_config(toml_data.get("database", {}), config_path)
    security_config = _build_security_config(toml_data.get("security", {}))
    logging_config = _build_logging_config(toml_data.get("logging", {}), config_path)
    return Config(
        bank=bank_config,
        database=db_config,
        security=security_config,
        logging=logging_config,
    )


def _build_bank_config(bank_data: dict) -> BankConfig:
    """Build bank config from TOML data and env vars."""
    client_id = os.environ.get("AUOX_CLIENT_ID", bank_data.get("client_id", ""))
    client_secret = os.environ.get("AUOX_CLIENT_SECRET", bank_data.get("client_secret", ""))
    financial_institution = os.environ.get(
        "AUOX_FINANCIAL_INSTITUTION",
        bank_data.get("financial_institution", DEFAULT_FINANCIAL_INSTITUTION),
    )
    redirect_uri = os.environ.get(
        "AUOX_REDIRECT_URI", bank_data.get("redirect_uri", DEFAULT_REDIRECT_URI)
    )
    return BankConfig(
        client_id=client_id,
        client_secret=client_secret,
        financial_institution=financial_institution,
        redirect_uri=redirect_uri,
    )


def _resolve_path(path_str: str | Path, config_path: Path | None) -> Path:
    """Resolve a relative path against the config file location."""
    path = Path(path_str).expanduser()
    if not path.is_absolute() and config_path:
        path = config_path.parent / path
    return path


def _build_database_config(db_data: dict, config_path: Path | None) -> DatabaseConfig:
    """Build database config, resolving relative paths against config file location."""
    db_path_str = os.environ.get("AUOX_DB_PATH", db_data.get("path", DEFAULT_DB_PATH))
    return DatabaseConfig(path=_resolve_path(db_path_str, config_path))


def _build_security_config(security_data: dict) -> SecurityConfig:
    """Build security config from TOML data and env vars."""
    encryption_key = os.environ.get(
        "AUOX_ENCRYPTION_KEY", security_data.get("encryption_key") or None
    )
    return SecurityConfig(encryption_key=encryption_key)


def _build_logging_config(log_data: dict, config_path: Path | None) -> LoggingConfig:
    """Build logging config from TOML data and env vars."""
    log_path_str = os.environ.get("AUOX_LOG_PATH", log_data.get("path", DEFAULT_LOG_PATH))
    level = os.environ.get("AUOX_LOG_LEVEL", log_data.get("level", DEFAULT_LOG_LEVEL))
    return LoggingConfig(path=_resolve_path(log_path_str, config_path), level=level.upper())
