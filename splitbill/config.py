
import os
from pathlib import Path

from dotenv import load_dotenv


_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent

# Root .env is canonical; splitbill/.env remains a fallback for local overrides.
load_dotenv(_PROJECT_ROOT / ".env")
load_dotenv(_PACKAGE_DIR / ".env")


def _first_non_empty_env(*names: str, default: str) -> str:
    """Returns the first non-empty env var value from `names`, else `default`."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value != "":
            return value
    return default


def _parse_int_env(*names: str, default: int) -> int:
    """Parses the first non-empty env var in `names` as int, else returns `default`."""
    raw = _first_non_empty_env(*names, default=str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _parse_origins_env(name: str, default: str) -> tuple[str, ...]:
    """
    Parses a comma-separated origin list.

    Example: "https://a.example, https://b.example" -> ("https://a.example", "https://b.example")
    """
    raw = _first_non_empty_env(name, default=default)
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


class BaseConfig:

    ENV_NAME: str = "base"
    APP_VERSION: str = _first_non_empty_env("APP_VERSION", default="1.0.0")

    # Root level for app.logger and every splitbill.* module logger.
    LOG_LEVEL: str = _first_non_empty_env("LOG_LEVEL", default="INFO").upper()

    # Upper bound on expenses + settlements in one posted ledger.
    MAX_LEDGER_RECORDS: int = _parse_int_env("MAX_LEDGER_RECORDS", default=10000)

    # Flask rejects bodies above this size with 413 before they are parsed.
    MAX_CONTENT_LENGTH: int = _parse_int_env("MAX_CONTENT_LENGTH", default=2 * 1024 * 1024)

    # Browser origins allowed to call the API. "*" reflects any origin.
    CORS_ALLOWED_ORIGINS: tuple[str, ...] = _parse_origins_env("CORS_ALLOWED_ORIGINS", "")


class DevelopmentConfig(BaseConfig):
    ENV_NAME: str = "development"
    DEBUG:   bool = True
    TESTING: bool = False

    LOG_LEVEL: str = _first_non_empty_env("LOG_LEVEL", default="DEBUG").upper()
    CORS_ALLOWED_ORIGINS: tuple[str, ...] = _parse_origins_env("CORS_ALLOWED_ORIGINS", "*")


class TestingConfig(BaseConfig):

    ENV_NAME: str = "testing"
    DEBUG:   bool = True
    TESTING: bool = True

    LOG_LEVEL: str = "DEBUG"
    CORS_ALLOWED_ORIGINS: tuple[str, ...] = ("*",)

    # Small enough that integration tests can hit the limit cheaply.
    MAX_LEDGER_RECORDS: int = 50


class ProductionConfig(BaseConfig):

    ENV_NAME: str = "production"
    DEBUG:   bool = False
    TESTING: bool = False


def validate_production_config(app) -> None:
    """
    Refuses to start a production app with a wildcard CORS origin, an
    unknown LOG_LEVEL or a non-positive MAX_LEDGER_RECORDS.

    create_app("production") calls this right after loading ProductionConfig.

    Raises ValueError naming the offending setting.
    """
    origins = app.config.get("CORS_ALLOWED_ORIGINS") or ()
    if "*" in origins:
        raise ValueError(
            "CORS_ALLOWED_ORIGINS must list explicit origins in production. "
            "The wildcard '*' is only allowed in development and testing."
        )
    if app.config.get("LOG_LEVEL") not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ValueError(
            f"LOG_LEVEL {app.config.get('LOG_LEVEL')!r} is not a valid logging level."
        )
    if app.config.get("MAX_LEDGER_RECORDS", 0) <= 0:
        raise ValueError("MAX_LEDGER_RECORDS must be a positive integer.")


# create_app(name) looks its config class up here.

config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
}


def active_config_name(config_name: str | None = None) -> str:
    """
    Resolves the config to load: the explicit name if given, else FLASK_ENV,
    else "development". Unknown names fall back to "development".
    """
    name = config_name or _first_non_empty_env("FLASK_ENV", default="development")
    return name if name in config_by_name else "development"
