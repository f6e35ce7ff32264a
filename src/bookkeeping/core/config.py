#!/usr/bin/env python3
"""
Bookkeeping Configuration

Settings come from environment variables (optionally seeded from a .env file)
and are validated once, when first requested. BOOKKEEPING_ENV selects one of
development, test or production; tests point BOOKKEEPING_DATA_DIR at a
temporary directory.

Variables:
    BOOKKEEPING_ENV                 development | test | production
    BOOKKEEPING_DATA_DIR            Root for the JSON entity store
    BOOKKEEPING_BASE_CURRENCY       Default report currency (ISO 4217)
    BOOKKEEPING_DISPLAY_DECIMALS    Report precision, 0-10
    BOOKKEEPING_USE_FISCAL_YEAR     Honor fiscal year overrides in reports
    LOG_LEVEL, DEBUG                Logging
"""

import dataclasses
import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Environment(Enum):
    """Where the engine is running."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class StoreConfig:
    """Entity store configuration."""

    store_dir: Path


@dataclass
class ReportingConfig:
    """Report generation settings."""

    base_currency: str = "USD"
    display_decimals: int = 2
    use_fiscal_year: bool = True


@dataclass
class Config:
    """
    Resolved settings for one run of the engine.

    Build it with Config.from_environment(); use get_config() to share a
    validated instance.
    """

    environment: Environment

    data_dir: Path
    store_dir: Path

    store: StoreConfig
    reporting: ReportingConfig

    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Read settings from the process environment, creating directories as needed."""
        env = Environment(os.getenv("BOOKKEEPING_ENV", "development"))

        if env == Environment.TEST:
            fallback = Path(tempfile.gettempdir()) / "test_bookkeeping"
            data_dir = Path(os.getenv("BOOKKEEPING_DATA_DIR", str(fallback)))
        else:
            data_dir = Path(os.getenv("BOOKKEEPING_DATA_DIR", "./data")).expanduser().resolve()

        store_dir = data_dir / "store"
        store_dir.mkdir(parents=True, exist_ok=True)

        return cls(
            environment=env,
            data_dir=data_dir,
            store_dir=store_dir,
            store=StoreConfig(store_dir=store_dir),
            reporting=ReportingConfig(
                base_currency=os.getenv("BOOKKEEPING_BASE_CURRENCY", "USD").upper(),
                display_decimals=_parse_int(os.getenv("BOOKKEEPING_DISPLAY_DECIMALS", "2"), default=-1),
                use_fiscal_year=_parse_bool(os.getenv("BOOKKEEPING_USE_FISCAL_YEAR", "true")),
            ),
            debug=_parse_bool(os.getenv("DEBUG", "false")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """Problems with these settings, empty when they are usable."""
        errors = [
            f"{label} does not exist: {path}"
            for label, path in (("data_dir", self.data_dir), ("store_dir", self.store_dir))
            if not path.exists()
        ]

        if not 0 <= self.reporting.display_decimals <= 10:
            errors.append("BOOKKEEPING_DISPLAY_DECIMALS must be an integer 0-10")

        code = self.reporting.base_currency
        if len(code) != 3 or not code.isalpha():
            errors.append(f"BOOKKEEPING_BASE_CURRENCY must be a 3-letter code: {code!r}")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"Unknown LOG_LEVEL: {self.log_level}")

        return errors

    def setup_logging(self) -> None:
        """Install the root log handler; logger names are shown outside production."""
        level = logging.DEBUG if self.debug else getattr(logging, self.log_level)
        if self.environment == Environment.PRODUCTION:
            fmt = "%(asctime)s %(levelname)s %(message)s"
        else:
            fmt = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
        logging.basicConfig(level=level, format=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    def to_dict(self) -> dict[str, Any]:
        """Settings as plain JSON types (paths and enums become strings)."""
        return dataclasses.asdict(self, dict_factory=lambda pairs: {key: _plain(value) for key, value in pairs})


def _plain(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


_config: Config | None = None


def get_config() -> Config:
    """
    Shared configuration, loaded and validated on first use.

    Raises:
        ValueError: If any setting is invalid
    """
    global _config
    if _config is None:
        candidate = Config.from_environment()
        errors = candidate.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")
        candidate.setup_logging()
        _config = candidate
    return _config


def reload_config() -> Config:
    """Discard the shared configuration and read the environment again."""
    global _config
    _config = None
    return get_config()


def get_data_dir() -> Path:
    return get_config().data_dir


def get_store_dir() -> Path:
    return get_config().store_dir


def is_development() -> bool:
    return get_config().environment == Environment.DEVELOPMENT


def is_test() -> bool:
    return get_config().environment == Environment.TEST


def is_production() -> bool:
    return get_config().environment == Environment.PRODUCTION
