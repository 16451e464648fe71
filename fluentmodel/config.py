"""
Config system - typed database configuration loaded from the environment.

Values come from (later overrides earlier):
1. Dataclass defaults
2. .env file (python-dotenv)
3. Process environment
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

from dotenv import dotenv_values

from .faults.domains import ConfigInvalidFault

logger = logging.getLogger("fluentmodel.config")

_DEFAULT_PORTS = {"postgresql": 5432}


@dataclass
class DatabaseConfig:
    """
    Connection settings for ``Database``.

    ``url`` wins when set; otherwise it is composed from the parts.
    """

    url: Optional[str] = None
    driver: str = "sqlite"
    host: str = "localhost"
    port: Optional[int] = None
    name: str = "db.sqlite3"
    user: Optional[str] = None
    password: Optional[str] = None
    connect_retries: int = 3
    connect_retry_delay: float = 0.5
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(
        cls,
        env_file: Optional[str] = None,
        prefix: str = "DB_",
        environ: Optional[Dict[str, str]] = None,
    ) -> DatabaseConfig:
        """
        Load configuration from a .env file and the environment.

        Args:
            env_file: Optional path to a .env file
            prefix: Variable prefix (``DB_URL``, ``DB_HOST``, ...)
            environ: Environment mapping (defaults to ``os.environ``)
        """
        values: Dict[str, Optional[str]] = {}
        if env_file:
            values.update(dotenv_values(env_file))
        values.update(os.environ if environ is None else environ)

        def get(key: str) -> Optional[str]:
            raw = values.get(prefix + key)
            return raw if raw not in (None, "") else None

        config = cls()
        config.url = get("URL")
        config.driver = (get("DRIVER") or config.driver).lower()
        config.host = get("HOST") or config.host
        config.name = get("NAME") or config.name
        config.user = get("USER")
        config.password = get("PASSWORD")
        config.port = _parse_int(prefix + "PORT", get("PORT"), None)
        config.connect_retries = _parse_int(
            prefix + "CONNECT_RETRIES", get("CONNECT_RETRIES"), config.connect_retries
        )
        delay = get("CONNECT_RETRY_DELAY")
        if delay is not None:
            try:
                config.connect_retry_delay = float(delay)
            except ValueError:
                raise ConfigInvalidFault(prefix + "CONNECT_RETRY_DELAY", f"not a number: {delay!r}")

        config.validate()
        logger.debug(f"Database config loaded (driver={config.driver})")
        return config

    def validate(self) -> None:
        if self.url is None and self.driver not in ("sqlite", "postgresql", "postgres"):
            raise ConfigInvalidFault("driver", f"unsupported driver {self.driver!r}")
        if self.connect_retries < 1:
            raise ConfigInvalidFault("connect_retries", "must be at least 1")
        if self.connect_retry_delay < 0:
            raise ConfigInvalidFault("connect_retry_delay", "must not be negative")

    def build_url(self) -> str:
        """Return ``url`` or compose one from driver/host/port/name."""
        if self.url:
            return self.url
        if self.driver == "sqlite":
            return f"sqlite:///{self.name}"

        driver = "postgresql"
        auth = ""
        if self.user:
            auth = quote(self.user, safe="")
            if self.password:
                auth += ":" + quote(self.password, safe="")
            auth += "@"
        port = self.port or _DEFAULT_PORTS[driver]
        return f"{driver}://{auth}{self.host}:{port}/{self.name}"

    def engine_options(self) -> Dict[str, Any]:
        return {
            "connect_retries": self.connect_retries,
            "connect_retry_delay": self.connect_retry_delay,
            **self.options,
        }


def _parse_int(key: str, raw: Optional[str], default: Optional[int]) -> Optional[int]:
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigInvalidFault(key, f"not an integer: {raw!r}")


def configure_from(config: Union[DatabaseConfig, str, None] = None, *, alias: str = "default"):
    """
    Register the default ``Database`` from a config, a URL, or the environment.

    Usage:
        db = configure_from()                      # DB_* environment
        db = configure_from("sqlite:///:memory:")
    """
    from .db.engine import configure_database

    if config is None:
        config = DatabaseConfig.from_env()
    if isinstance(config, str):
        return configure_database(config, alias=alias)
    return configure_database(config.build_url(), alias=alias, **config.engine_options())
