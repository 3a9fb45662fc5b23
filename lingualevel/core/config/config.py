"""
Process-wide settings for LinguaLevel.

`Config` is a class used as a namespace: every setting is a class attribute
filled from the environment (a local `.env` is read through python-dotenv)
when this module is imported. A malformed or out-of-bounds value never stops
startup; it is replaced by the default and noted in the load report, which
`validate()` logs once.

XP curve tuning is deliberately not configurable here; those numbers live in
`lingualevel.modules.shared.constants` so every deployment computes the same
levels.

Environment Variables
---------------------
- LINGUALEVEL_ENV: development | testing | staging | production (default: development)
- DEBUG: Debug flag (default: false)
- LOG_LEVEL: Root log level (default: INFO)
- LOG_JSON: JSON console output; unset means "only in production"
- LOG_COLORS: Coloured console output on a TTY (default: true)
- LOG_TO_FILE: Daily rotating JSON log file (default: false)
- LOGS_DIR: Directory for the log file (default: <project>/logs)
- REDIS_URL: Progress store connection URL (default: redis://localhost:6379/0)
- REDIS_SOCKET_TIMEOUT: Seconds, 1-60 (default: 5)
- PROGRESS_KEY_PREFIX: Namespace for store keys (default: lingualevel:v1)
- PROGRESS_TTL_SECONDS: Expiry for stored progress, 0 = never (default: 0)
- ACCURACY_HISTORY_SIZE: Accuracy records kept per learner, 1-1000 (default: 50)
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse an environment name, falling back to DEVELOPMENT.

        >>> Environment.from_string("Production") is Environment.PRODUCTION
        True
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            # stdlib logging only: the structured logger imports Config
            logging.warning("Unknown LINGUALEVEL_ENV %r, using development", value)
            return cls.DEVELOPMENT


@dataclass
class ConfigLoadReport:
    """Where each setting came from on the last load, and what was rejected."""

    from_env: Dict[str, bool] = field(default_factory=dict)
    validation_errors: Dict[str, str] = field(default_factory=dict)
    loaded_at: Optional[str] = None

    def summary(self) -> Dict[str, Any]:
        return {
            "settings": len(self.from_env),
            "from_environment": sorted(k for k, v in self.from_env.items() if v),
            "validation_errors": dict(self.validation_errors),
            "loaded_at": self.loaded_at,
        }


class Config:
    """
    Static LinguaLevel configuration.

    >>> Config.get("ACCURACY_HISTORY_SIZE", 50)
    50
    >>> Config.is_production()
    False
    """

    _report: ConfigLoadReport = ConfigLoadReport()
    _validated: bool = False

    ENVIRONMENT: str = Environment.DEVELOPMENT.value
    DEBUG: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    LOG_TO_FILE: bool = False
    PROJECT_ROOT = Path(__file__).resolve().parents[3]
    LOGS_DIR = PROJECT_ROOT / "logs"

    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: int = 5

    PROGRESS_KEY_PREFIX: str = "lingualevel:v1"
    PROGRESS_TTL_SECONDS: int = 0

    ACCURACY_HISTORY_SIZE: int = 50

    # =========================================================================
    # PARSERS
    # =========================================================================

    @classmethod
    def _raw(cls, key: str) -> Optional[str]:
        raw = os.getenv(key)
        cls._report.from_env[key] = raw is not None
        return raw

    @classmethod
    def _reject(cls, key: str, raw: Any, default: Any, why: str) -> None:
        message = f"{key}={raw!r} {why}; using {default!r}"
        cls._report.validation_errors[key] = message
        logging.warning(message)

    @classmethod
    def _int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Integer setting with optional inclusive bounds.

        >>> Config._int("ACCURACY_HISTORY_SIZE", 50, min_val=1, max_val=1000)
        50
        """
        raw = cls._raw(key)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            cls._reject(key, raw, default, "is not an integer")
            return default
        if (min_val is not None and value < min_val) or (max_val is not None and value > max_val):
            cls._reject(key, raw, default, f"is outside [{min_val}, {max_val}]")
            return default
        return value

    @classmethod
    def _bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        raw = cls._raw(key)
        if raw is None:
            return default
        normalized = raw.strip().lower()
        if normalized in _TRUE:
            return True
        if normalized in _FALSE:
            return False
        cls._reject(key, raw, default, "is not a boolean")
        return default

    @classmethod
    def _str(cls, key: str, default: str) -> str:
        raw = cls._raw(key)
        return default if raw is None or not raw.strip() else raw.strip()

    # =========================================================================
    # LOADING
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """Re-read every setting from the environment."""
        cls._report = ConfigLoadReport()

        cls.ENVIRONMENT = Environment.from_string(cls._str("LINGUALEVEL_ENV", "development")).value
        cls.DEBUG = bool(cls._bool("DEBUG", False))

        cls.LOG_LEVEL = cls._str("LOG_LEVEL", "INFO").upper()
        if cls.LOG_LEVEL not in VALID_LOG_LEVELS:
            cls._reject("LOG_LEVEL", cls.LOG_LEVEL, "INFO", "is not a log level")
            cls.LOG_LEVEL = "INFO"
        cls.LOG_JSON = cls._bool("LOG_JSON", None)
        cls.LOG_COLORS = bool(cls._bool("LOG_COLORS", True))
        cls.LOG_TO_FILE = bool(cls._bool("LOG_TO_FILE", False))
        cls.LOGS_DIR = Path(cls._str("LOGS_DIR", str(cls.PROJECT_ROOT / "logs")))

        cls.REDIS_URL = cls._str("REDIS_URL", "redis://localhost:6379/0")
        cls.REDIS_SOCKET_TIMEOUT = cls._int("REDIS_SOCKET_TIMEOUT", 5, min_val=1, max_val=60)
        cls.PROGRESS_KEY_PREFIX = cls._str("PROGRESS_KEY_PREFIX", "lingualevel:v1")
        cls.PROGRESS_TTL_SECONDS = cls._int("PROGRESS_TTL_SECONDS", 0, min_val=0)

        cls.ACCURACY_HISTORY_SIZE = cls._int("ACCURACY_HISTORY_SIZE", 50, min_val=1, max_val=1000)

        cls._report.loaded_at = datetime.now(timezone.utc).isoformat()

    @classmethod
    def validate(cls) -> None:
        """
        Load once at startup and check cross-setting rules.

        Raises:
            ValueError: In production, for a Redis URL with an unknown scheme
        """
        if cls._validated:
            return
        cls.load()

        if not cls.REDIS_URL.startswith(("redis://", "rediss://", "unix://")):
            if cls.is_production():
                raise ValueError(f"REDIS_URL has an unsupported scheme: {cls.REDIS_URL!r}")
            cls._reject("REDIS_URL", cls.REDIS_URL, cls.REDIS_URL, "has an unsupported scheme")

        if cls.is_production() and cls.DEBUG:
            logging.warning("DEBUG is enabled in production")

        cls._validated = True

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Public setting by name; private or unknown names give default.

        >>> Config.get("UNKNOWN_KEY", "fallback")
        'fallback'
        """
        if not key.isupper() or key.startswith("_"):
            return default
        return getattr(cls, key, default)

    @classmethod
    def require(cls, key: str) -> Any:
        from lingualevel.core.exceptions import ConfigurationError

        value = cls.get(key)
        if value is None or value == "":
            raise ConfigurationError(key, "required setting is not set")
        return value

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == Environment.DEVELOPMENT.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING.value

    @classmethod
    def get_metrics(cls) -> ConfigLoadReport:
        return cls._report

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Settings safe to log; the Redis URL is reduced to its scheme."""
        return {
            "environment": cls.ENVIRONMENT,
            "debug": cls.DEBUG,
            "log_level": cls.LOG_LEVEL,
            "log_to_file": cls.LOG_TO_FILE,
            "redis_url_scheme": cls.REDIS_URL.split("://")[0],
            "progress_key_prefix": cls.PROGRESS_KEY_PREFIX,
            "progress_ttl_seconds": cls.PROGRESS_TTL_SECONDS,
            "accuracy_history_size": cls.ACCURACY_HISTORY_SIZE,
            "load_report": cls._report.summary(),
        }


Config.validate()
