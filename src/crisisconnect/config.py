"""ABOUTME: Configuration management for the CrisisConnect rate limiting backend
ABOUTME: Loads environment variables and provides configuration objects for different environments"""

import logging
import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


class InvalidConfig(Exception):
    """Error for when the config is not valid"""


def to_bool(value: str | None, context_str: str = "") -> bool:
    """
    Convert string to boolean. Valid options (after stripping whitespace and making lower-case)
    - False: "false", "no", "off", "0", None, ""
    - True: "true", "yes", "on", "1"

    The `context_str` is there for the error message, to help find the issue.
    """
    if value is None:
        return False
    value = value.lower().strip()
    if value in ("false", "no", "off", "0", ""):
        return False
    if value in ("true", "yes", "on", "1"):
        return True
    raise ValueError(
        f"Cannot convert '{context_str}{value}' to boolean. Valid values are: true/false, 1/0, yes/no, on/off (case-insensitive)"
    )


def _positive_int_from_env(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, str(default))
    try:
        value = int(raw)
    except ValueError as err:
        raise InvalidConfig(f"{name} must be an integer, got '{raw}'") from err
    if value < minimum:
        raise InvalidConfig(f"{name} must be at least {minimum}, got {value}")
    return value


def is_development() -> bool:
    return os.environ.get("FLASK_ENV", "development").lower().strip() == "development"


def get_log_level() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise InvalidConfig(f"LOG_LEVEL '{level_name}' is not a valid logging level")
    return level


def should_log_all_requests() -> bool:
    return to_bool(os.environ.get("LOG_ALL_REQUESTS"), context_str="LOG_ALL_REQUESTS=")


@dataclass(slots=True, kw_only=True)
class LoginLimitCfg:
    max_failures: int = 5
    window_minutes: int = 15
    sweep_grace_minutes: int = 15

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.window_minutes)

    @property
    def sweep_grace(self) -> timedelta:
        return timedelta(minutes=self.sweep_grace_minutes)

    @classmethod
    def from_env(cls) -> "LoginLimitCfg":
        return LoginLimitCfg(
            max_failures=_positive_int_from_env("LOGIN_MAX_FAILURES", 5),
            window_minutes=_positive_int_from_env("LOGIN_WINDOW_MINUTES", 15),
            sweep_grace_minutes=_positive_int_from_env("RATE_LIMIT_SWEEP_GRACE_MINUTES", 15, minimum=0),
        )


@dataclass(slots=True, kw_only=True)
class RequestLimitCfg:
    limit: int
    window_minutes: int

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.window_minutes)

    @classmethod
    def need_views_from_env(cls) -> "RequestLimitCfg":
        # 20 views per hour, non-admin users only
        return RequestLimitCfg(
            limit=_positive_int_from_env("NEED_VIEW_LIMIT", 20),
            window_minutes=_positive_int_from_env("NEED_VIEW_WINDOW_MINUTES", 60),
        )

    @classmethod
    def api_requests_from_env(cls) -> "RequestLimitCfg":
        return RequestLimitCfg(
            limit=_positive_int_from_env("API_REQUEST_LIMIT", 100),
            window_minutes=_positive_int_from_env("API_REQUEST_WINDOW_MINUTES", 1),
        )


def get_sweep_interval_minutes() -> int:
    return _positive_int_from_env("RATE_LIMIT_SWEEP_INTERVAL_MINUTES", 60)


class FlaskBaseConfig:
    """Base configuration class that loads from environment variables."""

    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")
        self.FLASK_ENV: str = os.environ.get("FLASK_ENV", "development")
        self.DEBUG: bool = to_bool(os.environ.get("DEBUG", "False"), context_str="DEBUG=")

        # Babel/i18n configuration
        self.LANGUAGES = self._get_supported_language_codes()
        self.BABEL_DEFAULT_LOCALE = os.environ.get("BABEL_DEFAULT_LOCALE", "en")
        self.BABEL_DEFAULT_TIMEZONE = os.environ.get("BABEL_DEFAULT_TIMEZONE", "UTC")
        self.BABEL_TRANSLATION_DIRECTORIES = os.environ.get("TRANSLATIONS_DIR", "translations")

        # Rate limiting
        self.LOGIN_LIMIT = LoginLimitCfg.from_env()
        self.NEED_VIEW_LIMIT = RequestLimitCfg.need_views_from_env()
        self.API_REQUEST_LIMIT = RequestLimitCfg.api_requests_from_env()
        # 60 is minutes - so hourly
        self.RATE_LIMIT_SWEEP_INTERVAL_MINUTES: int = get_sweep_interval_minutes()
        self.RATE_LIMIT_SWEEPER_ENABLED: bool = to_bool(
            os.environ.get("RATE_LIMIT_SWEEPER_ENABLED", "true"), context_str="RATE_LIMIT_SWEEPER_ENABLED="
        )

    def _get_supported_language_codes(self) -> list[str]:
        """Get list of supported language codes from environment or default."""
        languages_env = os.environ.get("SUPPORTED_LANGUAGES", "en,es,fr,ar")
        languages = [lang.strip() for lang in languages_env.split(",") if lang.strip()]
        # Ensure we always have at least English as a fallback
        return languages if languages else ["en"]


class FlaskConfig(FlaskBaseConfig):
    pass


class FlaskTestConfig(FlaskBaseConfig):
    """Test configuration with the background sweeper switched off."""

    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.SECRET_KEY = "test-secret-key-aockgn298zx081238"  # noqa: S105
        self.FLASK_ENV = "testing"
        self.RATE_LIMIT_SWEEPER_ENABLED = False


class FlaskProductionConfig(FlaskConfig):
    """Production configuration with stricter defaults."""

    def __init__(self) -> None:
        super().__init__()
        self.FLASK_ENV = "production"

        # Ensure production has proper secret key
        if self.SECRET_KEY == "dev-secret-key-change-in-production":  # noqa: S105
            raise InvalidConfig("SECRET_KEY must be set in production")


def get_config(config_name: str = "") -> FlaskBaseConfig:
    """Return the appropriate configuration based on FLASK_ENV or config_name."""
    env = config_name.strip() or os.environ.get("FLASK_ENV", "development")
    env = env.lower().strip()

    config_classes = {
        "development": FlaskConfig,
        "testing": FlaskTestConfig,
        "production": FlaskProductionConfig,
    }

    # Fall back to development if unknown config
    config_cls = config_classes.get(env, FlaskConfig)
    return config_cls()
