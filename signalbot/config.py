"""Configuration for signalbot.

Two layers: BotConfig is the immutable value object the bot
controller validates once at construction; Settings loads
settings.yaml and .env for the process entry point and turns them
into a BotConfig.

Key classes:
    BotConfig: Validated, frozen bot configuration.
    Settings: YAML + environment loader.

Key functions:
    get_settings: Singleton accessor for the global Settings instance.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, List, Mapping, Optional

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = structlog.get_logger("signalbot.config")

DEFAULT_POLL_INTERVAL_MS = 2000
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_SIGNAL_SERVICE = "localhost:8080"

# Signal accounts are E.164 numbers; the country code prefix is mandatory
ACCOUNT_PREFIX = "+"


@dataclass(frozen=True)
class BotConfig:
    """Validated bot configuration.

    Attributes:
        signal_service: Gateway endpoint, ``host:port`` or a full URL.
        phone_number: Registered Signal account, e.g. ``+15551234567``.
        poll_interval: Delay between poll cycles in milliseconds.
        debug: Emit verbose trace events from the controller.
        request_timeout: Total timeout in seconds for one gateway call.

    Raises:
        ConfigurationError: On any invalid field (see _validate).
    """

    signal_service: str
    phone_number: str
    poll_interval: int = DEFAULT_POLL_INTERVAL_MS
    debug: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self):
        self._validate()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "BotConfig":
        """Merge a caller-supplied mapping over the defaults.

        Unknown keys are ignored with a warning; keys set to None fall
        back to their defaults.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            logger.warning("config_unknown_keys", keys=unknown)
        values = {k: v for k, v in mapping.items() if k in known and v is not None}
        return cls(
            signal_service=values.pop("signal_service", ""),
            phone_number=values.pop("phone_number", ""),
            **values,
        )

    def _validate(self) -> None:
        for setting in ("signal_service", "phone_number"):
            value = getattr(self, setting)
            if not isinstance(value, str):
                raise ConfigurationError(
                    f"{setting} must be a string, got {type(value).__name__}",
                    setting_name=setting,
                )
        if not self.signal_service:
            raise ConfigurationError(
                "signal_service is required", setting_name="signal_service"
            )
        if not self.phone_number:
            raise ConfigurationError(
                "phone_number is required", setting_name="phone_number"
            )
        if not self.phone_number.startswith(ACCOUNT_PREFIX):
            raise ConfigurationError(
                "phone_number must include country code",
                setting_name="phone_number",
            )
        if (
            isinstance(self.poll_interval, bool)
            or not isinstance(self.poll_interval, int)
            or self.poll_interval <= 0
        ):
            raise ConfigurationError(
                "poll_interval must be a positive integer (milliseconds)",
                setting_name="poll_interval",
                value=self.poll_interval,
            )
        if not isinstance(self.request_timeout, (int, float)) or self.request_timeout <= 0:
            raise ConfigurationError(
                "request_timeout must be a positive number of seconds",
                setting_name="request_timeout",
                value=self.request_timeout,
            )

    @property
    def base_url(self) -> str:
        """Gateway base URL without a trailing slash."""
        service = self.signal_service.rstrip("/")
        if service.startswith(("http://", "https://")):
            return service
        return f"http://{service}"

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval / 1000


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Process-level settings loader.

    Loads settings.yaml and .env from the config directory. Property
    getters give environment variables precedence over settings.yaml
    and fall back to sensible defaults.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)

        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"{filename} must contain a mapping", file=str(filepath)
                )
            return data
        return {}

    @property
    def signal_service(self) -> str:
        """Gateway endpoint. Env var SIGNAL_SERVICE takes precedence."""
        return (
            os.environ.get("SIGNAL_SERVICE")
            or self.settings.get("signal_service")
            or DEFAULT_SIGNAL_SERVICE
        )

    @property
    def phone_number(self) -> str:
        """Registered account. Env var SIGNAL_PHONE takes precedence.

        An unquoted ``+1555...`` in settings.yaml loads as an int without
        its ``+``; it is stringified here and then fails the prefix check.
        """
        value = os.environ.get("SIGNAL_PHONE") or self.settings.get("phone_number")
        return "" if value is None else str(value)

    @property
    def poll_interval(self) -> int:
        """Poll interval in milliseconds (default 2000)."""
        raw = os.environ.get("POLL_INTERVAL") or self.settings.get("poll_interval")
        if raw is None:
            return DEFAULT_POLL_INTERVAL_MS
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"poll_interval is not an integer: {raw!r}",
                setting_name="poll_interval",
            ) from None

    @property
    def debug(self) -> bool:
        """Verbose controller tracing. Env var DEBUG takes precedence."""
        env = os.environ.get("DEBUG")
        if env is not None:
            return _parse_bool(env)
        return _parse_bool(self.settings.get("debug", False))

    @property
    def request_timeout(self) -> float:
        """Per-request gateway timeout in seconds (default 30)."""
        raw = os.environ.get("SIGNAL_REQUEST_TIMEOUT") or self.settings.get("request_timeout")
        if raw is None:
            return DEFAULT_REQUEST_TIMEOUT
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"request_timeout is not a number: {raw!r}",
                setting_name="request_timeout",
            ) from None

    @property
    def commands(self) -> List[str]:
        """Command import specs ("package.module:ClassName"), in dispatch order."""
        specs = self.settings.get("commands", [])
        if not isinstance(specs, list):
            logger.error("commands_invalid_type", type=type(specs).__name__)
            return []
        return [str(s) for s in specs]

    @property
    def log_dir(self) -> Optional[Path]:
        """Log directory, or None for console-only logging."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return None

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO, DEBUG when debug is on)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("level", "DEBUG" if self.debug else "INFO")

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)

    def bot_config(self) -> BotConfig:
        """Build a validated BotConfig from these settings."""
        return BotConfig(
            signal_service=self.signal_service,
            phone_number=self.phone_number,
            poll_interval=self.poll_interval,
            debug=self.debug,
            request_timeout=self.request_timeout,
        )


# Global singleton
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
