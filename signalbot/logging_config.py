"""Logging configuration for signalbot.

structlog on top of stdlib logging: a console handler on the root
logger and, when a log directory is configured, a rotating
signalbot.log file on the "signalbot" parent logger. Every module
logs through ``structlog.get_logger("signalbot.<subsystem>")`` so all
events propagate to both.
"""

import logging
import logging.handlers
import re
import sys
from typing import Any, Dict

import structlog

LOGGER_PREFIX = "signalbot"

# Phone number pattern: E.164 format (+1234567890, 7-15 digits)
_PHONE_PATTERN = re.compile(r"\+\d{7,15}")


def _scrub_value(value: str) -> str:
    return _PHONE_PATTERN.sub(lambda m: "..." + m.group(0)[-4:], value)


def mask_phone_numbers(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor that masks full phone numbers to their last 4 digits.

    Call sites already mask senders manually; this catches numbers
    embedded in error strings and raw payloads.
    """
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _scrub_value(value)
        elif isinstance(value, (list, tuple)):
            event_dict[key] = type(value)(
                _scrub_value(v) if isinstance(v, str) else v
                for v in value
            )
        elif isinstance(value, dict):
            event_dict[key] = {
                k: _scrub_value(v) if isinstance(v, str) else v
                for k, v in value.items()
            }
    return event_dict


def setup_logging(settings=None) -> None:
    """Configure structured logging.

    Args:
        settings: Optional Settings instance. The first call (before
            settings load) uses INFO, console only, and leaves logger
            caching off; the second call applies the configured level
            and log file.
    """
    if settings is not None:
        log_dir = settings.log_dir
        root_level_name = settings.logging_level.upper()
        max_bytes = settings.logging_max_file_size_mb * 1024 * 1024
        backup_count = settings.logging_backup_count
        cache_loggers = True
    else:
        log_dir = None
        root_level_name = "INFO"
        max_bytes = 10 * 1024 * 1024  # 10 MB
        backup_count = 5
        cache_loggers = False

    root_level = getattr(logging, root_level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(root_level)
    console_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root_logger.addHandler(console_handler)

    bot_logger = logging.getLogger(LOGGER_PREFIX)
    bot_logger.setLevel(root_level)
    bot_logger.handlers.clear()
    bot_logger.propagate = True

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            # Console-only; a bad log dir must not keep the bot from starting
            print(
                f"WARNING: Cannot create log directory {log_dir}: {exc}. "
                "Falling back to console-only logging.",
                file=sys.stderr,
            )
        else:
            file_handler = logging.handlers.RotatingFileHandler(
                log_dir / "signalbot.log",
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(root_level)
            file_handler.setFormatter(
                structlog.stdlib.ProcessorFormatter(
                    processors=[
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        structlog.dev.ConsoleRenderer(colors=False),
                    ],
                )
            )
            bot_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            mask_phone_numbers,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache_loggers,
    )
