"""Load commands named in settings.yaml.

Each entry of the ``commands`` list is an import spec of the form
``package.module:ClassName``. The class is instantiated with no
arguments. Broken entries are logged and skipped so one bad command
does not keep the bot from starting.
"""

import importlib
import re
from typing import Iterable, List, Optional

import structlog

from .command import Command

logger = structlog.get_logger("signalbot.commands")

_SPEC_RE = re.compile(r'^[A-Za-z_][\w.]*:[A-Za-z_]\w*$')


def load_command(spec: str) -> Optional[Command]:
    """Import and instantiate a single command spec, or return None."""
    if not _SPEC_RE.match(spec):
        logger.warning("command_spec_invalid", spec=spec)
        return None

    module_name, class_name = spec.split(":", 1)
    try:
        module = importlib.import_module(module_name)
    except Exception as e:
        logger.error(
            "command_import_failed",
            spec=spec,
            error=str(e),
            error_type=type(e).__name__,
        )
        return None

    command_cls = getattr(module, class_name, None)
    if not isinstance(command_cls, type):
        logger.warning("command_class_not_found", spec=spec)
        return None

    try:
        command = command_cls()
    except Exception as e:
        logger.error(
            "command_init_failed",
            spec=spec,
            error=str(e),
            error_type=type(e).__name__,
        )
        return None

    if not callable(getattr(command, "handle", None)):
        logger.warning("command_missing_handle", spec=spec)
        return None

    logger.info("command_loaded", spec=spec)
    return command


def load_commands(specs: Iterable[str]) -> List[Command]:
    """Load every spec in order, skipping the ones that fail."""
    commands = []
    for spec in specs:
        command = load_command(spec)
        if command is not None:
            commands.append(command)
    return commands
