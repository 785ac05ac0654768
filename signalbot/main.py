"""Main entry point for signalbot.

Initializes logging in two phases (defaults then settings-driven),
builds the SignalBot from settings.yaml / .env, registers the
configured commands and runs the poll loop until SIGTERM/SIGINT.

Key functions:
    main: Async entry point.
    run: Synchronous wrapper for the ``signalbot`` console script.
"""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import structlog

from .logging_config import setup_logging

EXIT_CODE_CONFIG = 2


async def main(config_dir: Optional[Path] = None) -> int:
    """Main async entry point. Returns the process exit code."""
    # Phase 1: defaults, cache_logger_on_first_use=False
    setup_logging()
    logger = structlog.get_logger("signalbot")

    # Import here to ensure logging is configured first
    from .bot import SignalBot
    from .command_loader import load_commands
    from .config import Settings
    from .exceptions import ConfigurationError

    try:
        settings = Settings(config_dir)
        # Phase 2: reconfigure with real settings
        setup_logging(settings)
        bot = SignalBot(settings.bot_config())
    except ConfigurationError as e:
        logger.error("configuration_invalid", error=str(e), setting=e.setting_name)
        return EXIT_CODE_CONFIG

    commands = load_commands(settings.commands)
    if not commands:
        logger.warning("no_commands_registered", msg="Every message will go unhandled")
    for command in commands:
        bot.register(command)

    loop = asyncio.get_running_loop()

    def handle_shutdown(sig):
        logger.info("shutdown_signal_received", signal=sig.name)
        bot.stop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, handle_shutdown, sig)
        except NotImplementedError:
            # Windows: add_signal_handler not supported.
            if sig == signal.SIGINT:
                signal.signal(
                    signal.SIGINT,
                    lambda s, f: loop.call_soon_threadsafe(handle_shutdown, signal.SIGINT),
                )

    try:
        await bot.run()
    except Exception as e:
        logger.error("bot_error", error=str(e))
        raise
    finally:
        await bot.close()
        logger.info("signalbot_stopped")
    return 0


def run():
    """Synchronous entry point for the ``signalbot`` console script."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    try:
        code = asyncio.run(main(config_dir))
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    run()
