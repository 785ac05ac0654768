"""Signal bot controller for signalbot.

Polls the Signal REST gateway on a fixed interval, wraps each inbound
message in a Context, and offers it to the registered commands in
registration order until one claims it.

Failure containment happens at exactly two boundaries: the poll cycle
(gateway fetch errors and malformed payloads are logged, the loop keeps
going) and the individual command (an exception from handle(),
including a failed reply, is logged and the next command is tried).
Only invalid configuration and start() on a running bot reach the
caller.

Key classes:
    SignalBot: Owns the command registry, run state and poll schedule.

Key functions:
    log_task_exception: Done-callback for fire-and-forget poll tasks.
"""

import asyncio
import json
from typing import Any, List, Mapping, Optional, Tuple, Union

import structlog

from .command import Command
from .config import BotConfig
from .context import Context
from .exceptions import CommandError, LifecycleError, SignalAPIError, SignalBotError
from .gateway import SignalGateway
from .models import InboundMessage

logger = structlog.get_logger("signalbot.bot")


def log_task_exception(task: asyncio.Task):
    """Log exceptions from fire-and-forget tasks instead of silently swallowing them."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc:
        logger.error("background_task_failed", error=str(exc), exc_type=type(exc).__name__)


def _command_name(command: Any) -> str:
    name = getattr(command, "name", None)
    return name if isinstance(name, str) and name else type(command).__name__


def _mask(identifier: str) -> str:
    return "..." + identifier[-4:]


class SignalBot:
    """Polling Signal bot with an ordered command chain.

    State machine: stopped --start()--> running --stop()--> stopped.
    start() runs the first poll cycle before returning; every later
    cycle is scheduled on the event loop poll_interval after the
    previous one settled, so at most one cycle is in flight.

    Args:
        config: A BotConfig, or a mapping merged over the defaults
            (poll_interval=2000, debug=False).
        gateway: Optional gateway client; built from config if omitted.

    Raises:
        ConfigurationError: If the configuration is invalid.
    """

    def __init__(
        self,
        config: Union[BotConfig, Mapping[str, Any]],
        gateway: Optional[SignalGateway] = None,
    ):
        if isinstance(config, BotConfig):
            self._config = config
        else:
            self._config = BotConfig.from_mapping(config)

        self.gateway = gateway or SignalGateway(self._config)
        self._commands: List[Command] = []
        self._running = False
        self._poll_handle: Optional[asyncio.TimerHandle] = None
        self._poll_task: Optional[asyncio.Task] = None
        # Bumped on every start(); a cycle from an older run never reschedules
        self._generation = 0
        self._stopped = asyncio.Event()
        self._stopped.set()

    @property
    def config(self) -> BotConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def registered_commands(self) -> Tuple[Command, ...]:
        """Snapshot of registered commands, in dispatch order."""
        return tuple(self._commands)

    def _trace(self, event: str, **kw) -> None:
        """Debug-only event, emitted when config.debug is set."""
        if self._config.debug:
            logger.debug(event, **kw)

    def register(self, command: Command) -> None:
        """Append a command to the dispatch chain.

        Duplicates are allowed. Commands registered while running are
        picked up from the next message onwards.

        Raises:
            TypeError: If the object has no callable handle().
        """
        if not callable(getattr(command, "handle", None)):
            raise TypeError(
                f"{type(command).__name__} does not implement handle(context)"
            )
        self._commands.append(command)
        self._trace("command_registered", command=_command_name(command))

    async def start(self) -> None:
        """Start polling.

        Runs the first poll cycle to completion before returning;
        later cycles run in the background until stop().

        Raises:
            LifecycleError: If the bot is already running.
        """
        if self._running:
            raise LifecycleError("Bot is already running")

        self._trace("bot_starting", account=_mask(self._config.phone_number))
        self._running = True
        self._generation += 1
        self._stopped.clear()
        logger.info(
            "bot_started",
            account=_mask(self._config.phone_number),
            commands=len(self._commands),
            poll_interval=self._config.poll_interval,
        )
        await self.poll()

    def stop(self) -> None:
        """Stop polling. Idempotent.

        Cancels the scheduled next cycle. A cycle already in progress
        runs to completion but does not reschedule itself.
        """
        self._trace("bot_stopping")
        was_running = self._running
        self._running = False
        if self._poll_handle is not None:
            self._poll_handle.cancel()
            self._poll_handle = None
        self._stopped.set()
        if was_running:
            logger.info("bot_stopped")

    async def run(self) -> None:
        """Start, wait until stop() is called, then release the HTTP session."""
        await self.start()
        try:
            await self._stopped.wait()
        finally:
            await self.close()

    async def close(self) -> None:
        """Stop, let an in-flight cycle settle, and close the gateway session."""
        self.stop()
        task = self._poll_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            await asyncio.gather(task, return_exceptions=True)
        self._poll_task = None
        await self.gateway.close()

    async def poll(self) -> None:
        """Run one poll cycle: fetch, dispatch, reschedule.

        Never raises for gateway or command failures; they are logged
        and the next cycle is scheduled while the bot is running.
        """
        if not self._running:
            return
        generation = self._generation

        try:
            messages = await self.gateway.receive()
            for message in messages:
                await self.process_message(message)
        except SignalAPIError as e:
            logger.warning(
                "fetch_failed",
                status=e.status,
                error=str(e),
                retryable=e.is_retryable,
            )
        except Exception as e:
            logger.error(
                "poll_cycle_error", error=str(e), error_type=type(e).__name__,
                exc_info=True,
            )

        if self._running and generation == self._generation:
            self._schedule_next()

    def _schedule_next(self) -> None:
        loop = asyncio.get_running_loop()
        self._poll_handle = loop.call_later(
            self._config.poll_interval_seconds, self._spawn_poll
        )

    def _spawn_poll(self) -> None:
        self._poll_handle = None
        if not self._running:
            return
        self._poll_task = asyncio.get_running_loop().create_task(self.poll())
        self._poll_task.add_done_callback(log_task_exception)

    async def process_message(self, message: InboundMessage) -> bool:
        """Offer one message to the command chain.

        Returns:
            True if a command claimed the message.
        """
        context = Context(self.gateway, message)
        self._trace(
            "processing_message",
            sender=_mask(context.sender),
            length=len(context.text),
            timestamp=context.timestamp,
        )
        if self._config.debug:
            logger.debug("raw_envelope", raw=json.dumps(message.raw, default=str)[:1000])

        for command in tuple(self._commands):
            name = _command_name(command)
            try:
                handled = await command.handle(context)
            except SignalAPIError as e:
                logger.warning(
                    "command_reply_failed",
                    command=name,
                    status=e.status,
                    error=str(e),
                )
                continue
            except SignalBotError as e:
                logger.error(
                    "command_failed", command=name, error=str(e), code=e.code,
                )
                continue
            except Exception as e:
                error = CommandError(
                    f"{type(e).__name__}: {e}", command=name
                )
                logger.error(
                    "command_failed",
                    command=name,
                    error=str(error),
                    code=error.code,
                    exc_info=e,
                )
                continue

            if handled:
                self._trace("message_handled", command=name)
                return True

        logger.info(
            "message_unhandled",
            sender=_mask(context.sender),
            length=len(context.text),
        )
        return False
