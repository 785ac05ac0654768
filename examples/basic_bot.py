"""Basic signalbot example with ping, echo, remind and help commands.

Setup:
    1. Run the gateway:
       docker run -d --name signal-api -p 8080:8080 \\
           -v $(pwd)/bot-config:/home/.local/share/signal-cli \\
           -e 'MODE=native' bbernhard/signal-cli-rest-api:latest
    2. Link the account via /v1/qrcodelink.
    3. Put SIGNAL_PHONE (and optionally SIGNAL_SERVICE, POLL_INTERVAL,
       DEBUG) in config/.env.
    4. python examples/basic_bot.py

The ping/echo classes can also be listed in settings.yaml under
``commands`` (e.g. ``examples.basic_bot:PingCommand``) and run via the
``signalbot`` console script.
"""

import asyncio
from dataclasses import dataclass
from typing import List

import structlog

from signalbot import Command, Context, SignalBot
from signalbot.config import Settings
from signalbot.logging_config import setup_logging

logger = structlog.get_logger("signalbot.examples")


class PingCommand(Command):
    @property
    def name(self) -> str:
        return "ping"

    @property
    def description(self) -> str:
        return "Responds to ping with pong"

    async def handle(self, ctx: Context) -> bool:
        if not ctx.starts_with("ping"):
            return False
        await ctx.send("pong")
        return True


class EchoCommand(Command):
    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Echo back your message"

    async def handle(self, ctx: Context) -> bool:
        if not ctx.starts_with("echo"):
            return False
        words = ctx.args()[1:]
        await ctx.send(f"You said: {' '.join(words)}")
        return True


@dataclass
class Reminder:
    recipient: str
    message: str
    minutes: int


class RemindCommand(Command):
    """``remind <minutes> <message>``: reply later via send_to.

    Pending reminders live on the instance, so two bots in one process
    never share them.
    """

    def __init__(self):
        self.reminders: List[Reminder] = []
        self._tasks: List[asyncio.Task] = []

    @property
    def name(self) -> str:
        return "remind"

    @property
    def description(self) -> str:
        return "Set a reminder"

    async def handle(self, ctx: Context) -> bool:
        if not ctx.starts_with("remind"):
            return False
        args = ctx.args()
        if len(args) < 3:
            await ctx.send("Usage: remind [minutes] [message]\nExample: remind 30 Check the server")
            return True
        try:
            minutes = int(args[1])
        except ValueError:
            await ctx.send("Please provide a valid number of minutes.")
            return True

        reminder = Reminder(recipient=ctx.sender, message=" ".join(args[2:]), minutes=minutes)
        self.reminders.append(reminder)
        task = asyncio.create_task(self._fire(ctx, reminder))
        self._tasks.append(task)
        task.add_done_callback(self._tasks.remove)
        await ctx.send(f'Reminder set for {minutes} minutes: "{reminder.message}"')
        return True

    async def _fire(self, ctx: Context, reminder: Reminder) -> None:
        await asyncio.sleep(reminder.minutes * 60)
        try:
            await ctx.send_to(reminder.recipient, f"Reminder: {reminder.message}")
        except Exception as e:
            logger.warning("reminder_send_failed", error=str(e))
        finally:
            self.reminders.remove(reminder)


class HelpCommand(Command):
    """Lists the bot's registered commands."""

    def __init__(self, bot: SignalBot):
        self.bot = bot

    @property
    def name(self) -> str:
        return "help"

    @property
    def description(self) -> str:
        return "Show available commands"

    async def handle(self, ctx: Context) -> bool:
        if not ctx.starts_with("help"):
            return False
        lines = ["Available Commands:"]
        lines += [f"- {c.name}: {c.description}" for c in self.bot.registered_commands]
        await ctx.send("\n".join(lines))
        return True


async def main():
    setup_logging()
    settings = Settings()
    setup_logging(settings)

    bot = SignalBot(settings.bot_config())
    bot.register(PingCommand())
    bot.register(EchoCommand())
    bot.register(RemindCommand())
    bot.register(HelpCommand(bot))

    try:
        await bot.run()
    except asyncio.CancelledError:
        pass
    finally:
        await bot.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
