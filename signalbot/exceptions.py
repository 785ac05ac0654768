"""Exception hierarchy for signalbot.

Separates the failures a host application must react to (bad
configuration, lifecycle misuse) from the steady-state runtime
failures the poll loop contains and logs (gateway errors, command
errors).

Key classes:
    SignalBotError: Base for every signalbot exception.
    ConfigurationError: Invalid or missing configuration.
    LifecycleError: start() called on a running bot.
    SignalAPIError: Non-success response or transport failure
        talking to the Signal REST gateway.
    CommandError: A command's handle() raised.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for retry decisions."""
    TRANSIENT = "transient"          # Worth retrying (timeout, 5xx, rate limit)
    PERMANENT = "permanent"          # Not worth retrying (bad request, bug)
    INFRASTRUCTURE = "infrastructure"  # Config or environment issues


class SignalBotError(Exception):
    """Base exception for all signalbot errors.

    Attributes:
        message: Human-readable error description.
        code: Stable machine-readable error code.
        category: Error classification for retry decisions.
        module: Originating module name (e.g. "gateway").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.code = code
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error is worth retrying."""
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, code={self.code!r}, "
            f"category={self.category.value!r}, module={self.module!r})"
        )


class ConfigurationError(SignalBotError):
    """Invalid or missing configuration.

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.

    Attributes:
        setting_name: The offending setting (e.g. "phone_number").
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            category=category,
            module=module or "config",
            **context,
        )


class LifecycleError(SignalBotError):
    """Invalid lifecycle transition, e.g. start() while already running."""

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message,
            code="LIFECYCLE_ERROR",
            category=category,
            module=module or "bot",
            **context,
        )


class SignalAPIError(SignalBotError):
    """Error talking to the Signal REST gateway.

    Server errors, 429 and transport failures (status None) are
    TRANSIENT; any other non-success status is PERMANENT.

    Attributes:
        status: HTTP status code, or None if no response was received.
    """

    def __init__(
        self,
        message: str = "",
        *,
        status: Optional[int] = None,
        category: Optional[ErrorCategory] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.status = status
        if category is None:
            if status is None or status == 429 or status >= 500:
                category = ErrorCategory.TRANSIENT
            else:
                category = ErrorCategory.PERMANENT
        super().__init__(
            message,
            code="SIGNAL_API_ERROR",
            category=category,
            module=module or "gateway",
            **context,
        )


class CommandError(SignalBotError):
    """A command raised while handling a message.

    Attributes:
        command: Name of the failing command (if known).
    """

    def __init__(
        self,
        message: str = "",
        *,
        command: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command = command
        super().__init__(
            message,
            code="COMMAND_ERROR",
            category=category,
            module=module or "command",
            **context,
        )
