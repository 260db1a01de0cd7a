"""User notification port.

Components that need to tell the user something (sync finished, budget
crossed, bill due) call a Notifier. They never depend on how the message
is shown.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import click


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notifier(Protocol):
    """Fire-and-forget message sink."""

    def notify(self, severity: Severity, title: str, description: str | None = None) -> None: ...


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}

_COLORS = {
    Severity.INFO: "cyan",
    Severity.SUCCESS: "green",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
}


class LoggingNotifier:
    """Sends notifications to a logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("moneytracker.notify")

    def notify(self, severity: Severity, title: str, description: str | None = None) -> None:
        message = f"{title}: {description}" if description else title
        self.logger.log(_LOG_LEVELS[severity], message)


class ClickNotifier:
    """Prints notifications to the terminal, colored by severity."""

    def notify(self, severity: Severity, title: str, description: str | None = None) -> None:
        click.echo(click.style(title, fg=_COLORS[severity], bold=True), err=True)
        if description:
            click.echo(f"  {description}", err=True)


@dataclass(frozen=True)
class Notification:
    severity: Severity
    title: str
    description: str | None = None


class RecordingNotifier:
    """Keeps every notification in ``sent`` (for tests and embedding)."""

    def __init__(self):
        self.sent: list[Notification] = []

    def notify(self, severity: Severity, title: str, description: str | None = None) -> None:
        self.sent.append(Notification(severity, title, description))

    def clear(self) -> None:
        self.sent.clear()
