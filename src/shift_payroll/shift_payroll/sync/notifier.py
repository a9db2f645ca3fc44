from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None:
        raise NotImplementedError


class LoggingNotifier:
    """Default notifier: writes notifications to the log instead of pushing them."""

    def notify(self, title: str, body: str) -> None:
        logger.info("Notification: %s - %s", title, body)


def notify_quietly(notifier: Notifier, title: str, body: str) -> None:
    """Fire-and-forget delivery; a failing notifier never interrupts a shift action."""
    try:
        notifier.notify(title, body)
    except Exception:
        logger.debug("Notification %r was not delivered", title, exc_info=True)
