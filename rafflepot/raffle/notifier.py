"""Best-effort fan-out of raffle notifications to external observers."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

ENTRY_ACCEPTED = "entry_accepted"
DRAW_REQUESTED = "draw_requested"
WINNER_PICKED = "winner_picked"

NOTIFICATION_KINDS = (ENTRY_ACCEPTED, DRAW_REQUESTED, WINNER_PICKED)


@dataclass(frozen=True)
class Notification:
    """Value object describing something observers may want to index.

    Attributes
    ----------
    kind : str
        One of :data:`NOTIFICATION_KINDS`.
    round_name : str
        Name of the raffle that produced the notification.
    payload : dict
        Kind-specific values, e.g. ``{"participant": ...}`` or ``{"winner": ...}``.
    """

    kind: str
    round_name: str
    payload: dict[str, Any] = field(default_factory=dict)


Subscriber = Callable[[Notification], None]


class EventNotifier:
    """Deliver notifications to subscribers without acknowledgement or retry.

    Subscriber failures are logged and skipped; they never reach the raffle
    operation that produced the notification.
    """

    def __init__(self) -> None:
        self._subscribers: dict[Optional[str], list[Subscriber]] = defaultdict(list)

    def subscribe(self, callback: Subscriber, kind: Optional[str] = None) -> None:
        """Register ``callback`` for ``kind``, or for every kind when omitted."""

        if kind is not None and kind not in NOTIFICATION_KINDS:
            raise ValueError(f"Unknown notification kind: {kind}")
        self._subscribers[kind].append(callback)

    def unsubscribe(self, callback: Subscriber, kind: Optional[str] = None) -> None:
        callbacks = self._subscribers.get(kind, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def publish(self, notification: Notification) -> None:
        logger.debug(
            "Publishing %s for raffle %s", notification.kind, notification.round_name
        )
        targets = list(self._subscribers.get(notification.kind, []))
        targets.extend(self._subscribers.get(None, []))
        for callback in targets:
            try:
                callback(notification)
            except Exception:
                logger.exception(
                    "Subscriber %r failed while handling %s", callback, notification.kind
                )


__all__ = [
    "ENTRY_ACCEPTED",
    "DRAW_REQUESTED",
    "WINNER_PICKED",
    "NOTIFICATION_KINDS",
    "Notification",
    "EventNotifier",
]
