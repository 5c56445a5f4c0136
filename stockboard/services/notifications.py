"""Notifications utilisateur issues de la file de synchronisation."""
from __future__ import annotations

import itertools
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from stockboard.core import models
from stockboard.services.offline_queue import MutationQueue, QueueEvent

logger = logging.getLogger(__name__)

_DEFAULT_HISTORY_SIZE = 50

# type d'événement -> (titre, modèle de description, variante, durée en ms)
_EVENT_TEMPLATES: dict[str, tuple[str, str, str, int]] = {
    "queued": ("Action queued", "{description} will sync once you are back online", "warning", 5000),
    "synced": ("Action synced", "{description} successfully completed", "success", 4200),
    "sync-error": ("Sync failed", "{description}", "error", 6000),
}

NotificationListener = Callable[[models.SyncNotification], None]


def build_notification(event: QueueEvent) -> models.SyncNotification | None:
    template = _EVENT_TEMPLATES.get(event.type)
    if template is None:
        return None
    title, description, variant, duration = template
    return models.SyncNotification(
        id=uuid4().hex,
        title=title,
        description=description.format(description=event.description),
        variant=variant,
        duration=duration,
        created_at=datetime.now(timezone.utc),
    )


class SyncNotifier:
    """Transforme les événements de la file en notifications et les diffuse."""

    def __init__(self, queue: MutationQueue, *, history_size: int = _DEFAULT_HISTORY_SIZE) -> None:
        self._recent: deque[models.SyncNotification] = deque(maxlen=history_size)
        self._listeners: dict[int, NotificationListener] = {}
        self._ids = itertools.count()
        self._unsubscribe: Callable[[], None] | None = queue.subscribe(self.handle_event)

    def handle_event(self, event: QueueEvent) -> None:
        notification = build_notification(event)
        if notification is None:
            logger.debug("[NOTIFY] event ignored type=%s", event.type)
            return
        self._recent.append(notification)
        for listener in list(self._listeners.values()):
            try:
                listener(notification)
            except Exception:
                logger.exception("[NOTIFY] listener failure")

    def recent(self) -> list[models.SyncNotification]:
        return list(self._recent)

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        listener_id = next(self._ids)
        self._listeners[listener_id] = listener

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
