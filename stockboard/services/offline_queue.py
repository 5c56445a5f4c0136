"""File d'attente des écritures hors ligne.

Les écritures qui n'ont pas pu être confirmées par le backend sont conservées
en mémoire, dans l'ordre d'arrivée, puis rejouées dès que la connexion est
disponible. Chaque mutation dispose d'un nombre borné de tentatives séparées
par un délai fixe ; l'élément de tête bloque les suivants tant qu'il lui reste
des tentatives.

Les observateurs (surface de notifications, WebSocket) reçoivent les
événements ``queued``, ``synced`` et ``sync-error``.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal
from uuid import uuid4

from stockboard.core import models
from stockboard.services.connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.5

EventType = Literal["queued", "synced", "sync-error"]
Action = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class QueueEvent:
    type: EventType
    description: str
    mutation_id: str
    result: Any = None


Listener = Callable[[QueueEvent], None]


@dataclass
class QueuedMutation:
    description: str
    action: Action
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    attempts: int = 0
    id: str = field(default_factory=lambda: uuid4().hex)


def _result_error(result: Any) -> Any:
    """Erreur portée par un résultat ``{data, error}``, sinon ``None``."""
    if isinstance(result, dict):
        return result.get("error")
    return getattr(result, "error", None)


class MutationQueue:
    def __init__(
        self,
        connectivity: ConnectivityMonitor | None = None,
        *,
        retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
        default_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._queue: deque[QueuedMutation] = deque()
        self._listeners: dict[int, Listener] = {}
        self._listener_ids = itertools.count()
        self._draining = False
        self._retry_delay = retry_delay
        self._default_max_attempts = default_max_attempts
        self._tasks: set[asyncio.Task[None]] = set()
        self._connectivity = connectivity
        self._unregister_online: Callable[[], None] | None = None
        if connectivity is not None:
            self._unregister_online = connectivity.on_online(self._schedule_drain)

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def is_draining(self) -> bool:
        return self._draining

    @property
    def connectivity(self) -> ConnectivityMonitor | None:
        return self._connectivity

    def pending(self) -> list[QueuedMutation]:
        return list(self._queue)

    def status(self) -> models.QueueStatus:
        """Instantané de la file : connectivité, passe en cours, mutations en attente."""
        return models.QueueStatus(
            online=self._connectivity.is_online() if self._connectivity is not None else None,
            draining=self._draining,
            pending=[
                models.QueuedMutationInfo(
                    id=mutation.id,
                    description=mutation.description,
                    attempts=mutation.attempts,
                    max_attempts=mutation.max_attempts,
                )
                for mutation in self._queue
            ],
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        listener_id = next(self._listener_ids)
        self._listeners[listener_id] = listener

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    def _notify(self, event: QueueEvent) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener(event)
            except Exception:
                logger.exception("[QUEUE] listener failure on %s event", event.type)

    def _is_online(self) -> bool:
        # Sans moniteur, l'environnement est supposé connecté.
        return self._connectivity is None or self._connectivity.is_online()

    def enqueue(
        self,
        description: str,
        action: Action,
        max_attempts: int | None = None,
    ) -> QueuedMutation:
        mutation = QueuedMutation(
            description=description,
            action=action,
            max_attempts=(
                self._default_max_attempts if max_attempts is None else max(1, max_attempts)
            ),
        )
        self._queue.append(mutation)
        logger.info(
            "[QUEUE] queued id=%s description=%r pending=%s",
            mutation.id,
            description,
            len(self._queue),
        )
        self._notify(QueueEvent("queued", description, mutation.id))
        if self._is_online():
            self._schedule_drain()
        return mutation

    def _schedule_drain(self) -> None:
        if self._draining:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("[QUEUE] no running event loop, drain deferred")
            return
        task = loop.create_task(self.drain())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _attempt(self, mutation: QueuedMutation) -> tuple[bool, Any]:
        try:
            result = await mutation.action()
        except Exception as exc:
            return False, exc
        error = _result_error(result)
        if error is not None:
            return False, error
        return True, result

    async def drain(self) -> None:
        """Rejoue la file depuis sa tête jusqu'à ce qu'elle soit vide."""
        if self._draining or not self._is_online():
            return
        self._draining = True
        try:
            while self._queue:
                mutation = self._queue[0]
                succeeded, outcome = await self._attempt(mutation)
                if succeeded:
                    logger.info("[QUEUE] synced id=%s description=%r", mutation.id, mutation.description)
                    self._notify(QueueEvent("synced", mutation.description, mutation.id, outcome))
                    self._queue.popleft()
                    continue
                mutation.attempts += 1
                if mutation.attempts >= mutation.max_attempts:
                    logger.error(
                        "[QUEUE] sync failed id=%s description=%r attempts=%s error=%s",
                        mutation.id,
                        mutation.description,
                        mutation.attempts,
                        outcome,
                    )
                    self._notify(QueueEvent("sync-error", mutation.description, mutation.id, outcome))
                    self._queue.popleft()
                    continue
                logger.warning(
                    "[QUEUE] retry id=%s attempts=%s/%s error=%s",
                    mutation.id,
                    mutation.attempts,
                    mutation.max_attempts,
                    outcome,
                )
                await asyncio.sleep(self._retry_delay)
        finally:
            self._draining = False

    async def join(self) -> None:
        """Attend la fin des passes de synchronisation planifiées."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def close(self) -> None:
        if self._unregister_online is not None:
            self._unregister_online()
            self._unregister_online = None
