"""Signal de connectivité vers le backend hébergé."""
from __future__ import annotations

import asyncio
import itertools
import logging
import socket
from typing import Callable

logger = logging.getLogger(__name__)

OnlineHandler = Callable[[], None]


def check_tcp(host: str, port: int, timeout: float) -> bool:
    """Retourne ``True`` si une connexion TCP vers ``host:port`` aboutit."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


class ConnectivityMonitor:
    """État en ligne / hors ligne et notification des retours en ligne.

    L'état peut être fourni directement (``set_online``) ou alimenté par une
    sonde TCP périodique vers l'adresse du backend (``start``).
    """

    def __init__(
        self,
        *,
        online: bool = True,
        address: tuple[str, int] | None = None,
        probe_interval: float = 5.0,
        probe_timeout: float = 3.0,
    ) -> None:
        self._online = online
        self._address = address
        self._probe_interval = probe_interval
        self._probe_timeout = probe_timeout
        self._handlers: dict[int, OnlineHandler] = {}
        self._ids = itertools.count()
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None

    def is_online(self) -> bool:
        return self._online

    def on_online(self, handler: OnlineHandler) -> Callable[[], None]:
        """Enregistre ``handler`` pour chaque transition hors ligne -> en ligne."""
        handler_id = next(self._ids)
        self._handlers[handler_id] = handler

        def unregister() -> None:
            self._handlers.pop(handler_id, None)

        return unregister

    def set_online(self, online: bool) -> None:
        was_online = self._online
        self._online = online
        if online and not was_online:
            logger.info("[NET] connexion rétablie")
            for handler in list(self._handlers.values()):
                try:
                    handler()
                except Exception:
                    logger.exception("[NET] online handler failure")
        elif was_online and not online:
            logger.warning("[NET] connexion perdue, passage en mode hors ligne")

    async def probe(self) -> bool:
        if self._address is None:
            return self._online
        host, port = self._address
        reachable = await asyncio.to_thread(check_tcp, host, port, self._probe_timeout)
        self.set_online(reachable)
        return reachable

    async def _probe_loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await self.probe()
            except Exception as exc:
                logger.error("[NET] probe failure", exc_info=exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._probe_interval)
            except asyncio.TimeoutError:
                continue

    def start(self) -> None:
        if self._address is None:
            logger.info("[NET] aucune adresse de backend, sonde désactivée")
            return
        if self._task and not self._task.done():
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._probe_loop(self._stop_event))
        logger.info(
            "[NET] sonde démarrée host=%s port=%s interval=%ss",
            self._address[0],
            self._address[1],
            self._probe_interval,
        )

    async def stop(self) -> None:
        task = self._task
        if not task or not self._stop_event:
            return
        self._stop_event.set()
        await task
        self._task = None
        self._stop_event = None
