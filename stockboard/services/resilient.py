"""Passerelle « essayer maintenant, différer en cas d'échec réseau »."""
from __future__ import annotations

import logging
import re
from typing import Any, Awaitable, Callable

from stockboard.services.backend import OperationResult
from stockboard.services.connectivity import ConnectivityMonitor
from stockboard.services.offline_queue import MutationQueue

logger = logging.getLogger(__name__)

BackendCall = Callable[[], Awaitable[OperationResult]]

NETWORK_FAILURE_PATTERN = re.compile(
    r"failed to fetch|fetch failed|network ?error|connection (?:refused|reset)",
    re.IGNORECASE,
)

# 42703: undefined_column (PostgreSQL) ; PGRST204/PGRST202: colonne ou
# signature de fonction absente du cache de schéma PostgREST.
_UNKNOWN_COLUMN_CODES = {"42703", "PGRST204", "PGRST202"}
_UNKNOWN_COLUMN_PATTERN = re.compile(
    r"column .+ does not exist|could not find the .+ (?:column|function)",
    re.IGNORECASE,
)


def _error_text(error: Any) -> str:
    if isinstance(error, dict):
        parts = [error.get("message"), error.get("details"), error.get("hint")]
    else:
        parts = [
            getattr(error, "message", None) or str(error),
            getattr(error, "details", None),
            getattr(error, "hint", None),
        ]
    return " ".join(str(part) for part in parts if part)


def _error_code(error: Any) -> str | None:
    if isinstance(error, dict):
        return error.get("code")
    return getattr(error, "code", None)


def is_network_failure(error: Any) -> bool:
    if error is None:
        return False
    return bool(NETWORK_FAILURE_PATTERN.search(_error_text(error)))


def is_missing_column_error(error: Any, column: str) -> bool:
    """Vrai si ``error`` signale que ``column`` n'existe pas dans le schéma."""
    if error is None:
        return False
    text = _error_text(error)
    if _error_code(error) not in _UNKNOWN_COLUMN_CODES and not _UNKNOWN_COLUMN_PATTERN.search(text):
        return False
    return re.search(rf"\b{re.escape(column)}\b", text, re.IGNORECASE) is not None


async def with_owner_fallback(
    scoped: BackendCall,
    unscoped: BackendCall,
    column: str,
) -> OperationResult:
    """Exécute ``scoped`` puis, si ``column`` est inconnue du backend, ``unscoped``.

    Une seule reprise est tentée ; son résultat est renvoyé tel quel.
    """
    result = await scoped()
    if not is_missing_column_error(result.error, column):
        return result
    # L'écriture n'est alors rattachée à aucun utilisateur.
    logger.warning("[DB] colonne %s absente du schéma, reprise sans propriétaire", column)
    return await unscoped()


class ResilientGateway:
    def __init__(
        self,
        queue: MutationQueue,
        connectivity: ConnectivityMonitor | None = None,
    ) -> None:
        self._queue = queue
        self._connectivity = connectivity if connectivity is not None else queue.connectivity

    @property
    def queue(self) -> MutationQueue:
        return self._queue

    def _defer(self, action: BackendCall, description: str, max_attempts: int | None) -> None:
        self._queue.enqueue(description, action, max_attempts)

    async def run_resilient(
        self,
        action: BackendCall,
        description: str,
        *,
        max_attempts: int | None = None,
    ) -> OperationResult:
        if self._connectivity is None:
            return await action()

        if not self._connectivity.is_online():
            self._defer(action, description, max_attempts)
            return OperationResult(queued=True)

        try:
            result = await action()
        except Exception:
            if self._connectivity.is_online():
                raise
            logger.warning("[SYNC] %s interrompu par la perte de connexion, mise en file", description)
            self._defer(action, description, max_attempts)
            return OperationResult(queued=True)

        if is_network_failure(result.error):
            logger.warning("[SYNC] %s: échec réseau (%s), mise en file", description, result.error)
            self._defer(action, description, max_attempts)
            return result.as_queued()
        return result
