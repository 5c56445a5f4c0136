"""Instances partagées par l'application (file, connectivité, passerelle)."""
from __future__ import annotations

from stockboard.core.config import settings
from stockboard.services.backend import Backend, create_backend
from stockboard.services.connectivity import ConnectivityMonitor
from stockboard.services.notifications import SyncNotifier
from stockboard.services.offline_queue import MutationQueue
from stockboard.services.operations import InventoryOperations
from stockboard.services.resilient import ResilientGateway

connectivity = ConnectivityMonitor(
    online=True,
    address=settings.backend_address,
    probe_interval=settings.CONNECTIVITY_PROBE_INTERVAL_SECONDS,
    probe_timeout=settings.CONNECTIVITY_PROBE_TIMEOUT_SECONDS,
)
mutation_queue = MutationQueue(
    connectivity,
    retry_delay=settings.OFFLINE_RETRY_DELAY_SECONDS,
    default_max_attempts=settings.OFFLINE_MAX_ATTEMPTS,
)
gateway = ResilientGateway(mutation_queue)
notifier = SyncNotifier(mutation_queue)

_backend: Backend | None = None
_backend_loaded = False


def get_backend() -> Backend | None:
    global _backend, _backend_loaded
    if not _backend_loaded:
        _backend = create_backend(settings)
        _backend_loaded = True
    return _backend


def get_operations(user_id: str | None = None) -> InventoryOperations:
    return InventoryOperations(
        get_backend(),
        gateway,
        user_id=user_id,
        owner_column=settings.STOCK_OWNER_COLUMN,
    )
