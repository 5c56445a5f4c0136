"""Routes d'état de la synchronisation hors ligne."""
from __future__ import annotations

from fastapi import APIRouter

from stockboard.core import models
from stockboard.services import runtime

router = APIRouter()


@router.get("/status", response_model=models.QueueStatus)
async def get_sync_status() -> models.QueueStatus:
    return runtime.mutation_queue.status()


@router.get("/notifications", response_model=list[models.SyncNotification])
async def list_notifications() -> list[models.SyncNotification]:
    return runtime.notifier.recent()


@router.post("/connectivity", response_model=models.QueueStatus)
async def update_connectivity(payload: models.ConnectivityUpdate) -> models.QueueStatus:
    """Relaie le signal en ligne / hors ligne du poste client."""
    runtime.connectivity.set_online(payload.online)
    return runtime.mutation_queue.status()
