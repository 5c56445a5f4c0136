"""Dépendances communes aux routes."""
from __future__ import annotations

from typing import Awaitable

from fastapi import Depends, Header, HTTPException, Response, status

from stockboard.core import models
from stockboard.services import runtime
from stockboard.services.backend import BackendError, BackendNotConfiguredError, OperationResult
from stockboard.services.operations import InventoryOperations
from stockboard.services.resilient import is_network_failure


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str | None:
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def get_operations(user_id: str | None = Depends(get_current_user_id)) -> InventoryOperations:
    return runtime.get_operations(user_id)


async def execute(operation: Awaitable[OperationResult], response: Response) -> models.OperationResponse:
    """Exécute une opération et la traduit en réponse HTTP.

    Une opération différée répond ``202``; une erreur permanente du backend
    répond ``400``. Un backend non configuré ou injoignable (lecture en échec
    réseau) répond ``503``.
    """
    try:
        result = await operation
    except BackendNotConfiguredError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message) from exc
    except BackendError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc
    error = result.error.message if result.error is not None else None
    if result.queued:
        response.status_code = status.HTTP_202_ACCEPTED
        return models.OperationResponse(data=result.data, error=error, queued=True)
    if is_network_failure(result.error):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=error)
    if error is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)
    return models.OperationResponse(data=result.data)
