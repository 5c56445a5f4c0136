"""Routes des entrées / sorties de stock."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response

from stockboard.api.deps import execute, get_operations
from stockboard.core import models
from stockboard.services.operations import InventoryOperations

router = APIRouter()


@router.post("/in", response_model=models.OperationResponse)
async def stock_in(
    payload: models.StockInRequest,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.stock_in(payload.item_id, payload.company_id, payload.quantity), response)


@router.post("/out", response_model=models.OperationResponse)
async def stock_out(
    payload: models.StockOutRequest,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(
        ops.stock_out(payload.item_id, payload.company_id, payload.quantity, payload.reason),
        response,
    )


@router.get("/movements", response_model=models.OperationResponse)
async def list_recent_movements(
    response: Response,
    movement_type: models.MovementType = Query(default="OUT", alias="type"),
    limit: int = Query(default=10, ge=1, le=200),
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.list_recent_movements(movement_type, limit), response)


@router.get("/movements/range", response_model=models.OperationResponse)
async def list_movements_between(
    response: Response,
    start: datetime = Query(..., description="Début de la période (ISO 8601)"),
    end: datetime = Query(..., description="Fin de la période (ISO 8601)"),
    movement_type: models.MovementType = Query(default="OUT", alias="type"),
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(
        ops.list_movements_between(start.isoformat(), end.isoformat(), movement_type),
        response,
    )
