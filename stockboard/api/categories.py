"""Routes pour la gestion des catégories."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from stockboard.api.deps import execute, get_operations
from stockboard.core import models
from stockboard.services.operations import InventoryOperations

router = APIRouter()


@router.get("/", response_model=models.OperationResponse)
async def list_categories(
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.list_categories(), response)


@router.post("/", response_model=models.OperationResponse, status_code=201)
async def create_category(
    payload: models.CategoryCreate,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.create_category(payload.name), response)


@router.put("/{category_id}", response_model=models.OperationResponse)
async def update_category(
    category_id: int,
    payload: models.CategoryUpdate,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.update_category(category_id, payload.name), response)


@router.delete("/{category_id}", response_model=models.OperationResponse)
async def delete_category(
    category_id: int,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.delete_category(category_id), response)
