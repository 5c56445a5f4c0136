"""Routes pour la gestion des articles."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from stockboard.api.deps import execute, get_operations
from stockboard.core import models
from stockboard.services.operations import InventoryOperations

router = APIRouter()


@router.get("/", response_model=models.OperationResponse)
async def list_items(
    response: Response,
    category_id: int | None = Query(default=None, description="Catégorie à filtrer"),
    company_id: int | None = Query(default=None, description="Fournisseur à filtrer"),
    search: str | None = Query(default=None, description="Filtre sur le nom"),
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    filters = models.ItemFilters(category_id=category_id, company_id=company_id, search=search)
    return await execute(ops.list_items(**filters.model_dump()), response)


@router.get("/low-stock", response_model=models.OperationResponse)
async def list_low_stock_items(
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.list_low_stock_items(), response)


@router.post("/", response_model=models.OperationResponse, status_code=201)
async def create_item(
    payload: models.ItemCreate,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.create_item(**payload.model_dump()), response)


@router.put("/{item_id}", response_model=models.OperationResponse)
async def update_item(
    item_id: int,
    payload: models.ItemUpdate,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.update_item(item_id, payload.model_dump(exclude_unset=True)), response)


@router.delete("/{item_id}", response_model=models.OperationResponse)
async def delete_item(
    item_id: int,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.delete_item(item_id), response)
