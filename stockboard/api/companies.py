"""Routes pour la gestion des fournisseurs."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from stockboard.api.deps import execute, get_operations
from stockboard.core import models
from stockboard.services.operations import InventoryOperations

router = APIRouter()


@router.get("/", response_model=models.OperationResponse)
async def list_companies(
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.list_companies(), response)


@router.post("/", response_model=models.OperationResponse, status_code=201)
async def create_company(
    payload: models.CompanyCreate,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.create_company(payload.name), response)


@router.put("/{company_id}", response_model=models.OperationResponse)
async def update_company(
    company_id: int,
    payload: models.CompanyUpdate,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.update_company(company_id, payload.name), response)


@router.delete("/{company_id}", response_model=models.OperationResponse)
async def delete_company(
    company_id: int,
    response: Response,
    ops: InventoryOperations = Depends(get_operations),
) -> models.OperationResponse:
    return await execute(ops.delete_company(company_id), response)
