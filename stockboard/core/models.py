"""Modèles Pydantic pour l'API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

MovementType = Literal["IN", "OUT"]


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Le nom ne peut pas être vide")
        return stripped


class CategoryUpdate(CategoryCreate):
    pass


class CompanyCreate(CategoryCreate):
    pass


class CompanyUpdate(CategoryCreate):
    pass


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    quantity: int = Field(default=0, ge=0)
    price: float = Field(default=0.0, ge=0.0)
    category_id: int | None = None
    company_id: int | None = None
    reorder_level: int = Field(default=0, ge=0)


class ItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    quantity: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0.0)
    category_id: Optional[int] = None
    company_id: Optional[int] = None
    reorder_level: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _require_change(self) -> "ItemUpdate":
        if not self.model_dump(exclude_unset=True):
            raise ValueError("Aucune modification fournie")
        return self


class ItemFilters(BaseModel):
    category_id: int | None = None
    company_id: int | None = None
    search: str | None = None


class StockInRequest(BaseModel):
    item_id: int
    company_id: int | None = None
    quantity: int = Field(..., gt=0)


class StockOutRequest(StockInRequest):
    reason: str | None = Field(default=None, max_length=256)


class OperationResponse(BaseModel):
    data: Any = None
    error: str | None = None
    queued: bool = False


class QueuedMutationInfo(BaseModel):
    id: str
    description: str
    attempts: int
    max_attempts: int


class QueueStatus(BaseModel):
    online: bool | None
    draining: bool
    pending: list[QueuedMutationInfo] = Field(default_factory=list)


class ConnectivityUpdate(BaseModel):
    online: bool


class SyncNotification(BaseModel):
    id: str
    title: str
    description: str
    variant: Literal["success", "warning", "error", "info"]
    duration: int
    created_at: datetime
