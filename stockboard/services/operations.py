"""Opérations d'inventaire : catégories, fournisseurs, articles, mouvements.

Chaque appel est d'abord restreint à l'utilisateur courant via la colonne de
propriété (``user_id`` par défaut). Si le schéma du backend ne possède pas
cette colonne, l'appel est rejoué sans restriction. Les écritures passent par
la passerelle résiliente et peuvent donc être différées hors ligne.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any

from stockboard.services.backend import (
    Backend,
    BackendNotConfiguredError,
    OperationResult,
    SelectQuery,
)
from stockboard.services.resilient import ResilientGateway, with_owner_fallback

ITEM_COLUMNS = (
    "id,name,available_quantity,price,date_added,reorder_level,category_id,company_id,"
    "category:categories(name),company:companies(name)"
)
MOVEMENT_COLUMNS = (
    "id,item_id,movement_type,quantity,reason,created_at,item:items(name),company:companies(name)"
)
RPC_OWNER_PARAM = "p_user"


class InventoryOperations:
    def __init__(
        self,
        backend: Backend | None,
        gateway: ResilientGateway,
        *,
        user_id: str | None = None,
        owner_column: str = "user_id",
    ) -> None:
        self._backend = backend
        self._gateway = gateway
        self._user_id = user_id
        self._owner_column = owner_column

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def _require_backend(self) -> Backend:
        if self._backend is None:
            raise BackendNotConfiguredError()
        return self._backend

    # Lecture / écriture restreintes au propriétaire

    async def _select(self, table: str, query: SelectQuery) -> OperationResult:
        backend = self._require_backend()
        owner, user_id = self._owner_column, self._user_id
        if user_id is None:
            return await backend.select(table, query)
        return await with_owner_fallback(
            lambda: backend.select(table, query.where(**{owner: user_id})),
            lambda: backend.select(table, query.without(owner)),
            owner,
        )

    async def _insert(self, table: str, row: dict[str, Any], description: str) -> OperationResult:
        backend = self._require_backend()
        owner, user_id = self._owner_column, self._user_id

        async def action() -> OperationResult:
            if user_id is None:
                return await backend.insert(table, [row])
            return await with_owner_fallback(
                lambda: backend.insert(table, [{**row, owner: user_id}]),
                lambda: backend.insert(table, [row]),
                owner,
            )

        return await self._gateway.run_resilient(action, description)

    async def _update(
        self, table: str, row_id: Any, values: dict[str, Any], description: str
    ) -> OperationResult:
        backend = self._require_backend()
        owner, user_id = self._owner_column, self._user_id

        async def action() -> OperationResult:
            if user_id is None:
                return await backend.update(table, values, {"id": row_id})
            return await with_owner_fallback(
                lambda: backend.update(table, values, {"id": row_id, owner: user_id}),
                lambda: backend.update(table, values, {"id": row_id}),
                owner,
            )

        return await self._gateway.run_resilient(action, description)

    async def _delete(self, table: str, row_id: Any, description: str) -> OperationResult:
        backend = self._require_backend()
        owner, user_id = self._owner_column, self._user_id

        async def action() -> OperationResult:
            if user_id is None:
                return await backend.delete(table, {"id": row_id})
            return await with_owner_fallback(
                lambda: backend.delete(table, {"id": row_id, owner: user_id}),
                lambda: backend.delete(table, {"id": row_id}),
                owner,
            )

        return await self._gateway.run_resilient(action, description)

    async def _rpc(self, name: str, params: dict[str, Any], description: str) -> OperationResult:
        backend = self._require_backend()
        user_id = self._user_id

        async def action() -> OperationResult:
            if user_id is None:
                return await backend.rpc(name, params)
            return await with_owner_fallback(
                lambda: backend.rpc(name, {**params, RPC_OWNER_PARAM: user_id}),
                lambda: backend.rpc(name, params),
                RPC_OWNER_PARAM,
            )

        return await self._gateway.run_resilient(action, description)

    # Catégories

    async def list_categories(self) -> OperationResult:
        return await self._select("categories", SelectQuery(columns="id,name", order_by="name"))

    async def create_category(self, name: str) -> OperationResult:
        return await self._insert("categories", {"name": name}, "Create category")

    async def update_category(self, category_id: int, name: str) -> OperationResult:
        return await self._update("categories", category_id, {"name": name}, "Update category")

    async def delete_category(self, category_id: int) -> OperationResult:
        return await self._delete("categories", category_id, "Delete category")

    # Fournisseurs

    async def list_companies(self) -> OperationResult:
        return await self._select("companies", SelectQuery(columns="id,name", order_by="name"))

    async def create_company(self, name: str) -> OperationResult:
        return await self._insert("companies", {"name": name}, "Create company")

    async def update_company(self, company_id: int, name: str) -> OperationResult:
        return await self._update("companies", company_id, {"name": name}, "Update company")

    async def delete_company(self, company_id: int) -> OperationResult:
        return await self._delete("companies", company_id, "Delete company")

    # Articles

    async def list_items(
        self,
        *,
        category_id: int | None = None,
        company_id: int | None = None,
        search: str | None = None,
    ) -> OperationResult:
        query = SelectQuery(columns=ITEM_COLUMNS, order_by="date_added", descending=True)
        if category_id is not None:
            query = query.where(category_id=category_id)
        if company_id is not None:
            query = query.where(company_id=company_id)
        if search and search.strip():
            query = replace(query, ilike={"name": f"%{search.strip()}%"})
        return await self._select("items", query)

    async def list_low_stock_items(self) -> OperationResult:
        result = await self.list_items()
        if result.error is not None:
            return result
        rows = [
            row
            for row in result.data or []
            if (row.get("available_quantity") or 0) <= (row.get("reorder_level") or 0)
        ]
        return OperationResult(data=rows)

    async def create_item(
        self,
        *,
        name: str,
        quantity: int = 0,
        price: float = 0.0,
        category_id: int | None = None,
        company_id: int | None = None,
        reorder_level: int = 0,
    ) -> OperationResult:
        row = {
            "name": name,
            "available_quantity": quantity,
            "price": price,
            "category_id": category_id,
            "company_id": company_id,
            "reorder_level": reorder_level,
        }
        return await self._insert("items", row, "Create item")

    async def update_item(self, item_id: int, changes: dict[str, Any]) -> OperationResult:
        values = dict(changes)
        if "quantity" in values:
            values["available_quantity"] = values.pop("quantity")
        return await self._update("items", item_id, values, "Update item")

    async def delete_item(self, item_id: int) -> OperationResult:
        return await self._delete("items", item_id, "Delete item")

    # Mouvements de stock

    async def stock_in(self, item_id: int, company_id: int | None, quantity: int) -> OperationResult:
        params = {"p_item": item_id, "p_company": company_id, "p_qty": quantity}
        return await self._rpc("stock_in", params, "Stock in")

    async def stock_out(
        self,
        item_id: int,
        company_id: int | None,
        quantity: int,
        reason: str | None = None,
    ) -> OperationResult:
        params = {
            "p_item": item_id,
            "p_company": company_id,
            "p_qty": quantity,
            "p_reason": reason or "Sale",
        }
        return await self._rpc("stock_out", params, "Stock out")

    async def list_recent_movements(self, movement_type: str = "OUT", limit: int = 10) -> OperationResult:
        query = SelectQuery(
            columns=MOVEMENT_COLUMNS,
            eq={"movement_type": movement_type},
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        return await self._select("stock_movements", query)

    async def list_movements_between(
        self, start_iso: str, end_iso: str, movement_type: str = "OUT"
    ) -> OperationResult:
        query = SelectQuery(
            columns=MOVEMENT_COLUMNS,
            eq={"movement_type": movement_type},
            gte={"created_at": start_iso},
            lte={"created_at": end_iso},
            order_by="created_at",
        )
        return await self._select("stock_movements", query)
