"""Accès au backend relationnel hébergé (Supabase / PostgREST).

Les appels renvoient toujours un :class:`OperationResult` ``{data, error}`` :
les erreurs signalées par le backend ne sont pas levées mais portées par le
résultat, comme le fait le client JavaScript de Supabase. Les défaillances
réseau du transport HTTP sont converties en erreur ``Network error: ...``
pour être reconnues par la passerelle résiliente.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from stockboard.core.config import Settings

logger = logging.getLogger(__name__)


class BackendError(RuntimeError):
    """Erreur renvoyée par le backend (``{message, code}``)."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        *,
        details: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint

    def __repr__(self) -> str:
        return f"BackendError(message={self.message!r}, code={self.code!r})"


class BackendNotConfiguredError(BackendError):
    def __init__(self) -> None:
        super().__init__(
            "Client Supabase non configuré: définissez SUPABASE_URL et SUPABASE_ANON_KEY.",
            code="NOT_CONFIGURED",
        )


@dataclass(frozen=True)
class OperationResult:
    data: Any = None
    error: BackendError | None = None
    queued: bool = False

    def as_queued(self) -> "OperationResult":
        return replace(self, queued=True)


@dataclass(frozen=True)
class SelectQuery:
    """Description d'une lecture, indépendante du client utilisé."""

    columns: str = "*"
    eq: dict[str, Any] = field(default_factory=dict)
    ilike: dict[str, str] = field(default_factory=dict)
    gte: dict[str, Any] = field(default_factory=dict)
    lte: dict[str, Any] = field(default_factory=dict)
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None

    def where(self, **filters: Any) -> "SelectQuery":
        return replace(self, eq={**self.eq, **filters})

    def without(self, column: str) -> "SelectQuery":
        """Retourne la même requête sans aucun filtre portant sur ``column``."""
        return replace(
            self,
            eq={key: value for key, value in self.eq.items() if key != column},
            ilike={key: value for key, value in self.ilike.items() if key != column},
            gte={key: value for key, value in self.gte.items() if key != column},
            lte={key: value for key, value in self.lte.items() if key != column},
        )


class Backend(Protocol):
    async def select(self, table: str, query: SelectQuery) -> OperationResult: ...

    async def insert(self, table: str, rows: list[dict[str, Any]]) -> OperationResult: ...

    async def update(
        self, table: str, values: dict[str, Any], match: dict[str, Any]
    ) -> OperationResult: ...

    async def delete(self, table: str, match: dict[str, Any]) -> OperationResult: ...

    async def rpc(self, name: str, params: dict[str, Any]) -> OperationResult: ...


class SupabaseBackend:
    """Implémentation de :class:`Backend` sur le client ``supabase``.

    Le client Python est synchrone : chaque requête est exécutée dans un
    thread de travail pour ne pas bloquer la boucle asyncio.
    """

    def __init__(self, client: Client) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, config: Settings) -> "SupabaseBackend":
        if not config.backend_configured:
            raise BackendNotConfiguredError()
        return cls(create_client(config.SUPABASE_URL, config.SUPABASE_ANON_KEY))

    async def _execute(self, build: Callable[[], Any]) -> OperationResult:
        try:
            response = await asyncio.to_thread(lambda: build().execute())
        except APIError as exc:
            return OperationResult(
                error=BackendError(
                    exc.message or str(exc),
                    code=exc.code,
                    details=exc.details,
                    hint=exc.hint,
                )
            )
        except httpx.TransportError as exc:
            logger.warning("[NET] backend unreachable: %s", exc)
            return OperationResult(error=BackendError(f"Network error: {exc}", code="NETWORK"))
        return OperationResult(data=response.data)

    async def select(self, table: str, query: SelectQuery) -> OperationResult:
        def build() -> Any:
            request = self._client.table(table).select(query.columns)
            for column, value in query.eq.items():
                request = request.eq(column, value)
            for column, pattern in query.ilike.items():
                request = request.ilike(column, pattern)
            for column, value in query.gte.items():
                request = request.gte(column, value)
            for column, value in query.lte.items():
                request = request.lte(column, value)
            if query.order_by:
                request = request.order(query.order_by, desc=query.descending)
            if query.limit is not None:
                request = request.limit(query.limit)
            return request

        return await self._execute(build)

    async def insert(self, table: str, rows: list[dict[str, Any]]) -> OperationResult:
        return await self._execute(lambda: self._client.table(table).insert(rows))

    async def update(
        self, table: str, values: dict[str, Any], match: dict[str, Any]
    ) -> OperationResult:
        def build() -> Any:
            request = self._client.table(table).update(values)
            for column, value in match.items():
                request = request.eq(column, value)
            return request

        return await self._execute(build)

    async def delete(self, table: str, match: dict[str, Any]) -> OperationResult:
        def build() -> Any:
            request = self._client.table(table).delete()
            for column, value in match.items():
                request = request.eq(column, value)
            return request

        return await self._execute(build)

    async def rpc(self, name: str, params: dict[str, Any]) -> OperationResult:
        return await self._execute(lambda: self._client.rpc(name, params))


def create_backend(config: Settings) -> SupabaseBackend | None:
    """Construit le backend partagé, ou ``None`` si la configuration manque."""
    if not config.backend_configured:
        logger.warning("[DB] Supabase non configuré: opérations indisponibles")
        return None
    try:
        return SupabaseBackend.from_settings(config)
    except Exception:
        logger.exception("[DB] impossible de créer le client Supabase")
        return None
