from __future__ import annotations

import itertools
import sys
from collections import defaultdict, deque
from pathlib import Path
from typing import Any

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from stockboard.services.backend import BackendError, OperationResult, SelectQuery
from stockboard.services.connectivity import ConnectivityMonitor
from stockboard.services.offline_queue import MutationQueue
from stockboard.services.operations import InventoryOperations
from stockboard.services.resilient import ResilientGateway


def missing_column_error(table: str, column: str) -> BackendError:
    return BackendError(f"column {table}.{column} does not exist", code="42703")


class FakeBackend:
    """Backend en mémoire enregistrant chaque appel.

    ``owner_column_exists=False`` simule un schéma sans colonne de propriété :
    toute requête qui la mentionne échoue avec une erreur ``42703``.
    ``scripted`` permet d'imposer les prochains résultats (erreurs réseau...).
    """

    def __init__(self, *, owner_column_exists: bool = True, owner_column: str = "user_id") -> None:
        self.owner_column_exists = owner_column_exists
        self.owner_column = owner_column
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.calls: list[tuple[str, str, Any]] = []
        self.scripted: deque[OperationResult | Exception] = deque()
        self._ids = itertools.count(1)

    def _scripted(self) -> OperationResult | None:
        if not self.scripted:
            return None
        outcome = self.scripted.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def _rejects(self, table: str, columns: Any) -> OperationResult | None:
        if not self.owner_column_exists and self.owner_column in columns:
            return OperationResult(error=missing_column_error(table, self.owner_column))
        return None

    @staticmethod
    def _matches(row: dict[str, Any], match: dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in match.items())

    async def select(self, table: str, query: SelectQuery) -> OperationResult:
        self.calls.append(("select", table, query))
        scripted = self._scripted()
        if scripted is not None:
            return scripted
        rejected = self._rejects(table, query.eq)
        if rejected is not None:
            return rejected
        rows = [dict(row) for row in self.tables[table] if self._matches(row, query.eq)]
        return OperationResult(data=rows)

    async def insert(self, table: str, rows: list[dict[str, Any]]) -> OperationResult:
        self.calls.append(("insert", table, rows))
        scripted = self._scripted()
        if scripted is not None:
            return scripted
        for row in rows:
            rejected = self._rejects(table, row)
            if rejected is not None:
                return rejected
        stored = [{"id": next(self._ids), **row} for row in rows]
        self.tables[table].extend(stored)
        return OperationResult(data=stored)

    async def update(self, table: str, values: dict[str, Any], match: dict[str, Any]) -> OperationResult:
        self.calls.append(("update", table, (values, match)))
        scripted = self._scripted()
        if scripted is not None:
            return scripted
        rejected = self._rejects(table, match)
        if rejected is not None:
            return rejected
        updated = []
        for row in self.tables[table]:
            if self._matches(row, match):
                row.update(values)
                updated.append(dict(row))
        return OperationResult(data=updated)

    async def delete(self, table: str, match: dict[str, Any]) -> OperationResult:
        self.calls.append(("delete", table, match))
        scripted = self._scripted()
        if scripted is not None:
            return scripted
        rejected = self._rejects(table, match)
        if rejected is not None:
            return rejected
        kept = [row for row in self.tables[table] if not self._matches(row, match)]
        removed = len(self.tables[table]) - len(kept)
        self.tables[table] = kept
        return OperationResult(data={"deleted": removed})

    async def rpc(self, name: str, params: dict[str, Any]) -> OperationResult:
        self.calls.append(("rpc", name, params))
        scripted = self._scripted()
        if scripted is not None:
            return scripted
        if not self.owner_column_exists and "p_user" in params:
            signature = ", ".join(sorted(params))
            return OperationResult(
                error=BackendError(
                    f"Could not find the function public.{name}({signature}) in the schema cache",
                    code="PGRST202",
                )
            )
        return OperationResult(data={"procedure": name, **params})


@pytest.fixture
def connectivity() -> ConnectivityMonitor:
    return ConnectivityMonitor(online=True)


@pytest.fixture
def queue(connectivity: ConnectivityMonitor) -> MutationQueue:
    mutation_queue = MutationQueue(connectivity, retry_delay=0)
    yield mutation_queue
    mutation_queue.close()


@pytest.fixture
def gateway(queue: MutationQueue) -> ResilientGateway:
    return ResilientGateway(queue)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def ops(backend: FakeBackend, gateway: ResilientGateway) -> InventoryOperations:
    return InventoryOperations(backend, gateway, user_id="user-1")
