from __future__ import annotations

import asyncio

import pytest

from stockboard.services.backend import BackendError, OperationResult
from stockboard.services.offline_queue import MutationQueue, QueueEvent
from stockboard.services.resilient import (
    ResilientGateway,
    is_missing_column_error,
    is_network_failure,
    with_owner_fallback,
)


def test_without_connectivity_capability_calls_action_directly() -> None:
    queue = MutationQueue(retry_delay=0)
    gateway = ResilientGateway(queue)
    network_failure = OperationResult(error=BackendError("Failed to fetch"))

    async def action() -> OperationResult:
        return network_failure

    result = asyncio.run(gateway.run_resilient(action, "Create item"))

    assert result is network_failure
    assert len(queue) == 0


def test_offline_call_is_queued_without_attempt(connectivity, queue, gateway) -> None:
    connectivity.set_online(False)
    events: list[QueueEvent] = []
    queue.subscribe(events.append)
    calls: list[int] = []

    async def action() -> OperationResult:
        calls.append(1)
        return OperationResult(data=[{"id": 1}])

    result = asyncio.run(gateway.run_resilient(action, "Create item"))

    assert result == OperationResult(data=None, error=None, queued=True)
    assert calls == []
    assert [(event.type, event.description) for event in events] == [("queued", "Create item")]
    assert len(queue) == 1


def test_network_failure_result_is_queued_and_retried(queue, gateway) -> None:
    events: list[QueueEvent] = []
    queue.subscribe(events.append)
    outcomes = [
        OperationResult(error=BackendError("TypeError: Failed to fetch")),
        OperationResult(data=[{"id": 3}]),
    ]

    async def action() -> OperationResult:
        return outcomes.pop(0)

    async def scenario() -> OperationResult:
        result = await gateway.run_resilient(action, "Update category")
        await queue.join()
        return result

    result = asyncio.run(scenario())

    assert result.queued is True
    assert result.error.message == "TypeError: Failed to fetch"
    assert [event.type for event in events] == ["queued", "synced"]
    assert events[-1].result.data == [{"id": 3}]


def test_exception_while_online_propagates(queue, gateway) -> None:
    async def action() -> OperationResult:
        raise ValueError("invalid payload")

    with pytest.raises(ValueError, match="invalid payload"):
        asyncio.run(gateway.run_resilient(action, "Create item"))
    assert len(queue) == 0


def test_exception_after_connectivity_loss_is_queued(connectivity, queue, gateway) -> None:
    async def action() -> OperationResult:
        connectivity.set_online(False)
        raise ConnectionError("socket closed")

    result = asyncio.run(gateway.run_resilient(action, "Stock out"))

    assert result == OperationResult(queued=True)
    assert [mutation.description for mutation in queue.pending()] == ["Stock out"]


def test_permanent_backend_error_is_returned_unchanged(queue, gateway) -> None:
    failure = OperationResult(
        error=BackendError('duplicate key value violates unique constraint "categories_name_key"', code="23505")
    )

    async def action() -> OperationResult:
        return failure

    result = asyncio.run(gateway.run_resilient(action, "Create category"))

    assert result is failure
    assert len(queue) == 0


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("TypeError: Failed to fetch", True),
        ("NetworkError when attempting to fetch resource.", True),
        ("Network error: [Errno 111] Connection refused", True),
        ("fetch failed", True),
        ('duplicate key value violates unique constraint "items_pkey"', False),
        ("permission denied for table items", False),
    ],
)
def test_network_failure_detection(message: str, expected: bool) -> None:
    assert is_network_failure(BackendError(message)) is expected
    assert is_network_failure({"message": message}) is expected


def test_network_failure_detection_ignores_missing_error() -> None:
    assert is_network_failure(None) is False


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (BackendError("column items.user_id does not exist", code="42703"), True),
        (BackendError("Could not find the 'user_id' column of 'items' in the schema cache", code="PGRST204"), True),
        (BackendError("column categories.user_id does not exist"), True),
        (BackendError("column items.owner does not exist", code="42703"), False),
        (BackendError("column items.created_by_user_id does not exist", code="42703"), False),
        (BackendError("Could not find the 'user_ids' column of 'items' in the schema cache", code="PGRST204"), False),
        (BackendError("new row violates row-level security policy for user_id"), False),
        (None, False),
    ],
)
def test_missing_owner_column_detection(error: BackendError | None, expected: bool) -> None:
    assert is_missing_column_error(error, "user_id") is expected


def test_owner_fallback_retries_once_without_scope() -> None:
    calls: list[str] = []

    async def scoped() -> OperationResult:
        calls.append("scoped")
        return OperationResult(error=BackendError("column items.user_id does not exist", code="42703"))

    async def unscoped() -> OperationResult:
        calls.append("unscoped")
        return OperationResult(error=BackendError("column items.user_id does not exist", code="42703"))

    result = asyncio.run(with_owner_fallback(scoped, unscoped, "user_id"))

    assert calls == ["scoped", "unscoped"]
    assert result.error.code == "42703"


def test_owner_fallback_not_triggered_by_other_errors() -> None:
    calls: list[str] = []

    async def scoped() -> OperationResult:
        calls.append("scoped")
        return OperationResult(error=BackendError("permission denied for table items", code="42501"))

    async def unscoped() -> OperationResult:
        calls.append("unscoped")
        return OperationResult(data=[])

    result = asyncio.run(with_owner_fallback(scoped, unscoped, "user_id"))

    assert calls == ["scoped"]
    assert result.error.code == "42501"
