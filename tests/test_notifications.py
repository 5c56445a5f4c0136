from __future__ import annotations

import asyncio

from stockboard.core import models
from stockboard.services.backend import BackendError, OperationResult
from stockboard.services.notifications import SyncNotifier, build_notification
from stockboard.services.offline_queue import MutationQueue, QueueEvent


def test_build_notification_for_each_event_type() -> None:
    queued = build_notification(QueueEvent("queued", "Create item", "m1"))
    synced = build_notification(QueueEvent("synced", "Create item", "m1", OperationResult(data=[])))
    failed = build_notification(QueueEvent("sync-error", "Stock out", "m2"))

    assert (queued.title, queued.variant, queued.duration) == ("Action queued", "warning", 5000)
    assert queued.description == "Create item will sync once you are back online"
    assert (synced.title, synced.variant, synced.duration) == ("Action synced", "success", 4200)
    assert synced.description == "Create item successfully completed"
    assert (failed.title, failed.variant, failed.duration) == ("Sync failed", "error", 6000)
    assert failed.description == "Stock out"


def test_notifier_tracks_queue_lifecycle(connectivity, queue) -> None:
    notifier = SyncNotifier(queue)
    pushed: list[models.SyncNotification] = []
    notifier.subscribe(pushed.append)
    connectivity.set_online(False)

    async def failing() -> OperationResult:
        raise BackendError("Failed to fetch")

    async def scenario() -> None:
        queue.enqueue("Delete item", failing, max_attempts=2)
        connectivity.set_online(True)
        await queue.join()

    asyncio.run(scenario())

    assert [notification.title for notification in notifier.recent()] == ["Action queued", "Sync failed"]
    assert pushed == notifier.recent()


def test_notifier_history_is_bounded() -> None:
    queue = MutationQueue(retry_delay=0)
    notifier = SyncNotifier(queue, history_size=2)

    for index in range(3):
        notifier.handle_event(QueueEvent("queued", f"write {index}", str(index)))

    assert [n.description for n in notifier.recent()] == [
        "write 1 will sync once you are back online",
        "write 2 will sync once you are back online",
    ]


def test_closed_notifier_stops_listening(connectivity, queue) -> None:
    connectivity.set_online(False)
    notifier = SyncNotifier(queue)
    notifier.close()
    notifier.close()

    async def action() -> OperationResult:
        return OperationResult(data=None)

    queue.enqueue("Create company", action)

    assert notifier.recent() == []
