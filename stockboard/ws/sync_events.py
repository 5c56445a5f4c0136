"""WebSocket relayant les notifications de synchronisation."""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from stockboard.core import models
from stockboard.services import runtime

router = APIRouter()


@router.websocket("/sync")
async def sync_events(websocket: WebSocket) -> None:
    loop = asyncio.get_running_loop()
    outbox: asyncio.Queue[models.SyncNotification] = asyncio.Queue()
    # Planifié sur la boucle du WebSocket, quel que soit le contexte d'émission.
    unsubscribe = runtime.notifier.subscribe(
        lambda notification: loop.call_soon_threadsafe(outbox.put_nowait, notification)
    )
    receiver: asyncio.Task[str] | None = None
    try:
        await websocket.accept()
        receiver = asyncio.create_task(websocket.receive_text())
        while True:
            getter = asyncio.create_task(outbox.get())
            done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if getter in done:
                await websocket.send_json(getter.result().model_dump(mode="json"))
            else:
                getter.cancel()
            if receiver in done:
                # Messages entrants ignorés ; lève WebSocketDisconnect à la fermeture.
                receiver.result()
                receiver = asyncio.create_task(websocket.receive_text())
    except WebSocketDisconnect:
        return
    finally:
        unsubscribe()
        if receiver is not None and not receiver.done():
            receiver.cancel()
