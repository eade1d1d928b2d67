import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from .hub import NotificationHub, get_notification_hub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


@router.websocket("/ws/notifications")
async def notifications_endpoint(
    websocket: WebSocket,
    hub: NotificationHub = Depends(get_notification_hub),
) -> None:
    """Push channel for bulk_update_progress / bulk_update_complete events. Incoming text is ignored."""
    await hub.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        hub.disconnect(websocket)
    except Exception as e:
        logger.error("WebSocket error: %s", e)
        hub.disconnect(websocket)
