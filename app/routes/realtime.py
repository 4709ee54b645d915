from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import json
import logging
from app.utils.notification_manager import notification_manager

router = APIRouter()

logger = logging.getLogger(__name__)

@router.websocket("/ws/notifications")
async def websocket_notifications_endpoint(websocket: WebSocket):
    """Receive quiz_completed, rank_changed and new_test_created events"""
    client_ip = websocket.client.host if websocket.client else None

    receiver_id = await notification_manager.connect(websocket, client_ip)
    if not receiver_id:
        return

    try:
        while True:
            # Receivers only listen; anything they send is checked and ignored
            data = await websocket.receive_text()
            try:
                json.loads(data)
            except json.JSONDecodeError:
                logger.error(f"Invalid JSON from receiver {receiver_id}")
                await notification_manager.send_error(websocket, "Invalid message format")

    except WebSocketDisconnect:
        logger.info(f"Receiver {receiver_id} closed the connection")
        await notification_manager.disconnect(receiver_id)
    except Exception as e:
        logger.error(f"Unexpected error in notification websocket: {e}")
        await notification_manager.disconnect(receiver_id)

