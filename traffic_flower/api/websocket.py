"""WebSocket endpoint for live intersection traffic updates."""

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from traffic_flower.exceptions import AuthError
from traffic_flower.services.auth import verify_token
from traffic_flower.services.realtime import RealtimeService, intersection_channel

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ws", tags=["websocket"])


@router.websocket("/intersections/{intersection_id}")
async def websocket_intersection_updates(
    websocket: WebSocket,
    intersection_id: int,
    token: str = Query(...),
) -> None:
    """WebSocket endpoint for live intersection traffic.

    Authentication via token query parameter (WebSocket doesn't support headers).
    Forwards messages from the intersection's Redis channel. Updates are
    best-effort telemetry, never a source of stored facts.
    """
    try:
        user_id = verify_token(token)
    except AuthError:
        await websocket.close(code=4001, reason="Invalid token")
        return

    realtime_service = RealtimeService()

    try:
        await websocket.accept()
        logger.info(f"WebSocket connected: user={user_id}, intersection={intersection_id}")

        async def handle_messages() -> None:
            """Receive messages from Redis and forward to WebSocket."""
            async for message in realtime_service.subscribe(intersection_channel(intersection_id)):
                try:
                    await websocket.send_json(message)
                except WebSocketDisconnect:
                    break
                except Exception as e:
                    logger.error(f"Error sending WebSocket message: {e}")
                    break

        async def handle_ping() -> None:
            """Send periodic pings to keep connection alive."""
            while True:
                try:
                    await asyncio.sleep(30)
                    await websocket.send_json({"type": "ping"})
                except Exception:
                    break

        async def handle_client() -> None:
            """Handle incoming messages from client (pong responses)."""
            while True:
                try:
                    data = await websocket.receive_json()
                    if data.get("type") == "pong":
                        continue  # Keepalive acknowledgment
                except WebSocketDisconnect:
                    break
                except Exception:
                    break

        # Run all handlers concurrently
        await asyncio.gather(
            handle_messages(),
            handle_ping(),
            handle_client(),
            return_exceptions=True,
        )

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: user={user_id}, intersection={intersection_id}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        await realtime_service.cleanup()
