"""
WebSocket relay endpoint.

Each client holds one WebSocket. Messages in both directions are JSON
objects {"event": <name>, "data": <payload>}.
"""

import json
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from sealedarena.config import settings
from sealedarena.dependencies import get_hub
from sealedarena.services.broadcaster import ChannelClosedError
from sealedarena.services.relay_session import SessionHub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])


class WebSocketChannel:
    """Channel backed by a Starlette WebSocket."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.identity: str | None = None

    async def send(self, event: str, data: Any) -> None:
        try:
            await self.websocket.send_json({"event": event, "data": data})
        except (WebSocketDisconnect, RuntimeError) as e:
            raise ChannelClosedError(str(e)) from e


@router.websocket("/ws")
async def relay(
    websocket: WebSocket,
    hub: Annotated[SessionHub, Depends(get_hub)],
    session: Annotated[str | None, Query()] = None,
) -> None:
    """
    Relay events between the two participants of a session.

    Connect with ?session=<id> to join a specific table; the default
    session is used otherwise.
    """
    await websocket.accept()
    relay_session = hub.get(session or settings.default_session_id)
    channel = WebSocketChannel(websocket)
    relay_session.connect(channel)

    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except json.JSONDecodeError:
                logger.warning("Dropping non-JSON message")
                continue
            await relay_session.handle(channel, message)
    except WebSocketDisconnect:
        logger.info("Client left session %s", relay_session.session_id)
    finally:
        await relay_session.disconnect(channel)
