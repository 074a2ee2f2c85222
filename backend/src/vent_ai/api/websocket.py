"""WebSocket endpoint for real-time companion chat"""

import asyncio
import json

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from vent_ai.api.deps import get_app_settings, get_oracle, get_store
from vent_ai.api.schemas import MessageResponse
from vent_ai.core.config import Settings
from vent_ai.core.errors import StoreWriteError, ValidationError
from vent_ai.core.logging import get_logger
from vent_ai.oracle.base import BaseOracle
from vent_ai.orchestrator import ConversationOrchestrator, Identity
from vent_ai.store.message_store import MessageStore

router = APIRouter()
logger = get_logger(__name__)


class ChatConnection:
    """Pushes one orchestrator's state to its WebSocket.

    Sends are serialized because the subscription task and the send task
    both push events.
    """

    def __init__(self, websocket: WebSocket, orchestrator: ConversationOrchestrator) -> None:
        self.websocket = websocket
        self.orchestrator = orchestrator
        self.client_info = str(websocket.client) if websocket.client else "unknown"
        self._send_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[bool]] = set()

    async def push(self, event: str) -> None:
        """Listener: forward orchestrator changes to the client."""
        if event == "messages":
            await self.send_json(
                {
                    "type": "messages.snapshot",
                    "messages": [
                        MessageResponse.from_stored(message).model_dump(mode="json")
                        for message in self.orchestrator.live_messages
                    ],
                }
            )
        else:
            await self.send_json({"type": "chat.state", **self.orchestrator.state()})

    async def send_json(self, data: dict) -> None:
        async with self._send_lock:
            await self.websocket.send_json(data)

    async def send_error(self, code: str, message: str) -> None:
        await self.send_json({"type": "error", "code": code, "message": message})

    def start_send(self, text: str) -> None:
        """Run a send cycle without blocking the receive loop."""
        task = asyncio.create_task(self.orchestrator.send(text))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def close(self) -> None:
        self.orchestrator.remove_listener(self.push)
        self.orchestrator.close()
        for task in list(self._tasks):
            task.cancel()


async def handle_session_start(connection: ChatConnection, event: dict) -> None:
    """Bind the connection to an authenticated user.

    Identity comes from the external auth layer and is trusted as given.
    """
    user_id = event.get("userId")
    if not isinstance(user_id, str) or not user_id.strip():
        await connection.send_error("VALIDATION_ERROR", "userId is required")
        return

    identity = Identity(
        user_id=user_id,
        display_name=event.get("displayName") or "Anonymous",
        avatar_ref=event.get("photoUrl"),
    )
    logger.info("session_started", client=connection.client_info, user_id=user_id)
    await connection.orchestrator.set_identity(identity, event.get("conversationId"))


async def handle_voice_message(connection: ChatConnection, event: dict) -> None:
    audio_url = event.get("audioUrl")
    duration = event.get("audioDuration")
    if not isinstance(audio_url, str) or not isinstance(duration, int):
        await connection.send_error("VALIDATION_ERROR", "audioUrl and audioDuration are required")
        return
    try:
        await connection.orchestrator.send_voice(audio_url, duration)
    except ValidationError as e:
        await connection.send_error("VALIDATION_ERROR", str(e))


async def handle_clear(connection: ChatConnection) -> None:
    try:
        deleted = await connection.orchestrator.clear_history()
    except StoreWriteError as e:
        logger.error("clear_history_error", client=connection.client_info, error=str(e))
        await connection.send_error("STORE_WRITE_ERROR", "Failed to clear chat")
        return
    await connection.send_json({"type": "chat.cleared", "deleted": deleted})


async def handle_text_message(connection: ChatConnection, data: str) -> None:
    """Handle text (JSON) messages from client."""
    try:
        event = json.loads(data)
    except json.JSONDecodeError:
        logger.warning("invalid_json", client=connection.client_info, data=data[:100])
        return
    if not isinstance(event, dict):
        logger.warning("invalid_event", client=connection.client_info)
        return

    event_type = event.get("type", "unknown")

    if event_type == "session.start":
        await handle_session_start(connection, event)

    elif event_type == "chat.send":
        text = event.get("text")
        if isinstance(text, str):
            connection.start_send(text)

    elif event_type == "chat.voice":
        await handle_voice_message(connection, event)

    elif event_type == "chat.clear":
        await handle_clear(connection)

    elif event_type == "error.dismiss":
        connection.orchestrator.dismiss_error()
        await connection.push("state")

    else:
        logger.debug("unknown_event", client=connection.client_info, event_type=event_type)


@router.websocket("/api/v1/ws/chat")
async def websocket_chat(
    websocket: WebSocket,
    store: MessageStore = Depends(get_store),
    oracle: BaseOracle = Depends(get_oracle),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """WebSocket endpoint for companion chat.

    Each connection drives its own orchestrator. Client events:
    ``session.start``, ``chat.send``, ``chat.voice``, ``chat.clear`` and
    ``error.dismiss``. Server events: ``messages.snapshot``, ``chat.state``,
    ``chat.cleared`` and ``error``.

    Args:
        websocket: The WebSocket connection.
    """
    await websocket.accept()
    orchestrator = ConversationOrchestrator(store, oracle, settings)
    connection = ChatConnection(websocket, orchestrator)
    orchestrator.add_listener(connection.push)
    logger.info("websocket_connected", client=connection.client_info)

    try:
        while True:
            message = await websocket.receive()

            if message["type"] == "websocket.receive":
                if message.get("text") is not None:
                    await handle_text_message(connection, message["text"])
                elif message.get("bytes") is not None:
                    logger.debug("binary_ignored", client=connection.client_info)

            elif message["type"] == "websocket.disconnect":
                break

    except WebSocketDisconnect:
        logger.info("websocket_disconnected", client=connection.client_info)
    finally:
        connection.close()
