"""
WebSocket Handler for the Slide Deck Generator

Streams deck generation progress and assistant chat over one connection.

Client messages:
    "ping" or {"type": "ping"}
    {"type": "generate_deck", "payload": {"product_name": "...", "audience": "..."}}
    {"type": "chat_message", "payload": {"content": "..."}}
    {"type": "reset_chat"}
"""

import asyncio
import json
from typing import Any, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from starlette.websockets import WebSocketState

from src.core.exceptions import EmptyDeckError
from src.models.deck import DeckRequest
from src.models.websocket_messages import (
    BaseMessage,
    StatusLevel,
    create_chat_message,
    create_deck_update,
    create_error_message,
    create_status_update,
    format_timestamp,
    utc_now,
)
from src.services.chat_assistant import ChatAssistant
from src.services.container import DeckServices
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

PLANNING_MESSAGE = "Planning your presentation structure..."

# Shown while slide N (0 = cover) is being produced
PROGRESS_MESSAGES = [
    "Designing the title and hero slide...",
    "Highlighting key differentiators...",
    "Visualizing standout product features...",
    "Illustrating the primary use case...",
    "Telling the customer success story...",
    "Wrapping up with a memorable summary...",
]

GENERATION_FAILED_MESSAGE = "An error occurred while generating the slides. Please try again."
MISSING_PRODUCT_MESSAGE = "Please provide a company or product name."


def progress_message(completed: int, total: int) -> str:
    if completed >= total:
        return "Finishing up your deck..."
    if completed < len(PROGRESS_MESSAGES):
        return PROGRESS_MESSAGES[completed]
    return f"Generating slide {completed + 1}..."


class ConnectionState:
    """Per-connection state: own assistant, one generation at a time."""

    def __init__(self, session_id: str, assistant: ChatAssistant):
        self.session_id = session_id
        self.assistant = assistant
        self.generation: Optional[asyncio.Task] = None

    @property
    def is_generating(self) -> bool:
        return self.generation is not None and not self.generation.done()


class WebSocketHandler:
    """
    WebSocket handler sharing one orchestrator and cache across connections.
    """

    def __init__(self, services: DeckServices):
        self.services = services
        self.active_connections: Dict[str, WebSocket] = {}
        self.connection_lock = asyncio.Lock()
        logger.info("WebSocketHandler initialized")

    async def handle_connection(self, websocket: WebSocket, session_id: str):
        """
        Handle a WebSocket connection until the client disconnects.

        Args:
            websocket: FastAPI WebSocket
            session_id: Session identifier
        """
        async with self.connection_lock:
            existing = self.active_connections.get(session_id)
            if existing and existing.client_state == WebSocketState.CONNECTED:
                logger.warning(f"Duplicate connection for session {session_id}, closing old")
                try:
                    await existing.close(code=4000, reason="New connection opened")
                except RuntimeError as e:
                    logger.warning(f"Error closing old connection: {e}")
            self.active_connections[session_id] = websocket

        await websocket.accept()
        logger.info(f"Connected: session={session_id}")

        state = ConnectionState(session_id, self.services.new_assistant())
        try:
            while True:
                raw_data = await websocket.receive_text()

                if raw_data.strip() == "ping":
                    await websocket.send_text("pong")
                    continue

                try:
                    data = json.loads(raw_data)
                except json.JSONDecodeError:
                    await self._send(websocket, create_error_message(
                        session_id, "invalid_json", "Messages must be JSON objects."
                    ))
                    continue

                await self._process_message(websocket, state, data)

        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected: session={session_id}")

        finally:
            if state.is_generating:
                await asyncio.wait([state.generation])
            async with self.connection_lock:
                if self.active_connections.get(session_id) == websocket:
                    del self.active_connections[session_id]

    async def _process_message(self, websocket: WebSocket, state: ConnectionState, data: Any):
        if not isinstance(data, dict):
            await self._send(websocket, create_error_message(
                state.session_id, "invalid_message", "Messages must be JSON objects."
            ))
            return

        message_type = data.get('type', 'chat_message')
        payload = data.get('payload') or {}
        if not isinstance(payload, dict):
            await self._send(websocket, create_error_message(
                state.session_id, "invalid_message", "Message payload must be a JSON object."
            ))
            return

        if message_type == 'ping':
            await websocket.send_json({'type': 'pong', 'timestamp': format_timestamp(utc_now())})

        elif message_type == 'generate_deck':
            await self._start_generation(websocket, state, payload)

        elif message_type == 'chat_message':
            content = payload.get('content', payload.get('message', ''))
            if not isinstance(content, str):
                await self._send(websocket, create_error_message(
                    state.session_id, "invalid_message", "Chat content must be a string."
                ))
                return
            await self._handle_chat(websocket, state, content)

        elif message_type == 'reset_chat':
            state.assistant.reset()
            await self._send(websocket, create_status_update(
                state.session_id, StatusLevel.IDLE, "Chat cleared."
            ))

        else:
            logger.warning(f"Unknown message type: {message_type}")
            await self._send(websocket, create_error_message(
                state.session_id, "unknown_type", f"Unknown message type: {message_type}"
            ))

    async def _start_generation(self, websocket: WebSocket, state: ConnectionState, payload: Dict[str, Any]):
        if state.is_generating:
            await self._send(websocket, create_error_message(
                state.session_id, "busy", "A deck is already being generated. Please wait for it to finish."
            ))
            return

        try:
            request = DeckRequest(
                product_name=payload.get('product_name') or '',
                audience=payload.get('audience') or ''
            )
        except ValidationError:
            await self._send(websocket, create_error_message(
                state.session_id, "invalid_request", MISSING_PRODUCT_MESSAGE
            ))
            return

        state.generation = asyncio.create_task(self._run_generation(websocket, state, request))

    async def _run_generation(self, websocket: WebSocket, state: ConnectionState, request: DeckRequest):
        session_id = state.session_id

        async def on_progress(completed: int, total: int):
            await self._send(websocket, create_status_update(
                session_id, StatusLevel.GENERATING, progress_message(completed, total),
                completed=completed, total=total
            ))

        await self._send(websocket, create_status_update(session_id, StatusLevel.PLANNING, PLANNING_MESSAGE))
        try:
            outcome = await self.services.orchestrator.generate(request, on_progress=on_progress)
        except EmptyDeckError as e:
            logger.error(f"Deck generation failed for '{request.product_name}': {e}")
            await self._send(websocket, create_error_message(session_id, "empty_deck", GENERATION_FAILED_MESSAGE))
            await self._send(websocket, create_status_update(session_id, StatusLevel.ERROR, str(e)))
            return

        await self._send(websocket, create_deck_update(session_id, request.product_name, request.audience, outcome))
        await self._send(websocket, create_status_update(
            session_id, StatusLevel.COMPLETE, "Your presentation is ready!",
            completed=len(outcome.deck), total=outcome.total_requested
        ))

    async def _handle_chat(self, websocket: WebSocket, state: ConnectionState, message: str):
        reply = await state.assistant.send(message)
        if reply is None:
            logger.warning("Received empty/whitespace chat input, ignoring")
            return
        await self._send(websocket, create_chat_message(state.session_id, reply))

    async def _send(self, websocket: WebSocket, message: BaseMessage):
        if websocket.client_state != WebSocketState.CONNECTED:
            logger.debug(f"Dropping {message.type} for closed connection {message.session_id}")
            return
        try:
            await websocket.send_json(message.model_dump(mode='json'))
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"Send failed for {message.session_id}: {e}")
