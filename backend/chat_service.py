"""AI assistant and the per-connection realtime chat channel."""
import asyncio
import logging

import httpx
from fastapi import WebSocket
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from sqlalchemy.orm import Session

import config
import models
from auth import Actor
from enums import ChatRole, Role
from exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I'm sorry, I couldn't process that."

SYSTEM_INSTRUCTIONS = {
    Role.STUDENT: (
        "You are COLLEVENTO AI for students. Help them find events, explain booking processes, "
        "and answer questions about tickets and certificates."
    ),
    Role.ORGANIZER: (
        "You are COLLEVENTO AI for organizers. Help them with event creation, revenue tracking, "
        "and scanning logistics."
    ),
    Role.ADMIN: (
        "You are COLLEVENTO AI for admins. Help them with analytics, approvals, and system health."
    ),
}
DEFAULT_INSTRUCTION = (
    "You are COLLEVENTO AI, a helpful assistant for a college event platform. "
    "Help students with bookings and organizers with management."
)


class ChatAssistant:
    def __init__(self, client=None, *, model: str = config.GEMINI_MODEL, timeout_seconds: float = config.AI_TIMEOUT_SECONDS):
        self._client = client
        self._model = model
        self._timeout = timeout_seconds

    async def generate(self, message: str, role: Role) -> str:
        if self._client is None:
            raise UpstreamFailure("AI assistant is not configured")
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._model,
                    contents=message,
                    config=types.GenerateContentConfig(
                        system_instruction=SYSTEM_INSTRUCTIONS.get(role, DEFAULT_INSTRUCTION),
                    ),
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise UpstreamFailure(f"AI assistant timed out after {self._timeout}s") from exc
        except genai_errors.APIError as exc:
            raise UpstreamFailure(f"AI assistant error: {exc}") from exc
        except (httpx.HTTPError, OSError) as exc:
            raise UpstreamFailure(f"AI assistant unreachable: {exc}") from exc
        return response.text or FALLBACK_REPLY

    async def reply(self, message: str, role: Role) -> str:
        """Like ``generate`` but never fails: upstream problems become the apology."""
        try:
            return await self.generate(message, role)
        except UpstreamFailure as exc:
            logger.warning("Falling back to apology reply: %s", exc)
            return FALLBACK_REPLY


def build_assistant() -> ChatAssistant:
    if not config.GEMINI_API_KEY:
        logger.info("GEMINI_API_KEY not set; chat replies will use the fallback message")
        return ChatAssistant()
    return ChatAssistant(genai.Client(api_key=config.GEMINI_API_KEY))


def save_message(db: Session, user_id: str, role: ChatRole, message: str) -> models.ChatMessage:
    record = models.ChatMessage(user_id=user_id, role=role.value, message=message)
    db.add(record)
    db.commit()
    return record


async def answer(db: Session, assistant: ChatAssistant, actor: Actor, message: str) -> str:
    save_message(db, actor.user_id, ChatRole.USER, message)
    reply = await assistant.reply(message, actor.role)
    save_message(db, actor.user_id, ChatRole.ASSISTANT, reply)
    return reply


class ChatConnection:
    """One socket's chat session.

    Incoming messages wait in a bounded queue that a single worker drains in
    order, so a client never has more than ``max_pending`` messages in flight.
    """

    def __init__(self, websocket: WebSocket, actor: Actor, db: Session, assistant: ChatAssistant, max_pending: int):
        self.websocket = websocket
        self.actor = actor
        self._db = db
        self._assistant = assistant
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_pending)

    def offer(self, message: str) -> bool:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("Chat queue full for user %s; dropping message", self.actor.user_id)
            return False
        return True

    async def process(self, message: str) -> None:
        reply = await answer(self._db, self._assistant, self.actor, message)
        await self.websocket.send_json({"type": "chat:response", "message": reply})

    async def _report_failure(self) -> None:
        try:
            await self.websocket.send_json({"type": "chat:error", "error": "Could not process message"})
        except Exception:
            logger.warning("Could not deliver chat error to user %s", self.actor.user_id)

    async def run(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self.process(message)
            except Exception:
                # one bad message must not stop the worker
                logger.exception("Chat message for user %s failed", self.actor.user_id)
                self._db.rollback()
                await self._report_failure()


class ConnectionManager:
    def __init__(self):
        self.active_connections: list[ChatConnection] = []

    async def connect(self, websocket: WebSocket, actor: Actor, db: Session, assistant: ChatAssistant, max_pending: int) -> ChatConnection:
        await websocket.accept()
        connection = ChatConnection(websocket, actor, db, assistant, max_pending)
        self.active_connections.append(connection)
        logger.info("Chat connected: user %s", actor.user_id)
        return connection

    def disconnect(self, connection: ChatConnection):
        if connection in self.active_connections:
            self.active_connections.remove(connection)
        logger.info("Chat disconnected: user %s", connection.actor.user_id)
