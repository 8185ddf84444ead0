"""
In-memory chat sessions for the floating assistant panel.

A session starts with the welcome message and is reset to it whenever the
panel is closed. Replies are fenced by a generation counter: closing the panel
bumps the generation, so a reply that arrives for a request started before the
close is dropped instead of being appended to the fresh list.
"""
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Optional

from src.assistant.chat.chat_service import ChatService
from src.shared.errors import AppErrors

log = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 500

WELCOME_TEXT = (
    "Hi there! I'm the PrimoBoost AI Assistant. I can help you with resume optimization, "
    "ATS scores, job listings, interview prep, pricing, and more.\n\n"
    "How can I help you today?"
)

FAQ_CHIPS = (
    "What is PrimoBoost AI?",
    "How do I optimize my resume?",
    "Tell me about pricing",
    "Job listings",
    "Interview prep",
    "How to contact support?",
)


@dataclass
class ChatMessage:
    """A single message in the panel."""
    role: str  # user | assistant
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }


def welcome_message() -> ChatMessage:
    return ChatMessage(role="assistant", content=WELCOME_TEXT)


class ChatSession:
    """Append-only message list owned by one chat panel."""

    def __init__(self, chat_service: ChatService, session_id: Optional[str] = None):
        self.session_id = session_id or str(uuid.uuid4())
        self.chat_service = chat_service
        self.messages: list[ChatMessage] = [welcome_message()]
        self.is_open = False
        self.loading = False
        self.generation = 0

    @property
    def show_faq_chips(self) -> bool:
        return len(self.messages) <= 1

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        """Close the panel and reset the conversation."""
        self.messages = [welcome_message()]
        self.is_open = False
        self.loading = False
        self.generation += 1

    def toggle(self) -> None:
        if self.is_open:
            self.close()
        else:
            self.open()

    async def send(self, text: str) -> Optional[ChatMessage]:
        """
        Send a user message and append the assistant reply.

        Returns the appended reply, or None when the message was ignored
        (empty, another request in flight) or the reply was fenced out.
        """
        trimmed = text.strip()
        if not trimmed or self.loading:
            return None

        self.messages.append(ChatMessage(role="user", content=trimmed))
        self.loading = True
        started_generation = self.generation

        try:
            try:
                reply_text = await self.chat_service.respond(trimmed)
            except Exception:
                log.exception("Chat response failed")
                reply_text = AppErrors.CHAT_UNAVAILABLE

            if started_generation != self.generation:
                log.info(
                    "Dropping reply for session %s: panel was reset while waiting",
                    self.session_id,
                )
                return None

            reply = ChatMessage(role="assistant", content=reply_text)
            self.messages.append(reply)
            return reply
        finally:
            if started_generation == self.generation:
                self.loading = False

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "is_open": self.is_open,
            "loading": self.loading,
            "show_faq_chips": self.show_faq_chips,
            "messages": [m.to_dict() for m in self.messages],
        }


class ChatSessionStore:
    """
    Process-local registry of chat sessions. Nothing is persisted.

    Holds at most max_sessions; creating one past the limit drops the session
    used least recently.
    """

    def __init__(self, max_sessions: int = DEFAULT_MAX_SESSIONS):
        self.max_sessions = max(1, max_sessions)
        self._sessions: OrderedDict[str, ChatSession] = OrderedDict()

    def create(self, chat_service: ChatService) -> ChatSession:
        session = ChatSession(chat_service)
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            log.debug("Evicted chat session %s", evicted_id)
        return session

    def get(self, session_id: str) -> Optional[ChatSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
