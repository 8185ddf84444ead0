"""
Chat response orchestration: remote answer first, local intent match second,
fixed apology last.
"""
import logging
from typing import Optional

from src.assistant.chat.intent_matcher import IntentMatcher
from src.assistant.chat.remote_responder import RemoteResponder
from src.shared.errors import AppErrors

log = logging.getLogger(__name__)

FALLBACK_RESPONSE = AppErrors.CHAT_FALLBACK


class ChatService:
    """
    Composes the intent matcher and the remote responder.

    Flow:
    1. Compute the local intent match (pure, cheap)
    2. Await the remote responder (None on any failure)
    3. Remote answer wins; else the local match; else FALLBACK_RESPONSE
    """

    def __init__(
        self,
        matcher: Optional[IntentMatcher] = None,
        remote: Optional[RemoteResponder] = None,
    ):
        self.matcher = matcher or IntentMatcher()
        self.remote = remote or RemoteResponder()

    async def answer(self, message: str) -> "ChatResult":
        local_match = self.matcher.match(message)
        remote_answer = await self.remote.try_remote(message)

        if remote_answer:
            return ChatResult(answer=remote_answer, source="remote")
        if local_match:
            return ChatResult(answer=local_match, source="local")

        log.info("No remote or local answer; using fallback")
        return ChatResult(answer=FALLBACK_RESPONSE, source="fallback")

    async def respond(self, message: str) -> str:
        """Always returns a non-empty answer."""
        result = await self.answer(message)
        return result.answer


class ChatResult:
    """Answer text plus where it came from."""

    def __init__(self, answer: str, source: str):
        self.answer = answer
        self.source = source  # remote | local | fallback


async def get_chat_response(message: str) -> str:
    """Answer with a service built from environment configuration."""
    return await ChatService().respond(message)
