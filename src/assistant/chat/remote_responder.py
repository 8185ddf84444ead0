"""
Remote responder: asks the hosted chat-completion proxy for an answer.

Every failure (missing configuration, transport error, non-2xx status,
malformed payload, empty content) collapses to None so the caller can fall
back to local matching.
"""
import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError

from src.assistant.chat.knowledge_base import PRICING_TABLE
from src.shared.config import RemoteChatConfig
from src.shared.errors import SUPPORT_EMAIL, format_remote_error

log = logging.getLogger(__name__)

SYSTEM_PROMPT = f"""You are PrimoBoost AI, the support assistant for PrimoBoostAI.in - an AI-powered resume optimization and career platform.

Rules:
- Keep responses under 5 lines, conversational and professional.
- Never use markdown formatting, bold, asterisks, or emojis.
- Answer questions about resume optimization, job listings, interview prep, pricing, and platform features.
- For payment/billing issues, direct users to email {SUPPORT_EMAIL}.

Pricing (50% OFF, one-time purchase):
{PRICING_TABLE}"""


class CompletionMessage(BaseModel):
    content: Optional[str] = None


class CompletionChoice(BaseModel):
    message: CompletionMessage


class CompletionPayload(BaseModel):
    """Subset of the chat-completion response we rely on."""
    choices: list[CompletionChoice]

    def first_content(self) -> Optional[str]:
        if not self.choices:
            return None
        return self.choices[0].message.content or None


class RemoteResponder:
    """Adapter over the ai-proxy edge function."""

    def __init__(
        self,
        config: RemoteChatConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config if config is not None else RemoteChatConfig.from_env()
        self.http_client = http_client

    def build_request_body(self, message: str) -> dict:
        return {
            "service": self.config.service,
            "action": self.config.action,
            "systemPrompt": SYSTEM_PROMPT,
            "userPrompt": message,
            "model": self.config.model,
            "temperature": self.config.temperature,
        }

    async def try_remote(self, message: str) -> Optional[str]:
        """Return the remote answer, or None on any failure."""
        if not self.config.enabled:
            return None

        headers = {
            "Authorization": f"Bearer {self.config.anon_key}",
            "Content-Type": "application/json",
        }
        body = self.build_request_body(message)

        try:
            if self.http_client is not None:
                response = await self.http_client.post(self.config.endpoint, json=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                    response = await client.post(self.config.endpoint, json=body, headers=headers)
            response.raise_for_status()
            payload = CompletionPayload.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            log.warning(format_remote_error(e))
            return None
        except Exception as e:
            log.warning("Unexpected remote completion failure: %s", e)
            return None

        content = payload.first_content()
        if not content:
            log.debug("Remote completion returned empty content")
        return content
