"""
Environment-driven configuration for the remote completion endpoint.
"""
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_CHAT_MODEL = "google/gemini-2.5-flash"
DEFAULT_CHAT_TEMPERATURE = 0.4
DEFAULT_CHAT_TIMEOUT_SECONDS = 20.0


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class RemoteChatConfig:
    """Hosted chat-completion proxy settings. Disabled when URL or key is missing."""
    base_url: Optional[str] = None
    anon_key: Optional[str] = None
    model: str = DEFAULT_CHAT_MODEL
    temperature: float = DEFAULT_CHAT_TEMPERATURE
    timeout_seconds: float = DEFAULT_CHAT_TIMEOUT_SECONDS
    service: str = "openrouter"
    action: str = "chat_with_system"

    @property
    def enabled(self) -> bool:
        return bool(self.base_url) and bool(self.anon_key)

    @property
    def endpoint(self) -> str:
        return f"{(self.base_url or '').rstrip('/')}/functions/v1/ai-proxy"

    @classmethod
    def from_env(cls) -> "RemoteChatConfig":
        return cls(
            base_url=(os.environ.get("SUPABASE_URL") or "").strip() or None,
            anon_key=(os.environ.get("SUPABASE_ANON_KEY") or "").strip() or None,
            model=(os.environ.get("CHAT_MODEL") or DEFAULT_CHAT_MODEL).strip(),
            temperature=_float_env("CHAT_TEMPERATURE", DEFAULT_CHAT_TEMPERATURE),
            timeout_seconds=_float_env("CHAT_TIMEOUT_SECONDS", DEFAULT_CHAT_TIMEOUT_SECONDS),
        )
