"""
Application state: per-request view of the browser session.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class AppState:
    """Session-scoped state rebuilt for every request."""
    data_root: Path
    shell_id: Optional[str] = None
    chat_session_id: Optional[str] = None
    remote_chat_enabled: bool = False
