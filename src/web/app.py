"""
FastAPI application for PrimoBoost AI.
"""
import logging
import os
import secrets
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from src.shared.config import RemoteChatConfig
from src.shared.logging_config import configure_logging

_HERE = Path(__file__).resolve().parent
_DATA_ROOT = Path(os.environ.get("PRIMO_DATA_ROOT", "./data"))

log = logging.getLogger(__name__)


def _get_session_secret() -> str:
    """Get or generate a persistent session secret key."""
    env_key = os.environ.get("SESSION_SECRET")
    if env_key:
        return env_key
    _DATA_ROOT.mkdir(parents=True, exist_ok=True)
    key_file = _DATA_ROOT / ".session_key"
    if key_file.exists():
        return key_file.read_text().strip()
    key = secrets.token_hex(32)
    key_file.write_text(key)
    return key


def _log_remote_status():
    """Report on startup whether chat answers can come from the remote endpoint."""
    if RemoteChatConfig.from_env().enabled:
        log.info("Remote chat completion configured")
    else:
        log.warning("SUPABASE_URL / SUPABASE_ANON_KEY missing. Chat answers come from the local knowledge base.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    _log_remote_status()
    yield


app = FastAPI(title="PrimoBoost AI", version="0.3.0", lifespan=lifespan)
app.add_middleware(SessionMiddleware, secret_key=_get_session_secret())
app.mount("/static", StaticFiles(directory=_HERE / "static"), name="static")

# Import and include routers; pages holds the catch-all and goes last
from src.web.routers import chat, shell, pages  # noqa: E402

app.include_router(chat.router)
app.include_router(shell.router)
app.include_router(pages.router)


def main():
    configure_logging()
    uvicorn.run(
        "src.web.app:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "8000")),
        reload=False,
    )


if __name__ == "__main__":
    main()
