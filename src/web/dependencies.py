"""
Dependency injection for FastAPI routes.

Every full page load starts a fresh shell; the page hands its id to shell.js,
which sends it back in the X-Shell-Id header. Only the verified sign-in
survives a reload, kept in the signed session cookie.
"""
import logging
import os
import uuid
from collections import OrderedDict
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

from src.assistant.chat.chat_service import ChatService
from src.assistant.chat.remote_responder import RemoteResponder
from src.assistant.chat.session import DEFAULT_MAX_SESSIONS, ChatSessionStore
from src.shared.app_state import AppState
from src.shared.config import RemoteChatConfig
from src.shell.controller import ShellController
from src.shell.routes import PageRegistry, RouteTable
from src.shell.scheduler import AsyncioScheduler
from src.shell.services import (
    HistoryRouter,
    SessionAuthProvider,
    SupabaseSubscriptionService,
    SupabaseUserService,
)
from src.shell.state import AuthSnapshot, User

log = logging.getLogger(__name__)

_HERE = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=_HERE / "templates")

SHELL_ID_HEADER = "X-Shell-Id"
AUTH_SESSION_KEY = "auth"
DEFAULT_MAX_SHELLS = 500


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


DATA_ROOT = Path(os.environ.get("PRIMO_DATA_ROOT", "./data"))

route_table = RouteTable()
page_registry = PageRegistry()
chat_sessions = ChatSessionStore(_int_env("PRIMO_MAX_CHAT_SESSIONS", DEFAULT_MAX_SESSIONS))


@dataclass
class ShellContext:
    """Everything one page load's shell needs."""
    shell_id: str
    owner: str
    controller: ShellController
    auth: SessionAuthProvider
    subscriptions: SupabaseSubscriptionService
    users: SupabaseUserService
    router: HistoryRouter


class ShellRegistry:
    """Live shells by id, least recently used first. Bounded by max_shells."""

    def __init__(self, max_shells: int = DEFAULT_MAX_SHELLS):
        self.max_shells = max(1, max_shells)
        self._shells: OrderedDict[str, ShellContext] = OrderedDict()

    def add(self, shell: ShellContext) -> None:
        self._shells[shell.shell_id] = shell
        while len(self._shells) > self.max_shells:
            evicted_id, evicted = self._shells.popitem(last=False)
            evicted.controller.dispose()
            log.debug("Evicted shell %s", evicted_id)

    def get(self, shell_id: Optional[str]) -> Optional[ShellContext]:
        shell = self._shells.get(shell_id) if shell_id else None
        if shell is not None:
            self._shells.move_to_end(shell_id)
        return shell

    def clear(self) -> None:
        for shell in self._shells.values():
            shell.controller.dispose()
        self._shells.clear()

    def __len__(self) -> int:
        return len(self._shells)


shells = ShellRegistry(_int_env("PRIMO_MAX_SHELLS", DEFAULT_MAX_SHELLS))


def get_remote_config() -> RemoteChatConfig:
    return RemoteChatConfig.from_env()


def get_state(request: Request) -> AppState:
    """Reconstruct AppState from session."""
    session = request.session
    return AppState(
        data_root=DATA_ROOT,
        shell_id=session.get("shell_id"),
        chat_session_id=session.get("chat_session_id"),
        remote_chat_enabled=get_remote_config().enabled,
    )


def get_chat_service() -> ChatService:
    """Build a ChatService from environment configuration."""
    return ChatService(remote=RemoteResponder(get_remote_config()))


async def read_json_object(request: Request) -> Optional[dict]:
    """Parse the request body; None unless it is a JSON object."""
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


# ── Verified sign-in ──


def _browser_id(request: Request) -> str:
    browser_id = request.session.get("browser_id")
    if not browser_id:
        browser_id = str(uuid.uuid4())
        request.session["browser_id"] = browser_id
    return browser_id


def _stored_auth(request: Request) -> tuple[AuthSnapshot, Optional[str]]:
    stored = request.session.get(AUTH_SESSION_KEY)
    if not stored or not stored.get("user"):
        return AuthSnapshot(), None
    user = User(**stored["user"])
    return AuthSnapshot(is_authenticated=True, user=user), stored.get("access_token")


def remember_auth(request: Request, shell: ShellContext) -> None:
    """Copy the shell's sign-in into the session so the next page load keeps it."""
    snapshot = shell.auth.snapshot()
    if snapshot.is_authenticated and snapshot.user is not None:
        request.session[AUTH_SESSION_KEY] = {
            "user": asdict(snapshot.user),
            "access_token": shell.subscriptions.access_token,
        }
    else:
        request.session.pop(AUTH_SESSION_KEY, None)


# ── Shells ──


def _new_shell(request: Request) -> ShellContext:
    config = get_remote_config()
    snapshot, access_token = _stored_auth(request)
    auth = SessionAuthProvider(snapshot)
    subscriptions = SupabaseSubscriptionService(config, access_token=access_token)
    router = HistoryRouter()
    controller = ShellController(
        auth=auth,
        subscriptions=subscriptions,
        router=router,
        scheduler=AsyncioScheduler(),
    )
    return ShellContext(
        shell_id=str(uuid.uuid4()),
        owner=_browser_id(request),
        controller=controller,
        auth=auth,
        subscriptions=subscriptions,
        users=SupabaseUserService(config),
        router=router,
    )


def start_shell(request: Request) -> ShellContext:
    """Start the shell for a full page load; earlier shells of the browser are left to age out."""
    shell = _new_shell(request)
    shells.add(shell)
    request.session["shell_id"] = shell.shell_id
    return shell


def get_shell(request: Request) -> ShellContext:
    """The shell named by the X-Shell-Id header, else the session's latest, else a new one."""
    owner = _browser_id(request)
    for shell_id in (request.headers.get(SHELL_ID_HEADER), request.session.get("shell_id")):
        shell = shells.get(shell_id)
        if shell is not None and shell.owner == owner:
            return shell
    return start_shell(request)


def reset_shells() -> None:
    shells.clear()


def get_template_context(request: Request, shell: Optional[ShellContext] = None) -> dict:
    """Build common template context with shell state."""
    shell = shell or get_shell(request)
    state = get_state(request)
    snapshot = shell.auth.snapshot()
    return {
        "request": request,
        "is_authenticated": snapshot.is_authenticated,
        "user": snapshot.user,
        "shell_id": shell.shell_id,
        "shell": shell.controller.state.to_dict(),
        "chat_session_id": state.chat_session_id,
        "remote_chat_enabled": state.remote_chat_enabled,
    }
