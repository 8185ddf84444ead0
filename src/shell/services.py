"""
External collaborators of the shell: auth/session provider, subscription
lookup, user verification and router. Protocols first, then the implementations
the web app uses.
"""
import logging
from typing import Optional, Protocol

import httpx

from src.shared.config import RemoteChatConfig
from src.shell.location import Location
from src.shell.state import AuthSnapshot, Subscription, User

log = logging.getLogger(__name__)


class AuthProvider(Protocol):
    def snapshot(self) -> AuthSnapshot: ...

    def mark_onboarding_prompt_seen(self) -> None: ...

    async def logout(self) -> None: ...


class SubscriptionService(Protocol):
    async def get_subscription_for(self, user_id: str) -> Optional[Subscription]: ...


class Router(Protocol):
    def navigate(self, path: str, replace: bool = False) -> None: ...


class SubscriptionLookupError(Exception):
    """Subscription backend could not be queried."""
    pass


class UserLookupError(Exception):
    """Auth backend could not be queried."""
    pass


class SessionAuthProvider:
    """Auth state mirrored from the browser's auth client."""

    def __init__(self, snapshot: Optional[AuthSnapshot] = None):
        self._snapshot = snapshot or AuthSnapshot()

    def snapshot(self) -> AuthSnapshot:
        return self._snapshot

    def update(self, snapshot: AuthSnapshot) -> None:
        self._snapshot = snapshot

    def mark_onboarding_prompt_seen(self) -> None:
        if self._snapshot.user is not None:
            self._snapshot.user.has_seen_onboarding_prompt = True
            log.info("Onboarding prompt marked seen for user %s", self._snapshot.user.id)

    async def logout(self) -> None:
        self._snapshot = AuthSnapshot()


class SupabaseSubscriptionService:
    """Reads the active subscription row through the backend's REST interface."""

    def __init__(
        self,
        config: Optional[RemoteChatConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        access_token: Optional[str] = None,
    ):
        self.config = config if config is not None else RemoteChatConfig.from_env()
        self.http_client = http_client
        self.access_token = access_token

    async def get_subscription_for(self, user_id: str) -> Optional[Subscription]:
        """
        Return the user's latest active subscription.

        Raises:
            SubscriptionLookupError: On transport or HTTP failure
        """
        if not self.config.enabled:
            return None

        url = f"{(self.config.base_url or '').rstrip('/')}/rest/v1/subscriptions"
        params = {
            "select": "*",
            "user_id": f"eq.{user_id}",
            "status": "eq.active",
            "order": "end_date.desc",
            "limit": "1",
        }
        headers = {
            "apikey": self.config.anon_key or "",
            "Authorization": f"Bearer {self.access_token or self.config.anon_key}",
        }
        try:
            if self.http_client is not None:
                response = await self.http_client.get(url, params=params, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                    response = await client.get(url, params=params, headers=headers)
            response.raise_for_status()
            rows = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SubscriptionLookupError(f"Subscription lookup failed: {e}") from e

        if not rows:
            return None
        return Subscription.from_row(rows[0])


class SupabaseUserService:
    """
    Resolves an access token to the signed-in user through the backend's auth
    interface. Role comes from app_metadata, which only the backend can write.
    """

    def __init__(
        self,
        config: Optional[RemoteChatConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config if config is not None else RemoteChatConfig.from_env()
        self.http_client = http_client

    async def get_user(self, access_token: Optional[str]) -> Optional[User]:
        """
        Return the user the token belongs to, or None for a missing or rejected token.

        Raises:
            UserLookupError: On transport failure or an unexpected HTTP status
        """
        if not self.config.enabled or not access_token:
            return None

        url = f"{(self.config.base_url or '').rstrip('/')}/auth/v1/user"
        headers = {
            "apikey": self.config.anon_key or "",
            "Authorization": f"Bearer {access_token}",
        }
        try:
            if self.http_client is not None:
                response = await self.http_client.get(url, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                    response = await client.get(url, headers=headers)
            if response.status_code in (401, 403):
                log.info("Access token rejected (HTTP %s)", response.status_code)
                return None
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UserLookupError(f"User lookup failed: {e}") from e

        if not isinstance(data, dict) or not data.get("id"):
            return None
        app_metadata = data.get("app_metadata") or {}
        user_metadata = data.get("user_metadata") or {}
        return User(
            id=str(data["id"]),
            name=str(user_metadata.get("name") or user_metadata.get("full_name") or ""),
            email=str(data.get("email") or ""),
            role=str(app_metadata.get("role") or "client"),
        )


class HistoryRouter:
    """Keeps the current location and the navigation history."""

    def __init__(self, initial: str = "/"):
        self.current = Location.from_url(initial)
        self.history: list[str] = [self.current.href]

    def navigate(self, path: str, replace: bool = False) -> None:
        self.current = Location.from_url(path)
        if replace:
            self.history[-1] = self.current.href
        else:
            self.history.append(self.current.href)
