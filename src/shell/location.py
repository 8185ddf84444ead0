"""
URL location handling and password-recovery link interception.

Recovery links arrive as ?type=recovery&access_token=... or
#access_token=...&type=recovery. The fragment carries the token downstream, so
a redirect keeps it byte-for-byte.
"""
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl, urlsplit

ROOT_PATH = "/"
RESET_PASSWORD_PATH = "/reset-password"


@dataclass(frozen=True)
class Location:
    """pathname / search / hash, shaped like window.location."""
    pathname: str = "/"
    search: str = ""
    hash: str = ""

    @classmethod
    def from_url(cls, url: str) -> "Location":
        parts = urlsplit(url)
        return cls(
            pathname=parts.path or "/",
            search=f"?{parts.query}" if parts.query else "",
            hash=f"#{parts.fragment}" if parts.fragment else "",
        )

    @property
    def href(self) -> str:
        return f"{self.pathname}{self.search}{self.hash}"

    def query_params(self) -> dict[str, str]:
        return _first_values(self.search.removeprefix("?"))

    def hash_params(self) -> dict[str, str]:
        return _first_values(self.hash.removeprefix("#"))


def _first_values(raw: str) -> dict[str, str]:
    params: dict[str, str] = {}
    for key, value in parse_qsl(raw, keep_blank_values=True):
        params.setdefault(key, value)
    return params


def is_recovery_link(location: Location) -> bool:
    query = location.query_params()
    fragment = location.hash_params()
    is_recovery = query.get("type") == "recovery" or fragment.get("type") == "recovery"
    has_token = bool(query.get("access_token")) or bool(fragment.get("access_token"))
    return is_recovery and has_token


def recovery_redirect(location: Location) -> Optional[str]:
    """Target for a recovery link, or None when no redirect applies."""
    if not is_recovery_link(location):
        return None
    if location.pathname == RESET_PASSWORD_PATH:
        return None
    return f"{RESET_PASSWORD_PATH}{location.hash}"
