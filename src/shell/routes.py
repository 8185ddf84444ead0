"""
Declarative route table, lazy page registry and admin guard.

Pages are external collaborators: the shell only needs the pattern -> page
mapping, a way to load a page module on first navigation, and the admin check.
"""
import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from src.shared.errors import SUPPORT_EMAIL
from src.shell.state import User

log = logging.getLogger(__name__)

ADMIN_HOME = "/admin/jobs"


@dataclass(frozen=True)
class RouteSpec:
    pattern: str
    page: str
    admin_only: bool = False
    redirect_to: Optional[str] = None

    @property
    def is_dynamic(self) -> bool:
        return ":" in self.pattern


ROUTES: tuple[RouteSpec, ...] = (
    RouteSpec("/", "home"),
    RouteSpec("/optimizer", "resume_optimizer"),
    RouteSpec("/score-checker", "resume_score_checker"),
    RouteSpec("/ats-16-parameter", "ats_score_checker_16"),
    RouteSpec("/ats-16-parameter-advanced", "ats_score_checker_16_advanced"),
    RouteSpec("/guided-builder", "guided_resume_builder"),
    RouteSpec("/linkedin-generator", "linkedin_message_generator"),
    RouteSpec("/portfolio-builder", "portfolio_builder"),
    RouteSpec("/mock-interview", "mock_interview"),
    RouteSpec("/resume-interview", "resume_based_interview"),
    RouteSpec("/realistic-interview", "unified_interview"),
    RouteSpec("/smart-interview", "smart_interview"),
    RouteSpec("/about", "about_us"),
    RouteSpec("/contact", "contact"),
    RouteSpec("/tutorials", "tutorials"),
    RouteSpec("/all-tools", "tools_navigation"),
    RouteSpec("/pricing", "subscription_plans"),
    RouteSpec("/careers", "careers"),
    RouteSpec("/careers/:jobId", "job_details"),
    RouteSpec("/jobs", "jobs"),
    RouteSpec("/jobs/:jobId", "job_details"),
    RouteSpec("/jobs/:jobId/apply", "job_application"),
    RouteSpec("/jobs/:jobId/apply-form", "job_application_form"),
    RouteSpec("/jobs/applications", "my_applications"),
    RouteSpec("/webinar-details/:registrationId", "webinar_details"),
    RouteSpec("/my-webinars", "my_webinars"),
    RouteSpec("/gaming", "gaming_aptitude"),
    RouteSpec("/gaming/:companyId", "company_game"),
    RouteSpec("/pathfinder", "accenture_path_finder"),
    RouteSpec("/cognitive-pathfinder", "cognitive_path_finder"),
    RouteSpec("/key-finder", "key_finder"),
    RouteSpec("/bubble-selection", "bubble_selection"),
    RouteSpec("/spatial-reasoning", "spatial_reasoning"),
    RouteSpec("/profile", "profile"),
    RouteSpec("/reset-password", "reset_password"),
    RouteSpec("/test-email-digest", "test_email_digest"),
    RouteSpec("/session", "session_landing"),
    RouteSpec("/session/book", "session_booking"),
    RouteSpec("/my-bookings", "my_bookings"),
    RouteSpec("/blog", "blog"),
    RouteSpec("/blog/:slug", "blog_post"),
    RouteSpec("/webinars", "webinars"),
    RouteSpec("/webinar/:slug", "webinar_landing"),
    RouteSpec("/admin/sessions", "admin_session_schedule", admin_only=True),
    RouteSpec("/admin/jobs", "admin_jobs", admin_only=True),
    RouteSpec("/admin/jobs/new", "admin_job_upload", admin_only=True),
    RouteSpec("/admin/jobs/:jobId/edit", "admin_job_edit", admin_only=True),
    RouteSpec("/admin/users", "admin_users", admin_only=True),
    RouteSpec("/admin/blog", "admin_blog_posts", admin_only=True),
    RouteSpec("/admin/blog/new", "admin_blog_post_form", admin_only=True),
    RouteSpec("/admin/blog/edit/:id", "admin_blog_post_form", admin_only=True),
    RouteSpec("/admin/blog/categories", "admin_blog_categories", admin_only=True),
    RouteSpec("/admin/email-testing", "admin_email_testing", admin_only=True),
    RouteSpec("/admin/webinars", "admin_webinars", admin_only=True),
    RouteSpec("/admin/dashboard", "admin_dashboard", admin_only=True),
    RouteSpec("/admin", "admin_index", admin_only=True, redirect_to=ADMIN_HOME),
)


def _compile(pattern: str) -> re.Pattern:
    parts = []
    for segment in pattern.strip("/").split("/"):
        if segment.startswith(":"):
            parts.append(f"(?P<{segment[1:]}>[^/]+)")
        else:
            parts.append(re.escape(segment))
    return re.compile("^/" + "/".join(parts) + "/?$") if parts != [""] else re.compile("^/$")


@dataclass(frozen=True)
class RouteMatch:
    route: RouteSpec
    params: dict[str, str] = field(default_factory=dict)


class RouteTable:
    """Resolves paths; static patterns win over dynamic ones."""

    def __init__(self, routes: tuple[RouteSpec, ...] = ROUTES):
        self.routes = routes
        self._compiled = [(route, _compile(route.pattern)) for route in routes]

    def resolve(self, path: str) -> Optional[RouteMatch]:
        for want_dynamic in (False, True):
            for route, regex in self._compiled:
                if route.is_dynamic != want_dynamic:
                    continue
                m = regex.match(path)
                if m:
                    return RouteMatch(route=route, params=m.groupdict())
        return None

    def patterns(self) -> list[str]:
        return [r.pattern for r in self.routes]


def is_admin(user: Optional[User]) -> bool:
    if user is None:
        return False
    return user.role == "admin" or user.email == SUPPORT_EMAIL


@dataclass(frozen=True)
class RouteDecision:
    allowed: bool
    redirect_to: Optional[str] = None


def guard(route: RouteSpec, user: Optional[User]) -> RouteDecision:
    """Admin-only routes send everyone else home."""
    if route.admin_only and not is_admin(user):
        return RouteDecision(allowed=False, redirect_to="/")
    if route.redirect_to:
        return RouteDecision(allowed=True, redirect_to=route.redirect_to)
    return RouteDecision(allowed=True)


# ── Lazy page registry ──


@dataclass(frozen=True)
class PageModule:
    name: str
    title: str
    template: str = "page.html"


PageFactory = Callable[[], Awaitable[PageModule]]


def _title_for(name: str) -> str:
    return name.replace("_", " ").title()


def _default_factory(name: str) -> PageFactory:
    async def load() -> PageModule:
        return PageModule(name=name, title=_title_for(name))
    return load


class PageRegistry:
    """Page name -> async factory; each module is loaded once, on first use."""

    def __init__(self, routes: tuple[RouteSpec, ...] = ROUTES):
        self._factories: dict[str, PageFactory] = {
            route.page: _default_factory(route.page) for route in routes
        }
        self._loaded: dict[str, PageModule] = {}
        self._lock = asyncio.Lock()

    def register(self, name: str, factory: PageFactory) -> None:
        self._factories[name] = factory
        self._loaded.pop(name, None)

    def is_loaded(self, name: str) -> bool:
        return name in self._loaded

    async def load(self, name: str) -> PageModule:
        if name in self._loaded:
            return self._loaded[name]
        factory = self._factories.get(name)
        if factory is None:
            raise KeyError(f"No page registered as '{name}'")
        async with self._lock:
            if name not in self._loaded:
                log.debug("Loading page module %s", name)
                self._loaded[name] = await factory()
        return self._loaded[name]


# ── Navigation menu ──


@dataclass(frozen=True)
class NavItem:
    target: str
    label: str


def profile_path(mode: str = "profile") -> str:
    return "/profile?tab=wallet" if mode == "wallet" else "/profile"


def navigation_items(is_authenticated: bool, user: Optional[User]) -> list[NavItem]:
    """Mobile menu entries visible to this visitor."""
    admin = is_authenticated and is_admin(user)
    items = [
        NavItem("/", "Home"),
        NavItem("/about", "About Us"),
        NavItem("/blog", "Blog"),
        NavItem("/webinars", "Webinars"),
    ]
    if is_authenticated:
        items.append(NavItem("/my-webinars", "My Webinars"))
    items += [
        NavItem("/gaming", "Gaming"),
        NavItem("/spatial-reasoning", "Spatial Reasoning"),
        NavItem("/session", "Resume Session"),
    ]
    if is_authenticated:
        items.append(NavItem("/my-bookings", "My Bookings"))
    items += [
        NavItem("/careers", "Careers"),
        NavItem("/jobs", "Latest Jobs"),
    ]
    if admin:
        items += [
            NavItem("/admin/jobs", "Admin Panel"),
            NavItem("/admin/webinars", "Webinar Management"),
            NavItem("/admin/blog", "Blog Management"),
            NavItem("/admin/email-testing", "Email Testing"),
            NavItem("/admin/sessions", "Session Schedule"),
        ]
    items += [
        NavItem("/tutorials", "Tutorials"),
        NavItem("/contact", "Contact"),
    ]
    if is_authenticated:
        items += [
            NavItem("wallet", "Referral & Wallet"),
            NavItem("/jobs/applications", "My Applications"),
        ]
    return items
