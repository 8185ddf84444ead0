"""
Shell state: modal visibility, cached subscription and one-shot continuations.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from src.shell.continuation import PendingContinuation


class AuthModalView(str, Enum):
    """Screen shown when the auth modal opens."""
    LOGIN = "login"
    SIGNUP = "signup"
    FORGOT_PASSWORD = "forgot_password"
    SUCCESS = "success"
    POST_SIGNUP_PROMPT = "post_signup_prompt"
    RESET_PASSWORD = "reset_password"


class AlertSeverity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class PrimaryModal(str, Enum):
    """Modals that compete for the user's focus; at most one is open."""
    AUTH = "auth"
    PLAN_SELECTION = "plan_selection"
    SUBSCRIPTION_PLANS = "subscription_plans"


@dataclass
class AlertModal:
    """Transient notice; the shell's only user-visible error channel."""
    title: str
    message: str
    severity: AlertSeverity = AlertSeverity.INFO
    action_label: Optional[str] = None
    action_callback: Optional[Callable[[], None]] = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "action_label": self.action_label,
        }


@dataclass
class FeatureCredits:
    used: int = 0
    total: int = 0

    @property
    def remaining(self) -> int:
        return max(self.total - self.used, 0)


CREDIT_FEATURES = ("optimizations", "score_checks", "guided_builds", "linkedin_messages")


@dataclass
class Subscription:
    """Snapshot of a user's plan and credit counters."""
    plan_id: str
    status: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    credits: dict[str, FeatureCredits] = field(default_factory=dict)

    def remaining(self, feature: str) -> int:
        credits = self.credits.get(feature)
        return credits.remaining if credits else 0

    @classmethod
    def from_row(cls, row: dict) -> "Subscription":
        """Build from a backend row with <feature>_used / <feature>_total columns."""
        credits = {}
        for feature in CREDIT_FEATURES:
            used = row.get(f"{feature}_used")
            total = row.get(f"{feature}_total")
            if used is None and total is None:
                continue
            credits[feature] = FeatureCredits(used=int(used or 0), total=int(total or 0))
        return cls(
            plan_id=str(row.get("plan_id") or ""),
            status=str(row.get("status") or ""),
            start_date=row.get("start_date"),
            end_date=row.get("end_date"),
            credits=credits,
        )

    def to_dict(self) -> dict:
        return {
            "plan_id": self.plan_id,
            "status": self.status,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "credits": {
                name: {"used": c.used, "total": c.total, "remaining": c.remaining}
                for name, c in self.credits.items()
            },
        }


@dataclass
class User:
    id: str
    name: str = ""
    email: str = ""
    role: str = "client"
    # None while the profile is still loading
    has_seen_onboarding_prompt: Optional[bool] = None


@dataclass
class AuthSnapshot:
    """What the auth/session provider currently reports."""
    is_authenticated: bool = False
    user: Optional[User] = None
    is_loading: bool = False

    @property
    def user_id(self) -> Optional[str]:
        if self.is_authenticated and self.user:
            return self.user.id
        return None


@dataclass
class ShellState:
    """Cross-cutting UI state owned by the shell controller."""
    auth_modal_open: bool = False
    auth_modal_view: AuthModalView = AuthModalView.LOGIN
    plan_selection_open: bool = False
    plan_selection_feature_id: Optional[str] = None
    expand_addons: bool = True
    subscription_plans_open: bool = False
    alert_modal: Optional[AlertModal] = None
    mobile_menu_open: bool = False
    welcome_offer_open: bool = False
    user_subscription: Optional[Subscription] = None
    post_auth_callback: PendingContinuation = field(default_factory=PendingContinuation)
    tool_process_trigger: PendingContinuation = field(default_factory=PendingContinuation)
    success_message: Optional[str] = None
    is_logging_out: bool = False

    def is_open(self, modal: PrimaryModal) -> bool:
        return {
            PrimaryModal.AUTH: self.auth_modal_open,
            PrimaryModal.PLAN_SELECTION: self.plan_selection_open,
            PrimaryModal.SUBSCRIPTION_PLANS: self.subscription_plans_open,
        }[modal]

    def to_dict(self) -> dict:
        return {
            "auth_modal_open": self.auth_modal_open,
            "auth_modal_view": self.auth_modal_view.value,
            "plan_selection_open": self.plan_selection_open,
            "plan_selection_feature_id": self.plan_selection_feature_id,
            "expand_addons": self.expand_addons,
            "subscription_plans_open": self.subscription_plans_open,
            "alert_modal": self.alert_modal.to_dict() if self.alert_modal else None,
            "mobile_menu_open": self.mobile_menu_open,
            "welcome_offer_open": self.welcome_offer_open,
            "user_subscription": self.user_subscription.to_dict() if self.user_subscription else None,
            "post_auth_callback_pending": self.post_auth_callback.is_set,
            "tool_process_trigger_pending": self.tool_process_trigger.is_set,
            "success_message": self.success_message,
            "is_logging_out": self.is_logging_out,
        }
