"""
Shell controller: decides which modal or banner is visible, keeps the cached
subscription snapshot and reacts to auth, viewport and location changes.

Each reactive rule is a separate method keyed on its own input:

- on_auth_changed       -> subscription sync, post-signup gating
- on_viewport_resized   -> responsive mobile-menu close
- on_location_changed   -> recovery interception, post-signup gating,
                           welcome-offer timer

At most one of the auth, plan-selection and subscription-plans modals is open;
opening one closes the other two.
"""
import logging
from typing import Callable, Optional

from src.shell.location import RESET_PASSWORD_PATH, ROOT_PATH, Location, recovery_redirect
from src.shell.routes import profile_path
from src.shell.scheduler import Scheduler, TimerHandle
from src.shell.services import AuthProvider, Router, SubscriptionService
from src.shell.state import (
    AlertModal,
    AlertSeverity,
    AuthModalView,
    PrimaryModal,
    ShellState,
)

log = logging.getLogger(__name__)

WIDE_VIEWPORT_PX = 768
WELCOME_OFFER_DELAY_SECONDS = 2.0
ALERT_AUTO_DISMISS_SECONDS = 5.0
SUCCESS_TOAST_SECONDS = 5.0

SUBSCRIPTION_SUCCESS_MESSAGE = "Subscription activated successfully!"

ADDON_MESSAGES = {
    "score-checker": "1 Resume Score Check credit added successfully!",
    "optimizer": "1 JD-Based Optimization credit added successfully!",
    "guided-builder": "1 Guided Resume Build credit added successfully!",
    "linkedin-generator": "LinkedIn Message credits added successfully!",
}
DEFAULT_ADDON_MESSAGE = "Add-on credit(s) added successfully!"


def addon_message(feature_id: str) -> str:
    return ADDON_MESSAGES.get(feature_id, DEFAULT_ADDON_MESSAGE)


class ShellController:
    """Single owner of ShellState."""

    def __init__(
        self,
        auth: AuthProvider,
        subscriptions: SubscriptionService,
        router: Router,
        scheduler: Scheduler,
        state: Optional[ShellState] = None,
    ):
        self.auth = auth
        self.subscriptions = subscriptions
        self.router = router
        self.scheduler = scheduler
        self.state = state or ShellState()
        self.location = Location()
        self._has_seen_location = False
        self._synced_user_id: Optional[str] = None
        self._welcome_timer: Optional[TimerHandle] = None
        self._alert_timer: Optional[TimerHandle] = None
        self._toast_timer: Optional[TimerHandle] = None

    # ── Modal focus ──

    def _focus(self, modal: PrimaryModal) -> None:
        """Open one primary modal and close the others."""
        self.state.auth_modal_open = modal is PrimaryModal.AUTH
        self.state.plan_selection_open = modal is PrimaryModal.PLAN_SELECTION
        self.state.subscription_plans_open = modal is PrimaryModal.SUBSCRIPTION_PLANS

    def _close_purchase_modals(self) -> None:
        self.state.plan_selection_open = False
        self.state.subscription_plans_open = False

    # ── Subscription sync ──

    async def on_auth_changed(self) -> None:
        """Refetch the subscription when the user identity changes, then re-gate."""
        user_id = self.auth.snapshot().user_id
        if user_id != self._synced_user_id:
            self._synced_user_id = user_id
            await self.fetch_subscription()
        self.apply_post_signup_gating()

    async def fetch_subscription(self) -> None:
        """Fetch for the current user, or clear the cache when logged out."""
        snapshot = self.auth.snapshot()
        if snapshot.user_id is None:
            self.state.user_subscription = None
            return
        await self._load_subscription(snapshot.user_id)

    async def refresh_subscription(self) -> None:
        """Refetch only while authenticated; never clears the cache."""
        user_id = self.auth.snapshot().user_id
        if user_id is not None:
            await self._load_subscription(user_id)

    async def _load_subscription(self, user_id: str) -> None:
        try:
            subscription = await self.subscriptions.get_subscription_for(user_id)
        except Exception as e:
            log.warning("Subscription fetch failed for %s, keeping cached value: %s", user_id, e)
            return
        self.state.user_subscription = subscription
        log.info("Fetched subscription for %s: %s", user_id,
                 subscription.plan_id if subscription else None)

    # ── Viewport ──

    def on_viewport_resized(self, width: int) -> None:
        if width >= WIDE_VIEWPORT_PX:
            self.state.mobile_menu_open = False

    # ── Location ──

    def navigate(self, path: str, replace: bool = False) -> None:
        self.router.navigate(path, replace=replace)
        self.on_location_changed(Location.from_url(path))

    def on_location_changed(self, location: Location) -> None:
        previous_path = self.location.pathname
        path_changed = location.pathname != previous_path or not self._has_seen_location
        self.location = location
        self._has_seen_location = True

        target = recovery_redirect(location)
        if target is not None:
            log.info("Password recovery link detected; redirecting to %s", RESET_PASSWORD_PATH)
            self.navigate(target, replace=True)
            return

        if path_changed:
            self._update_welcome_timer()
        self.apply_post_signup_gating()

    # ── Post-signup gating ──

    def apply_post_signup_gating(self) -> None:
        if self.location.pathname == RESET_PASSWORD_PATH:
            return
        snapshot = self.auth.snapshot()
        if snapshot.is_loading:
            return

        if snapshot.is_authenticated and snapshot.user:
            seen = snapshot.user.has_seen_onboarding_prompt
            if seen is None:
                # Profile still loading
                return
            if seen is True:
                self.state.auth_modal_open = False
                self.state.auth_modal_view = AuthModalView.LOGIN
                if self.state.post_auth_callback.run_once():
                    log.info("Ran post-auth continuation")
        else:
            self.state.auth_modal_view = AuthModalView.LOGIN

    # ── Welcome offer ──

    def _update_welcome_timer(self) -> None:
        if self._welcome_timer is not None:
            self._welcome_timer.cancel()
            self._welcome_timer = None

        if self.location.pathname == ROOT_PATH:
            self._welcome_timer = self.scheduler.call_later(
                WELCOME_OFFER_DELAY_SECONDS, self._show_welcome_offer
            )
        else:
            self.state.welcome_offer_open = False

    def _show_welcome_offer(self) -> None:
        self._welcome_timer = None
        self.state.welcome_offer_open = True

    def dismiss_welcome_offer(self) -> None:
        self.state.welcome_offer_open = False

    # ── Alerts and toasts ──

    def show_alert(
        self,
        title: str,
        message: str,
        severity: AlertSeverity = AlertSeverity.INFO,
        action_label: Optional[str] = None,
        on_action: Optional[Callable[[], None]] = None,
    ) -> AlertModal:
        """Show an alert; without an action button it closes itself after 5 seconds."""
        if self._alert_timer is not None:
            self._alert_timer.cancel()
            self._alert_timer = None

        def action() -> None:
            if on_action:
                on_action()
            self.dismiss_alert()

        alert = AlertModal(
            title=title,
            message=message,
            severity=severity,
            action_label=action_label,
            action_callback=action,
        )
        self.state.alert_modal = alert

        if not action_label:
            self._alert_timer = self.scheduler.call_later(
                ALERT_AUTO_DISMISS_SECONDS, self._auto_dismiss_alert
            )
        return alert

    def _auto_dismiss_alert(self) -> None:
        self._alert_timer = None
        self.state.alert_modal = None

    def dismiss_alert(self) -> None:
        if self._alert_timer is not None:
            self._alert_timer.cancel()
            self._alert_timer = None
        self.state.alert_modal = None

    def _show_success_toast(self, message: str) -> None:
        if self._toast_timer is not None:
            self._toast_timer.cancel()
        self.state.success_message = message
        self._toast_timer = self.scheduler.call_later(SUCCESS_TOAST_SECONDS, self._clear_toast)

    def _clear_toast(self) -> None:
        self._toast_timer = None
        self.state.success_message = None

    # ── Purchase fan-out ──

    def register_tool_trigger(self, callback: Optional[Callable[[], None]]) -> None:
        self.state.tool_process_trigger.set(callback)

    def _run_tool_trigger(self) -> None:
        if self.state.tool_process_trigger.run_once():
            log.info("Resumed tool process after purchase")

    async def handle_subscription_success(self) -> None:
        self._close_purchase_modals()
        self._show_success_toast(SUBSCRIPTION_SUCCESS_MESSAGE)
        await self.fetch_subscription()
        self.scheduler.defer(self._run_tool_trigger)

    async def handle_addon_purchase_success(self, feature_id: str) -> None:
        log.info("Add-on purchase successful for feature: %s", feature_id)
        await self.refresh_subscription()
        self.show_alert("Purchase Complete", addon_message(feature_id), AlertSeverity.SUCCESS)
        self._close_purchase_modals()
        self.scheduler.defer(self._run_tool_trigger)

    # ── Auth modal ──

    def show_auth(self, callback: Optional[Callable[[], None]] = None) -> None:
        self._focus(PrimaryModal.AUTH)
        self.state.auth_modal_view = AuthModalView.LOGIN
        self.state.mobile_menu_open = False
        self.state.post_auth_callback.set(callback if callable(callback) else None)
        self.apply_post_signup_gating()

    def close_auth_modal(self) -> None:
        snapshot = self.auth.snapshot()
        if self.state.auth_modal_view is AuthModalView.POST_SIGNUP_PROMPT and snapshot.user:
            self.auth.mark_onboarding_prompt_seen()
        self.state.auth_modal_open = False
        self.state.auth_modal_view = AuthModalView.LOGIN

    def dismiss_prompt(self) -> None:
        if self.auth.snapshot().user:
            self.auth.mark_onboarding_prompt_seen()
        self.state.auth_modal_open = False
        self.state.auth_modal_view = AuthModalView.LOGIN

    # ── Plan modals ──

    def show_plan_selection(self, feature_id: Optional[str] = None, expand_addons: bool = False) -> None:
        self.state.plan_selection_feature_id = feature_id
        self.state.expand_addons = expand_addons
        self._focus(PrimaryModal.PLAN_SELECTION)

    def close_plan_selection(self) -> None:
        self.state.plan_selection_open = False

    def select_career_plans(self) -> None:
        self._focus(PrimaryModal.SUBSCRIPTION_PLANS)

    def show_subscription_plans_directly(self) -> None:
        self._focus(PrimaryModal.SUBSCRIPTION_PLANS)
        self.state.expand_addons = False

    def close_subscription_plans(self) -> None:
        self.state.subscription_plans_open = False

    # ── Navigation ──

    def toggle_mobile_menu(self) -> None:
        self.state.mobile_menu_open = not self.state.mobile_menu_open

    def show_profile(self, mode: str = "profile") -> None:
        self.state.mobile_menu_open = False
        self.navigate(profile_path(mode))

    def page_change(self, target: str) -> None:
        if target == "menu":
            self.toggle_mobile_menu()
            return
        if target == "profile":
            self.navigate(profile_path("profile"))
        elif target == "wallet":
            self.navigate(profile_path("wallet"))
        elif target == "subscription-plans":
            self.show_plan_selection(None, False)
        else:
            self.navigate(target)
        self.state.mobile_menu_open = False

    async def logout(self) -> None:
        """Sign out; on failure the user stays signed in and the error is logged."""
        self.state.is_logging_out = True
        try:
            await self.auth.logout()
            self.state.mobile_menu_open = False
        except Exception:
            log.exception("Logout failed")
            return
        finally:
            self.state.is_logging_out = False
        await self.on_auth_changed()

    def dispose(self) -> None:
        """Cancel pending timers; called when the shell is dropped."""
        for timer in (self._welcome_timer, self._alert_timer, self._toast_timer):
            if timer is not None:
                timer.cancel()
        self._welcome_timer = self._alert_timer = self._toast_timer = None
