"""
M7 Acceptance Tests: Shell controller reactive rules.

Timers and deferrals run on a ManualScheduler so ordering is deterministic.
"""
import asyncio

import httpx
import pytest

from src.shared.config import RemoteChatConfig
from src.shell.controller import (
    ADDON_MESSAGES,
    DEFAULT_ADDON_MESSAGE,
    SUBSCRIPTION_SUCCESS_MESSAGE,
    ShellController,
    addon_message,
)
from src.shell.location import Location
from src.shell.services import (
    HistoryRouter,
    SessionAuthProvider,
    SubscriptionLookupError,
    SupabaseSubscriptionService,
    SupabaseUserService,
    UserLookupError,
)
from src.shell.state import (
    AlertSeverity,
    AuthModalView,
    AuthSnapshot,
    PrimaryModal,
    Subscription,
    User,
)

from manual_scheduler import ManualScheduler


class FakeSubscriptions:
    """Returns queued results in order; exceptions are raised."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls: list[str] = []

    async def get_subscription_for(self, user_id):
        self.calls.append(user_id)
        result = self.results.pop(0) if self.results else None
        if isinstance(result, Exception):
            raise result
        return result


class FailingLogoutAuth(SessionAuthProvider):
    async def logout(self):
        raise RuntimeError("network down")


def _user(seen=None, uid="u1"):
    return User(id=uid, name="Asha", email="asha@example.com", has_seen_onboarding_prompt=seen)


def _signed_in(seen=None, uid="u1", loading=False):
    return AuthSnapshot(is_authenticated=True, user=_user(seen, uid), is_loading=loading)


def _controller(auth=None, subscriptions=None):
    return ShellController(
        auth=auth or SessionAuthProvider(),
        subscriptions=subscriptions or FakeSubscriptions(),
        router=HistoryRouter(),
        scheduler=ManualScheduler(),
    )


PLAN = Subscription(plan_id="leader", status="active")
REFRESHED = Subscription(plan_id="achiever", status="active")


# ── Post-signup gating ──


def test_gating_closes_modal_and_runs_continuation_once():
    auth = SessionAuthProvider()
    shell = _controller(auth=auth)
    calls = []
    shell.show_auth(lambda: calls.append("resume"))
    shell.state.auth_modal_view = AuthModalView.SIGNUP
    assert shell.state.auth_modal_open

    auth.update(_signed_in(seen=True))
    asyncio.run(shell.on_auth_changed())

    assert shell.state.auth_modal_open is False
    assert shell.state.auth_modal_view is AuthModalView.LOGIN
    assert calls == ["resume"]

    shell.apply_post_signup_gating()
    asyncio.run(shell.on_auth_changed())
    assert calls == ["resume"]


def test_gating_waits_while_profile_flag_undefined():
    auth = SessionAuthProvider()
    shell = _controller(auth=auth)
    calls = []
    shell.show_auth(lambda: calls.append("resume"))
    shell.state.auth_modal_view = AuthModalView.SIGNUP

    auth.update(_signed_in(seen=None))
    asyncio.run(shell.on_auth_changed())

    assert shell.state.auth_modal_open is True
    assert shell.state.auth_modal_view is AuthModalView.SIGNUP
    assert calls == []
    assert shell.state.post_auth_callback.is_set


def test_gating_waits_while_auth_loading():
    auth = SessionAuthProvider(_signed_in(seen=True, loading=True))
    shell = _controller(auth=auth)
    shell.state.auth_modal_open = True

    shell.apply_post_signup_gating()
    assert shell.state.auth_modal_open is True


def test_gating_skipped_on_reset_password_route():
    auth = SessionAuthProvider(_signed_in(seen=True))
    shell = _controller(auth=auth)
    shell.on_location_changed(Location.from_url("/reset-password"))
    shell.state.auth_modal_open = True
    shell.state.auth_modal_view = AuthModalView.RESET_PASSWORD

    shell.apply_post_signup_gating()
    assert shell.state.auth_modal_open is True
    assert shell.state.auth_modal_view is AuthModalView.RESET_PASSWORD


def test_gating_resets_view_when_signed_out():
    shell = _controller()
    shell.state.auth_modal_view = AuthModalView.SUCCESS
    shell.apply_post_signup_gating()
    assert shell.state.auth_modal_view is AuthModalView.LOGIN


def test_close_auth_modal_marks_prompt_seen():
    auth = SessionAuthProvider(_signed_in(seen=False))
    shell = _controller(auth=auth)
    shell.state.auth_modal_open = True
    shell.state.auth_modal_view = AuthModalView.POST_SIGNUP_PROMPT

    shell.close_auth_modal()
    assert shell.state.auth_modal_open is False
    assert auth.snapshot().user.has_seen_onboarding_prompt is True


def test_dismiss_prompt_marks_prompt_seen():
    auth = SessionAuthProvider(_signed_in(seen=False))
    shell = _controller(auth=auth)
    shell.dismiss_prompt()
    assert auth.snapshot().user.has_seen_onboarding_prompt is True


# ── Subscription sync ──


def test_subscription_fetched_on_user_change_only():
    auth = SessionAuthProvider()
    subs = FakeSubscriptions(PLAN, REFRESHED)
    shell = _controller(auth=auth, subscriptions=subs)

    auth.update(_signed_in(seen=True))
    asyncio.run(shell.on_auth_changed())
    asyncio.run(shell.on_auth_changed())

    assert subs.calls == ["u1"]
    assert shell.state.user_subscription is PLAN


def test_logout_clears_cached_subscription():
    auth = SessionAuthProvider(_signed_in(seen=True))
    shell = _controller(auth=auth, subscriptions=FakeSubscriptions(PLAN))
    asyncio.run(shell.on_auth_changed())
    shell.state.mobile_menu_open = True

    asyncio.run(shell.logout())

    assert auth.snapshot().is_authenticated is False
    assert shell.state.user_subscription is None
    assert shell.state.mobile_menu_open is False
    assert shell.state.is_logging_out is False


def test_logout_failure_keeps_user_signed_in(caplog):
    auth = FailingLogoutAuth(_signed_in(seen=True))
    shell = _controller(auth=auth, subscriptions=FakeSubscriptions(PLAN))
    asyncio.run(shell.on_auth_changed())

    with caplog.at_level("ERROR", logger="src.shell.controller"):
        asyncio.run(shell.logout())

    assert auth.snapshot().is_authenticated is True
    assert shell.state.user_subscription is PLAN
    assert shell.state.is_logging_out is False
    assert "Logout failed" in caplog.text


def test_subscription_fetch_failure_keeps_cache():
    auth = SessionAuthProvider(_signed_in(seen=True))
    subs = FakeSubscriptions(PLAN, SubscriptionLookupError("down"))
    shell = _controller(auth=auth, subscriptions=subs)
    asyncio.run(shell.on_auth_changed())

    asyncio.run(shell.refresh_subscription())
    assert shell.state.user_subscription is PLAN


def test_refresh_does_nothing_when_signed_out():
    subs = FakeSubscriptions(PLAN)
    shell = _controller(subscriptions=subs)
    asyncio.run(shell.refresh_subscription())
    assert subs.calls == []


# ── Purchase fan-out ──


def test_subscription_purchase_fan_out_order():
    auth = SessionAuthProvider(_signed_in(seen=True))
    shell = _controller(auth=auth, subscriptions=FakeSubscriptions(PLAN, REFRESHED))
    asyncio.run(shell.on_auth_changed())

    observed = []
    shell.register_tool_trigger(lambda: observed.append(shell.state.user_subscription))
    shell.state.plan_selection_open = True
    shell.state.subscription_plans_open = True

    asyncio.run(shell.handle_subscription_success())

    assert shell.state.plan_selection_open is False
    assert shell.state.subscription_plans_open is False
    assert shell.state.user_subscription is REFRESHED
    assert shell.state.success_message == SUBSCRIPTION_SUCCESS_MESSAGE
    # Trigger is deferred past the state updates
    assert observed == []

    shell.scheduler.run_deferred()
    assert observed == [REFRESHED]
    assert not shell.state.tool_process_trigger.is_set

    shell.scheduler.run_deferred()
    assert observed == [REFRESHED]


def test_success_toast_clears_after_timeout():
    shell = _controller()
    asyncio.run(shell.handle_subscription_success())
    shell.scheduler.advance(4.9)
    assert shell.state.success_message == SUBSCRIPTION_SUCCESS_MESSAGE
    shell.scheduler.advance(0.1)
    assert shell.state.success_message is None


def test_subscription_purchase_without_trigger():
    shell = _controller()
    asyncio.run(shell.handle_subscription_success())
    assert shell.scheduler.run_deferred() == 1


def test_addon_purchase_shows_alert_and_resumes_tool():
    auth = SessionAuthProvider(_signed_in(seen=True))
    subs = FakeSubscriptions(PLAN, REFRESHED)
    shell = _controller(auth=auth, subscriptions=subs)
    asyncio.run(shell.on_auth_changed())
    calls = []
    shell.register_tool_trigger(lambda: calls.append("resume"))
    shell.state.plan_selection_open = True

    asyncio.run(shell.handle_addon_purchase_success("optimizer"))

    alert = shell.state.alert_modal
    assert alert.title == "Purchase Complete"
    assert alert.message == ADDON_MESSAGES["optimizer"]
    assert alert.severity is AlertSeverity.SUCCESS
    assert shell.state.plan_selection_open is False
    assert shell.state.user_subscription is REFRESHED
    assert calls == []

    shell.scheduler.run_deferred()
    assert calls == ["resume"]


@pytest.mark.parametrize("feature_id,expected", [
    ("score-checker", "1 Resume Score Check credit added successfully!"),
    ("optimizer", "1 JD-Based Optimization credit added successfully!"),
    ("guided-builder", "1 Guided Resume Build credit added successfully!"),
    ("linkedin-generator", "LinkedIn Message credits added successfully!"),
    ("something-else", DEFAULT_ADDON_MESSAGE),
])
def test_addon_messages(feature_id, expected):
    assert addon_message(feature_id) == expected


# ── Welcome offer ──


def test_welcome_offer_shows_after_two_seconds_on_root():
    shell = _controller()
    shell.on_location_changed(Location.from_url("/"))

    shell.scheduler.advance(1.9)
    assert shell.state.welcome_offer_open is False
    shell.scheduler.advance(0.1)
    assert shell.state.welcome_offer_open is True

    shell.scheduler.advance(10)
    assert shell.scheduler.pending_timers == 0


def test_leaving_root_early_cancels_welcome_offer():
    shell = _controller()
    shell.on_location_changed(Location.from_url("/"))
    shell.scheduler.advance(1.0)
    shell.navigate("/jobs")
    shell.scheduler.advance(5.0)

    assert shell.state.welcome_offer_open is False
    assert shell.scheduler.pending_timers == 0


def test_same_path_does_not_restart_timer():
    shell = _controller()
    shell.on_location_changed(Location.from_url("/"))
    shell.scheduler.advance(1.5)
    shell.on_location_changed(Location.from_url("/?ref=ad"))
    shell.scheduler.advance(0.5)
    assert shell.state.welcome_offer_open is True


def test_dismiss_welcome_offer():
    shell = _controller()
    shell.on_location_changed(Location.from_url("/"))
    shell.scheduler.advance(2)
    shell.dismiss_welcome_offer()
    assert shell.state.welcome_offer_open is False


def test_dispose_cancels_pending_timers():
    shell = _controller()
    shell.on_location_changed(Location.from_url("/"))
    shell.show_alert("Saved", "Done")
    assert shell.scheduler.pending_timers == 2

    shell.dispose()
    shell.scheduler.advance(10)

    assert shell.state.welcome_offer_open is False
    assert shell.state.alert_modal is not None
    assert shell.scheduler.pending_timers == 0


# ── Recovery interception ──


def test_recovery_link_redirects_with_replace():
    shell = _controller()
    shell.navigate("/#access_token=abc&type=recovery")

    assert shell.router.current.href == "/reset-password#access_token=abc&type=recovery"
    assert shell.router.history == ["/", "/reset-password#access_token=abc&type=recovery"]
    assert shell.location.pathname == "/reset-password"
    # No welcome timer for the root visit that was replaced
    shell.scheduler.advance(5)
    assert shell.state.welcome_offer_open is False


def test_no_redirect_loop_on_reset_password():
    shell = _controller()
    shell.navigate("/reset-password#access_token=abc&type=recovery")
    assert shell.router.history == ["/", "/reset-password#access_token=abc&type=recovery"]


# ── Alerts ──


def test_alert_without_action_auto_dismisses():
    shell = _controller()
    shell.show_alert("Heads up", "Saved")
    shell.scheduler.advance(4.9)
    assert shell.state.alert_modal is not None
    shell.scheduler.advance(0.1)
    assert shell.state.alert_modal is None


def test_alert_with_action_stays_until_dismissed():
    shell = _controller()
    calls = []
    alert = shell.show_alert("Out of credits", "Buy more?", AlertSeverity.WARNING,
                             action_label="Upgrade", on_action=lambda: calls.append("upgrade"))
    shell.scheduler.advance(60)
    assert shell.state.alert_modal is alert

    alert.action_callback()
    assert calls == ["upgrade"]
    assert shell.state.alert_modal is None


def test_new_alert_cancels_previous_timer():
    shell = _controller()
    shell.show_alert("First", "one")
    shell.scheduler.advance(4)
    second = shell.show_alert("Second", "two")
    shell.scheduler.advance(1.5)
    assert shell.state.alert_modal is second
    shell.scheduler.advance(3.5)
    assert shell.state.alert_modal is None


def test_dismiss_alert_cancels_timer():
    shell = _controller()
    shell.show_alert("T", "M")
    shell.dismiss_alert()
    assert shell.state.alert_modal is None
    assert shell.scheduler.pending_timers == 0


# ── Modals, menu, viewport ──


def test_opening_a_modal_closes_the_others():
    shell = _controller()
    shell.show_auth()
    shell.show_plan_selection("optimizer", expand_addons=True)
    assert [m for m in PrimaryModal if shell.state.is_open(m)] == [PrimaryModal.PLAN_SELECTION]
    assert shell.state.plan_selection_feature_id == "optimizer"
    assert shell.state.expand_addons is True

    shell.select_career_plans()
    assert [m for m in PrimaryModal if shell.state.is_open(m)] == [PrimaryModal.SUBSCRIPTION_PLANS]

    shell.show_auth()
    assert [m for m in PrimaryModal if shell.state.is_open(m)] == [PrimaryModal.AUTH]


def test_show_subscription_plans_directly_collapses_addons():
    shell = _controller()
    shell.show_subscription_plans_directly()
    assert shell.state.subscription_plans_open
    assert shell.state.expand_addons is False
    shell.close_subscription_plans()
    assert not shell.state.subscription_plans_open


def test_show_auth_closes_mobile_menu():
    shell = _controller()
    shell.toggle_mobile_menu()
    shell.show_auth()
    assert shell.state.mobile_menu_open is False
    assert shell.state.auth_modal_view is AuthModalView.LOGIN


@pytest.mark.parametrize("width,expected", [(767, True), (768, False), (1440, False)])
def test_viewport_resize_closes_menu_on_wide_screens(width, expected):
    shell = _controller()
    shell.state.mobile_menu_open = True
    shell.on_viewport_resized(width)
    assert shell.state.mobile_menu_open is expected


def test_page_change_targets():
    shell = _controller()
    shell.page_change("menu")
    assert shell.state.mobile_menu_open is True

    shell.page_change("wallet")
    assert shell.router.current.href == "/profile?tab=wallet"
    assert shell.state.mobile_menu_open is False

    shell.page_change("subscription-plans")
    assert shell.state.plan_selection_open
    assert shell.state.plan_selection_feature_id is None

    shell.page_change("/jobs")
    assert shell.location.pathname == "/jobs"


def test_show_profile_navigates():
    shell = _controller()
    shell.show_profile()
    assert shell.router.current.pathname == "/profile"


# ── Subscription backend ──


def _subscription_service(handler):
    seen = []

    def record(request):
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(record))
    config = RemoteChatConfig(base_url="https://proj.supabase.co", anon_key="anon")
    return SupabaseSubscriptionService(config, http_client=client, access_token="jwt"), seen


def test_subscription_service_reads_latest_active_row():
    service, seen = _subscription_service(lambda r: httpx.Response(200, json=[{
        "plan_id": "leader", "status": "active", "optimizations_used": 1, "optimizations_total": 5,
    }]))
    sub = asyncio.run(service.get_subscription_for("u1"))

    assert sub.plan_id == "leader"
    assert sub.remaining("optimizations") == 4
    request = seen[0]
    assert request.url.path == "/rest/v1/subscriptions"
    assert request.url.params["user_id"] == "eq.u1"
    assert request.url.params["status"] == "eq.active"
    assert request.headers["Authorization"] == "Bearer jwt"
    assert request.headers["apikey"] == "anon"


def test_subscription_service_no_rows():
    service, _ = _subscription_service(lambda r: httpx.Response(200, json=[]))
    assert asyncio.run(service.get_subscription_for("u1")) is None


def test_subscription_service_http_error_raises():
    service, _ = _subscription_service(lambda r: httpx.Response(500))
    with pytest.raises(SubscriptionLookupError):
        asyncio.run(service.get_subscription_for("u1"))


def test_subscription_service_disabled_without_config():
    service = SupabaseSubscriptionService(RemoteChatConfig())
    assert asyncio.run(service.get_subscription_for("u1")) is None


def _user_service(handler):
    seen = []

    def record(request):
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(record))
    config = RemoteChatConfig(base_url="https://proj.supabase.co", anon_key="anon")
    return SupabaseUserService(config, http_client=client), seen


def test_user_service_reads_role_from_app_metadata():
    service, seen = _user_service(lambda r: httpx.Response(200, json={
        "id": "u1",
        "email": "asha@example.com",
        "app_metadata": {"role": "admin"},
        "user_metadata": {"name": "Asha", "role": "client"},
    }))
    user = asyncio.run(service.get_user("jwt"))

    assert user.id == "u1"
    assert user.name == "Asha"
    assert user.email == "asha@example.com"
    assert user.role == "admin"
    assert seen[0].url.path == "/auth/v1/user"
    assert seen[0].headers["Authorization"] == "Bearer jwt"
    assert seen[0].headers["apikey"] == "anon"


def test_user_service_ignores_role_in_user_metadata():
    service, _ = _user_service(lambda r: httpx.Response(200, json={
        "id": "u1", "user_metadata": {"role": "admin"},
    }))
    assert asyncio.run(service.get_user("jwt")).role == "client"


def test_user_service_rejected_token():
    service, _ = _user_service(lambda r: httpx.Response(401, json={"msg": "invalid JWT"}))
    assert asyncio.run(service.get_user("forged")) is None


def test_user_service_http_error_raises():
    service, _ = _user_service(lambda r: httpx.Response(503))
    with pytest.raises(UserLookupError):
        asyncio.run(service.get_user("jwt"))


def test_user_service_needs_token_and_config():
    service, seen = _user_service(lambda r: httpx.Response(200, json={"id": "u1"}))
    assert asyncio.run(service.get_user(None)) is None
    assert seen == []
    assert asyncio.run(SupabaseUserService(RemoteChatConfig()).get_user("jwt")) is None


def test_history_router_replace():
    router = HistoryRouter()
    router.navigate("/jobs")
    router.navigate("/jobs/1", replace=True)
    assert router.history == ["/", "/jobs/1"]
    assert router.current.pathname == "/jobs/1"
