"""Shell router: feeds browser events into the page load's ShellController."""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.shared.errors import AppErrors
from src.shell.routes import guard, navigation_items
from src.shell.services import UserLookupError
from src.shell.state import AlertSeverity, AuthSnapshot
from src.web.dependencies import get_shell, read_json_object, remember_auth, route_table

log = logging.getLogger(__name__)
router = APIRouter()


def _state_response(shell) -> dict:
    return {
        "shell_id": shell.shell_id,
        "location": shell.controller.location.href,
        "state": shell.controller.state.to_dict(),
    }


def _invalid_body() -> JSONResponse:
    return JSONResponse({"error": AppErrors.BODY_NOT_OBJECT}, status_code=400)


@router.get("/api/shell/state")
async def shell_state(request: Request):
    return _state_response(get_shell(request))


@router.post("/api/shell/location")
async def location_changed(request: Request):
    body = await read_json_object(request)
    if body is None:
        return _invalid_body()
    href = str(body.get("href", "")).strip()
    if not href:
        pathname = str(body.get("pathname", "")).strip()
        if not pathname:
            return JSONResponse({"error": AppErrors.PATH_REQUIRED}, status_code=400)
        href = f"{pathname}{body.get('search', '')}{body.get('hash', '')}"

    shell = get_shell(request)
    shell.controller.navigate(href)
    response = _state_response(shell)
    response["redirected"] = shell.controller.location.href != href
    return response


@router.post("/api/shell/auth")
async def auth_changed(request: Request):
    """
    Sync the sign-in reported by the browser's auth client.

    Only the access token is trusted: identity and role come from the auth
    backend. The onboarding flag is taken from the body as is.
    """
    body = await read_json_object(request)
    if body is None:
        return _invalid_body()
    is_loading = bool(body.get("is_loading", False))
    access_token = str(body.get("access_token") or "").strip() or None

    shell = get_shell(request)
    user = None
    if access_token and not is_loading:
        try:
            user = await shell.users.get_user(access_token)
        except UserLookupError as e:
            log.warning("Sign-in verification failed: %s", e)
            return JSONResponse({"error": AppErrors.AUTH_UNAVAILABLE}, status_code=502)
    if user is not None:
        seen = body.get("has_seen_onboarding_prompt")
        user.has_seen_onboarding_prompt = seen if isinstance(seen, bool) else None

    shell.auth.update(AuthSnapshot(is_authenticated=user is not None, user=user, is_loading=is_loading))
    shell.subscriptions.access_token = access_token if user is not None else None
    await shell.controller.on_auth_changed()
    if not is_loading:
        remember_auth(request, shell)
    return _state_response(shell)


@router.post("/api/shell/logout")
async def logout(request: Request):
    shell = get_shell(request)
    await shell.controller.logout()
    remember_auth(request, shell)
    return _state_response(shell)


@router.post("/api/shell/viewport")
async def viewport_resized(request: Request):
    body = await read_json_object(request)
    if body is None:
        return _invalid_body()
    width = body.get("width")
    if not isinstance(width, int) or width < 0:
        return JSONResponse({"error": AppErrors.INVALID_WIDTH}, status_code=400)
    shell = get_shell(request)
    shell.controller.on_viewport_resized(width)
    return _state_response(shell)


@router.post("/api/shell/menu")
async def page_change(request: Request):
    body = await read_json_object(request)
    if body is None:
        return _invalid_body()
    target = str(body.get("target", "")).strip()
    if not target:
        return JSONResponse({"error": AppErrors.PATH_REQUIRED}, status_code=400)
    shell = get_shell(request)
    shell.controller.page_change(target)
    return _state_response(shell)


@router.post("/api/shell/alert")
async def show_alert(request: Request):
    body = await read_json_object(request)
    if body is None:
        return _invalid_body()
    try:
        severity = AlertSeverity(body.get("severity", "info"))
    except ValueError:
        return JSONResponse({"error": AppErrors.INVALID_SEVERITY}, status_code=400)
    shell = get_shell(request)
    shell.controller.show_alert(
        title=str(body.get("title", "")),
        message=str(body.get("message", "")),
        severity=severity,
        action_label=body.get("action_label") or None,
    )
    return _state_response(shell)


@router.post("/api/shell/alert/dismiss")
async def dismiss_alert(request: Request):
    shell = get_shell(request)
    shell.controller.dismiss_alert()
    return _state_response(shell)


@router.post("/api/shell/auth-modal")
async def auth_modal(request: Request):
    body = await read_json_object(request)
    if body is None:
        return _invalid_body()
    action = body.get("action", "open")
    shell = get_shell(request)
    if action == "open":
        shell.controller.show_auth()
    elif action == "close":
        shell.controller.close_auth_modal()
    elif action == "dismiss_prompt":
        shell.controller.dismiss_prompt()
    else:
        return JSONResponse({"error": f"Unknown action '{action}'."}, status_code=400)
    remember_auth(request, shell)
    return _state_response(shell)


@router.post("/api/shell/plan-selection")
async def plan_selection(request: Request):
    body = await read_json_object(request)
    if body is None:
        return _invalid_body()
    action = body.get("action", "open")
    shell = get_shell(request)
    if action == "open":
        shell.controller.show_plan_selection(
            feature_id=body.get("feature_id"),
            expand_addons=bool(body.get("expand_addons", False)),
        )
    elif action == "close":
        shell.controller.close_plan_selection()
    elif action == "career_plans":
        shell.controller.select_career_plans()
    elif action == "subscription_plans":
        shell.controller.show_subscription_plans_directly()
    elif action == "close_subscription_plans":
        shell.controller.close_subscription_plans()
    else:
        return JSONResponse({"error": f"Unknown action '{action}'."}, status_code=400)
    return _state_response(shell)


@router.post("/api/shell/purchase/subscription")
async def subscription_purchased(request: Request):
    shell = get_shell(request)
    await shell.controller.handle_subscription_success()
    return _state_response(shell)


@router.post("/api/shell/purchase/addon")
async def addon_purchased(request: Request):
    body = await read_json_object(request)
    if body is None:
        return _invalid_body()
    feature_id = str(body.get("feature_id", "")).strip()
    if not feature_id:
        return JSONResponse({"error": AppErrors.INVALID_FEATURE}, status_code=400)
    shell = get_shell(request)
    await shell.controller.handle_addon_purchase_success(feature_id)
    return _state_response(shell)


@router.post("/api/shell/welcome-offer/dismiss")
async def dismiss_welcome_offer(request: Request):
    shell = get_shell(request)
    shell.controller.dismiss_welcome_offer()
    return _state_response(shell)


# ── Route table ──


@router.get("/api/routes/resolve")
async def resolve_route(request: Request, path: str):
    match = route_table.resolve(path)
    if match is None:
        return JSONResponse({"error": f"No route for '{path}'."}, status_code=404)
    user = get_shell(request).auth.snapshot().user
    decision = guard(match.route, user)
    return {
        "pattern": match.route.pattern,
        "page": match.route.page,
        "params": match.params,
        "admin_only": match.route.admin_only,
        "allowed": decision.allowed,
        "redirect_to": decision.redirect_to,
    }


@router.get("/api/routes/navigation")
async def navigation(request: Request):
    snapshot = get_shell(request).auth.snapshot()
    items = navigation_items(snapshot.is_authenticated, snapshot.user)
    return [{"target": i.target, "label": i.label} for i in items]
