"""Page router: dispatches every remaining GET through the route table."""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from src.shell.routes import guard
from src.web.dependencies import get_template_context, page_registry, route_table, start_shell, templates

log = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{full_path:path}", include_in_schema=False)
async def render_page(request: Request, full_path: str):
    path = "/" + full_path
    match = route_table.resolve(path)
    if match is None:
        return HTMLResponse("<h1>Page not found</h1>", status_code=404)

    # A full page load discards the previous shell state
    shell = start_shell(request)
    decision = guard(match.route, shell.auth.snapshot().user)
    if decision.redirect_to:
        if not decision.allowed:
            log.info("Blocked non-admin access to %s", path)
        return RedirectResponse(url=decision.redirect_to, status_code=307)

    page = await page_registry.load(match.route.page)
    ctx = get_template_context(request, shell)
    ctx.update({
        "page": page,
        "params": match.params,
        "path": path,
    })
    return templates.TemplateResponse(request, page.template, ctx)
