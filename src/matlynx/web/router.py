"""
Web router.

Every page goes through the route gate before it renders. Pages return
JSON page models; actions take form-encoded bodies and answer with a
redirect, like the browser forms they replace.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse, Response

from matlynx import gate
from matlynx.auth import AuthSessionManager
from matlynx.contracts.records import Material, User
from matlynx.materials import (
    MaterialRepository,
    dealer_contact_links,
    format_unit,
    search_materials,
)
from matlynx.profiles import ProfileService
from matlynx.settings import get_settings
from matlynx.validation import parse_login, parse_material, parse_profile, parse_registration
from matlynx.web.deps import (
    PageNotFound,
    get_auth,
    get_materials,
    get_profiles,
    redirect,
    require_page,
)

logger = logging.getLogger(__name__)

web_router = APIRouter()


def public_user(user: Optional[User]) -> Optional[dict[str, Any]]:
    if user is None:
        return None
    return user.model_dump(mode="json", by_alias=True, exclude={"password"}, exclude_none=True)


def material_view(material: Material, with_contact: bool = False) -> dict[str, Any]:
    view = {**material.to_record(), "unitLabel": format_unit(material.unit)}
    if with_contact:
        view["contact"] = dealer_contact_links(material, app_name=get_settings().APP_NAME)
    return view


def _redirect_with_session(request: Request, url: str) -> RedirectResponse:
    """Redirect, setting the session cookie when this request created the session id."""
    response = RedirectResponse(url=url, status_code=302)
    sid = getattr(request.state, "new_session_id", None)
    if sid:
        settings = get_settings()
        response.set_cookie(
            settings.SESSION_COOKIE_NAME,
            sid,
            httponly=True,
            samesite="lax",
            secure=settings.SESSION_COOKIE_SECURE,
        )
    return response


def _owned_material(repo: MaterialRepository, material_id: str, user: User) -> Material:
    material = repo.get(material_id)
    if material is None or material.dealer_email != user.email:
        raise HTTPException(status_code=404, detail="Material not found")
    return material


# =============================================================================
# Auth
# =============================================================================

@web_router.get("/")
async def home(user: Optional[User] = Depends(require_page(gate.HOME))):
    # The gate always redirects from home
    return {"page": "home"}


@web_router.get("/auth")
async def auth_page(user: Optional[User] = Depends(require_page(gate.AUTH))):
    return {"page": "auth", "app_name": get_settings().APP_NAME}


@web_router.post("/auth/register")
async def register(request: Request, auth: AuthSessionManager = Depends(get_auth)):
    form = await request.form()
    user = parse_registration(form, clock=request.app.state.clock)
    auth.register(user)
    return _redirect_with_session(request, gate.HOME)


@web_router.post("/auth/login")
async def login(request: Request, auth: AuthSessionManager = Depends(get_auth)):
    form = await request.form()
    email, password = parse_login(form)
    auth.login(email, password)
    return _redirect_with_session(request, gate.HOME)


@web_router.post("/auth/logout")
async def logout(auth: AuthSessionManager = Depends(get_auth)):
    auth.logout()
    response = RedirectResponse(url=gate.AUTH, status_code=302)
    response.delete_cookie(get_settings().SESSION_COOKIE_NAME)
    return response


# =============================================================================
# Profile
# =============================================================================

@web_router.get("/profile-setup")
async def profile_setup_page(
    user: User = Depends(require_page(gate.PROFILE_SETUP)),
    profiles: ProfileService = Depends(get_profiles),
):
    return {
        "page": "profile-setup",
        "user": public_user(user),
        "role": str(user.role),
        "form": profiles.draft_for(user),
    }


@web_router.get("/settings")
async def settings_page(
    user: User = Depends(require_page(gate.SETTINGS)),
    profiles: ProfileService = Depends(get_profiles),
):
    profile = profiles.get_profile(user.email)
    return {
        "page": "settings",
        "user": public_user(user),
        "profile": profile.to_record() if profile else None,
        "isComplete": profile.is_complete if profile else False,
        "form": profiles.draft_for(user),
    }


async def _save_profile(request: Request, user: User, profiles: ProfileService) -> Response:
    form = await request.form()
    data = parse_profile(form, user.role)
    profiles.save_profile(user, data)
    return RedirectResponse(url=user.dashboard, status_code=302)


@web_router.post("/profile-setup")
async def profile_setup_submit(
    request: Request,
    user: User = Depends(require_page(gate.PROFILE_SETUP)),
    profiles: ProfileService = Depends(get_profiles),
):
    return await _save_profile(request, user, profiles)


@web_router.post("/settings")
async def settings_submit(
    request: Request,
    user: User = Depends(require_page(gate.SETTINGS)),
    profiles: ProfileService = Depends(get_profiles),
):
    return await _save_profile(request, user, profiles)


# =============================================================================
# Dealer dashboard
# =============================================================================

@web_router.get("/dealer")
async def dealer_dashboard(
    user: User = Depends(require_page(gate.DEALER)),
    repo: MaterialRepository = Depends(get_materials),
):
    materials = repo.list_by_dealer(user.email)
    return {
        "page": "dealer",
        "user": public_user(user),
        "materials": [material_view(m) for m in materials],
    }


@web_router.post("/dealer/materials")
async def add_material(
    request: Request,
    user: User = Depends(require_page(gate.DEALER)),
    repo: MaterialRepository = Depends(get_materials),
):
    form = await request.form()
    data = parse_material(form)
    repo.create(repo.new_listing(user, data))
    return RedirectResponse(url=gate.DEALER, status_code=302)


@web_router.post("/dealer/materials/{material_id}")
async def edit_material(
    material_id: str,
    request: Request,
    user: User = Depends(require_page(gate.DEALER)),
    repo: MaterialRepository = Depends(get_materials),
):
    _owned_material(repo, material_id, user)
    form = await request.form()
    data = parse_material(form)
    repo.update(material_id, data)
    return RedirectResponse(url=gate.DEALER, status_code=302)


@web_router.post("/dealer/materials/{material_id}/toggle")
async def toggle_material(
    material_id: str,
    user: User = Depends(require_page(gate.DEALER)),
    repo: MaterialRepository = Depends(get_materials),
):
    _owned_material(repo, material_id, user)
    repo.toggle_active(material_id)
    return RedirectResponse(url=gate.DEALER, status_code=302)


@web_router.post("/dealer/materials/{material_id}/delete")
async def delete_material(
    material_id: str,
    user: User = Depends(require_page(gate.DEALER)),
    repo: MaterialRepository = Depends(get_materials),
):
    _owned_material(repo, material_id, user)
    repo.delete(material_id)
    return RedirectResponse(url=gate.DEALER, status_code=302)


# =============================================================================
# Contractor dashboard
# =============================================================================

@web_router.get("/contractor")
async def contractor_dashboard(
    q: str = "",
    user: User = Depends(require_page(gate.CONTRACTOR)),
    repo: MaterialRepository = Depends(get_materials),
):
    materials = repo.list_active()
    found = search_materials(materials, q)
    return {
        "page": "contractor",
        "user": public_user(user),
        "query": q,
        "total": len(materials),
        "showing": len(found),
        "materials": [material_view(m, with_contact=True) for m in found],
    }


# =============================================================================
# Everything else
# =============================================================================

@web_router.get("/{path:path}")
async def catch_all(
    path: str,
    request: Request,
    auth: AuthSessionManager = Depends(get_auth),
    profiles: ProfileService = Depends(get_profiles),
):
    decision = gate.check(auth, profiles, "/" + path)
    if decision.is_redirect:
        raise redirect(request, decision.path)
    if decision.is_render:
        # Known page reached through a non-canonical path, e.g. "/dealer/"
        raise redirect(request, decision.path)
    raise PageNotFound(decision.path)
