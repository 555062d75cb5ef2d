"""Web dependencies: per-browser session, services and route gating."""

import secrets
from typing import Callable

from fastapi import Depends, HTTPException, Request

from matlynx import gate
from matlynx.auth import AuthSessionManager
from matlynx.contracts.records import User
from matlynx.materials import MaterialRepository
from matlynx.profiles import ProfileService
from matlynx.settings import get_settings
from matlynx.store.collections import CURRENT_USER_KEY, Store


class GateRedirect(HTTPException):
    """Exception that sends the browser to another page."""

    def __init__(self, redirect_url: str):
        super().__init__(status_code=302, headers={"Location": redirect_url})


class PageNotFound(HTTPException):
    """Exception for paths that are not a page."""

    def __init__(self, path: str):
        super().__init__(status_code=404, detail={"page": "not-found", "path": path})


def session_key_for(sid: str) -> str:
    return f"{CURRENT_USER_KEY}:{sid}"


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_session_id(request: Request) -> str:
    """
    Session id from the cookie, or a fresh one.

    A fresh id is stashed on request.state so the router can set the
    cookie once a session actually starts.
    """
    cookie_name = get_settings().SESSION_COOKIE_NAME
    sid = request.cookies.get(cookie_name)
    if not sid:
        sid = getattr(request.state, "new_session_id", None) or secrets.token_urlsafe(32)
        request.state.new_session_id = sid
    return sid


def get_auth(
    store: Store = Depends(get_store),
    sid: str = Depends(get_session_id),
) -> AuthSessionManager:
    return AuthSessionManager(store, session_key=session_key_for(sid))


def get_profiles(request: Request, store: Store = Depends(get_store)) -> ProfileService:
    return ProfileService(store, clock=request.app.state.clock)


def get_materials(request: Request, store: Store = Depends(get_store)) -> MaterialRepository:
    return MaterialRepository(store, clock=request.app.state.clock)


def get_optional_web_user(auth: AuthSessionManager = Depends(get_auth)) -> User | None:
    return auth.current_session()


def redirect(request: Request, target: str) -> HTTPException:
    # For HTMX requests, return HX-Redirect header
    if request.headers.get("HX-Request"):
        return HTTPException(status_code=200, headers={"HX-Redirect": target})
    return GateRedirect(target)


def require_page(page: str) -> Callable[..., User | None]:
    """
    Dependency that runs the route gate for page.

    Redirects or 404s when the gate says so; otherwise returns the
    session user (None only on the auth page).
    """

    def dependency(
        request: Request,
        auth: AuthSessionManager = Depends(get_auth),
        profiles: ProfileService = Depends(get_profiles),
    ) -> User | None:
        decision = gate.check(auth, profiles, page)
        if decision.is_redirect:
            raise redirect(request, decision.path)
        if not decision.is_render:
            raise PageNotFound(decision.path)
        return auth.current_session()

    return dependency
