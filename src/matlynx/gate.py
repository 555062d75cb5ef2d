"""
Route Gate

Decides, for a session user, their profile completeness and a requested
path, whether the page renders, redirects elsewhere, or is not found.

Dealers must complete their profile before reaching their dashboard or
settings. Contractors are exempt from that requirement: they can use
their dashboard with an incomplete profile.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from matlynx.contracts.records import User
from matlynx.contracts.types import UserRole

if TYPE_CHECKING:
    from matlynx.auth import AuthSessionManager
    from matlynx.profiles import ProfileService

HOME = "/"
AUTH = "/auth"
PROFILE_SETUP = "/profile-setup"
SETTINGS = "/settings"
DEALER = "/dealer"
CONTRACTOR = "/contractor"

PAGES = frozenset({HOME, AUTH, PROFILE_SETUP, SETTINGS, DEALER, CONTRACTOR})

DASHBOARDS: dict[UserRole, str] = {
    UserRole.DEALER: DEALER,
    UserRole.CONTRACTOR: CONTRACTOR,
}

MAX_REDIRECTS = 5


class GateAction(str, Enum):
    RENDER = "render"
    REDIRECT = "redirect"
    NOT_FOUND = "not_found"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class GateDecision:
    """
    Outcome of a gate check.

    Attributes:
        action: render, redirect or not_found
        path: Page to render, redirect target, or the unknown path
    """

    action: GateAction
    path: str

    @classmethod
    def render(cls, path: str) -> "GateDecision":
        return cls(GateAction.RENDER, path)

    @classmethod
    def redirect(cls, target: str) -> "GateDecision":
        return cls(GateAction.REDIRECT, target)

    @classmethod
    def not_found(cls, path: str) -> "GateDecision":
        return cls(GateAction.NOT_FOUND, path)

    @property
    def is_render(self) -> bool:
        return self.action == GateAction.RENDER

    @property
    def is_redirect(self) -> bool:
        return self.action == GateAction.REDIRECT


def normalize_path(path: str) -> str:
    """Drop query string and trailing slash ("/dealer/?x=1" -> "/dealer")."""
    path = path.split("?", 1)[0].split("#", 1)[0] or HOME
    if len(path) > 1:
        path = path.rstrip("/") or HOME
    return path


def dashboard_for(role: UserRole | str) -> str:
    return DASHBOARDS[UserRole(role)]


def decide(user: User | None, profile_complete: bool, path: str) -> GateDecision:
    """Single navigation step for path."""
    path = normalize_path(path)

    if path not in PAGES:
        return GateDecision.not_found(path)

    if user is None:
        if path == AUTH:
            return GateDecision.render(path)
        return GateDecision.redirect(AUTH)

    dashboard = dashboard_for(user.role)

    if path in (HOME, AUTH):
        return GateDecision.redirect(dashboard)

    if path in (DEALER, CONTRACTOR) and path != dashboard:
        return GateDecision.redirect(dashboard)

    if path == PROFILE_SETUP:
        if profile_complete:
            return GateDecision.redirect(dashboard)
        return GateDecision.render(path)

    # Dashboard or settings of the user's own role
    if user.role == UserRole.DEALER and not profile_complete:
        return GateDecision.redirect(PROFILE_SETUP)

    return GateDecision.render(path)


def resolve(user: User | None, profile_complete: bool, path: str) -> GateDecision:
    """
    Follow redirects until a page renders or is not found.

    Raises:
        RuntimeError: More than MAX_REDIRECTS hops
    """
    decision = decide(user, profile_complete, path)
    hops = 0
    while decision.is_redirect:
        hops += 1
        if hops > MAX_REDIRECTS:
            raise RuntimeError(f"Redirect loop resolving {path}")
        decision = decide(user, profile_complete, decision.path)
    return decision


def check(auth: "AuthSessionManager", profiles: "ProfileService", path: str) -> GateDecision:
    """decide() for the session user of auth, with completeness read fresh from profiles."""
    user = auth.current_session()
    complete = profiles.has_complete_profile(user.email) if user else False
    return decide(user, complete, path)
