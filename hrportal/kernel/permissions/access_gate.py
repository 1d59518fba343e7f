"""
Access gate: decide whether a page renders, waits, or redirects.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from hrportal.config import Settings, get_settings
from hrportal.kernel.models.account import Role
from hrportal.kernel.permissions.pages import Page
from hrportal.kernel.permissions.roles import ALL_ROLES
from hrportal.kernel.session.state import Anonymous, SessionState


class GateStatus(str, Enum):
    LOADING = "loading"
    ALLOWED = "allowed"
    DENIED = "denied"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class GateDecision:
    status: GateStatus
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.status == GateStatus.ALLOWED


def evaluate(
    state: SessionState,
    allowed_roles: Iterable[Role] = ALL_ROLES,
    fallback: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> GateDecision:
    """
    Gate decision for one page.

    Args:
        state: Current session state
        allowed_roles: Roles the page admits
        fallback: Redirect target for denied non-employee roles; defaults to
            the dashboard path
        settings: Source of the login and dashboard paths

    Returns:
        The GateDecision. Loading never redirects.
    """
    settings = settings or get_settings()

    if state.is_loading:
        return GateDecision(GateStatus.LOADING)

    principal = state.principal
    if isinstance(state, Anonymous) or principal is None:
        return GateDecision(GateStatus.UNAUTHENTICATED, settings.login_path)

    if principal.role not in frozenset(allowed_roles):
        # Employees always land on the dashboard to avoid redirect loops
        if principal.role == Role.EMPLOYEE:
            target = settings.dashboard_path
        else:
            target = fallback or settings.dashboard_path
        return GateDecision(GateStatus.DENIED, target)

    return GateDecision(GateStatus.ALLOWED)


def evaluate_page(
    state: SessionState,
    page: Page,
    settings: Optional[Settings] = None,
) -> GateDecision:
    return evaluate(state, page.allowed_roles, page.fallback, settings)


@dataclass(frozen=True)
class GateResult:
    decision: GateDecision
    should_redirect: bool


class AccessGate:
    """
    Gate bound to one rendered page.

    Re-run ``update`` whenever the session state or the page's role set
    changes. A redirect is requested only when the decision differs from the
    previous one, so repeated evaluation with unchanged inputs is a no-op.
    """

    def __init__(
        self,
        allowed_roles: Iterable[Role] = ALL_ROLES,
        fallback: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        self.allowed_roles: FrozenSet[Role] = frozenset(allowed_roles)
        self.fallback = fallback
        self.settings = settings or get_settings()
        self._last: Optional[GateDecision] = None

    @classmethod
    def for_page(cls, page: Page, settings: Optional[Settings] = None) -> "AccessGate":
        return cls(page.allowed_roles, page.fallback, settings)

    @property
    def decision(self) -> Optional[GateDecision]:
        return self._last

    def update(
        self,
        state: SessionState,
        allowed_roles: Optional[Iterable[Role]] = None,
    ) -> GateResult:
        if allowed_roles is not None:
            self.allowed_roles = frozenset(allowed_roles)

        decision = evaluate(state, self.allowed_roles, self.fallback, self.settings)
        changed = decision != self._last
        self._last = decision
        return GateResult(
            decision=decision,
            should_redirect=changed and decision.redirect_to is not None,
        )
