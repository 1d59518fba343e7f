"""
Session state variants.

A browsing context is in exactly one of three states: the provider has not
reported yet (Loading), someone is signed in (Authenticated) or nobody is
(Anonymous).
"""

from dataclasses import dataclass
from typing import Optional

from hrportal.kernel.identity.principal import Principal


class SessionState:
    """Base for the three session states."""

    principal: Optional[Principal] = None

    @property
    def is_loading(self) -> bool:
        return False


@dataclass(frozen=True)
class Loading(SessionState):
    @property
    def is_loading(self) -> bool:
        return True


@dataclass(frozen=True)
class Anonymous(SessionState):
    pass


@dataclass(frozen=True)
class Authenticated(SessionState):
    principal: Principal


LOADING = Loading()
ANONYMOUS = Anonymous()
