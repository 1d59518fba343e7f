"""
Session state variants. The holder lives in ``hrportal.kernel.session.context``.
"""

from hrportal.kernel.session.state import (
    ANONYMOUS,
    LOADING,
    Anonymous,
    Authenticated,
    Loading,
    SessionState,
)

__all__ = [
    "ANONYMOUS",
    "LOADING",
    "Anonymous",
    "Authenticated",
    "Loading",
    "SessionState",
]
