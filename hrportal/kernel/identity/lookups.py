"""
Ordered lookup strategies for login identifiers and source records.

A user may sign in with the login ID assigned to the account or with the
Employee ID of the source record it was activated from. Each strategy maps
an identifier to at most one record; strategies are tried in order and the
first match wins.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.kernel.models.account import Account, Role
from hrportal.kernel.models.base import Base
from hrportal.kernel.models.source_record import Employee, Manager


@dataclass(frozen=True)
class LookupStrategy:
    """Find a row of ``model`` whose ``field`` equals the identifier."""

    name: str
    model: Type[Base]
    field: str

    async def __call__(self, session: AsyncSession, identifier: str) -> Optional[Any]:
        column = getattr(self.model, self.field)
        result = await session.execute(select(self.model).where(column == identifier).limit(1))
        return result.scalars().first()


@dataclass(frozen=True)
class SourceLookup(LookupStrategy):
    """Source record lookup tagged with the role an activation grants."""

    role: Role = Role.EMPLOYEE


BY_LOGIN_ID = LookupStrategy("login_id", Account, "login_id")
BY_EMPLOYEE_REF = LookupStrategy("employee_ref", Account, "employee_ref")

# Primary identifier first, then the source Employee ID
LOGIN_LOOKUPS: Tuple[LookupStrategy, ...] = (BY_LOGIN_ID, BY_EMPLOYEE_REF)

MANAGER_SOURCE = SourceLookup("manager_id", Manager, "manager_id", role=Role.MANAGER)
EMPLOYEE_SOURCE = SourceLookup("employee_id", Employee, "employee_id", role=Role.EMPLOYEE)

SOURCE_LOOKUPS: Tuple[SourceLookup, ...] = (MANAGER_SOURCE, EMPLOYEE_SOURCE)


async def first_match(
    strategies: Sequence[LookupStrategy],
    session: AsyncSession,
    identifier: str,
) -> Tuple[Optional[LookupStrategy], Optional[Any]]:
    """Run strategies in order; return the first strategy that matched and its row."""
    for strategy in strategies:
        record = await strategy(session, identifier)
        if record is not None:
            return strategy, record
    return None, None
