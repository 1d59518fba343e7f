"""
Pytest fixtures for the HR portal tests.

Tests run against a temp-file SQLite database so the request session and the
identity provider's own sessions see the same data.
"""

import os
import tempfile
from typing import AsyncGenerator

# Use file-based SQLite so all connections share the same DB (in-memory is per-connection)
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-32-chars"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["MAX_FAILED_ATTEMPTS"] = "3"

# Force config reload so everything uses the test DB
from hrportal.config import get_settings
get_settings.cache_clear()

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.database import async_session_maker, engine
from hrportal.kernel.identity.account_service import AccountService
from hrportal.kernel.identity.principal import Principal
from hrportal.kernel.identity.provider import SqlIdentityProvider
from hrportal.kernel.identity.session_resolver import SessionResolver
from hrportal.kernel.models import Base
from hrportal.kernel.models.account import Role


ADMIN_PASSWORD = "AdminPass123"
EMPLOYEE_PASSWORD = "EmployeePass1"


@pytest_asyncio.fixture
async def db_engine():
    """Fresh schema for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    
    yield engine
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """A unit-of-work session; tests commit where a request would."""
    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def provider(db_engine) -> SqlIdentityProvider:
    return SqlIdentityProvider(async_session_maker)


@pytest.fixture
def resolver(db_session: AsyncSession, provider: SqlIdentityProvider) -> SessionResolver:
    return SessionResolver(db_session, provider)


@pytest.fixture
def accounts(db_session: AsyncSession, provider: SqlIdentityProvider) -> AccountService:
    return AccountService(db_session, provider)


@pytest_asyncio.fixture
async def company_admin(db_session: AsyncSession, accounts: AccountService) -> Principal:
    """A registered company and its admin."""
    principal, _ = await accounts.register_company(
        company_name="Acme Industries",
        email="admin@acme.example",
        password=ADMIN_PASSWORD,
        admin_name="Ada Admin",
    )
    await db_session.commit()
    return principal


@pytest_asyncio.fixture
async def provisioned_employee(
    db_session: AsyncSession,
    accounts: AccountService,
    company_admin: Principal,
):
    """An employee source record that has not been activated yet."""
    employee = await accounts.provision_employee(
        company_admin,
        employee_id="E-1001",
        full_name="Eve Employee",
        email="eve@acme.example",
        department="Engineering",
    )
    await db_session.commit()
    return employee


@pytest_asyncio.fixture
async def active_employee(
    db_session: AsyncSession,
    resolver: SessionResolver,
    provisioned_employee,
) -> Principal:
    """An activated employee account."""
    principal = await resolver.activate_account(
        provisioned_employee.employee_id,
        EMPLOYEE_PASSWORD,
        role=Role.EMPLOYEE,
    )
    await db_session.commit()
    return principal


@pytest_asyncio.fixture
async def admin_created_employee(
    db_session: AsyncSession,
    accounts: AccountService,
    company_admin: Principal,
    provisioned_employee,
) -> Principal:
    """An employee account set up by the admin: generated User ID, Employee ID as employee_ref."""
    principal = await accounts.create_employee_account(
        company_admin,
        employee_id=provisioned_employee.employee_id,
        email=provisioned_employee.email,
        password=EMPLOYEE_PASSWORD,
        display_name=provisioned_employee.full_name,
    )
    await db_session.commit()
    return principal
