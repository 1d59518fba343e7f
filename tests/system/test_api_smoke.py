"""
System smoke test: full API flow in-process with SQLite.

Registers a company, provisions and activates an employee, signs in with
both identifiers, runs page gates, changes account status and reads the
audit history.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hrportal.main import app


API = "/api/v1"


@pytest_asyncio.fixture
async def client(db_engine):
    """Async client against the app; the schema comes from db_engine."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


async def _register_company(client: AsyncClient) -> dict:
    r = await client.post(
        f"{API}/auth/register-company",
        json={
            "company_name": "Acme Industries",
            "email": "admin@acme.example",
            "password": "AdminPass123",
            "confirm_password": "AdminPass123",
            "admin_name": "Ada Admin",
            "industry_type": "Manufacturing",
        },
    )
    assert r.status_code == 201, r.text
    return r.json()


async def _login(client: AsyncClient, login_id: str, password: str) -> dict:
    r = await client.post(f"{API}/auth/login", json={"login_id": login_id, "password": password})
    assert r.status_code == 200, r.text
    data = r.json()
    return {"Authorization": f"Bearer {data['id_token']}"}


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert "X-Request-ID" in r.headers


@pytest.mark.asyncio
async def test_admin_flow(client: AsyncClient):
    company = await _register_company(client)
    admin_login_id = company["login_id"]
    assert company["principal"]["role"] == "admin"
    assert company["company_id"] == company["principal"]["uid"]
    
    headers = await _login(client, admin_login_id, "AdminPass123")
    
    r = await client.get(f"{API}/auth/me", headers=headers)
    assert r.status_code == 200
    me = r.json()
    assert me["login_id"] == admin_login_id
    assert me["last_login_at"] is not None
    
    r = await client.get(f"{API}/pages/salary-structure", headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "allowed"
    
    r = await client.patch(f"{API}/auth/me", headers=headers, json={"display_name": "Ada Lovelace"})
    assert r.status_code == 200
    assert r.json()["display_name"] == "Ada Lovelace"


@pytest.mark.asyncio
async def test_employee_activation_flow(client: AsyncClient):
    company = await _register_company(client)
    admin = await _login(client, company["login_id"], "AdminPass123")
    
    r = await client.post(
        f"{API}/directory/employees",
        headers=admin,
        json={
            "employee_id": "E-1001",
            "full_name": "Eve Employee",
            "email": "eve@acme.example",
            "department": "Engineering",
        },
    )
    assert r.status_code == 201, r.text
    
    r = await client.post(
        f"{API}/auth/activate",
        json={"identifier": "E-1001", "password": "EvePass1", "confirm_password": "EvePass1"},
    )
    assert r.status_code == 201, r.text
    employee_uid = r.json()["principal"]["uid"]
    assert r.json()["principal"]["role"] == "employee"
    
    # Second activation of the same ID
    r = await client.post(
        f"{API}/auth/activate",
        json={"identifier": "E-1001", "password": "EvePass2", "confirm_password": "EvePass2"},
    )
    assert r.status_code == 409
    assert r.json()["code"] == "ACCOUNT_ALREADY_ACTIVATED"
    
    employee = await _login(client, "E-1001", "EvePass1")
    
    r = await client.get(f"{API}/pages/profile", headers=employee)
    assert r.status_code == 200
    
    r = await client.get(f"{API}/pages/payroll", headers=employee, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    
    r = await client.get(f"{API}/pages", headers=employee)
    keys = [page["key"] for page in r.json()]
    assert "profile" in keys and "payroll" not in keys
    
    r = await client.get(f"{API}/directory/employees", headers=employee)
    assert r.status_code == 403
    
    # Admin suspends the employee; the next login is refused
    r = await client.patch(
        f"{API}/directory/accounts/{employee_uid}/status",
        headers=admin,
        json={"status": "suspended"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "suspended"
    
    r = await client.post(f"{API}/auth/login", json={"login_id": "E-1001", "password": "EvePass1"})
    assert r.status_code == 403
    assert r.json()["code"] == "ACCOUNT_DISABLED"
    
    # The suspended employee's token no longer restores a session
    r = await client.get(f"{API}/auth/me", headers=employee)
    assert r.status_code == 401
    
    r = await client.get(f"{API}/history", headers=admin)
    assert r.status_code == 200
    event_types = {event["event_type"] for event in r.json()}
    assert {
        "company.registered",
        "source_record.provisioned",
        "account.activated",
        "account.status_changed",
    } <= event_types

    r = await client.get(f"{API}/history/accounts/{employee_uid}", headers=admin)
    assert r.status_code == 200
    account_events = [event["event_type"] for event in r.json()]
    assert "account.activated" in account_events
    assert "account.status_changed" in account_events

    r = await client.get(f"{API}/history/accounts/{uuid.uuid4()}", headers=admin)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_login_errors(client: AsyncClient):
    company = await _register_company(client)
    
    r = await client.post(f"{API}/auth/login", json={"login_id": "NOBODY", "password": "x"})
    assert r.status_code == 404
    assert r.json()["code"] == "ACCOUNT_NOT_FOUND"
    assert r.json()["request_id"] == r.headers["X-Request-ID"]
    
    r = await client.post(
        f"{API}/auth/login",
        json={"login_id": company["login_id"], "password": "WrongPass1"},
    )
    assert r.status_code == 401
    assert r.json()["code"] == "INVALID_CREDENTIALS"
    
    r = await client.post(f"{API}/auth/login", json={"login_id": "   ", "password": "x"})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_unauthenticated_page_redirects_to_login(client: AsyncClient):
    r = await client.get(f"{API}/pages/dashboard", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    
    r = await client.get(f"{API}/pages/not-a-page")
    assert r.status_code == 404
    
    r = await client.get(f"{API}/auth/me")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_manager_registration_and_logout(client: AsyncClient):
    company = await _register_company(client)
    admin = await _login(client, company["login_id"], "AdminPass123")
    
    r = await client.post(
        f"{API}/auth/register",
        headers=admin,
        json={
            "email": "mo@acme.example",
            "password": "ManagerPass1",
            "confirm_password": "ManagerPass1",
            "display_name": "Mo Manager",
            "role": "manager",
            "tenant_id": company["company_id"],
        },
    )
    assert r.status_code == 201, r.text
    manager_login_id = r.json()["login_id"]
    
    manager = await _login(client, manager_login_id, "ManagerPass1")
    
    r = await client.get(f"{API}/pages/managers", headers=manager, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    
    r = await client.post(
        f"{API}/directory/managers",
        headers=manager,
        json={"manager_id": "M-1", "full_name": "Peer", "email": "peer@acme.example"},
    )
    assert r.status_code == 403
    
    r = await client.post(f"{API}/auth/logout", headers=manager)
    assert r.status_code == 200
    
    r = await client.get(f"{API}/history", headers=manager)
    assert r.status_code == 200
    assert any(event["event_type"] == "account.logged_out" for event in r.json())


async def _provision_and_activate(client: AsyncClient, admin: dict) -> dict:
    r = await client.post(
        f"{API}/directory/employees",
        headers=admin,
        json={"employee_id": "E-7", "full_name": "Eve Employee", "email": "eve@acme.example"},
    )
    assert r.status_code == 201, r.text
    r = await client.post(
        f"{API}/auth/activate",
        json={"identifier": "E-7", "password": "EvePass1", "confirm_password": "EvePass1"},
    )
    assert r.status_code == 201, r.text
    return await _login(client, "E-7", "EvePass1")


@pytest.mark.asyncio
async def test_manager_registration_requires_company_admin(client: AsyncClient):
    company = await _register_company(client)
    admin = await _login(client, company["login_id"], "AdminPass123")
    employee = await _provision_and_activate(client, admin)
    
    r = await client.get(f"{API}/auth/me", headers=employee)
    tenant_id = r.json()["tenant_id"]
    assert tenant_id == company["company_id"]
    
    manager_form = {
        "email": "intruder@acme.example",
        "password": "Intruder1",
        "confirm_password": "Intruder1",
        "display_name": "Intruder",
        "role": "manager",
        "tenant_id": tenant_id,
    }
    
    r = await client.post(f"{API}/auth/register", json=manager_form)
    assert r.status_code == 401
    
    r = await client.post(f"{API}/auth/register", headers=employee, json=manager_form)
    assert r.status_code == 403
    assert r.json()["code"] == "PERMISSION_DENIED"
    
    r = await client.post(
        f"{API}/auth/register-company",
        json={
            "company_name": "Rival Corp",
            "email": "boss@rival.example",
            "password": "RivalBoss1",
            "confirm_password": "RivalBoss1",
            "admin_name": "Rival Boss",
        },
    )
    assert r.status_code == 201, r.text
    rival = await _login(client, r.json()["login_id"], "RivalBoss1")
    
    r = await client.post(f"{API}/auth/register", headers=rival, json=manager_form)
    assert r.status_code == 403
    
    # Only the admin's own registration is on record
    r = await client.get(
        f"{API}/history",
        headers=admin,
        params={"event_type": "account.registered"},
    )
    assert r.status_code == 200
    assert [event["entity_id"] for event in r.json()] == [company["company_id"]]


@pytest.mark.asyncio
async def test_admin_created_employee_signs_in_with_either_id(client: AsyncClient):
    company = await _register_company(client)
    admin = await _login(client, company["login_id"], "AdminPass123")
    
    r = await client.post(
        f"{API}/directory/employees",
        headers=admin,
        json={"employee_id": "E-2002", "full_name": "Sam Staff", "email": "sam@acme.example"},
    )
    assert r.status_code == 201, r.text
    
    account_form = {
        "email": "sam@acme.example",
        "password": "SamPass1",
        "confirm_password": "SamPass1",
        "display_name": "Sam Staff",
    }
    r = await client.post(
        f"{API}/directory/employees/E-2002/account",
        headers=admin,
        json=account_form,
    )
    assert r.status_code == 201, r.text
    login_id = r.json()["login_id"]
    assert login_id.startswith("EMP-")
    assert r.json()["principal"]["employee_ref"] == "E-2002"
    
    r = await client.post(
        f"{API}/directory/employees/E-2002/account",
        headers=admin,
        json={**account_form, "email": "sam.two@acme.example"},
    )
    assert r.status_code == 409
    assert r.json()["code"] == "ACCOUNT_ALREADY_ACTIVATED"
    
    by_employee_id = await _login(client, "E-2002", "SamPass1")
    by_login_id = await _login(client, login_id, "SamPass1")
    me_a = (await client.get(f"{API}/auth/me", headers=by_employee_id)).json()
    me_b = (await client.get(f"{API}/auth/me", headers=by_login_id)).json()
    for field in ("uid", "login_id", "role", "tenant_id", "employee_ref"):
        assert me_a[field] == me_b[field]
    
    r = await client.post(
        f"{API}/directory/employees/E-2002/account",
        headers=by_login_id,
        json={**account_form, "email": "sam.three@acme.example"},
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_ids_are_unique_across_directories(client: AsyncClient):
    company = await _register_company(client)
    admin = await _login(client, company["login_id"], "AdminPass123")
    
    r = await client.post(
        f"{API}/directory/managers",
        headers=admin,
        json={"manager_id": "X1", "full_name": "Max Manager", "email": "max@acme.example"},
    )
    assert r.status_code == 201, r.text
    
    r = await client.post(
        f"{API}/directory/employees",
        headers=admin,
        json={"employee_id": "X1", "full_name": "Xena Employee", "email": "xena@acme.example"},
    )
    assert r.status_code == 409
    assert r.json()["code"] == "SOURCE_RECORD_EXISTS"
