"""
Integration tests for AccountService: registration, profile, status and provisioning.
"""

import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from hrportal.database import async_session_maker
from hrportal.kernel.identity.errors import (
    AccountAlreadyActivated,
    AccountDisabled,
    AccountNotFound,
    EmailTaken,
    LoginIdTaken,
    PermissionDenied,
    SourceRecordExists,
    SourceRecordNotFound,
    TenantNotFound,
)
from hrportal.kernel.identity.principal import Principal
from hrportal.kernel.models.account import Account, AccountStatus, Role
from hrportal.kernel.models.company import Company
from hrportal.kernel.models.event_log import EventLog, EventType
from hrportal.kernel.models.provider_identity import ProviderIdentity

from conftest import ADMIN_PASSWORD, EMPLOYEE_PASSWORD


class TestRegistration:
    """Direct registration of admins and managers."""
    
    @pytest.mark.asyncio
    async def test_company_registration(self, db_session, company_admin):
        company = await db_session.get(Company, company_admin.uid)
        
        assert company.company_name == "Acme Industries"
        assert company_admin.role == Role.ADMIN
        assert company_admin.tenant_id is None
        assert company_admin.login_id.startswith("ADMIN-")
    
    @pytest.mark.asyncio
    async def test_admin_registers_manager(self, db_session, accounts, company_admin):
        principal = await accounts.register(
            email="mo@acme.example",
            password="ManagerPass1",
            display_name="Mo Manager",
            role=Role.MANAGER,
            actor=company_admin,
        )
        
        assert principal.role == Role.MANAGER
        assert principal.tenant_id == company_admin.uid
        assert principal.login_id.startswith("MGR-")
        # Registration does not sign the new account in
        assert accounts.provider.current_identity is None
    
    @pytest.mark.asyncio
    async def test_manager_registration_without_actor(self, db_session, accounts, company_admin):
        with pytest.raises(PermissionDenied):
            await accounts.register(
                email="mo@acme.example",
                password="ManagerPass1",
                display_name="Mo Manager",
                role=Role.MANAGER,
                tenant_id=company_admin.uid,
            )
        
        identity = (
            await db_session.execute(
                select(ProviderIdentity).where(ProviderIdentity.email == "mo@acme.example")
            )
        ).scalar_one_or_none()
        assert identity is None
    
    @pytest.mark.asyncio
    async def test_employee_cannot_register_manager(self, accounts, company_admin, active_employee):
        with pytest.raises(PermissionDenied):
            await accounts.register(
                email="mo@acme.example",
                password="ManagerPass1",
                display_name="Mo Manager",
                role=Role.MANAGER,
                tenant_id=active_employee.tenant_id,
                actor=active_employee,
            )
    
    @pytest.mark.asyncio
    async def test_manager_cannot_join_another_company(self, db_session, accounts, company_admin):
        other_admin, _ = await accounts.register_company(
            company_name="Other Co",
            email="boss@other.example",
            password="OtherBoss1",
            admin_name="Other Boss",
        )
        await db_session.commit()
        
        with pytest.raises(PermissionDenied):
            await accounts.register(
                email="mo@acme.example",
                password="ManagerPass1",
                display_name="Mo Manager",
                role=Role.MANAGER,
                tenant_id=company_admin.uid,
                actor=other_admin,
            )
    
    @pytest.mark.asyncio
    async def test_manager_with_unknown_tenant(self, db_session, accounts, company_admin):
        stale_admin = Principal(
            uid=uuid.uuid4(),
            login_id="ADMIN-000000",
            role=Role.ADMIN,
            email="gone@acme.example",
            display_name="Gone Admin",
        )
        with pytest.raises(TenantNotFound):
            await accounts.register(
                email="mo@acme.example",
                password="ManagerPass1",
                display_name="Mo Manager",
                role=Role.MANAGER,
                actor=stale_admin,
            )
        
        identity = (
            await db_session.execute(
                select(ProviderIdentity).where(ProviderIdentity.email == "mo@acme.example")
            )
        ).scalar_one_or_none()
        assert identity is None
    
    @pytest.mark.asyncio
    async def test_employees_cannot_self_register(self, accounts, company_admin):
        with pytest.raises(ValueError):
            await accounts.register(
                email="eve@acme.example",
                password=EMPLOYEE_PASSWORD,
                display_name="Eve",
                role=Role.EMPLOYEE,
                tenant_id=company_admin.uid,
            )
    
    @pytest.mark.asyncio
    async def test_duplicate_email(self, accounts, company_admin):
        with pytest.raises(EmailTaken):
            await accounts.register(
                email="ADMIN@acme.example",
                password=ADMIN_PASSWORD,
                display_name="Second Admin",
                role=Role.ADMIN,
            )
    
    @pytest.mark.asyncio
    async def test_explicit_login_id_must_be_unique(self, accounts, company_admin):
        with pytest.raises(LoginIdTaken):
            await accounts.register(
                email="new@acme.example",
                password="NewAdmin1",
                display_name="New Admin",
                role=Role.ADMIN,
                login_id=company_admin.login_id,
            )


class TestProfileAndStatus:
    """Profile edits and account status changes."""
    
    @pytest.mark.asyncio
    async def test_update_profile(self, db_session, accounts, company_admin):
        principal = await accounts.update_profile(
            company_admin.uid,
            display_name="Ada Lovelace",
            phone_number="+1 555 0100",
        )
        await db_session.commit()
        
        assert principal.display_name == "Ada Lovelace"
        identity = await db_session.get(ProviderIdentity, company_admin.uid)
        await db_session.refresh(identity)
        assert identity.display_name == "Ada Lovelace"
    
    @pytest.mark.asyncio
    async def test_unchanged_profile_is_not_audited(self, db_session, accounts, company_admin):
        await accounts.update_profile(company_admin.uid, display_name="Ada Admin")
        await db_session.commit()
        
        events = (
            await db_session.execute(
                select(EventLog).where(EventLog.event_type == EventType.ACCOUNT_PROFILE_UPDATED)
            )
        ).scalars().all()
        assert events == []
    
    @pytest.mark.asyncio
    async def test_update_profile_of_missing_account(self, accounts, company_admin):
        with pytest.raises(AccountNotFound):
            await accounts.update_profile(uuid.uuid4(), display_name="Nobody")
    
    @pytest.mark.asyncio
    async def test_suspended_account_cannot_log_in(
        self, db_session, accounts, resolver, company_admin, active_employee
    ):
        principal = await accounts.set_status(company_admin, active_employee.uid, AccountStatus.SUSPENDED)
        await db_session.commit()
        
        assert principal.status == AccountStatus.SUSPENDED
        with pytest.raises(AccountDisabled):
            await resolver.resolve_by_credentials("E-1001", EMPLOYEE_PASSWORD)
    
    @pytest.mark.asyncio
    async def test_reactivated_account_can_log_in(
        self, db_session, accounts, resolver, company_admin, active_employee
    ):
        await accounts.set_status(company_admin, active_employee.uid, AccountStatus.INACTIVE)
        await db_session.commit()
        await accounts.set_status(company_admin, active_employee.uid, AccountStatus.ACTIVE)
        await db_session.commit()
        
        principal = await resolver.resolve_by_credentials("E-1001", EMPLOYEE_PASSWORD)
        assert principal.status == AccountStatus.ACTIVE
    
    @pytest.mark.asyncio
    async def test_only_admins_change_status(self, accounts, active_employee):
        with pytest.raises(PermissionDenied):
            await accounts.set_status(active_employee, active_employee.uid, AccountStatus.INACTIVE)
    
    @pytest.mark.asyncio
    async def test_status_change_is_tenant_scoped(self, db_session, accounts, active_employee):
        other_admin, _ = await accounts.register_company(
            company_name="Other Co",
            email="boss@other.example",
            password="OtherBoss1",
            admin_name="Other Boss",
        )
        await db_session.commit()
        
        with pytest.raises(AccountNotFound):
            await accounts.set_status(other_admin, active_employee.uid, AccountStatus.SUSPENDED)


class TestProvisioning:
    """Source records created by admins and managers."""
    
    @pytest.mark.asyncio
    async def test_employee_record_is_tenant_scoped(self, accounts, company_admin, provisioned_employee):
        assert provisioned_employee.tenant_id == company_admin.uid
        
        employees = await accounts.list_employees(company_admin)
        assert [e.employee_id for e in employees] == ["E-1001"]
    
    @pytest.mark.asyncio
    async def test_duplicate_employee_id(self, accounts, company_admin, provisioned_employee):
        with pytest.raises(SourceRecordExists):
            await accounts.provision_employee(
                company_admin,
                employee_id="E-1001",
                full_name="Someone Else",
                email="else@acme.example",
            )
    
    @pytest.mark.asyncio
    async def test_employees_cannot_provision(self, accounts, active_employee):
        with pytest.raises(PermissionDenied):
            await accounts.provision_employee(
                active_employee,
                employee_id="E-2000",
                full_name="Friend",
                email="friend@acme.example",
            )
    
    @pytest.mark.asyncio
    async def test_managers_cannot_provision_managers(self, db_session, accounts, company_admin):
        manager = await accounts.register(
            email="mo@acme.example",
            password="ManagerPass1",
            display_name="Mo Manager",
            role=Role.MANAGER,
            actor=company_admin,
        )
        await db_session.commit()
        
        with pytest.raises(PermissionDenied):
            await accounts.provision_manager(
                manager,
                manager_id="M-77",
                full_name="Peer",
                email="peer@acme.example",
            )
        
        employee = await accounts.provision_employee(
            manager,
            employee_id="E-3000",
            full_name="Report",
            email="report@acme.example",
        )
        assert employee.tenant_id == company_admin.uid
    
    @pytest.mark.asyncio
    async def test_manager_and_employee_cannot_share_an_id(self, db_session, accounts, company_admin):
        await accounts.provision_manager(
            company_admin,
            manager_id="X1",
            full_name="Max Manager",
            email="max@acme.example",
        )
        await db_session.commit()
        
        with pytest.raises(SourceRecordExists) as exc_info:
            await accounts.provision_employee(
                company_admin,
                employee_id="X1",
                full_name="Xena Employee",
                email="xena@acme.example",
            )
        assert exc_info.value.context["used_as"] == "manager_id"
    
    @pytest.mark.asyncio
    async def test_manager_id_cannot_reuse_an_employee_id(self, accounts, company_admin, provisioned_employee):
        with pytest.raises(SourceRecordExists):
            await accounts.provision_manager(
                company_admin,
                manager_id="E-1001",
                full_name="Max Manager",
                email="max@acme.example",
            )
    
    @pytest.mark.asyncio
    async def test_id_cannot_reuse_a_login_id(self, accounts, company_admin):
        with pytest.raises(SourceRecordExists) as exc_info:
            await accounts.provision_employee(
                company_admin,
                employee_id=company_admin.login_id,
                full_name="Copycat",
                email="copycat@acme.example",
            )
        assert exc_info.value.context["used_as"] == "login_id"
        assert await accounts.list_employees(company_admin) == []


class TestEmployeeAccounts:
    """Employee accounts created by an admin from a provisioned record."""
    
    @pytest.mark.asyncio
    async def test_account_gets_generated_login_id(self, db_session, company_admin, admin_created_employee):
        assert admin_created_employee.role == Role.EMPLOYEE
        assert admin_created_employee.login_id.startswith("EMP-")
        assert admin_created_employee.employee_ref == "E-1001"
        assert admin_created_employee.tenant_id == company_admin.uid
        
        event = (
            await db_session.execute(
                select(EventLog).where(EventLog.entity_id == admin_created_employee.uid)
            )
        ).scalars().one()
        assert event.event_type == EventType.ACCOUNT_REGISTERED
        assert event.actor_uid == company_admin.uid
        assert event.payload["employee_ref"] == "E-1001"
    
    @pytest.mark.asyncio
    async def test_second_account_for_same_employee(self, accounts, company_admin, admin_created_employee):
        with pytest.raises(AccountAlreadyActivated):
            await accounts.create_employee_account(
                company_admin,
                employee_id="E-1001",
                email="eve.two@acme.example",
                password=EMPLOYEE_PASSWORD,
                display_name="Eve Again",
            )
    
    @pytest.mark.asyncio
    async def test_self_activation_after_admin_setup(self, resolver, admin_created_employee):
        with pytest.raises(AccountAlreadyActivated):
            await resolver.activate_account("E-1001", EMPLOYEE_PASSWORD)
    
    @pytest.mark.asyncio
    async def test_unknown_employee_id(self, accounts, company_admin):
        with pytest.raises(SourceRecordNotFound):
            await accounts.create_employee_account(
                company_admin,
                employee_id="E-9999",
                email="ghost@acme.example",
                password=EMPLOYEE_PASSWORD,
                display_name="Ghost",
            )
    
    @pytest.mark.asyncio
    async def test_employee_of_another_company(self, db_session, accounts, provisioned_employee):
        other_admin, _ = await accounts.register_company(
            company_name="Other Co",
            email="boss@other.example",
            password="OtherBoss1",
            admin_name="Other Boss",
        )
        await db_session.commit()
        
        with pytest.raises(SourceRecordNotFound):
            await accounts.create_employee_account(
                other_admin,
                employee_id="E-1001",
                email="eve@acme.example",
                password=EMPLOYEE_PASSWORD,
                display_name="Eve Employee",
            )
    
    @pytest.mark.asyncio
    async def test_managers_cannot_create_employee_accounts(
        self, db_session, accounts, company_admin, provisioned_employee
    ):
        manager = await accounts.register(
            email="mo@acme.example",
            password="ManagerPass1",
            display_name="Mo Manager",
            role=Role.MANAGER,
            actor=company_admin,
        )
        await db_session.commit()
        
        with pytest.raises(PermissionDenied):
            await accounts.create_employee_account(
                manager,
                employee_id="E-1001",
                email="eve@acme.example",
                password=EMPLOYEE_PASSWORD,
                display_name="Eve Employee",
            )


class TestStatusWriteFailure:
    """The provider identity follows the account record when the status write fails."""
    
    @pytest.mark.asyncio
    async def test_identity_is_restored(
        self, db_session, accounts, company_admin, active_employee, monkeypatch
    ):
        async def failing_flush(*args, **kwargs):
            raise OperationalError("UPDATE accounts", {}, Exception("disk I/O error"))
        
        monkeypatch.setattr(db_session, "flush", failing_flush)
        with pytest.raises(OperationalError):
            await accounts.set_status(company_admin, active_employee.uid, AccountStatus.SUSPENDED)
        monkeypatch.undo()
        await db_session.rollback()
        
        async with async_session_maker() as session:
            identity = await session.get(ProviderIdentity, active_employee.uid)
            assert identity.disabled is False
            account = await session.get(Account, active_employee.uid)
            assert account.status == AccountStatus.ACTIVE
