"""
Account management: direct registration, company registration, admin-created
employee accounts, profile and status changes, and provisioning of source
records for later activation.
"""

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.kernel.events.event_store import EventStore
from hrportal.kernel.identity.errors import (
    AccountAlreadyActivated,
    AccountNotFound,
    EmailInUseError,
    EmailTaken,
    LoginIdTaken,
    PermissionDenied,
    ProviderError,
    SourceRecordExists,
    SourceRecordNotFound,
    TenantNotFound,
    from_provider_error,
)
from hrportal.kernel.identity.login_ids import generate_login_id
from hrportal.kernel.identity.lookups import (
    BY_EMPLOYEE_REF,
    BY_LOGIN_ID,
    EMPLOYEE_SOURCE,
    MANAGER_SOURCE,
    first_match,
)
from hrportal.kernel.identity.principal import Principal
from hrportal.kernel.identity.provider import AuthIdentity, IdentityProvider
from hrportal.kernel.models.account import Account, AccountStatus, Role
from hrportal.kernel.models.company import Company
from hrportal.kernel.models.event_log import EventType
from hrportal.kernel.models.source_record import Employee, Manager
from hrportal.kernel.permissions.roles import (
    CAN_CHANGE_STATUS,
    CAN_CREATE_EMPLOYEE_ACCOUNTS,
    CAN_PROVISION_EMPLOYEES,
    CAN_PROVISION_MANAGERS,
    CAN_REGISTER_MANAGERS,
    REGISTRABLE_ROLES,
    SELF_REGISTRABLE_ROLES,
)
from hrportal.logging_config import get_logger

logger = get_logger(__name__)

LOGIN_ID_ATTEMPTS = 5


class AccountService:
    """
    Service for account lifecycle operations other than sign-in.

    Like SessionResolver, writes join the caller's session and provider writes
    are committed by the provider.
    """

    def __init__(self, session: AsyncSession, provider: IdentityProvider):
        self.session = session
        self.provider = provider
        self.event_store = EventStore(session)

    async def get_account(self, uid: uuid.UUID) -> Optional[Account]:
        """Get an account by uid."""
        return await self.session.get(Account, uid)

    async def get_account_by_email(self, email: str) -> Optional[Account]:
        """Get an account by registered email."""
        query = select(Account).where(Account.email == email.lower().strip())
        result = await self.session.execute(query)
        return result.scalars().first()

    async def _login_id_exists(self, login_id: str) -> bool:
        query = select(Account.uid).where(Account.login_id == login_id)
        result = await self.session.execute(query)
        return result.first() is not None

    async def _unique_login_id(self, role: Role) -> str:
        for _ in range(LOGIN_ID_ATTEMPTS):
            login_id = generate_login_id(role)
            if not await self._login_id_exists(login_id):
                return login_id
        raise LoginIdTaken("Could not allocate a unique User ID, please retry")

    async def _create_identity(self, email: str, password: str, display_name: str) -> AuthIdentity:
        try:
            identity = await self.provider.create_identity(email, password)
            await self.provider.update_display_name(identity, display_name)
        except EmailInUseError as exc:
            raise EmailTaken(context={"email": email}) from exc
        except ProviderError as exc:
            raise from_provider_error(exc) from exc
        return identity

    async def _insert_account(self, account: Account) -> None:
        try:
            async with self.session.begin_nested():
                self.session.add(account)
        except IntegrityError as exc:
            logger.error(
                "Orphaned provider identity after failed account insert",
                extra={"uid": str(account.uid), "login_id": account.login_id},
            )
            raise LoginIdTaken(context={"login_id": account.login_id}) from exc

    async def register(
        self,
        email: str,
        password: str,
        display_name: str,
        role: Role,
        tenant_id: Optional[uuid.UUID] = None,
        login_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        actor: Optional[Principal] = None,
    ) -> Principal:
        """
        Register an admin or manager account directly.

        Admins register themselves. Managers are registered by a signed-in
        admin and join that admin's company.

        Args:
            email: Email for the provider identity
            password: Plain text password
            display_name: Full name
            role: ADMIN or MANAGER; employees activate from source records
            tenant_id: Company of a new manager; defaults to the actor's
            login_id: Explicit login ID; generated from the role when omitted
            ip_address: Client IP for audit
            actor: Signed-in principal performing the registration

        Returns:
            The Principal of the new account

        Raises:
            ValueError: If the role cannot be registered directly
            PermissionDenied: If a manager is registered without an admin actor
                or into another company
            LoginIdTaken: If the login ID is already used
            EmailTaken: If the email is already registered
            TenantNotFound: If a manager's tenant is not an admin account
        """
        role = Role(role)
        if role not in REGISTRABLE_ROLES:
            raise ValueError("Employees activate their account from an Employee ID")

        if role in SELF_REGISTRABLE_ROLES:
            tenant_id = None
        else:
            if actor is None or actor.role not in CAN_REGISTER_MANAGERS:
                raise PermissionDenied(context={"role": role.value})
            if tenant_id is not None and tenant_id != actor.tenant_root:
                raise PermissionDenied(context={"tenant_id": str(tenant_id)})
            tenant_id = actor.tenant_root
            await self._require_tenant(tenant_id)

        if login_id is not None:
            if await self._login_id_exists(login_id):
                raise LoginIdTaken(context={"login_id": login_id})
        else:
            login_id = await self._unique_login_id(role)

        if await self.get_account_by_email(email) is not None:
            raise EmailTaken(context={"email": email})

        identity = await self._create_identity(email, password, display_name.strip())

        account = Account(
            uid=identity.uid,
            login_id=login_id,
            email=identity.email,
            role=role,
            tenant_id=tenant_id,
            display_name=display_name.strip(),
            status=AccountStatus.ACTIVE,
        )
        await self._insert_account(account)

        principal = Principal.from_account(account)
        await self.event_store.log(
            event_type=EventType.ACCOUNT_REGISTERED,
            entity_type="account",
            entity_id=account.uid,
            actor_uid=actor.uid if actor is not None else account.uid,
            tenant_id=principal.tenant_root,
            payload={"login_id": login_id, "role": role},
            ip_address=ip_address,
        )
        logger.info("Account registered", extra={"uid": str(account.uid), "role": role.value})
        return principal

    async def register_company(
        self,
        company_name: str,
        email: str,
        password: str,
        admin_name: str,
        phone_number: Optional[str] = None,
        industry_type: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Tuple[Principal, Company]:
        """
        Register a company together with its admin account.

        The company id is the admin's uid, which is also the tenant id every
        manager and employee of the company carries.
        """
        principal = await self.register(
            email=email,
            password=password,
            display_name=admin_name,
            role=Role.ADMIN,
            ip_address=ip_address,
        )

        company = Company(
            id=principal.uid,
            company_name=company_name.strip(),
            email=principal.email,
            phone_number=phone_number,
            industry_type=industry_type,
            status=AccountStatus.ACTIVE,
        )
        self.session.add(company)

        await self.event_store.log(
            event_type=EventType.COMPANY_REGISTERED,
            entity_type="company",
            entity_id=company.id,
            actor_uid=principal.uid,
            tenant_id=principal.uid,
            payload={"company_name": company.company_name, "admin_login_id": principal.login_id},
            ip_address=ip_address,
        )
        return principal, company

    async def _require_tenant(self, tenant_id: Optional[uuid.UUID]) -> Account:
        if tenant_id is None:
            raise TenantNotFound("A company is required for this role")
        admin = await self.session.get(Account, tenant_id)
        if admin is None or Role(admin.role) != Role.ADMIN:
            raise TenantNotFound(context={"tenant_id": str(tenant_id)})
        return admin

    async def update_profile(
        self,
        uid: uuid.UUID,
        display_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Principal:
        """
        Update profile fields of an account.

        Role, login ID and tenant are not profile fields and cannot change here.
        """
        account = await self.get_account(uid)
        if account is None:
            raise AccountNotFound(context={"uid": str(uid)})

        changes = {}
        if display_name is not None and display_name.strip() != account.display_name:
            account.display_name = display_name.strip()
            changes["display_name"] = account.display_name
        if phone_number is not None and phone_number != account.phone_number:
            account.phone_number = phone_number
            changes["phone_number"] = phone_number

        if "display_name" in changes:
            try:
                await self.provider.update_display_name(
                    AuthIdentity(uid=account.uid, email=account.email),
                    account.display_name,
                )
            except ProviderError as exc:
                raise from_provider_error(exc) from exc

        if changes:
            await self.session.flush()
            await self.event_store.log(
                event_type=EventType.ACCOUNT_PROFILE_UPDATED,
                entity_type="account",
                entity_id=account.uid,
                actor_uid=account.uid,
                tenant_id=Principal.from_account(account).tenant_root,
                payload=changes,
                ip_address=ip_address,
            )

        return Principal.from_account(account)

    async def set_status(
        self,
        actor: Principal,
        uid: uuid.UUID,
        status: AccountStatus,
        ip_address: Optional[str] = None,
    ) -> Principal:
        """
        Change an account's status within the actor's tenant.

        Inactive and suspended accounts have their provider identity disabled,
        so their next sign-in fails with AccountDisabled.
        """
        status = AccountStatus(status)
        if actor.role not in CAN_CHANGE_STATUS:
            raise PermissionDenied(context={"uid": str(uid)})

        account = await self.get_account(uid)
        if account is None or account.tenant_id != actor.tenant_root:
            raise AccountNotFound(context={"uid": str(uid)})

        previous = AccountStatus(account.status)
        if previous != status:
            try:
                await self.provider.set_disabled(account.uid, status != AccountStatus.ACTIVE)
            except ProviderError as exc:
                raise from_provider_error(exc) from exc
            account.status = status
            try:
                await self.session.flush()
            except SQLAlchemyError:
                logger.error(
                    "Account status write failed, restoring provider identity",
                    extra={"uid": str(account.uid), "status": previous.value},
                )
                await self.provider.set_disabled(account.uid, previous != AccountStatus.ACTIVE)
                raise
            await self.event_store.log(
                event_type=EventType.ACCOUNT_STATUS_CHANGED,
                entity_type="account",
                entity_id=account.uid,
                actor_uid=actor.uid,
                tenant_id=account.tenant_id,
                payload={"previous_status": previous, "new_status": status},
                ip_address=ip_address,
            )

        return Principal.from_account(account)

    async def create_employee_account(
        self,
        actor: Principal,
        employee_id: str,
        email: str,
        password: str,
        display_name: str,
        ip_address: Optional[str] = None,
    ) -> Principal:
        """
        Create an employee account on behalf of a provisioned employee.

        The account gets a generated ``EMP-`` User ID and keeps the Employee
        ID as ``employee_ref``, so the employee can sign in with either.

        Raises:
            PermissionDenied: If the actor is not an admin
            SourceRecordNotFound: No employee record with this ID in the actor's company
            AccountAlreadyActivated: An account already uses this Employee ID
            EmailTaken: If the email is already registered
        """
        if actor.role not in CAN_CREATE_EMPLOYEE_ACCOUNTS:
            raise PermissionDenied(context={"employee_id": employee_id})

        employee_id = employee_id.strip()
        employee = await EMPLOYEE_SOURCE(self.session, employee_id)
        if employee is None or employee.tenant_id != actor.tenant_root:
            raise SourceRecordNotFound(context={"identifier": employee_id})

        _, existing = await first_match((BY_LOGIN_ID, BY_EMPLOYEE_REF), self.session, employee_id)
        if existing is not None:
            raise AccountAlreadyActivated(context={"identifier": employee_id})

        if await self.get_account_by_email(email) is not None:
            raise EmailTaken(context={"email": email})

        login_id = await self._unique_login_id(Role.EMPLOYEE)
        identity = await self._create_identity(email, password, display_name.strip())

        account = Account(
            uid=identity.uid,
            login_id=login_id,
            email=identity.email,
            role=Role.EMPLOYEE,
            tenant_id=actor.tenant_root,
            employee_ref=employee_id,
            display_name=display_name.strip(),
            status=AccountStatus.ACTIVE,
        )
        await self._insert_account(account)

        await self.event_store.log(
            event_type=EventType.ACCOUNT_REGISTERED,
            entity_type="account",
            entity_id=account.uid,
            actor_uid=actor.uid,
            tenant_id=actor.tenant_root,
            payload={"login_id": login_id, "role": Role.EMPLOYEE, "employee_ref": employee_id},
            ip_address=ip_address,
        )
        logger.info(
            "Employee account created",
            extra={"uid": str(account.uid), "employee_ref": employee_id},
        )
        return Principal.from_account(account)

    async def provision_employee(
        self,
        actor: Principal,
        employee_id: str,
        full_name: str,
        email: str,
        department: Optional[str] = None,
        designation: Optional[str] = None,
    ) -> Employee:
        """Create an employee source record in the actor's tenant."""
        if actor.role not in CAN_PROVISION_EMPLOYEES:
            raise PermissionDenied(context={"employee_id": employee_id})

        employee = Employee(
            employee_id=employee_id.strip(),
            full_name=full_name.strip(),
            email=email.lower().strip(),
            tenant_id=actor.tenant_root,
            department=department,
            designation=designation,
        )
        await self._insert_source(employee, actor)
        return employee

    async def provision_manager(
        self,
        actor: Principal,
        manager_id: str,
        full_name: str,
        email: str,
        department: Optional[str] = None,
    ) -> Manager:
        """Create a manager source record in the actor's tenant."""
        if actor.role not in CAN_PROVISION_MANAGERS:
            raise PermissionDenied(context={"manager_id": manager_id})

        manager = Manager(
            manager_id=manager_id.strip(),
            full_name=full_name.strip(),
            email=email.lower().strip(),
            tenant_id=actor.tenant_root,
            department=department,
        )
        await self._insert_source(manager, actor)
        return manager

    async def _insert_source(self, record, actor: Principal) -> None:
        # One identifier names at most one source record or account
        strategy, _ = await first_match(
            (MANAGER_SOURCE, EMPLOYEE_SOURCE, BY_LOGIN_ID, BY_EMPLOYEE_REF),
            self.session,
            record.identifier,
        )
        if strategy is not None:
            raise SourceRecordExists(
                context={"identifier": record.identifier, "used_as": strategy.name}
            )

        try:
            async with self.session.begin_nested():
                self.session.add(record)
        except IntegrityError as exc:
            raise SourceRecordExists(context={"identifier": record.identifier}) from exc

        await self.event_store.log(
            event_type=EventType.SOURCE_RECORD_PROVISIONED,
            entity_type=record.__tablename__[:-1],
            entity_id=record.id,
            actor_uid=actor.uid,
            tenant_id=actor.tenant_root,
            payload={"identifier": record.identifier},
        )

    async def list_employees(self, actor: Principal) -> List[Employee]:
        """Employee source records of the actor's tenant."""
        if actor.role not in CAN_PROVISION_EMPLOYEES:
            raise PermissionDenied()
        query = (
            select(Employee)
            .where(Employee.tenant_id == actor.tenant_root)
            .order_by(Employee.employee_id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_managers(self, actor: Principal) -> List[Manager]:
        """Manager source records of the actor's tenant."""
        if actor.role not in CAN_PROVISION_MANAGERS:
            raise PermissionDenied()
        query = (
            select(Manager)
            .where(Manager.tenant_id == actor.tenant_root)
            .order_by(Manager.manager_id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
