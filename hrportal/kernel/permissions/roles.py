"""
Role sets used for gating.

Roles are a closed enum; every gate is an explicit frozenset literal.
"""

from typing import FrozenSet

from hrportal.kernel.models.account import Role

ALL_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER, Role.EMPLOYEE})
STAFF_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})
ADMIN_ONLY: FrozenSet[Role] = frozenset({Role.ADMIN})
EMPLOYEE_ONLY: FrozenSet[Role] = frozenset({Role.EMPLOYEE})

# Who may do what outside page gating
REGISTRABLE_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})
SELF_REGISTRABLE_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN})
CAN_REGISTER_MANAGERS: FrozenSet[Role] = frozenset({Role.ADMIN})
CAN_CREATE_EMPLOYEE_ACCOUNTS: FrozenSet[Role] = frozenset({Role.ADMIN})
CAN_PROVISION_EMPLOYEES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})
CAN_PROVISION_MANAGERS: FrozenSet[Role] = frozenset({Role.ADMIN})
CAN_CHANGE_STATUS: FrozenSet[Role] = frozenset({Role.ADMIN})
CAN_VIEW_HISTORY: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})
