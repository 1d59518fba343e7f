"""
Login identifier generation for directly registered accounts.
"""

import secrets
import time

from hrportal.kernel.models.account import Role

LOGIN_ID_PREFIXES = {
    Role.ADMIN: "ADMIN",
    Role.MANAGER: "MGR",
    Role.EMPLOYEE: "EMP",
}


def generate_login_id(role: Role) -> str:
    """Return e.g. ``MGR-483920``: role prefix plus six digits."""
    unique = f"{int(time.time() * 1000)}{secrets.randbelow(1000):03d}"[-6:]
    return f"{LOGIN_ID_PREFIXES[role]}-{unique}"
