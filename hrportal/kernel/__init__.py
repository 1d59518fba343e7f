"""
Kernel layer

- Identity Core (provider port, session resolution, account lifecycle)
- Access gating (roles, page registry, gate decisions)
- Session state container
- Append-only audit log

Architectural invariants:
- An account's role and uid never change after creation
- Manager and employee accounts belong to an admin-rooted tenant
- Accounts are deactivated by status, never deleted
"""
