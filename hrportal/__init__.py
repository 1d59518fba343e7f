"""
HR Portal access core.

Session resolution, account activation and role-based page gating for a
multi-tenant HR portal.
"""
