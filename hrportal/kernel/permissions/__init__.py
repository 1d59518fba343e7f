"""
Role-based page gating.

Import from the submodules (roles, pages, access_gate); this package stays
empty so the identity layer can import role sets without pulling in session
state.
"""
