"""
HTTP middleware.
"""
