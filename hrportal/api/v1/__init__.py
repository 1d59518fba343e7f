"""
API v1 routes.
"""

from fastapi import APIRouter

from hrportal.api.v1 import auth, pages, directory, history

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(pages.router, prefix="/pages", tags=["Pages"])
router.include_router(directory.router, prefix="/directory", tags=["Directory"])
router.include_router(history.router, prefix="/history", tags=["History"])
