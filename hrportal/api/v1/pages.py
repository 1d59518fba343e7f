"""
Page gate endpoints.

A page that the session may not open answers with a 303 redirect to the
login page or the role's landing page.
"""

from typing import List

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import RedirectResponse

from hrportal.api.deps import CurrentPrincipal, Session
from hrportal.kernel.permissions.access_gate import evaluate_page
from hrportal.kernel.permissions.pages import Page, get_page, pages_for_role
from hrportal.schemas.pages import GateResponse, PageResponse

router = APIRouter()


def _page_response(page: Page) -> PageResponse:
    return PageResponse(
        key=page.key,
        path=page.path,
        title=page.title,
        allowed_roles=sorted(role.value for role in page.allowed_roles),
    )


@router.get("", response_model=List[PageResponse])
async def list_pages(principal: CurrentPrincipal):
    """Pages the signed-in role may open."""
    return [_page_response(page) for page in pages_for_role(principal.role)]


@router.get(
    "/{page_key}",
    response_model=GateResponse,
    responses={status.HTTP_303_SEE_OTHER: {"description": "Not allowed; redirect to login or dashboard"}},
)
async def open_page(page_key: str, context: Session):
    """Run the access gate for one page."""
    page = get_page(page_key)
    if page is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Page not found",
        )
    
    decision = evaluate_page(context.state, page, context.settings)
    if decision.redirect_to is not None:
        return RedirectResponse(decision.redirect_to, status_code=status.HTTP_303_SEE_OTHER)
    
    return GateResponse(
        page=_page_response(page),
        status=decision.status.value,
        redirect_to=decision.redirect_to,
    )
