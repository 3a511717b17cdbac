"""
API endpoints for the embedded Tally forms.

The portal reads the form catalog to render the "Déléguer" page and
the iframe of each form.  While a form is displayed, the page forwards
the iframe's ``message`` events to ``POST /forms/{slug}/submissions``
as the raw request body; submissions become operations, anything else
is acknowledged and ignored.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from delegation_portal_api.app.core.errors import OperationError
from delegation_portal_api.app.core.security import get_optional_user
from delegation_portal_api.app.schemas.form import FormCatalog, FormConfig, FormSubmissionResult
from delegation_portal_api.app.schemas.operation import OperationRead
from delegation_portal_api.app.services.form_bridge import FormBridge
from delegation_portal_api.app.services.form_catalog import get_catalog, get_form


router = APIRouter()


def _form_or_404(slug: str) -> FormConfig:
    form = get_form(slug)
    if form is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")
    return form


@router.get("/", response_model=FormCatalog, summary="List delegation forms")
async def list_forms() -> FormCatalog:
    return get_catalog()


@router.get("/{slug}", response_model=FormConfig, summary="Get a delegation form")
async def get_form_config(slug: str) -> FormConfig:
    return _form_or_404(slug)


@router.post(
    "/{slug}/submissions",
    response_model=FormSubmissionResult,
    summary="Forward a Tally iframe message",
)
async def submit_form_message(
    slug: str,
    request: Request,
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> FormSubmissionResult:
    """Create an operation from a Tally ``Tally.FormSubmitted`` message.

    The body is the message data exactly as received by the page.
    Messages without the submission marker, or that cannot be decoded,
    are answered with ``{"created": false}``.
    """
    form = _form_or_404(slug)
    body = await request.body()
    message = body.decode("utf-8", errors="replace")
    try:
        operation = await FormBridge.handle_message(message, form, current_user)
    except OperationError as e:
        raise e.to_http()
    return FormSubmissionResult(created=operation is not None, operation=operation)


@router.post(
    "/{slug}/direct",
    response_model=OperationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a placeholder operation for a form",
)
async def direct_submit(
    slug: str,
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> OperationRead:
    """Create an operation for ``slug`` without a Tally submission."""
    form = _form_or_404(slug)
    try:
        return await FormBridge.direct_submit(form, current_user)
    except OperationError as e:
        raise e.to_http()
