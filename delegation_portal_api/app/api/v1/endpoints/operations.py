"""
API endpoints for delegation operations.

Operations are created by the delegation forms (see ``forms.py``) or
directly through ``POST /operations/``, listed per owner, and moved
through their statuses with ``PATCH /operations/{id}/status``.  The
caller context is optional at the HTTP level so that anonymous calls
are rejected by the service with a 401 like every other domain error.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status

from delegation_portal_api.app.core.errors import OperationError
from delegation_portal_api.app.core.security import get_optional_user
from delegation_portal_api.app.schemas.operation import (
    OperationCreate,
    OperationRead,
    OperationStatusUpdate,
)
from delegation_portal_api.app.services.operation_service import OperationService


router = APIRouter()


@router.post(
    "/",
    response_model=OperationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a delegation operation",
)
async def create_operation(
    data: OperationCreate,
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> OperationRead:
    """Create an operation owned by the caller.

    An unknown ``type`` is replaced by ``Actes de Gestion``; the new
    operation always starts ``En attente``.
    """
    try:
        return await OperationService.create_operation(data, current_user)
    except OperationError as e:
        raise e.to_http()


@router.get("/", response_model=List[OperationRead], summary="List my operations")
async def list_operations(
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> List[OperationRead]:
    """Return the caller's operations, newest first."""
    try:
        return await OperationService.list_operations(current_user)
    except OperationError as e:
        raise e.to_http()


@router.post("/seed", response_model=Optional[OperationRead], summary="Create the sample operation")
async def create_seed_operation(
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> Optional[OperationRead]:
    """Create the sample operation when the caller has none.

    Returns ``null`` if the caller already owns operations.
    """
    try:
        return await OperationService.create_seed_operation(current_user)
    except OperationError as e:
        raise e.to_http()


@router.post(
    "/test",
    response_model=OperationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a test operation",
)
async def create_test_operation(
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> OperationRead:
    try:
        return await OperationService.create_test_operation(current_user)
    except OperationError as e:
        raise e.to_http()


@router.get("/{operation_id}", response_model=OperationRead, summary="Get an operation")
async def get_operation(
    operation_id: str,
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> OperationRead:
    """Detail view of one operation; owners and administrators only."""
    try:
        return await OperationService.get_operation(operation_id, current_user)
    except OperationError as e:
        raise e.to_http()


@router.patch(
    "/{operation_id}/status",
    response_model=OperationRead,
    summary="Update the status of an operation",
)
async def update_operation_status(
    operation_id: str,
    data: OperationStatusUpdate,
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> OperationRead:
    """Set the status of an operation.

    Owners may update their own operations, administrators any
    operation.  Returns 404 for unknown ids and 403 for other users'
    operations.
    """
    try:
        return await OperationService.update_status(operation_id, data, current_user)
    except OperationError as e:
        raise e.to_http()
