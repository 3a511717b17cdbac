"""
Preference endpoints for API v1.

Every authenticated user owns a small set of typed preferences.  The
portal reads ``has_seen_onboarding`` before opening the onboarding
form and sets it once the form is submitted or closed.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from delegation_portal_api.app.core.errors import OperationError
from delegation_portal_api.app.core.security import get_optional_user
from delegation_portal_api.app.schemas.preference import PreferenceRead, PreferenceWrite
from delegation_portal_api.app.services.preference_service import PreferenceService


router = APIRouter()


@router.get("/", response_model=List[PreferenceRead])
async def list_preferences(
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> List[PreferenceRead]:
    try:
        return await PreferenceService.list_preferences(current_user)
    except OperationError as e:
        raise e.to_http()


@router.get("/{key}", response_model=PreferenceRead)
async def get_preference(
    key: str,
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> PreferenceRead:
    """Return one preference; 404 when it was never set."""
    try:
        return await PreferenceService.get_preference(key, current_user)
    except OperationError as e:
        raise e.to_http()


@router.put("/{key}", response_model=PreferenceRead)
async def set_preference(
    key: str,
    body: PreferenceWrite,
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> PreferenceRead:
    """Insert or update a preference.

    The body carries ``value`` and ``type`` (``string``, ``int``,
    ``float`` or ``bool``).  A value that cannot be converted to the
    declared type is rejected with 422.
    """
    try:
        return await PreferenceService.set_preference(key, body.value, body.type, current_user)
    except OperationError as e:
        raise e.to_http()
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
