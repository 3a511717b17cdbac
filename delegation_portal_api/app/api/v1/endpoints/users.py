"""
User endpoints for API v1.

Provide registration, login and the caller's own profile.  The token
returned by ``/login`` is what the other routers read the caller
context from.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from delegation_portal_api.app.core.security import create_access_token, get_current_user
from delegation_portal_api.app.schemas.user import Token, UserCreate, UserLogin, UserRead
from delegation_portal_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(user: UserCreate) -> UserRead:
    """Register a new user.

    The first user of a fresh database is flagged as administrator.
    Returns 409 when the e-mail is already taken.
    """
    try:
        return await UserService.create_user(user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/login", response_model=Token)
async def login_user(credentials: UserLogin) -> Token:
    """Authenticate a user and return a bearer token."""
    db_user = await UserService.authenticate(credentials.email, credentials.password)
    if not db_user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return Token(access_token=create_access_token({"sub": db_user.email}))


@router.get("/me", response_model=UserRead)
async def read_current_user(current_user: Dict[str, Any] = Depends(get_current_user)) -> UserRead:
    user = await UserService.get_user(current_user["user_id"])
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
