"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers under a unified prefix.
"""

from fastapi import APIRouter

from .endpoints import forms, operations, preferences, users

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(operations.router, prefix="/operations", tags=["operations"])
router.include_router(forms.router, prefix="/forms", tags=["forms"])
router.include_router(preferences.router, prefix="/preferences", tags=["preferences"])
