"""
Pydantic schemas for per-user preferences.

Preferences are small typed key/value records owned by one user, such
as ``has_seen_onboarding``.  The value is stored as text together
with its type so it can be converted back on read.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


PreferenceType = Literal["string", "int", "float", "bool"]


class PreferenceWrite(BaseModel):
    """Body of ``PUT /preferences/{key}``."""

    value: Any = Field(..., example=True)
    type: PreferenceType = Field("string", example="bool")


class PreferenceRead(BaseModel):
    key: str
    value: Any
    type: PreferenceType
    updated_at: str
