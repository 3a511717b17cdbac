"""
Pydantic schemas for delegation operations.

A delegation operation is one task a user hands over to the back
office: a subscription (life insurance, retirement plan, SCPI shares)
or a management act (arbitrage).  Operations start ``En attente`` and
only their status changes afterwards.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, validator


class OperationType(str, Enum):
    """Category of a delegation operation."""

    SOUSCRIPTION = "Souscription"
    ACTES_DE_GESTION = "Actes de Gestion"


class OperationStatus(str, Enum):
    """Processing status of a delegation operation."""

    EN_ATTENTE = "En attente"
    EN_COURS = "En cours"
    TERMINE = "Terminé"


DEFAULT_OPERATION_TYPE = OperationType.ACTES_DE_GESTION


def coerce_operation_type(value: Any) -> OperationType:
    """Return ``value`` as an ``OperationType``, or the default.

    Only the exact literal values are accepted; anything else (other
    spellings, ``None``, non-strings) becomes ``Actes de Gestion``.
    """
    if isinstance(value, OperationType):
        return value
    for member in OperationType:
        if value == member.value:
            return member
    return DEFAULT_OPERATION_TYPE


class OperationCreate(BaseModel):
    """Schema for creating a delegation operation."""

    name: str = Field(..., example="PER - Dupont")
    client_name: str = Field(..., example="Dupont")
    type: OperationType = Field(DEFAULT_OPERATION_TYPE, example="Souscription")
    operation_type: str = Field(..., example="PER")
    form_data: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None

    @validator("type", pre=True)
    def normalize_type(cls, v: Any) -> OperationType:
        """Invalid categories are replaced, never rejected."""
        return coerce_operation_type(v)

    @validator("form_data", pre=True)
    def default_form_data(cls, v: Any) -> Any:
        return {} if v is None else v


class OperationStatusUpdate(BaseModel):
    """Schema for changing the status of an operation."""

    status: OperationStatus = Field(..., example="En cours")


class OperationRead(BaseModel):
    """Schema for reading a delegation operation from the API."""

    id: str
    user_id: int
    name: str
    client_name: str
    type: OperationType
    operation_type: str
    status: OperationStatus
    form_data: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None
    created_at: str
    updated_at: str

    model_config = {
        "from_attributes": True,
    }
