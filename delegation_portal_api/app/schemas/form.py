"""
Pydantic schemas for the embedded delegation forms.

``FormConfig`` describes one Tally form the portal embeds and the
operation it produces.  ``FormSubmissionResult`` is what the bridge
endpoint answers after looking at a posted message.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .operation import OperationRead, OperationType


class FormConfig(BaseModel):
    slug: str
    category: OperationType
    title: str
    description: str
    form_url: str
    operation_type: str
    # Stable Tally field ids; when present in a submission they take
    # precedence over title keyword matching.
    client_field_id: Optional[str] = None
    notes_field_id: Optional[str] = None


class FormCatalog(BaseModel):
    onboarding_form_id: str
    categories: Dict[str, List[FormConfig]] = Field(default_factory=dict)


class FormSubmissionResult(BaseModel):
    created: bool
    operation: Optional[OperationRead] = None
