"""
Bridge between embedded Tally forms and delegation operations.

The portal page hosting a Tally iframe forwards every ``message``
event it receives to the API as a raw string.  Only messages that
contain the ``Tally.FormSubmitted`` marker are considered; they are
JSON envelopes of the form::

    {"event": "Tally.FormSubmitted",
     "payload": {"id": ..., "formId": ..., "fields": [
         {"id": ..., "title": "Nom du client", "answer": {"value": "Dupont"}},
         ...]}}

The client name and the notes are picked from the fields by looking
for keywords in their titles, first match wins.  This is a heuristic:
a form whose titles do not follow the French/English wording used
below (or that has, say, a "Prénom" field before the client name)
will produce a wrong or default client name.  Forms can avoid this by
declaring stable field ids in their catalog entry.

Malformed or unrelated messages are ignored and never raise; errors
from the operation layer (authentication, store) propagate.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..schemas.form import FormConfig
from ..schemas.operation import OperationCreate, OperationRead
from .operation_service import OperationService


logger = logging.getLogger(__name__)


SUBMISSION_MARKER = "Tally.FormSubmitted"
CLIENT_NAME_KEYWORDS = ("nom", "name", "client")
NOTES_KEYWORDS = ("notes", "commentaire")
DEFAULT_CLIENT_NAME = "Client"
DEFAULT_NOTES = ""


def parse_submission(raw: Any) -> Optional[Dict[str, Any]]:
    """Return the submission payload carried by ``raw``, or ``None``.

    ``None`` means the message is not a form submission or cannot be
    decoded; callers treat it as "nothing to do".
    """
    if not isinstance(raw, str) or SUBMISSION_MARKER not in raw:
        return None
    try:
        envelope = json.loads(raw)
    except ValueError as e:
        logger.debug("Ignoring undecodable form message: %s", e)
        return None
    if not isinstance(envelope, dict):
        return None
    payload = envelope.get("payload")
    if not isinstance(payload, dict):
        logger.debug("Ignoring form message without payload")
        return None
    return payload


def _fields(submission: Dict[str, Any]) -> List[Dict[str, Any]]:
    fields = submission.get("fields")
    if not isinstance(fields, list):
        return []
    return [field for field in fields if isinstance(field, dict)]


def _answer_text(field: Dict[str, Any]) -> Optional[str]:
    answer = field.get("answer")
    if not isinstance(answer, dict):
        return None
    value = answer.get("value")
    if not value:
        return None
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return value if isinstance(value, str) else str(value)


def find_field(
    fields: Iterable[Dict[str, Any]],
    keywords: Tuple[str, ...],
    field_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Return the first field matching ``field_id`` or, failing that, ``keywords``.

    Keyword matching is a case-insensitive substring test on the
    field title.
    """
    fields = list(fields)
    if field_id:
        for field in fields:
            if field.get("id") == field_id:
                return field
    for field in fields:
        title = field.get("title")
        if not isinstance(title, str):
            continue
        lowered = title.lower()
        if any(keyword in lowered for keyword in keywords):
            return field
    return None


def extract_client_and_notes(
    submission: Dict[str, Any],
    form: Optional[FormConfig] = None,
) -> Tuple[str, str]:
    """Pick the client name and notes out of a submission."""
    fields = _fields(submission)
    client_name = DEFAULT_CLIENT_NAME
    notes = DEFAULT_NOTES

    name_field = find_field(fields, CLIENT_NAME_KEYWORDS, form.client_field_id if form else None)
    if name_field is not None:
        client_name = _answer_text(name_field) or DEFAULT_CLIENT_NAME

    notes_field = find_field(fields, NOTES_KEYWORDS, form.notes_field_id if form else None)
    if notes_field is not None:
        notes = _answer_text(notes_field) or DEFAULT_NOTES

    return client_name, notes


def build_operation(submission: Dict[str, Any], form: FormConfig) -> OperationCreate:
    """Translate a submission into the create request for ``form``."""
    client_name, notes = extract_client_and_notes(submission, form)
    return OperationCreate(
        name=f"{form.operation_type} - {client_name}",
        client_name=client_name,
        type=form.category,
        operation_type=form.operation_type,
        form_data=submission,
        notes=notes,
    )


class FormBridge:
    """Turn posted Tally messages into delegation operations."""

    @classmethod
    async def handle_message(
        cls,
        raw: Any,
        form: FormConfig,
        current_user: Optional[Dict[str, Any]],
    ) -> Optional[OperationRead]:
        """Create an operation from ``raw`` if it is a form submission.

        Returns the created operation, or ``None`` when the message was
        ignored.  Duplicate deliveries of the same submission create
        duplicate operations.
        """
        submission = parse_submission(raw)
        if submission is None:
            logger.debug("Ignoring non-submission message for form %s", form.slug)
            return None
        logger.info(
            "Tally submission %s received for form %s", submission.get("id"), form.slug
        )
        data = build_operation(submission, form)
        return await OperationService.create_operation(data, current_user)

    @classmethod
    async def direct_submit(
        cls,
        form: FormConfig,
        current_user: Optional[Dict[str, Any]],
    ) -> OperationRead:
        """Create a placeholder operation without going through Tally."""
        data = OperationCreate(
            name=f"{form.operation_type} - Direct Submit",
            client_name="Client Test",
            type=form.category,
            operation_type=form.operation_type,
            form_data={"directSubmit": True},
            notes="Created via direct submit button",
        )
        return await OperationService.create_operation(data, current_user)
