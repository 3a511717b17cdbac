"""
Tests for the Tally form bridge.

Covers message filtering, keyword extraction of client name and notes,
stable field ids, and the operation created from a submission.
"""

import json

import pytest

from delegation_portal_api.app.core.errors import UnauthorizedError
from delegation_portal_api.app.schemas.operation import OperationStatus, OperationType
from delegation_portal_api.app.services.form_bridge import (
    FormBridge,
    extract_client_and_notes,
    parse_submission,
)
from delegation_portal_api.app.services.form_catalog import get_catalog, get_form
from delegation_portal_api.app.services.operation_service import OperationService
from tests.conftest import run


def _message(fields, **extra):
    payload = {
        "id": "sub_1",
        "respondentId": "resp_1",
        "formId": "mB2Wg5",
        "formName": "PER",
        "createdAt": "2024-05-02T10:00:00.000Z",
        "fields": fields,
    }
    payload.update(extra)
    return json.dumps({"event": "Tally.FormSubmitted", "payload": payload})


def _field(title, value, field_id=None):
    return {"id": field_id or title, "title": title, "type": "INPUT_TEXT", "answer": {"value": value, "raw": value}}


@pytest.fixture
def per_form():
    return get_form("per")


# =============================================================================
# Message filtering
# =============================================================================

class TestParseSubmission:

    def test_unrelated_messages_are_ignored(self):
        assert parse_submission('{"event": "Tally.FormLoaded"}') is None
        assert parse_submission("hello") is None
        assert parse_submission(None) is None
        assert parse_submission({"event": "Tally.FormSubmitted"}) is None

    def test_malformed_submission_is_ignored(self):
        assert parse_submission("Tally.FormSubmitted {not json") is None
        assert parse_submission('["Tally.FormSubmitted"]') is None
        assert parse_submission('{"event": "Tally.FormSubmitted"}') is None

    def test_payload_is_returned(self):
        payload = parse_submission(_message([_field("Nom du client", "Dupont")]))
        assert payload["formId"] == "mB2Wg5"
        assert payload["fields"][0]["answer"]["value"] == "Dupont"


# =============================================================================
# Field extraction
# =============================================================================

class TestExtraction:

    def test_example_submission(self):
        submission = parse_submission(_message([
            _field("Nom du client", "Dupont"),
            _field("Commentaires", "urgent"),
        ]))
        assert extract_client_and_notes(submission) == ("Dupont", "urgent")

    def test_defaults_when_nothing_matches(self):
        submission = parse_submission(_message([_field("Montant", "10000")]))
        assert extract_client_and_notes(submission) == ("Client", "")

    def test_missing_fields_list(self):
        assert extract_client_and_notes({"id": "sub_1"}) == ("Client", "")
        assert extract_client_and_notes({"fields": "oops"}) == ("Client", "")

    def test_first_match_wins(self):
        submission = parse_submission(_message([
            _field("Client Name", "First"),
            _field("Nom", "Second"),
            _field("Notes internes", "n1"),
            _field("Commentaire", "n2"),
        ]))
        assert extract_client_and_notes(submission) == ("First", "n1")

    def test_matching_is_case_insensitive(self):
        submission = parse_submission(_message([
            _field("NOM", "Martin"),
            _field("NOTES", "rappeler"),
        ]))
        assert extract_client_and_notes(submission) == ("Martin", "rappeler")

    def test_empty_answer_falls_back_to_default(self):
        submission = parse_submission(_message([
            _field("Nom du client", ""),
            _field("Nom complet", "Ignored"),
        ]))
        assert extract_client_and_notes(submission) == ("Client", "")

    def test_list_answers_are_joined(self):
        submission = parse_submission(_message([_field("Commentaires", ["a", "b"])]))
        assert extract_client_and_notes(submission)[1] == "a, b"

    def test_fields_without_title_are_skipped(self):
        submission = parse_submission(_message([
            {"id": "x", "answer": {"value": "nope"}},
            _field("Client", "Durand"),
        ]))
        assert extract_client_and_notes(submission)[0] == "Durand"

    def test_stable_field_id_takes_precedence(self, per_form):
        form = per_form.model_copy(update={"client_field_id": "q_client"})
        submission = parse_submission(_message([
            _field("Prénom", "Jean"),
            _field("Souscripteur", "Lefebvre", field_id="q_client"),
        ]))
        assert extract_client_and_notes(submission, form)[0] == "Lefebvre"
        # Without the id the heuristic picks "Prénom", which contains "nom".
        assert extract_client_and_notes(submission, per_form)[0] == "Jean"


# =============================================================================
# Operation creation
# =============================================================================

class TestFormBridge:

    def test_submission_creates_operation(self, alice, per_form):
        raw = _message([_field("Nom du client", "Dupont"), _field("Commentaires", "urgent")])

        operation = run(FormBridge.handle_message(raw, per_form, alice))

        assert operation.client_name == "Dupont"
        assert operation.notes == "urgent"
        assert operation.name == "PER - Dupont"
        assert operation.type == OperationType.SOUSCRIPTION
        assert operation.operation_type == "PER"
        assert operation.status == OperationStatus.EN_ATTENTE
        assert operation.form_data == json.loads(raw)["payload"]

    def test_management_form_uses_its_category(self, alice):
        raw = _message([_field("Nom", "Petit")])
        operation = run(FormBridge.handle_message(raw, get_form("arbitrage"), alice))

        assert operation.type == OperationType.ACTES_DE_GESTION
        assert operation.name == "Arbitrage - Petit"

    def test_ignored_message_creates_nothing(self, alice, per_form):
        assert run(FormBridge.handle_message('{"event": "Tally.Resize"}', per_form, alice)) is None
        assert run(OperationService.list_operations(alice)) == []

    def test_duplicate_delivery_creates_duplicates(self, alice, per_form):
        raw = _message([_field("Nom", "Dupont")])
        run(FormBridge.handle_message(raw, per_form, alice))
        run(FormBridge.handle_message(raw, per_form, alice))
        assert len(run(OperationService.list_operations(alice))) == 2

    def test_anonymous_submission_is_rejected(self, per_form):
        raw = _message([_field("Nom", "Dupont")])
        with pytest.raises(UnauthorizedError):
            run(FormBridge.handle_message(raw, per_form, None))

    def test_direct_submit(self, alice, per_form):
        operation = run(FormBridge.direct_submit(per_form, alice))

        assert operation.name == "PER - Direct Submit"
        assert operation.client_name == "Client Test"
        assert operation.form_data == {"directSubmit": True}


class TestCatalog:

    def test_catalog_groups_forms_by_category(self):
        catalog = get_catalog()

        assert [f.slug for f in catalog.categories["Souscription"]] == ["assurance-vie", "per", "scpi-pp", "scpi-np"]
        assert [f.slug for f in catalog.categories["Actes de Gestion"]] == ["arbitrage"]
        assert catalog.onboarding_form_id

    def test_unknown_slug(self):
        assert get_form("changement-adresse") is None
