import json
import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import pytest

from intima.core.config import get_settings
from intima.core.exceptions import ValidationServiceError
from intima.models.enums import FormType, Severity, ValidationState
from intima.models.submission_model import Submission
from intima.schemas.validation_schema import Finding
from intima.services.validation import (
    DocumentUnavailable,
    GeminiValidator,
    is_stale_run,
    parse_findings,
    resolve_document_path,
    validation_time_budget,
)

PDF_BYTES = b"%PDF-1.4 validation sample"


def _stored_document(name="to-validate.pdf") -> str:
    with open(os.path.join(get_settings().upload_dir, name), "wb") as f:
        f.write(PDF_BYTES)
    return f"/uploads/{name}"


def _create(client, affiliate, files):
    resp = client.post(
        "/api/submission/sap",
        json={
            "affiliateId": affiliate.id,
            "activityName": "Open Day Booth",
            "date": "2025-06-01",
            "files": files,
            "submittedBy": "2021-00001",
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# --- response parsing -----------------------------------------------------

def test_parse_findings_list():
    text = json.dumps([
        {"field": "date", "severity": "Major", "message": "Date is in the past", "suggested_fix": "Pick a new date"},
    ])
    [finding] = parse_findings(text)
    assert finding.field == "date"
    assert finding.severity == Severity.MAJOR
    assert finding.suggested_fix == "Pick a new date"


def test_parse_findings_strips_code_fences():
    text = '```json\n[{"severity": "info", "message": "Looks fine"}]\n```'
    [finding] = parse_findings(text)
    assert finding.field == "general"
    assert finding.severity == Severity.INFO


def test_parse_findings_wrapped_object():
    text = json.dumps({"issues": [{"field": "budget", "severity": "critical", "message": "Missing"}]})
    assert [f.field for f in parse_findings(text)] == ["budget"]


def test_parse_findings_drops_malformed_items():
    text = json.dumps([
        {"field": "a", "severity": "minor", "message": "ok"},
        {"field": "b", "severity": "catastrophic", "message": "bad severity"},
        "not an object",
    ])
    assert [f.field for f in parse_findings(text)] == ["a"]


def test_parse_findings_empty_list():
    assert parse_findings("[]") == []


@pytest.mark.parametrize("text", ["I could not read this document", '{"summary": "fine"}', '"just a string"'])
def test_parse_findings_rejects_unusable_bodies(text):
    with pytest.raises(ValidationServiceError):
        parse_findings(text)


# --- Gemini adapter -------------------------------------------------------

def _gemini_reply(findings):
    return {"candidates": [{"content": {"parts": [{"text": json.dumps(findings)}]}}]}


def test_gemini_validator_posts_document_and_parses_reply():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_gemini_reply([{"field": "venue", "severity": "minor", "message": "Room?"}]))

    validator = GeminiValidator(
        api_key="k-123",
        model="gemini-test",
        base_url="https://gemini.example/v1beta/",
        rules_dir=get_settings().rules_dir,
        transport=httpx.MockTransport(handler),
    )
    [finding] = validator.validate(PDF_BYTES, FormType.SAP)

    assert finding.field == "venue"
    assert seen["url"].path == "/v1beta/models/gemini-test:generateContent"
    assert seen["url"].params["key"] == "k-123"
    parts = seen["body"]["contents"][0]["parts"]
    assert "JSON" in parts[0]["text"]
    assert parts[1]["inline_data"]["mime_type"] == "application/pdf"
    assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"


def test_gemini_validator_uses_form_specific_prompt():
    prompts = []

    def handler(request):
        prompts.append(json.loads(request.content)["contents"][0]["parts"][0]["text"])
        return httpx.Response(200, json=_gemini_reply([]))

    validator = GeminiValidator("k", "m", "https://gemini.example", get_settings().rules_dir, transport=httpx.MockTransport(handler))
    validator.validate(PDF_BYTES, FormType.SAP)
    validator.validate(PDF_BYTES, FormType.ASF)
    assert prompts[0] != prompts[1]


def test_gemini_validator_http_error():
    validator = GeminiValidator(
        "k",
        "m",
        "https://gemini.example",
        get_settings().rules_dir,
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="overloaded")),
    )
    with pytest.raises(ValidationServiceError) as exc:
        validator.validate(PDF_BYTES, FormType.SAP)
    assert "503" in exc.value.message


def test_gemini_validator_envelope_without_candidates():
    validator = GeminiValidator(
        "k",
        "m",
        "https://gemini.example",
        get_settings().rules_dir,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"promptFeedback": {}})),
    )
    with pytest.raises(ValidationServiceError):
        validator.validate(PDF_BYTES, FormType.SAP)


@pytest.mark.parametrize(
    "envelope",
    [
        {"candidates": [{"content": {"parts": None}}]},
        {"candidates": [{"content": {"parts": "not a list"}}]},
        {"candidates": [None]},
    ],
)
def test_gemini_validator_malformed_candidate_content(envelope):
    validator = GeminiValidator(
        "k",
        "m",
        "https://gemini.example",
        get_settings().rules_dir,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=envelope)),
    )
    with pytest.raises(ValidationServiceError):
        validator.validate(PDF_BYTES, FormType.SAP)


def test_gemini_validator_without_api_key():
    validator = GeminiValidator(None, "m", "https://gemini.example", get_settings().rules_dir)
    with pytest.raises(ValidationServiceError) as exc:
        validator.validate(PDF_BYTES, FormType.SAP)
    assert exc.value.message == "GEMINI_API_KEY is not set"


def test_resolve_document_path_accepts_urls():
    upload_dir = get_settings().upload_dir
    path = resolve_document_path("http://localhost:8000/uploads/a.pdf", upload_dir)
    assert path.name == "a.pdf"
    assert str(path).startswith(os.path.realpath(upload_dir))


def test_resolve_document_path_refuses_escape():
    with pytest.raises(DocumentUnavailable):
        resolve_document_path("/uploads/../../etc/passwd", get_settings().upload_dir)


# --- background validation ------------------------------------------------

def test_validation_advances_submission(client, affiliate, validator):
    validator.replies = [[Finding(field="budget", severity="major", message="Totals differ", suggested_fix="Recount")]]
    created = _create(client, affiliate, [_stored_document()])

    resp = client.post(f"/api/validate-submission/{created['id']}")
    assert resp.status_code == 202
    assert resp.json()["message"] == "Validation scheduled"
    assert resp.json()["submissionId"] == created["id"]

    submission = client.get(f"/api/submission/{created['id']}").json()
    assert submission["status"] == "Awaiting INTIMA Review"
    assert submission["progressStep"] == 2
    assert submission["validationState"] == "SUCCEEDED"
    assert submission["validationAttempts"] == 1
    [comment] = submission["comments"]
    assert comment["author"] == "Gemini Validation"
    assert comment["field"] == "budget"
    assert comment["severity"] == "major"
    assert comment["message"] == "Totals differ"
    assert comment["suggestedFix"] == "Recount"
    assert validator.calls == [(PDF_BYTES, FormType.SAP)]


def test_validation_retries_then_succeeds(client, affiliate, validator):
    validator.replies = [ValidationServiceError("Gemini returned HTTP 503"), []]
    created = _create(client, affiliate, [_stored_document()])

    client.post(f"/api/validate-submission/{created['id']}")

    submission = client.get(f"/api/submission/{created['id']}").json()
    assert submission["validationState"] == "SUCCEEDED"
    assert submission["validationAttempts"] == 2
    assert submission["comments"] == []
    assert submission["status"] == "Awaiting INTIMA Review"


def test_validation_failure_still_advances_with_critical_comment(client, affiliate, validator):
    validator.replies = [ValidationServiceError("Gemini returned HTTP 500")]
    created = _create(client, affiliate, [_stored_document()])

    client.post(f"/api/validate-submission/{created['id']}")

    submission = client.get(f"/api/submission/{created['id']}").json()
    assert len(validator.calls) == 3
    assert submission["status"] == "Awaiting INTIMA Review"
    assert submission["validationState"] == "FAILED"
    assert submission["validationAttempts"] == 3
    assert submission["validationError"] == "Gemini returned HTTP 500"
    [comment] = submission["comments"]
    assert comment["field"] == "gemini-validation"
    assert comment["severity"] == "critical"
    assert comment["text"] == "Failed to validate document with Gemini."
    assert comment["suggestedFix"] == "Check the server logs for more details."


def test_missing_document_is_not_retried(client, affiliate, validator):
    created = _create(client, affiliate, ["/uploads/never-uploaded.pdf"])

    client.post(f"/api/validate-submission/{created['id']}")

    submission = client.get(f"/api/submission/{created['id']}").json()
    assert validator.calls == []
    assert submission["validationAttempts"] == 1
    assert submission["validationState"] == "FAILED"
    assert submission["comments"][0]["severity"] == "critical"


def test_validation_without_documents(client, affiliate, validator):
    created = _create(client, affiliate, [])

    client.post(f"/api/validate-submission/{created['id']}")

    submission = client.get(f"/api/submission/{created['id']}").json()
    assert validator.calls == []
    assert submission["status"] == "Awaiting INTIMA Review"
    assert submission["validationState"] == "SUCCEEDED"
    [comment] = submission["comments"]
    assert comment["severity"] == "info"


def test_validation_activity_is_logged(client, affiliate, validator):
    created = _create(client, affiliate, [])
    client.post(f"/api/validate-submission/{created['id']}")

    entries = client.get(f"/api/submissions/{created['id']}/activity").json()
    assert entries[-1]["userId"] == "system"
    assert (entries[-1]["oldStatus"], entries[-1]["newStatus"]) == ("Pending Validation", "Awaiting INTIMA Review")


def test_validation_only_while_pending(client, affiliate, staff):
    created = _create(client, affiliate, [])
    client.put(
        f"/api/submissions/{created['id']}/status",
        json={"status": "Requires Amendment", "message": "Fix", "userId": staff.id},
    )
    resp = client.post(f"/api/validate-submission/{created['id']}")
    assert resp.status_code == 400
    assert resp.json()["currentStatus"] == "Requires Amendment"


def test_validation_of_unknown_submission(client):
    resp = client.post("/api/validate-submission/missing")
    assert resp.status_code == 404


def test_unexpected_validator_error_goes_to_manual_review(client, affiliate, validator):
    validator.replies = [TypeError("boom")]
    created = _create(client, affiliate, [_stored_document()])

    client.post(f"/api/validate-submission/{created['id']}")

    submission = client.get(f"/api/submission/{created['id']}").json()
    assert len(validator.calls) == 1
    assert submission["status"] == "Awaiting INTIMA Review"
    assert submission["validationState"] == "FAILED"
    assert submission["validationError"] == "Unexpected validator error: boom"
    [comment] = submission["comments"]
    assert comment["field"] == "gemini-validation"
    assert comment["severity"] == "critical"


def _mark_running(db_session, submission_id, started_at):
    submission = db_session.get(Submission, submission_id)
    submission.validation_state = ValidationState.RUNNING
    submission.validation_started_at = started_at
    db_session.commit()


def test_running_validation_blocks_a_second_run(client, db_session, affiliate, validator):
    created = _create(client, affiliate, [_stored_document()])
    _mark_running(db_session, created["id"], datetime.now(timezone.utc))

    resp = client.post(f"/api/validate-submission/{created['id']}")
    assert resp.status_code == 409
    assert validator.calls == []


def test_abandoned_running_validation_is_rescheduled(client, db_session, affiliate, validator):
    created = _create(client, affiliate, [_stored_document()])
    _mark_running(db_session, created["id"], datetime.now(timezone.utc) - timedelta(hours=1))

    resp = client.post(f"/api/validate-submission/{created['id']}")
    assert resp.status_code == 202

    submission = client.get(f"/api/submission/{created['id']}").json()
    assert submission["validationState"] == "SUCCEEDED"
    assert submission["status"] == "Awaiting INTIMA Review"
    assert len(validator.calls) == 1


def test_stale_run_bounds():
    settings = SimpleNamespace(validation_max_attempts=3, validation_retry_wait_seconds=1, gemini_timeout_seconds=10)
    assert validation_time_budget(settings) == timedelta(seconds=33)

    now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    fresh = SimpleNamespace(validation_started_at=now - timedelta(seconds=30))
    abandoned = SimpleNamespace(validation_started_at=now - timedelta(seconds=34))
    naive = SimpleNamespace(validation_started_at=(now - timedelta(seconds=34)).replace(tzinfo=None))
    assert not is_stale_run(fresh, settings, now)
    assert is_stale_run(abandoned, settings, now)
    assert is_stale_run(naive, settings, now)
    assert is_stale_run(SimpleNamespace(validation_started_at=None), settings, now)
