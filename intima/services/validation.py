"""Automated document review through the Gemini ``generateContent`` API.

The validator only ever reports findings; it never decides a submission. Any
failure (transport, HTTP status, unparseable body) surfaces as
``ValidationServiceError`` and, once retries are exhausted, becomes a single
critical finding so the submission still moves on to manual review.
"""

import base64
import json
import logging
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import httpx
from pydantic import ValidationError
from sqlalchemy.orm import Session
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from intima.core.config import get_settings
from intima.core.exceptions import ValidationServiceError
from intima.models.enums import FormType, Severity, ValidationState
from intima.repositories.submission_repo import apply_transition, get_submission_by_id
from intima.schemas.validation_schema import Finding
from intima.services.lifecycle import (
    SYSTEM_AUTHOR_ID,
    Action,
    ValidationOutcome,
    is_allowed,
    transition,
)

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_FINDING_LIST_KEYS = ("comments", "findings", "issues")

FAILURE_FINDING = Finding(
    field="gemini-validation",
    severity=Severity.CRITICAL,
    message="Failed to validate document with Gemini.",
    suggested_fix="Check the server logs for more details.",
)

NO_DOCUMENT_FINDING = Finding(
    field="documents",
    severity=Severity.INFO,
    message="No documents were attached, so automated validation was skipped.",
)


class DocumentUnavailable(ValidationServiceError):
    """The stored document could not be read; retrying will not help."""


def parse_findings(text: str) -> list[Finding]:
    """Coerce a model reply into findings.

    Accepts a JSON list of findings or an object holding one under
    ``comments`` / ``findings`` / ``issues``, optionally wrapped in Markdown
    code fences. Individual malformed entries are dropped.
    """
    cleaned = _FENCE_RE.sub("", text or "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValidationServiceError("Validator returned a body that is not JSON") from exc

    if isinstance(data, dict):
        for key in _FINDING_LIST_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            raise ValidationServiceError("Validator response holds no list of findings")
    if not isinstance(data, list):
        raise ValidationServiceError("Validator response holds no list of findings")

    findings: list[Finding] = []
    for item in data:
        try:
            findings.append(Finding.model_validate(item))
        except ValidationError:
            logger.warning("Discarding malformed finding: %r", item)
    return findings


def _response_text(body: dict) -> str:
    try:
        parts = body["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ValidationServiceError("Gemini response has no candidate content") from exc
    if not isinstance(parts, list):
        raise ValidationServiceError("Gemini response has no candidate content")
    return "".join(str(part.get("text") or "") for part in parts if isinstance(part, dict))


def load_rule_prompt(form_type: FormType, rules_dir: str) -> str:
    path = Path(rules_dir) / f"{FormType(form_type).value.lower()}.md"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationServiceError(f"Could not read system prompt for {form_type.value}") from exc


class GeminiValidator:
    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str,
        rules_dir: str,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.rules_dir = rules_dir
        self.timeout = timeout
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_request(self, document: bytes, form_type: FormType) -> dict:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": load_rule_prompt(form_type, self.rules_dir)},
                        {
                            "inline_data": {
                                "mime_type": "application/pdf",
                                "data": base64.b64encode(document).decode("ascii"),
                            }
                        },
                    ],
                }
            ],
            "generationConfig": {"responseMimeType": "application/json", "temperature": 0.1},
        }

    def validate(self, document: bytes, form_type: FormType) -> list[Finding]:
        if not self.api_key:
            raise ValidationServiceError("GEMINI_API_KEY is not set")
        payload = self.build_request(document, form_type)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.endpoint, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as exc:
            raise ValidationServiceError(f"Gemini request failed: {exc}") from exc

        if response.status_code >= 400:
            raise ValidationServiceError(f"Gemini returned HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise ValidationServiceError("Gemini returned a non-JSON envelope") from exc
        return parse_findings(_response_text(body))


def get_validator() -> GeminiValidator:
    settings = get_settings()
    return GeminiValidator(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        rules_dir=settings.rules_dir,
        timeout=settings.gemini_timeout_seconds,
    )


def resolve_document_path(reference: str, upload_dir: str) -> Path:
    """Map a stored document reference (``/uploads/x.pdf`` or a full URL) to a file."""
    name = reference.split("/uploads/", 1)[-1].lstrip("/")
    root = Path(upload_dir).resolve()
    path = (root / name).resolve()
    if root not in path.parents:
        raise DocumentUnavailable(f"Document path escapes the upload directory: {reference}")
    return path


def _read_document(reference: str, upload_dir: str) -> bytes:
    path = resolve_document_path(reference, upload_dir)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise DocumentUnavailable(f"Document not found: {reference}") from exc


def validation_time_budget(settings) -> timedelta:
    """Longest a healthy run can take: every attempt timing out plus the waits between them."""
    attempts = max(1, settings.validation_max_attempts)
    waits = sum(min(30.0, settings.validation_retry_wait_seconds * 2 ** n) for n in range(attempts - 1))
    return timedelta(seconds=settings.gemini_timeout_seconds * attempts + waits)


def is_stale_run(submission, settings, now: Optional[datetime] = None) -> bool:
    """True when a RUNNING validation has outlived its budget, i.e. its worker died."""
    started = submission.validation_started_at
    if started is None:
        return True
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return now - started > validation_time_budget(settings)


def _retryable(exc: BaseException) -> bool:
    return isinstance(exc, ValidationServiceError) and not isinstance(exc, DocumentUnavailable)


def _review_documents(validator, documents: list[str], form_type: FormType, upload_dir: str) -> list[Finding]:
    findings: list[Finding] = []
    for reference in documents:
        findings.extend(validator.validate(_read_document(reference, upload_dir), form_type))
    return findings


def run_validation(session_factory: Callable[[], Session], validator, submission_id: str) -> None:
    """Background task: review a submission's documents and advance it to INTIMA review."""
    settings = get_settings()
    db = session_factory()
    try:
        submission = get_submission_by_id(db, submission_id)
        if submission is None:
            logger.warning("Validation requested for unknown submission %s", submission_id)
            return
        if not is_allowed(submission.status, Action.VALIDATION_COMPLETED):
            logger.info("Submission %s is %s; skipping validation", submission_id, submission.status.value)
            return

        submission.validation_state = ValidationState.RUNNING
        submission.validation_started_at = datetime.now(timezone.utc)
        db.commit()

        documents = [document.path for document in submission.documents]
        state, error = ValidationState.SUCCEEDED, None
        if not documents:
            findings = [NO_DOCUMENT_FINDING]
        else:
            retrying = Retrying(
                stop=stop_after_attempt(max(1, settings.validation_max_attempts)),
                wait=wait_exponential(multiplier=settings.validation_retry_wait_seconds, max=30),
                retry=retry_if_exception(_retryable),
                reraise=True,
                before_sleep=lambda rs: logger.warning(
                    "Validation attempt %d for %s failed: %s",
                    rs.attempt_number,
                    submission_id,
                    rs.outcome.exception(),
                ),
            )
            try:
                for attempt in retrying:
                    with attempt:
                        submission.validation_attempts = (submission.validation_attempts or 0) + 1
                        db.commit()
                        findings = _review_documents(
                            validator, documents, submission.form_type, settings.upload_dir
                        )
            except ValidationServiceError as exc:
                logger.error("Validation of %s failed for good: %s", submission_id, exc.message)
                findings = [FAILURE_FINDING]
                state, error = ValidationState.FAILED, exc.message
            except Exception as exc:
                # Any validator error ends in manual review
                logger.exception("Validator raised an unexpected error for %s", submission_id)
                db.rollback()
                findings = [FAILURE_FINDING]
                state, error = ValidationState.FAILED, f"Unexpected validator error: {exc}"

        db.refresh(submission)
        submission.validation_state = state
        submission.validation_error = error
        if not is_allowed(submission.status, Action.VALIDATION_COMPLETED):
            # Someone moved the submission on while the validator was running
            logger.info("Submission %s left Pending Validation during review; findings dropped", submission_id)
            db.commit()
            return

        result = transition(submission.status, Action.VALIDATION_COMPLETED, ValidationOutcome(findings))
        apply_transition(db, submission, result, SYSTEM_AUTHOR_ID, "Automated validation")
        logger.info(
            "Submission %s validated (%s, %d findings) -> %s",
            submission_id,
            state.value,
            len(findings),
            result.status.value,
        )
    except Exception:
        logger.exception("Validation task for %s crashed", submission_id)
        db.rollback()
        submission = get_submission_by_id(db, submission_id)
        if submission is not None and submission.validation_state == ValidationState.RUNNING:
            submission.validation_state = ValidationState.FAILED
            submission.validation_error = "Validation task crashed"
            db.commit()
        raise
    finally:
        db.close()
