import pytest

from intima.core.exceptions import InvalidTransition, ValidationFailed
from intima.models.enums import (
    CommentKind,
    CommentThread,
    Department,
    DocumentKind,
    ReviewStatus,
    Severity,
    SubmissionStatus,
)
from intima.schemas.validation_schema import Finding
from intima.services.lifecycle import (
    Action,
    Amendment,
    AppendComment,
    AppendDocument,
    Creation,
    DepartmentReview,
    FinalDecision,
    SYSTEM_AUTHOR_ID,
    SetDepartmentReview,
    ValidationOutcome,
    is_allowed,
    progress_step,
    transition,
)

S = SubmissionStatus


def _comments(result):
    return [e.comment for e in result.effects if isinstance(e, AppendComment)]


def _documents(result):
    return [e for e in result.effects if isinstance(e, AppendDocument)]


def test_create_starts_pending_with_original_documents():
    result = transition(None, Action.CREATE, Creation(documents=["/uploads/a.pdf", "", "/uploads/b.pdf"]))
    assert result.previous is None
    assert result.status == S.PENDING_VALIDATION
    assert [(d.path, d.kind) for d in _documents(result)] == [
        ("/uploads/a.pdf", DocumentKind.ORIGINAL),
        ("/uploads/b.pdf", DocumentKind.ORIGINAL),
    ]


def test_create_only_from_nothing():
    with pytest.raises(InvalidTransition):
        transition(S.APPROVED, Action.CREATE, Creation())


def test_validation_moves_to_review_with_finding_comments():
    finding = Finding(field="budget", severity=Severity.MAJOR, message="Total does not add up", suggested_fix="Fix it")
    result = transition(S.PENDING_VALIDATION, Action.VALIDATION_COMPLETED, ValidationOutcome([finding]))
    assert result.status == S.AWAITING_INTIMA_REVIEW
    [comment] = _comments(result)
    assert comment.kind == CommentKind.VALIDATION
    assert comment.author == "Gemini Validation"
    assert comment.field == "budget"
    assert comment.severity == Severity.MAJOR
    assert comment.suggested_fix == "Fix it"


@pytest.mark.parametrize("status", [S.AWAITING_INTIMA_REVIEW, S.REQUIRES_AMENDMENT, S.APPROVED, S.REJECTED])
def test_validation_only_from_pending(status):
    with pytest.raises(InvalidTransition) as exc:
        transition(status, Action.VALIDATION_COMPLETED, ValidationOutcome())
    assert exc.value.details == {"currentStatus": status.value}


@pytest.mark.parametrize("status", list(SubmissionStatus))
def test_department_review_always_returns_to_intima(status):
    result = transition(
        status,
        Action.DEPARTMENT_REVIEW,
        DepartmentReview(reviewer_id="2021-00002", finance_status=ReviewStatus.APPROVED),
    )
    assert result.status == S.AWAITING_INTIMA_REVIEW


def test_department_review_effects():
    result = transition(
        S.AWAITING_INTIMA_REVIEW,
        Action.DEPARTMENT_REVIEW,
        DepartmentReview(
            reviewer_id="2021-00002",
            finance_status=ReviewStatus.REJECTED,
            finance_message="Budget too high",
            activities_status=ReviewStatus.APPROVED,
        ),
    )
    reviews = [e for e in result.effects if isinstance(e, SetDepartmentReview)]
    assert [(r.department, r.status, r.reviewed_by) for r in reviews] == [
        (Department.FINANCE, ReviewStatus.REJECTED, "2021-00002"),
        (Department.ACTIVITIES, ReviewStatus.APPROVED, "2021-00002"),
    ]

    comments = _comments(result)
    shared = [c for c in comments if c.thread == CommentThread.GENERAL]
    assert [c.text for c in shared] == [
        "Status: Rejected, Reason: Budget too high",
        "Status: Approved, Reason: No reason provided",
    ]
    assert [c.author for c in shared] == ["Finance Department", "Activities Department"]
    assert [c.department for c in shared] == ["Finance", "Activities"]

    # Only the department that left a message gets a sub-thread entry
    threaded = [c for c in comments if c.thread != CommentThread.GENERAL]
    assert [(c.thread, c.text) for c in threaded] == [(CommentThread.FINANCE, "Budget too high")]


def test_department_review_needs_a_status():
    with pytest.raises(ValidationFailed) as exc:
        transition(S.AWAITING_INTIMA_REVIEW, Action.DEPARTMENT_REVIEW, DepartmentReview(reviewer_id="x"))
    assert exc.value.message == "No review data provided"


def test_final_decision_requires_message():
    with pytest.raises(ValidationFailed) as exc:
        transition(S.AWAITING_INTIMA_REVIEW, Action.FINAL_DECISION, FinalDecision(S.REQUIRES_AMENDMENT, "  "))
    assert exc.value.message == "Status and message are required"


@pytest.mark.parametrize("target", [S.APPROVED, S.REJECTED])
def test_terminal_decision_requires_signed_form(target):
    with pytest.raises(ValidationFailed) as exc:
        transition(S.AWAITING_INTIMA_REVIEW, Action.FINAL_DECISION, FinalDecision(target, "Looks good"))
    assert exc.value.message == "Signed form is required for Approved or Rejected status"


def test_final_decision_rejects_unknown_status():
    with pytest.raises(ValidationFailed) as exc:
        transition(S.AWAITING_INTIMA_REVIEW, Action.FINAL_DECISION, FinalDecision("Shelved", "msg"))
    assert exc.value.message == "Invalid status"


def test_approval_appends_signed_form_then_decision_comment():
    result = transition(
        S.AWAITING_INTIMA_REVIEW,
        Action.FINAL_DECISION,
        FinalDecision(S.APPROVED, "All good", signed_document="/uploads/signed.pdf"),
    )
    assert result.status == S.APPROVED
    assert isinstance(result.effects[0], AppendDocument)
    assert result.effects[0].kind == DocumentKind.SIGNED
    [comment] = _comments(result)
    assert comment.author == "INTIMA Review"
    assert comment.author_id == SYSTEM_AUTHOR_ID
    assert comment.text == 'Status updated to "Approved": All good'
    assert comment.signed_document == "/uploads/signed.pdf"


def test_amendment_request_needs_no_signed_form():
    result = transition(
        S.AWAITING_INTIMA_REVIEW,
        Action.FINAL_DECISION,
        FinalDecision(S.REQUIRES_AMENDMENT, "Please fix the budget"),
    )
    assert result.status == S.REQUIRES_AMENDMENT
    assert _documents(result) == []


@pytest.mark.parametrize("status", [S.APPROVED, S.REJECTED])
def test_no_decision_after_terminal(status):
    with pytest.raises(InvalidTransition):
        transition(status, Action.FINAL_DECISION, FinalDecision(S.REQUIRES_AMENDMENT, "reopen"))


def test_amendment_appends_document_and_prefixed_comment():
    result = transition(
        S.REQUIRES_AMENDMENT,
        Action.AMEND,
        Amendment(actor_id="2021-00001", document="/uploads/v2.pdf", note="Fixed the budget"),
    )
    assert result.status == S.AWAITING_INTIMA_REVIEW
    [document] = _documents(result)
    assert (document.path, document.kind) == ("/uploads/v2.pdf", DocumentKind.AMENDMENT)
    [comment] = _comments(result)
    assert comment.text == "[AMENDMENT] Fixed the budget"
    assert comment.author == "System"


def test_amendment_prefix_not_doubled():
    result = transition(
        S.REQUIRES_AMENDMENT,
        Action.AMEND,
        Amendment(actor_id="u", document="/uploads/v2.pdf", note="[AMENDMENT] Fixed"),
    )
    assert _comments(result)[0].text == "[AMENDMENT] Fixed"


def test_amendment_requires_document_and_note():
    with pytest.raises(ValidationFailed):
        transition(S.REQUIRES_AMENDMENT, Action.AMEND, Amendment(actor_id="u", document=None, note="x"))
    with pytest.raises(ValidationFailed):
        transition(S.REQUIRES_AMENDMENT, Action.AMEND, Amendment(actor_id="u", document="/uploads/x.pdf", note=""))


def test_amendment_only_from_requires_amendment():
    with pytest.raises(InvalidTransition) as exc:
        transition(S.AWAITING_INTIMA_REVIEW, Action.AMEND, Amendment(actor_id="u", document="d", note="n"))
    assert exc.value.message == "Cannot amend a submission in status 'Awaiting INTIMA Review'"


def test_is_allowed():
    assert is_allowed(None, Action.CREATE)
    assert not is_allowed(None, Action.AMEND)
    assert is_allowed(S.PENDING_VALIDATION, Action.FINAL_DECISION)
    assert not is_allowed(S.APPROVED, Action.FINAL_DECISION)
    assert is_allowed(S.REJECTED, Action.DEPARTMENT_REVIEW)


def test_progress_step():
    assert [progress_step(s) for s in SubmissionStatus] == [1, 2, 3, 4, 4]
