"""
Submission lifecycle.

    Pending Validation ──validation──▶ Awaiting INTIMA Review ──decision──▶ Approved | Rejected
                                          │            ▲
                                  decision│            │amend
                                          ▼            │
                                        Requires Amendment

Every entry point (creation, automated validation, department review, final
decision, amendment) goes through :func:`transition`, which checks the rule
table below and returns the new status together with the side effects the
caller has to persist. Nothing in here touches the database.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Union

from intima.core.exceptions import InvalidTransition, ValidationFailed
from intima.models.enums import (
    CommentKind,
    CommentThread,
    Department,
    DocumentKind,
    ReviewStatus,
    Severity,
    SubmissionStatus,
    TERMINAL_STATUSES,
)
from intima.schemas.validation_schema import Finding

SYSTEM_AUTHOR_ID = "system"
AMENDMENT_PREFIX = "[AMENDMENT] "

# Tracker stages: Pending Validation, INTIMA Review, Amendments, Final Verdict
_STAGE_BY_STATUS = {
    SubmissionStatus.PENDING_VALIDATION: 1,
    SubmissionStatus.AWAITING_INTIMA_REVIEW: 2,
    SubmissionStatus.REQUIRES_AMENDMENT: 3,
    SubmissionStatus.APPROVED: 4,
    SubmissionStatus.REJECTED: 4,
}


class Action(str, Enum):
    CREATE = "create"
    VALIDATION_COMPLETED = "complete validation of"
    DEPARTMENT_REVIEW = "review"
    FINAL_DECISION = "decide on"
    AMEND = "amend"


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Creation:
    documents: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ValidationOutcome:
    findings: List[Finding] = field(default_factory=list)


@dataclass(frozen=True)
class DepartmentReview:
    reviewer_id: Optional[str] = None
    finance_status: Optional[ReviewStatus] = None
    finance_message: Optional[str] = None
    activities_status: Optional[ReviewStatus] = None
    activities_message: Optional[str] = None


@dataclass(frozen=True)
class FinalDecision:
    status: Union[SubmissionStatus, str]
    message: Optional[str]
    signed_document: Optional[str] = None


@dataclass(frozen=True)
class Amendment:
    actor_id: str
    document: Optional[str]
    note: Optional[str]


Payload = Union[Creation, ValidationOutcome, DepartmentReview, FinalDecision, Amendment]


# ---------------------------------------------------------------------------
# Side effects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommentDraft:
    kind: CommentKind
    author: str
    author_id: str
    text: str
    thread: CommentThread = CommentThread.GENERAL
    department: Optional[str] = None
    field: Optional[str] = None
    severity: Optional[Severity] = None
    suggested_fix: Optional[str] = None
    signed_document: Optional[str] = None


@dataclass(frozen=True)
class AppendDocument:
    path: str
    kind: DocumentKind


@dataclass(frozen=True)
class AppendComment:
    comment: CommentDraft


@dataclass(frozen=True)
class SetDepartmentReview:
    department: Department
    status: ReviewStatus
    reviewed_by: str


Effect = Union[AppendDocument, AppendComment, SetDepartmentReview]


@dataclass(frozen=True)
class TransitionResult:
    previous: Optional[SubmissionStatus]
    status: SubmissionStatus
    effects: List[Effect]


# ---------------------------------------------------------------------------
# Guards and effect builders
# ---------------------------------------------------------------------------

def _coerce_status(value) -> SubmissionStatus:
    try:
        return SubmissionStatus(value)
    except ValueError:
        raise ValidationFailed("Invalid status")


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _no_guard(payload) -> None:
    return None


def _guard_department_review(payload: DepartmentReview) -> None:
    if payload.finance_status is None and payload.activities_status is None:
        raise ValidationFailed("No review data provided")


def _guard_final_decision(payload: FinalDecision) -> None:
    status = _coerce_status(payload.status)
    if _blank(payload.message):
        raise ValidationFailed("Status and message are required")
    if status in TERMINAL_STATUSES and _blank(payload.signed_document):
        raise ValidationFailed("Signed form is required for Approved or Rejected status")


def _guard_amendment(payload: Amendment) -> None:
    if _blank(payload.document):
        raise ValidationFailed("An amended document is required")
    if _blank(payload.note):
        raise ValidationFailed("An amendment comment is required")


def _creation_effects(payload: Creation) -> List[Effect]:
    return [AppendDocument(path, DocumentKind.ORIGINAL) for path in payload.documents if path]


def _validation_effects(payload: ValidationOutcome) -> List[Effect]:
    return [
        AppendComment(
            CommentDraft(
                kind=CommentKind.VALIDATION,
                author="Gemini Validation",
                author_id=SYSTEM_AUTHOR_ID,
                text=finding.message,
                field=finding.field,
                severity=finding.severity,
                suggested_fix=finding.suggested_fix,
            )
        )
        for finding in payload.findings
    ]


_DEPARTMENT_THREADS = {
    Department.FINANCE: CommentThread.FINANCE,
    Department.ACTIVITIES: CommentThread.ACTIVITIES,
}


def _department_effects(payload: DepartmentReview) -> List[Effect]:
    effects: List[Effect] = []
    tracks = (
        (Department.FINANCE, payload.finance_status, payload.finance_message),
        (Department.ACTIVITIES, payload.activities_status, payload.activities_message),
    )
    for department, status, message in tracks:
        if status is None:
            continue
        status = ReviewStatus(status)
        author = f"{department.value} Department"
        effects.append(SetDepartmentReview(department, status, payload.reviewer_id or "Unknown"))
        # Shared stream entry, tagged so the general timeline can render it
        effects.append(
            AppendComment(
                CommentDraft(
                    kind=CommentKind.DEPARTMENT,
                    author=author,
                    author_id=payload.reviewer_id or SYSTEM_AUTHOR_ID,
                    text=f"Status: {status.value}, Reason: {message or 'No reason provided'}",
                    department=department.value,
                )
            )
        )
        if not _blank(message):
            effects.append(
                AppendComment(
                    CommentDraft(
                        kind=CommentKind.DEPARTMENT,
                        author=author,
                        author_id=payload.reviewer_id or SYSTEM_AUTHOR_ID,
                        text=message,
                        thread=_DEPARTMENT_THREADS[department],
                        department=department.value,
                    )
                )
            )
    return effects


def _decision_effects(payload: FinalDecision) -> List[Effect]:
    status = _coerce_status(payload.status)
    effects: List[Effect] = []
    if not _blank(payload.signed_document):
        effects.append(AppendDocument(payload.signed_document, DocumentKind.SIGNED))
    effects.append(
        AppendComment(
            CommentDraft(
                kind=CommentKind.DECISION,
                author="INTIMA Review",
                author_id=SYSTEM_AUTHOR_ID,
                text=f'Status updated to "{status.value}": {payload.message}',
                signed_document=payload.signed_document or None,
            )
        )
    )
    return effects


def _amendment_effects(payload: Amendment) -> List[Effect]:
    note = payload.note.strip()
    if not note.startswith(AMENDMENT_PREFIX.strip()):
        note = f"{AMENDMENT_PREFIX}{note}"
    return [
        AppendDocument(payload.document, DocumentKind.AMENDMENT),
        AppendComment(
            CommentDraft(
                kind=CommentKind.AMENDMENT,
                author="System",
                author_id=payload.actor_id,
                text=note,
            )
        ),
    ]


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    # None means "any status"; CREATE is the only rule that starts from nothing
    allowed_from: Optional[FrozenSet[SubmissionStatus]]
    # None means the payload names the target
    target: Optional[SubmissionStatus]
    guard: Callable[[Payload], None]
    effects: Callable[[Payload], List[Effect]]


_NON_TERMINAL = frozenset(set(SubmissionStatus) - TERMINAL_STATUSES)

TRANSITIONS: Dict[Action, Rule] = {
    Action.CREATE: Rule(
        allowed_from=frozenset(),
        target=SubmissionStatus.PENDING_VALIDATION,
        guard=_no_guard,
        effects=_creation_effects,
    ),
    Action.VALIDATION_COMPLETED: Rule(
        allowed_from=frozenset({SubmissionStatus.PENDING_VALIDATION}),
        target=SubmissionStatus.AWAITING_INTIMA_REVIEW,
        guard=_no_guard,
        effects=_validation_effects,
    ),
    # Any department review sends the submission back to INTIMA, terminal or not
    Action.DEPARTMENT_REVIEW: Rule(
        allowed_from=None,
        target=SubmissionStatus.AWAITING_INTIMA_REVIEW,
        guard=_guard_department_review,
        effects=_department_effects,
    ),
    Action.FINAL_DECISION: Rule(
        allowed_from=_NON_TERMINAL,
        target=None,
        guard=_guard_final_decision,
        effects=_decision_effects,
    ),
    Action.AMEND: Rule(
        allowed_from=frozenset({SubmissionStatus.REQUIRES_AMENDMENT}),
        target=SubmissionStatus.AWAITING_INTIMA_REVIEW,
        guard=_guard_amendment,
        effects=_amendment_effects,
    ),
}


def is_allowed(current: Optional[SubmissionStatus], action: Action) -> bool:
    rule = TRANSITIONS[action]
    if current is None:
        return action == Action.CREATE
    if action == Action.CREATE:
        return False
    return rule.allowed_from is None or SubmissionStatus(current) in rule.allowed_from


def transition(current: Optional[SubmissionStatus], action: Action, payload: Payload) -> TransitionResult:
    """Apply ``action`` to a submission currently in ``current``.

    Raises ``InvalidTransition`` when the rule table forbids the move and
    ``ValidationFailed`` when the payload is incomplete.
    """
    rule = TRANSITIONS[action]
    if current is not None:
        current = SubmissionStatus(current)
    if not is_allowed(current, action):
        raise InvalidTransition(action.value, current.value if current else "none")

    rule.guard(payload)
    target = rule.target or _coerce_status(payload.status)
    return TransitionResult(previous=current, status=target, effects=rule.effects(payload))


def progress_step(status: SubmissionStatus) -> int:
    """1-based position on the submission tracker."""
    return _STAGE_BY_STATUS[SubmissionStatus(status)]
