import logging
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from intima.core.auth import resolve_actor
from intima.core.exceptions import Forbidden, NotFound
from intima.core.policy import Capability, authorize
from intima.models.enums import CommentKind, CommentThread, FormType, SubmissionStatus, TERMINAL_STATUSES
from intima.models.submission_model import Submission
from intima.repositories import submission_repo
from intima.repositories.activity_log_repo import list_activity_logs
from intima.repositories.user_repo import get_user_by_id
from intima.schemas.submission_schema import (
    AmendmentRequest,
    CommentAdded,
    CommentCreate,
    CommentDelete,
    CommentRead,
    DepartmentReviewRequest,
    StatusUpdated,
    StatusUpdateRequest,
    SubmissionCreate,
    SubmissionRead,
    SubmissionUpdated,
    department_thread_comments,
)
from intima.services.lifecycle import (
    Action,
    Amendment,
    CommentDraft,
    Creation,
    DepartmentReview,
    FinalDecision,
    progress_step,
    transition,
)

logger = logging.getLogger(__name__)


def serialize_submission(submission: Submission) -> SubmissionRead:
    return SubmissionRead(
        id=submission.id,
        type=submission.form_type,
        affiliate_id=submission.affiliate_id,
        affiliate_name=submission.affiliate.name if submission.affiliate else "Unknown",
        activity_name=submission.activity_name,
        date=submission.date,
        description=submission.description,
        status=submission.status,
        progress_step=progress_step(submission.status),
        documents=[document.path for document in submission.documents],
        comments=[
            CommentRead.from_model(comment)
            for comment in submission.comments
            if comment.thread == CommentThread.GENERAL
        ],
        submitted_by=submission.submitted_by,
        submitted_at=submission.submitted_at,
        updated_at=submission.updated_at,
        finance_review_status=submission.finance_review_status,
        finance_comments=department_thread_comments(submission, CommentThread.FINANCE),
        finance_reviewed_by=submission.finance_reviewed_by,
        finance_reviewed_at=submission.finance_reviewed_at,
        activities_review_status=submission.activities_review_status,
        activities_comments=department_thread_comments(submission, CommentThread.ACTIVITIES),
        activities_reviewed_by=submission.activities_reviewed_by,
        activities_reviewed_at=submission.activities_reviewed_at,
        validation_state=submission.validation_state,
        validation_attempts=submission.validation_attempts or 0,
        validation_started_at=submission.validation_started_at,
        validation_error=submission.validation_error,
    )


def _get_or_404(db: Session, submission_id: str, form_type: FormType | None = None) -> Submission:
    submission = submission_repo.get_submission_by_id(db, submission_id)
    # A mismatched form type is treated like a miss
    if not submission or (form_type is not None and submission.form_type != form_type):
        raise NotFound("Submission", submission_id)
    return submission


def list_submissions(db: Session, status: SubmissionStatus | None = None, form_type: FormType | None = None):
    return [serialize_submission(s) for s in submission_repo.list_submissions(db, status=status, form_type=form_type)]


def list_user_submissions(db: Session, user_id: str):
    user = get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    rows = submission_repo.list_submissions_for_affiliates(db, list(user.affiliates or []))
    return [serialize_submission(s) for s in rows]


def get_submission(db: Session, submission_id: str) -> SubmissionRead:
    return serialize_submission(_get_or_404(db, submission_id))


def create_submission(db: Session, form_type: FormType, data: SubmissionCreate, token_user=None) -> SubmissionRead:
    authorize(token_user, Capability.SUBMIT)
    if data.status and data.status != SubmissionStatus.PENDING_VALIDATION.value:
        logger.info("Ignoring client-supplied status %r on new %s", data.status, form_type.value)

    submission = submission_repo.add_submission(
        db,
        form_type,
        {
            "affiliate_id": data.affiliate_id,
            "activity_name": data.activity_name,
            "date": data.date,
            "description": data.description or None,
            "submitted_by": data.submitted_by,
        },
    )
    result = transition(None, Action.CREATE, Creation(documents=data.document_paths()))
    submission_repo.apply_transition(db, submission, result, data.submitted_by, f"Created {form_type.value} submission")
    logger.info("Created %s submission %s for affiliate %s", form_type.value, submission.id, data.affiliate_id)
    return serialize_submission(submission)


def add_comment(db: Session, submission_id: str, data: CommentCreate, token_user=None) -> CommentAdded:
    actor = resolve_actor(db, token_user, data.user_id, strict=False)
    authorize(actor, Capability.COMMENT)
    submission = _get_or_404(db, submission_id, data.form_type)

    comment = submission_repo.add_user_comment(
        db,
        submission,
        CommentDraft(
            kind=CommentKind.USER,
            author=data.user_name,
            author_id=actor.id if actor else data.user_id,
            text=data.text,
        ),
    )
    return CommentAdded(message="Comment added successfully", comment=CommentRead.from_model(comment))


def delete_comment(db: Session, submission_id: str, data: CommentDelete, token_user=None) -> dict:
    requester_id = token_user.id if token_user else data.user_id
    submission = _get_or_404(db, submission_id, data.form_type)

    comment = next((c for c in submission.comments if c.id == data.comment_id), None)
    if comment is None:
        raise NotFound("Comment", data.comment_id)
    if comment.author_id != requester_id:
        raise Forbidden("You can only delete your own comments")

    submission_repo.delete_comment(db, submission, comment)
    return {"message": "Comment deleted successfully"}


def submit_amendment(db: Session, submission_id: str, data: AmendmentRequest, token_user=None) -> SubmissionUpdated:
    requester_id = token_user.id if token_user else data.user_id
    submission = _get_or_404(db, submission_id, data.form_type)
    if submission.submitted_by != requester_id:
        raise Forbidden("Only the submitter can amend this submission")

    result = transition(
        submission.status,
        Action.AMEND,
        Amendment(actor_id=requester_id, document=data.new_document, note=data.amendment_comment),
    )
    submission_repo.apply_transition(db, submission, result, requester_id, "Submitted amendment")
    logger.info("Submission %s amended by %s", submission_id, requester_id)
    return SubmissionUpdated(message="Amendment submitted successfully", submission=serialize_submission(submission))


def update_status(db: Session, submission_id: str, data: StatusUpdateRequest, token_user=None) -> StatusUpdated:
    actor = resolve_actor(db, token_user, data.user_id)
    authorize(actor, Capability.DECIDE)
    submission = _get_or_404(db, submission_id)

    result = transition(
        submission.status,
        Action.FINAL_DECISION,
        FinalDecision(
            status=data.status,
            message=data.message,
            signed_document=data.signed_form_url,
        ),
    )
    actor_id = actor.id if actor else "system"
    submission_repo.apply_transition(db, submission, result, actor_id, f"Status set to {result.status.value}")
    logger.info(
        "Submission %s: %s -> %s by %s",
        submission_id,
        result.previous.value,
        result.status.value,
        actor_id,
    )
    return StatusUpdated(
        message="Status updated successfully",
        updated_status=result.status,
        submission=serialize_submission(submission),
    )


def submit_department_review(
    db: Session, submission_id: str, data: DepartmentReviewRequest, token_user=None
) -> SubmissionUpdated:
    actor = resolve_actor(db, token_user, data.user_id)
    authorize(actor, Capability.REVIEW_DEPARTMENT)
    submission = _get_or_404(db, submission_id, data.form_type)

    reviewer_id = actor.id if actor else data.user_id
    result = transition(
        submission.status,
        Action.DEPARTMENT_REVIEW,
        DepartmentReview(
            reviewer_id=reviewer_id,
            finance_status=data.finance_review_status,
            finance_message=data.finance_review_message,
            activities_status=data.activities_review_status,
            activities_message=data.activities_review_message,
        ),
    )
    if result.previous in TERMINAL_STATUSES:
        logger.warning(
            "Department review reopened submission %s from terminal status %s",
            submission_id,
            result.previous.value,
        )
    submission_repo.apply_transition(db, submission, result, reviewer_id or "system", "Department review")
    return SubmissionUpdated(message="Department review updated successfully", submission=serialize_submission(submission))


def list_submission_activity(db: Session, submission_id: str):
    _get_or_404(db, submission_id)
    return list_activity_logs(db, submission_id)
