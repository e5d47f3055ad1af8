from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy import select
from intima.models.enums import Department, FormType, SubmissionStatus
from intima.models.submission_model import Submission, SubmissionComment, SubmissionDocument
from intima.repositories.activity_log_repo import add_activity_log
from intima.services.lifecycle import (
    AppendComment,
    AppendDocument,
    CommentDraft,
    SetDepartmentReview,
    TransitionResult,
)


def get_submission_by_id(db: Session, submission_id: str) -> Submission | None:
    stmt = select(Submission).where(Submission.id == submission_id)
    return db.execute(stmt).scalars().first()


def list_submissions(
    db: Session,
    status: SubmissionStatus | None = None,
    form_type: FormType | None = None,
) -> list[Submission]:
    stmt = select(Submission)
    if status:
        stmt = stmt.where(Submission.status == status)
    if form_type:
        stmt = stmt.where(Submission.form_type == form_type)
    stmt = stmt.order_by(Submission.submitted_at.desc())
    return list(db.execute(stmt).scalars().all())


def list_submissions_for_affiliates(db: Session, affiliate_ids: list[str]) -> list[Submission]:
    if not affiliate_ids:
        return []
    stmt = (
        select(Submission)
        .where(Submission.affiliate_id.in_(affiliate_ids))
        .order_by(Submission.submitted_at.desc())
    )
    return list(db.execute(stmt).scalars().all())


def add_submission(db: Session, form_type: FormType, fields: dict) -> Submission:
    """Stage a new submission; documents and status come from the CREATE transition."""
    submission = Submission(form_type=form_type, **fields)
    db.add(submission)
    return submission


def _next_position(rows) -> int:
    return max((row.position for row in rows), default=-1) + 1


def append_document(submission: Submission, path: str, kind) -> SubmissionDocument:
    document = SubmissionDocument(path=path, kind=kind, position=_next_position(submission.documents))
    submission.documents.append(document)
    return document


def append_comment(submission: Submission, draft: CommentDraft) -> SubmissionComment:
    comment = SubmissionComment(
        thread=draft.thread,
        kind=draft.kind,
        author=draft.author,
        author_id=draft.author_id,
        text=draft.text,
        department=draft.department,
        field=draft.field,
        severity=draft.severity,
        suggested_fix=draft.suggested_fix,
        signed_document=draft.signed_document,
        position=_next_position(submission.comments),
    )
    submission.comments.append(comment)
    return comment


def set_department_review(submission: Submission, effect: SetDepartmentReview) -> None:
    prefix = "finance" if effect.department == Department.FINANCE else "activities"
    setattr(submission, f"{prefix}_review_status", effect.status)
    setattr(submission, f"{prefix}_reviewed_by", effect.reviewed_by)
    setattr(submission, f"{prefix}_reviewed_at", datetime.now(timezone.utc))


def apply_transition(
    db: Session,
    submission: Submission,
    result: TransitionResult,
    actor_id: str,
    action: str,
) -> list[SubmissionComment]:
    """Persist a lifecycle transition: effects, status, audit entry, one commit.

    Returns the comments the transition created.
    """
    created: list[SubmissionComment] = []
    for effect in result.effects:
        if isinstance(effect, AppendDocument):
            append_document(submission, effect.path, effect.kind)
        elif isinstance(effect, AppendComment):
            created.append(append_comment(submission, effect.comment))
        elif isinstance(effect, SetDepartmentReview):
            set_department_review(submission, effect)
        else:
            raise TypeError(f"Unknown lifecycle effect: {effect!r}")

    submission.status = result.status
    submission.updated_at = datetime.now(timezone.utc)
    # New submissions only get their id on flush
    db.flush()
    add_activity_log(
        db,
        user_id=actor_id,
        action=action,
        related_form_id=submission.id,
        form_type=submission.form_type,
        old_status=result.previous.value if result.previous else None,
        new_status=result.status.value,
    )
    db.commit()
    db.refresh(submission)
    return created


def add_user_comment(db: Session, submission: Submission, draft: CommentDraft) -> SubmissionComment:
    comment = append_comment(submission, draft)
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, submission: Submission, comment: SubmissionComment) -> None:
    submission.comments.remove(comment)
    db.commit()
