from pydantic import Field, field_validator
from typing import Optional
import datetime as dt
from datetime import datetime
from intima.models.enums import (
    CommentThread,
    FormType,
    ReviewStatus,
    Severity,
    SubmissionStatus,
    ValidationState,
)
from intima.schemas.base_schema import CamelModel


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class SubmissionCreate(CamelModel):
    affiliate_id: str = Field(..., min_length=1)
    activity_name: str = Field(..., min_length=1, max_length=255)
    date: dt.date
    description: Optional[str] = None
    files: list[str] = []
    file_url: Optional[str] = None
    submitted_by: str = Field(..., min_length=1)
    # Accepted for compatibility with older clients; creation always starts at Pending Validation
    status: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def date_only(cls, value):
        # Browsers send either "2025-03-01" or a full ISO timestamp
        if isinstance(value, str) and len(value) > 10 and value[10] in "T ":
            return value[:10]
        return value

    def document_paths(self) -> list[str]:
        paths = [path for path in self.files if path]
        if self.file_url and self.file_url not in paths:
            paths.append(self.file_url)
        return paths


class TypedSubmissionCreate(SubmissionCreate):
    type: FormType


class CommentRead(CamelModel):
    id: str
    kind: str
    author: str
    author_id: str
    text: str
    timestamp: datetime
    department: Optional[str] = None
    field: Optional[str] = None
    severity: Optional[Severity] = None
    message: Optional[str] = None
    suggested_fix: Optional[str] = None
    signed_form_url: Optional[str] = None

    @classmethod
    def from_model(cls, comment) -> "CommentRead":
        return cls(
            id=comment.id,
            kind=comment.kind.value,
            author=comment.author,
            author_id=comment.author_id,
            text=comment.text,
            timestamp=comment.created_at,
            department=comment.department,
            field=comment.field,
            severity=comment.severity,
            message=comment.text if comment.severity else None,
            suggested_fix=comment.suggested_fix,
            signed_form_url=comment.signed_document,
        )


class DepartmentCommentRead(CamelModel):
    id: str
    author: str
    text: str
    timestamp: datetime


class SubmissionRead(CamelModel):
    id: str
    type: FormType
    affiliate_id: str
    affiliate_name: str
    activity_name: str
    date: dt.date
    description: Optional[str] = None
    status: SubmissionStatus
    progress_step: int
    documents: list[str]
    comments: list[CommentRead]
    submitted_by: str
    submitted_at: datetime
    updated_at: datetime
    finance_review_status: ReviewStatus
    finance_comments: list[DepartmentCommentRead]
    finance_reviewed_by: Optional[str] = None
    finance_reviewed_at: Optional[datetime] = None
    activities_review_status: ReviewStatus
    activities_comments: list[DepartmentCommentRead]
    activities_reviewed_by: Optional[str] = None
    activities_reviewed_at: Optional[datetime] = None
    validation_state: ValidationState
    validation_attempts: int
    validation_started_at: Optional[datetime] = None
    validation_error: Optional[str] = None


class CommentCreate(CamelModel):
    text: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    user_name: str = Field(..., min_length=1)
    form_type: Optional[FormType] = None


class CommentDelete(CamelModel):
    comment_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    form_type: Optional[FormType] = None


class CommentAdded(CamelModel):
    message: str
    comment: CommentRead


class AmendmentRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    new_document: Optional[str] = None
    amendment_comment: Optional[str] = None
    form_type: Optional[FormType] = None
    # Older clients send the target status; the lifecycle decides it
    status: Optional[str] = None


class StatusUpdateRequest(CamelModel):
    status: SubmissionStatus
    message: Optional[str] = None
    signed_form_url: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("signed_form_url", mode="before")
    @classmethod
    def blank_signed_form(cls, value):
        return _blank_to_none(value)


class DepartmentReviewRequest(CamelModel):
    form_type: Optional[FormType] = None
    finance_review_status: Optional[ReviewStatus] = None
    finance_review_message: Optional[str] = None
    activities_review_status: Optional[ReviewStatus] = None
    activities_review_message: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("form_type", "finance_review_status", "activities_review_status", mode="before")
    @classmethod
    def blank_statuses(cls, value):
        return _blank_to_none(value)


class SubmissionUpdated(CamelModel):
    message: str
    submission: SubmissionRead


class StatusUpdated(SubmissionUpdated):
    updated_status: SubmissionStatus


class ActivityLogRead(CamelModel):
    id: str
    user_id: str
    action: str
    timestamp: datetime
    related_form_id: Optional[str] = None
    form_type: Optional[FormType] = None
    old_status: Optional[str] = None
    new_status: Optional[str] = None


def department_thread_comments(submission, thread: CommentThread) -> list[DepartmentCommentRead]:
    return [
        DepartmentCommentRead(id=c.id, author=c.author, text=c.text, timestamp=c.created_at)
        for c in submission.comments
        if c.thread == thread
    ]
