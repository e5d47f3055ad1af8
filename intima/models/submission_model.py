import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, Integer, Date, TIMESTAMP, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import relationship, foreign
from sqlalchemy.sql import func
from intima.models.base import Base
from intima.models.affiliate_model import Affiliate
from intima.models.enums import (
    FormType,
    SubmissionStatus,
    ReviewStatus,
    ValidationState,
    DocumentKind,
    CommentThread,
    CommentKind,
    Severity,
)


def _values(enum_cls):
    return [m.value for m in enum_cls]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


ReviewStatusType = SAEnum(ReviewStatus, name="review_status_enum", values_callable=_values)


class Submission(Base):
    __tablename__ = "submission_tbl"

    id = Column(String(36), primary_key=True, default=_new_id)
    form_type = Column(SAEnum(FormType, name="form_type_enum"), nullable=False, index=True)
    # No foreign key: deleting an affiliate leaves its submissions in place
    affiliate_id = Column(String(36), nullable=False, index=True)
    activity_name = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text)
    status = Column(
        SAEnum(SubmissionStatus, name="submission_status_enum", values_callable=_values),
        nullable=False,
        default=SubmissionStatus.PENDING_VALIDATION,
    )
    submitted_by = Column(String(50), nullable=False, index=True)

    finance_review_status = Column(
        ReviewStatusType,
        nullable=False,
        default=ReviewStatus.PENDING,
    )
    finance_reviewed_by = Column(String(50))
    finance_reviewed_at = Column(TIMESTAMP(timezone=True))

    activities_review_status = Column(
        ReviewStatusType,
        nullable=False,
        default=ReviewStatus.PENDING,
    )
    activities_reviewed_by = Column(String(50))
    activities_reviewed_at = Column(TIMESTAMP(timezone=True))

    validation_state = Column(
        SAEnum(ValidationState, name="validation_state_enum"),
        nullable=False,
        default=ValidationState.NOT_STARTED,
    )
    validation_attempts = Column(Integer, nullable=False, default=0)
    validation_started_at = Column(TIMESTAMP(timezone=True))
    validation_error = Column(Text)

    submitted_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    documents = relationship(
        "SubmissionDocument",
        order_by="SubmissionDocument.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    comments = relationship(
        "SubmissionComment",
        order_by="SubmissionComment.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    affiliate = relationship(
        Affiliate,
        primaryjoin=foreign(affiliate_id) == Affiliate.id,
        viewonly=True,
        lazy="selectin",
    )


class SubmissionDocument(Base):
    __tablename__ = "submission_document_tbl"

    id = Column(String(36), primary_key=True, default=_new_id)
    submission_id = Column(String(36), ForeignKey("submission_tbl.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    path = Column(Text, nullable=False)
    kind = Column(SAEnum(DocumentKind, name="document_kind_enum"), nullable=False, default=DocumentKind.ORIGINAL)
    added_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow, server_default=func.now())


class SubmissionComment(Base):
    __tablename__ = "submission_comment_tbl"

    id = Column(String(36), primary_key=True, default=_new_id)
    submission_id = Column(String(36), ForeignKey("submission_tbl.id", ondelete="CASCADE"), nullable=False, index=True)
    thread = Column(SAEnum(CommentThread, name="comment_thread_enum"), nullable=False, default=CommentThread.GENERAL)
    position = Column(Integer, nullable=False)
    kind = Column(SAEnum(CommentKind, name="comment_kind_enum"), nullable=False)
    author = Column(String(255), nullable=False)
    author_id = Column(String(50), nullable=False)
    text = Column(Text, nullable=False)
    department = Column(String(50))

    # Structured validation finding
    field = Column(String(255))
    severity = Column(SAEnum(Severity, name="severity_enum", values_callable=_values))
    suggested_fix = Column(Text)

    signed_document = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
