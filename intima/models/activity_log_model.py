import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, TIMESTAMP, Enum as SAEnum
from sqlalchemy.sql import func
from intima.models.base import Base
from intima.models.enums import FormType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityLog(Base):
    __tablename__ = "activity_log_tbl"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(50), nullable=False)
    action = Column(String(255), nullable=False)
    timestamp = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow, server_default=func.now())
    related_form_id = Column(String(36), index=True)
    form_type = Column(SAEnum(FormType, name="form_type_enum"))
    old_status = Column(String(50))
    new_status = Column(String(50))
