from sqlalchemy.orm import Session
from sqlalchemy import select
from intima.models.activity_log_model import ActivityLog
from intima.models.enums import FormType


def add_activity_log(
    db: Session,
    user_id: str,
    action: str,
    related_form_id: str | None = None,
    form_type: FormType | None = None,
    old_status: str | None = None,
    new_status: str | None = None,
) -> ActivityLog:
    """Stage an audit entry; the caller's commit persists it with the change it describes."""
    log = ActivityLog(
        user_id=user_id,
        action=action,
        related_form_id=related_form_id,
        form_type=form_type,
        old_status=old_status,
        new_status=new_status,
    )
    db.add(log)
    return log


def list_activity_logs(db: Session, related_form_id: str) -> list[ActivityLog]:
    stmt = (
        select(ActivityLog)
        .where(ActivityLog.related_form_id == related_form_id)
        .order_by(ActivityLog.timestamp, ActivityLog.id)
    )
    return list(db.execute(stmt).scalars().all())
