import logging
from fastapi import BackgroundTasks
from sqlalchemy.orm import Session
from intima.core.config import get_settings
from intima.core.exceptions import Conflict, InvalidTransition, NotFound
from intima.core.policy import Capability, authorize
from intima.models.enums import ValidationState
from intima.repositories.submission_repo import get_submission_by_id
from intima.schemas.validation_schema import ValidationScheduled
from intima.services.lifecycle import Action, is_allowed
from intima.services.validation import is_stale_run, run_validation

logger = logging.getLogger(__name__)


def schedule_validation(
    db: Session,
    submission_id: str,
    background_tasks: BackgroundTasks,
    session_factory,
    validator,
    token_user=None,
) -> ValidationScheduled:
    authorize(token_user, Capability.VALIDATE)
    submission = get_submission_by_id(db, submission_id)
    if not submission:
        raise NotFound("Submission", submission_id)
    if not is_allowed(submission.status, Action.VALIDATION_COMPLETED):
        raise InvalidTransition(Action.VALIDATION_COMPLETED.value, submission.status.value)
    if submission.validation_state == ValidationState.RUNNING:
        if not is_stale_run(submission, get_settings()):
            raise Conflict("Validation is already running for this submission")
        logger.warning(
            "Validation of %s has been RUNNING since %s; rescheduling",
            submission_id,
            submission.validation_started_at,
        )

    background_tasks.add_task(run_validation, session_factory, validator, submission_id)
    logger.info("Scheduled validation for submission %s", submission_id)
    return ValidationScheduled(
        message="Validation scheduled",
        submission_id=submission_id,
        validation_state=submission.validation_state,
    )
