from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from intima.core.db import get_db, get_session_factory
from intima.core.auth import get_token_user
from intima.models.enums import FormType, SubmissionStatus
from intima.controllers import submission_controller
from intima.controllers.validation_controller import schedule_validation
from intima.schemas.base_schema import MessageResponse
from intima.schemas.submission_schema import (
    ActivityLogRead,
    AmendmentRequest,
    CommentAdded,
    CommentCreate,
    CommentDelete,
    DepartmentReviewRequest,
    StatusUpdated,
    StatusUpdateRequest,
    SubmissionCreate,
    SubmissionRead,
    SubmissionUpdated,
    TypedSubmissionCreate,
)
from intima.schemas.validation_schema import ValidationScheduled
from intima.services.validation import get_validator

router = APIRouter(prefix="/api", tags=["submissions"])


@router.get("/submissions", response_model=list[SubmissionRead])
def list_submissions_route(
    status: SubmissionStatus | None = Query(default=None),
    type: FormType | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return submission_controller.list_submissions(db, status=status, form_type=type)


@router.post("/submissions", response_model=SubmissionRead, status_code=status.HTTP_201_CREATED)
def create_typed_submission_route(
    payload: TypedSubmissionCreate,
    db: Session = Depends(get_db),
    token_user=Depends(get_token_user),
):
    return submission_controller.create_submission(db, payload.type, payload, token_user)


@router.get("/submissions/user/{user_id}", response_model=list[SubmissionRead])
def list_user_submissions_route(user_id: str, db: Session = Depends(get_db)):
    return submission_controller.list_user_submissions(db, user_id)


@router.post("/submission/sap", response_model=SubmissionRead, status_code=status.HTTP_201_CREATED)
def create_sap_route(
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    token_user=Depends(get_token_user),
):
    return submission_controller.create_submission(db, FormType.SAP, payload, token_user)


@router.post("/submission/asf", response_model=SubmissionRead, status_code=status.HTTP_201_CREATED)
def create_asf_route(
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    token_user=Depends(get_token_user),
):
    return submission_controller.create_submission(db, FormType.ASF, payload, token_user)


@router.get("/submission/{submission_id}", response_model=SubmissionRead)
def get_submission_route(submission_id: str, db: Session = Depends(get_db)):
    return submission_controller.get_submission(db, submission_id)


@router.post("/submission/{submission_id}/comment", response_model=CommentAdded)
def add_comment_route(
    submission_id: str,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    token_user=Depends(get_token_user),
):
    return submission_controller.add_comment(db, submission_id, payload, token_user)


@router.delete("/submission/{submission_id}/comment", response_model=MessageResponse)
def delete_comment_route(
    submission_id: str,
    payload: CommentDelete,
    db: Session = Depends(get_db),
    token_user=Depends(get_token_user),
):
    return submission_controller.delete_comment(db, submission_id, payload, token_user)


@router.patch("/submission/{submission_id}/status", response_model=SubmissionUpdated)
def submit_amendment_route(
    submission_id: str,
    payload: AmendmentRequest,
    db: Session = Depends(get_db),
    token_user=Depends(get_token_user),
):
    return submission_controller.submit_amendment(db, submission_id, payload, token_user)


@router.put("/submissions/{submission_id}/status", response_model=StatusUpdated)
def update_status_route(
    submission_id: str,
    payload: StatusUpdateRequest,
    db: Session = Depends(get_db),
    token_user=Depends(get_token_user),
):
    return submission_controller.update_status(db, submission_id, payload, token_user)


@router.put("/submissions/{submission_id}/department-review", response_model=SubmissionUpdated)
def department_review_route(
    submission_id: str,
    payload: DepartmentReviewRequest,
    db: Session = Depends(get_db),
    token_user=Depends(get_token_user),
):
    return submission_controller.submit_department_review(db, submission_id, payload, token_user)


@router.get("/submissions/{submission_id}/activity", response_model=list[ActivityLogRead])
def list_activity_route(submission_id: str, db: Session = Depends(get_db)):
    return submission_controller.list_submission_activity(db, submission_id)


@router.post(
    "/validate-submission/{submission_id}",
    response_model=ValidationScheduled,
    status_code=status.HTTP_202_ACCEPTED,
)
def validate_submission_route(
    submission_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
    validator=Depends(get_validator),
    token_user=Depends(get_token_user),
):
    return schedule_validation(db, submission_id, background_tasks, session_factory, validator, token_user)
