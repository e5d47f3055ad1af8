import logging
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from intima.core.exceptions import Conflict
from intima.core.security import hash_password
from intima.repositories.affiliate_repo import list_affiliates_by_ids
from intima.repositories.user_repo import (
    create_user as insert_user,
    delete_user as remove_user,
    get_user_by_email,
    get_user_by_id,
    list_users as select_users,
    update_user as save_user,
)
from intima.schemas.user_schema import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def _get_or_404(db: Session, user_id: str):
    user = get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def list_users(db: Session):
    return select_users(db)


def get_user(db: Session, user_id: str):
    return _get_or_404(db, user_id)


def create_user(db: Session, data: UserCreate):
    if get_user_by_id(db, data.id):
        raise Conflict("User ID already exists")
    if get_user_by_email(db, data.email):
        raise Conflict("Email already in use")
    user = insert_user(db, data, hash_password(data.password))
    logger.info("Created %s user %s", user.role.value, user.id)
    return user


def update_user(db: Session, user_id: str, data: UserUpdate):
    user = _get_or_404(db, user_id)
    updates = data.model_dump(exclude_unset=True, exclude={"password", "new_id"})

    if data.email is not None:
        existing = get_user_by_email(db, data.email)
        if existing and existing.id != user.id:
            raise Conflict("Email already in use")
    if data.new_id and data.new_id != user.id:
        if get_user_by_id(db, data.new_id):
            raise Conflict("User ID already exists")
        # Submissions keep the old id in submitted_by; there is no cascade
        updates["id"] = data.new_id
    if data.password:
        updates["password_hash"] = hash_password(data.password)

    return save_user(db, user, updates)


def delete_user(db: Session, user_id: str) -> dict:
    user = _get_or_404(db, user_id)
    remove_user(db, user)
    logger.info("Deleted user %s", user_id)
    return {"message": "User deleted successfully"}


def list_user_affiliates(db: Session, user_id: str):
    user = _get_or_404(db, user_id)
    return list_affiliates_by_ids(db, list(user.affiliates or []))
