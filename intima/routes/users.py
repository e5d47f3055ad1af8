from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from intima.core.db import get_db
from intima.core.auth import get_token_user
from intima.core.policy import Capability, authorize
from intima.controllers import user_controller
from intima.schemas.affiliate_schema import AffiliateRead
from intima.schemas.base_schema import MessageResponse
from intima.schemas.user_schema import UserCreate, UserRead, UserUpdate

router = APIRouter(prefix="/api", tags=["users"])


def require_user_admin(user=Depends(get_token_user)):
    authorize(user, Capability.MANAGE_USERS)
    return user


@router.get("/users", response_model=list[UserRead])
def list_users_route(db: Session = Depends(get_db), _user=Depends(require_user_admin)):
    return user_controller.list_users(db)


@router.get("/users/{user_id}", response_model=UserRead)
def get_user_route(user_id: str, db: Session = Depends(get_db), _user=Depends(require_user_admin)):
    return user_controller.get_user(db, user_id)


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user_route(payload: UserCreate, db: Session = Depends(get_db), _user=Depends(require_user_admin)):
    return user_controller.create_user(db, payload)


@router.put("/users/{user_id}", response_model=UserRead)
def update_user_route(
    user_id: str,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    _user=Depends(require_user_admin),
):
    return user_controller.update_user(db, user_id, payload)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user_route(user_id: str, db: Session = Depends(get_db), _user=Depends(require_user_admin)):
    return user_controller.delete_user(db, user_id)


@router.get("/user/{user_id}/affiliates", response_model=list[AffiliateRead])
def list_user_affiliates_route(user_id: str, db: Session = Depends(get_db)):
    return user_controller.list_user_affiliates(db, user_id)
