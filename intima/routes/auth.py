from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from intima.core.db import get_db
from intima.core.auth import get_current_user
from intima.controllers.auth_controller import login
from intima.schemas.auth_schema import LoginRequest, LoginResponse
from intima.schemas.user_schema import UserRead

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login_route(payload: LoginRequest, db: Session = Depends(get_db)):
    return login(db, payload)


@router.get("/me", response_model=UserRead)
def me_route(user=Depends(get_current_user)):
    return user
