from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from intima.core.exceptions import ValidationFailed
from intima.core.security import verify_password, create_access_token
from intima.repositories.user_repo import get_user_by_email
from intima.schemas.auth_schema import LoginRequest, LoginResponse
from intima.schemas.user_schema import UserSummary


def login(db: Session, data: LoginRequest) -> LoginResponse:
    if not data.email or not data.password:
        raise ValidationFailed("Email and password are required")

    user = get_user_by_email(db, data.email)
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return LoginResponse(
        message="Login successful",
        user=UserSummary.model_validate(user),
        access_token=create_access_token(user.id, user.role.value),
    )
