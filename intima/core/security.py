from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import jwt
from intima.core.config import get_settings

settings = get_settings()

# Same cost factor as the existing password hashes
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: str, role: str | None = None, expires_minutes: int | None = None) -> str:
    """JWT for a portal user; ``sub`` is the student/staff id."""
    lifetime = timedelta(minutes=expires_minutes or settings.jwt_expires_minutes)
    claims = {"sub": user_id, "exp": datetime.now(timezone.utc) + lifetime}
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
