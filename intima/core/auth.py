from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from jose import JWTError
from intima.core.db import get_db
from intima.core.exceptions import NotFound
from intima.core.security import decode_access_token
from intima.repositories.user_repo import get_user_by_id

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _user_from_token(token: str, db: Session):
    try:
        payload = decode_access_token(token)
        subject = payload.get("sub")
        if subject is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = get_user_by_id(db, str(subject))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
):
    return _user_from_token(credentials.credentials, db)


def get_token_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security),
    db: Session = Depends(get_db),
):
    """The bearer-token user, or None when the request carries no token."""
    if credentials is None:
        return None
    return _user_from_token(credentials.credentials, db)


def resolve_actor(db: Session, token_user, user_id: str | None, strict: bool = True):
    """Who is acting: the token user if any, else the user named in the request body.

    With ``strict`` an unknown ``user_id`` is a 404; otherwise it resolves to None
    and only ownership rules apply.
    """
    if token_user is not None:
        return token_user
    if not user_id:
        return None
    user = get_user_by_id(db, user_id)
    if not user and strict:
        raise NotFound("User", user_id)
    return user
