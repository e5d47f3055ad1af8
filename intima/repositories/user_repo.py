from sqlalchemy.orm import Session
from sqlalchemy import select, func
from intima.models.user_model import User
from intima.schemas.user_schema import UserCreate


def get_user_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(func.lower(User.email) == email.lower())
    return db.execute(stmt).scalars().first()


def get_user_by_id(db: Session, user_id: str) -> User | None:
    stmt = select(User).where(User.id == user_id)
    return db.execute(stmt).scalars().first()


def list_users(db: Session) -> list[User]:
    stmt = select(User).order_by(User.created_at.desc(), User.id)
    return list(db.execute(stmt).scalars().all())


def create_user(db: Session, data: UserCreate, password_hash: str) -> User:
    user = User(
        id=data.id,
        name=data.name,
        email=data.email,
        password_hash=password_hash,
        role=data.role,
        affiliates=list(data.affiliates),
        permissions=list(data.permissions),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_user(db: Session, user: User, updates: dict) -> User:
    for k, v in updates.items():
        setattr(user, k, v)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user: User) -> None:
    db.delete(user)
    db.commit()
