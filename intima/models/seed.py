from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from intima.core.db import SessionLocal, _engine
from intima.core.security import hash_password
from intima.models.base import Base
from intima.models.affiliate_model import Affiliate
from intima.models.enums import AffiliateCategory, AffiliateStatus, UserRole
from intima.models.user_model import User
from intima.models import activity_log_model, submission_model  # noqa: F401

logger = logging.getLogger(__name__)

STUDENT_ID = "2021-00001"

SEED_USERS = [
    {
        "id": STUDENT_ID,
        "name": "Test User",
        "email": "testuser@example.com",
        "password": "password123",
        "role": UserRole.STUDENT,
        "permissions": [],
    },
    {
        "id": "2021-00002",
        "name": "INTIMA Admin",
        "email": "intima@inti.edu",
        "password": "intima123",
        "role": UserRole.INTIMA,
        "permissions": ["admin"],
    },
]

SEED_AFFILIATES = [
    {
        "name": "Test Affiliate",
        "description": "A test affiliate for seeding purposes.",
        "category": AffiliateCategory.ACADEMIC,
        "advisor_id": "prof-001",
    },
    {
        "name": "Debate Society",
        "description": "A club for debating.",
        "category": AffiliateCategory.ACADEMIC,
        "advisor_id": "prof-002",
    },
    {
        "name": "Photography Club",
        "description": "A club for photography enthusiasts.",
        "category": AffiliateCategory.SPECIAL_INTEREST,
        "advisor_id": "prof-003",
    },
]


def seed_users(db: Session) -> list[User]:
    created: list[User] = []
    for item in SEED_USERS:
        if db.query(User).filter(User.email == item["email"]).first():
            continue
        user = User(
            id=item["id"],
            name=item["name"],
            email=item["email"],
            password_hash=hash_password(item["password"]),
            role=item["role"],
            affiliates=[],
            permissions=list(item["permissions"]),
        )
        db.add(user)
        created.append(user)
    db.commit()
    return created


def seed_affiliates(db: Session) -> list[Affiliate]:
    """Create the demo affiliates and attach all of them to the demo student."""
    affiliates: list[Affiliate] = []
    for item in SEED_AFFILIATES:
        affiliate = db.query(Affiliate).filter(Affiliate.name == item["name"]).first()
        if affiliate is None:
            affiliate = Affiliate(
                name=item["name"],
                description=item["description"],
                category=item["category"],
                status=AffiliateStatus.ACTIVE,
                advisor_id=item["advisor_id"],
                committee_members=[STUDENT_ID],
            )
            db.add(affiliate)
            db.flush()
        affiliates.append(affiliate)

    student = db.query(User).filter(User.id == STUDENT_ID).first()
    if student is not None:
        student.affiliates = [affiliate.id for affiliate in affiliates]
    db.commit()
    return affiliates


def init_db(engine=None) -> None:
    engine = engine or _engine
    if engine is None:
        raise RuntimeError("DATABASE_URL is not set")
    Base.metadata.create_all(bind=engine)


def run_seed() -> None:
    if SessionLocal is None:
        raise RuntimeError("DATABASE_URL is not set")
    init_db()
    db = SessionLocal()
    try:
        users = seed_users(db)
        affiliates = seed_affiliates(db)
        logger.info("Seeded %d users and %d affiliates", len(users), len(affiliates))
    finally:
        db.close()


if __name__ == "__main__":
    from intima.core.config import get_settings
    from intima.core.logging_config import setup_logging

    setup_logging(get_settings().log_level)
    run_seed()
