from sqlalchemy import Column, String, Text, TIMESTAMP, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from intima.models.base import Base
from intima.models.enums import UserRole


class User(Base):
    __tablename__ = "user_tbl"

    # Student/staff number; doubles as the login business key and can be renamed
    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    role = Column(
        SAEnum(UserRole, name="user_role_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    affiliates = Column(JSON, nullable=False, default=list)
    permissions = Column(JSON, nullable=False, default=list)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
