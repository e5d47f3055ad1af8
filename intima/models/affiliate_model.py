import uuid
from sqlalchemy import Column, String, Text, Integer, TIMESTAMP, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from intima.models.base import Base
from intima.models.enums import AffiliateCategory, AffiliateStatus


class Affiliate(Base):
    __tablename__ = "affiliate_tbl"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(
        SAEnum(AffiliateCategory, name="affiliate_category_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    status = Column(
        SAEnum(AffiliateStatus, name="affiliate_status_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    member_count = Column(Integer, nullable=False, default=0)
    advisor_id = Column(String(50), nullable=False)
    committee_members = Column(JSON, nullable=False, default=list)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
