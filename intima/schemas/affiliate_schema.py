from pydantic import Field
from typing import Optional
from datetime import datetime
from intima.models.enums import AffiliateCategory, AffiliateStatus
from intima.schemas.base_schema import CamelModel


class AffiliateBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: AffiliateCategory
    status: AffiliateStatus
    member_count: int = Field(0, ge=0)
    advisor_id: str = Field(..., min_length=1)
    committee_members: list[str] = []


class AffiliateCreate(AffiliateBase):
    pass


class AffiliateUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[AffiliateCategory] = None
    status: Optional[AffiliateStatus] = None
    member_count: Optional[int] = Field(None, ge=0)
    advisor_id: Optional[str] = Field(None, min_length=1)
    committee_members: Optional[list[str]] = None


class AffiliateRead(AffiliateBase):
    id: str
    created_at: datetime
    updated_at: datetime
