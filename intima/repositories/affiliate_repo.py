from sqlalchemy.orm import Session
from sqlalchemy import select
from intima.models.affiliate_model import Affiliate
from intima.schemas.affiliate_schema import AffiliateCreate, AffiliateUpdate


def create_affiliate(db: Session, data: AffiliateCreate) -> Affiliate:
    affiliate = Affiliate(**data.model_dump())
    db.add(affiliate)
    db.commit()
    db.refresh(affiliate)
    return affiliate


def get_affiliate_by_id(db: Session, affiliate_id: str) -> Affiliate | None:
    stmt = select(Affiliate).where(Affiliate.id == affiliate_id)
    return db.execute(stmt).scalars().first()


def list_affiliates(db: Session) -> list[Affiliate]:
    stmt = select(Affiliate).order_by(Affiliate.name)
    return list(db.execute(stmt).scalars().all())


def list_affiliates_by_ids(db: Session, affiliate_ids: list[str]) -> list[Affiliate]:
    if not affiliate_ids:
        return []
    stmt = select(Affiliate).where(Affiliate.id.in_(affiliate_ids)).order_by(Affiliate.name)
    return list(db.execute(stmt).scalars().all())


def update_affiliate(db: Session, affiliate: Affiliate, data: AffiliateUpdate) -> Affiliate:
    updates = data.model_dump(exclude_unset=True)
    for k, v in updates.items():
        setattr(affiliate, k, v)
    db.commit()
    db.refresh(affiliate)
    return affiliate


def delete_affiliate(db: Session, affiliate: Affiliate) -> None:
    db.delete(affiliate)
    db.commit()
