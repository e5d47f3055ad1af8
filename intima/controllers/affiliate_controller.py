import logging
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from intima.repositories import affiliate_repo
from intima.schemas.affiliate_schema import AffiliateCreate, AffiliateUpdate

logger = logging.getLogger(__name__)


def _get_or_404(db: Session, affiliate_id: str):
    affiliate = affiliate_repo.get_affiliate_by_id(db, affiliate_id)
    if not affiliate:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affiliate not found")
    return affiliate


def list_affiliates(db: Session):
    return affiliate_repo.list_affiliates(db)


def get_affiliate(db: Session, affiliate_id: str):
    return _get_or_404(db, affiliate_id)


def create_affiliate(db: Session, data: AffiliateCreate):
    affiliate = affiliate_repo.create_affiliate(db, data)
    logger.info("Created affiliate %s (%s)", affiliate.id, affiliate.name)
    return affiliate


def update_affiliate(db: Session, affiliate_id: str, data: AffiliateUpdate):
    affiliate = _get_or_404(db, affiliate_id)
    return affiliate_repo.update_affiliate(db, affiliate, data)


def delete_affiliate(db: Session, affiliate_id: str) -> dict:
    affiliate = _get_or_404(db, affiliate_id)
    # Submissions referencing the affiliate are left untouched
    affiliate_repo.delete_affiliate(db, affiliate)
    logger.info("Deleted affiliate %s", affiliate_id)
    return {"message": "Affiliate deleted successfully"}
