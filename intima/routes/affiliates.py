from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from intima.core.db import get_db
from intima.core.auth import get_token_user
from intima.core.policy import Capability, authorize
from intima.controllers import affiliate_controller
from intima.schemas.affiliate_schema import AffiliateCreate, AffiliateRead, AffiliateUpdate
from intima.schemas.base_schema import MessageResponse

router = APIRouter(prefix="/api/affiliates", tags=["affiliates"])


def require_affiliate_admin(user=Depends(get_token_user)):
    authorize(user, Capability.MANAGE_AFFILIATES)
    return user


@router.get("", response_model=list[AffiliateRead])
def list_affiliates_route(db: Session = Depends(get_db)):
    return affiliate_controller.list_affiliates(db)


@router.get("/{affiliate_id}", response_model=AffiliateRead)
def get_affiliate_route(affiliate_id: str, db: Session = Depends(get_db)):
    return affiliate_controller.get_affiliate(db, affiliate_id)


@router.post("", response_model=AffiliateRead, status_code=status.HTTP_201_CREATED)
def create_affiliate_route(
    payload: AffiliateCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_affiliate_admin),
):
    return affiliate_controller.create_affiliate(db, payload)


@router.put("/{affiliate_id}", response_model=AffiliateRead)
def update_affiliate_route(
    affiliate_id: str,
    payload: AffiliateUpdate,
    db: Session = Depends(get_db),
    _user=Depends(require_affiliate_admin),
):
    return affiliate_controller.update_affiliate(db, affiliate_id, payload)


@router.delete("/{affiliate_id}", response_model=MessageResponse)
def delete_affiliate_route(
    affiliate_id: str,
    db: Session = Depends(get_db),
    _user=Depends(require_affiliate_admin),
):
    return affiliate_controller.delete_affiliate(db, affiliate_id)
