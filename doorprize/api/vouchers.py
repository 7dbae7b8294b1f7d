import logging
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
from doorprize.database import get_db, get_service_db
from doorprize.schemas.voucher import (
    VoucherCreate,
    VoucherCreateResponse,
    VoucherResponse,
    VoucherSourceResponse,
)
from doorprize.repositories.voucher_repo import VoucherRepository, ConfigRepository
from doorprize.repositories.reference_repo import ReferenceRepository
from doorprize.services.voucher_issuer import VoucherIssuer
from doorprize.services.voucher_query import VoucherQueryService
from doorprize.services.exceptions import VoucherLookupError
from doorprize.middleware.auth import require_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Vouchers"])


@router.get("/vouchers", response_model=List[VoucherResponse])
def list_vouchers(db: Session = Depends(get_db)):
    """List all vouchers"""
    service = VoucherQueryService(VoucherRepository(db), ReferenceRepository(db))
    return service.list_vouchers()


@router.post(
    "/vouchers",
    response_model=VoucherCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_api_key)],
)
def create_voucher(
    voucher_data: VoucherCreate,
    request: Request,
    db: Session = Depends(get_service_db)
):
    """
    Issue a doorprize voucher.

    Rejected with 400 when a field is missing, the participant already holds
    an active voucher on the website, or the nominal is below the configured
    minimum.
    """
    voucher_repo = VoucherRepository(db)
    issuer = VoucherIssuer(voucher_repo, ConfigRepository(db), request.app.state.settings)
    voucher = issuer.issue(
        username=voucher_data.username,
        websites_id=voucher_data.websites_id,
        nominal=voucher_data.nominal,
    )

    response = voucher.to_dict()
    try:
        live_draw = VoucherQueryService(voucher_repo, ReferenceRepository(db)).get_live_draw()
        response["live_url"] = live_draw["live_url"]
    except VoucherLookupError as e:
        # The voucher is already saved; the live link is only a convenience
        logger.warning(f"Live draw lookup failed after issuing {voucher.lgx_voucher}: {e}")
        db.rollback()
        response["live_url"] = None

    return response


@router.get("/source", response_model=VoucherSourceResponse)
def get_vouchers_by_source(
    username: Optional[str] = Query(None, description="Participant username"),
    xcode: Optional[str] = Query(None, description="Website id"),
    db: Session = Depends(get_db)
):
    """Vouchers of one participant on one website, with site and draw names"""
    service = VoucherQueryService(VoucherRepository(db), ReferenceRepository(db))
    return service.find_by_source(username, xcode)
