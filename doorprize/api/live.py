from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from doorprize.database import get_db
from doorprize.schemas.voucher import LiveDrawResponse
from doorprize.repositories.voucher_repo import VoucherRepository
from doorprize.repositories.reference_repo import ReferenceRepository
from doorprize.services.voucher_query import VoucherQueryService

router = APIRouter(prefix="/api", tags=["Live Draw"])


@router.get("/live-url", response_model=LiveDrawResponse)
def get_live_url(db: Session = Depends(get_db)):
    """Latest live draw link, all fields null when no draw is live"""
    service = VoucherQueryService(VoucherRepository(db), ReferenceRepository(db))
    return service.get_live_draw()
