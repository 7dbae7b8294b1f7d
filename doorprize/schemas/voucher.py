from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime


class VoucherCreate(BaseModel):
    # Presence is checked by the issuer so missing fields get the same 400 message
    username: Optional[str] = None
    websites_id: Optional[str] = None
    nominal: Optional[int] = None


class VoucherResponse(BaseModel):
    id: str
    lgx_voucher: str
    username: str
    websites_id: str
    nominal: int
    status: str
    player_status: Optional[str] = None
    expired_date: Optional[date] = None
    undian_id: Optional[str] = None
    hasil_undi: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VoucherCreateResponse(VoucherResponse):
    live_url: Optional[str] = None


class VoucherSourceItem(VoucherResponse):
    websites: str
    kode_undian: Optional[str] = None


class VoucherSourceResponse(BaseModel):
    success: bool
    count: int
    data: List[VoucherSourceItem]


class LiveDrawResponse(BaseModel):
    live_url: Optional[str] = None
    kode_undian: Optional[str] = None
    nama_undian: Optional[str] = None
    tanggal_undian: Optional[date] = None
