from sqlalchemy.orm import Session
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional, List
from doorprize.models.voucher import Voucher, VOUCHER_STATUS_ACTIVE
from doorprize.models.config import VoucherConfig


class VoucherRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> List[Voucher]:
        """Get all vouchers"""
        return self.db.query(Voucher).order_by(Voucher.created_at).all()

    def code_exists(self, code: str) -> bool:
        return self.db.query(Voucher.lgx_voucher).filter(Voucher.lgx_voucher == code).first() is not None

    def find_active(self, username: str, websites_id: str) -> Optional[Voucher]:
        """
        First active voucher for an already-normalized identity.

        Stored values are trimmed before comparing; username compares
        case-insensitively.
        """
        return (
            self.db.query(Voucher)
            .filter(
                func.lower(func.trim(Voucher.username)) == username,
                func.trim(Voucher.websites_id) == websites_id,
                Voucher.status == VOUCHER_STATUS_ACTIVE,
            )
            .order_by(Voucher.created_at)
            .first()
        )

    def get_by_username_and_site(self, username: str, websites_id: str) -> List[Voucher]:
        """All vouchers (any status) for a normalized identity, newest first"""
        return (
            self.db.query(Voucher)
            .filter(
                func.lower(func.trim(Voucher.username)) == username,
                func.trim(Voucher.websites_id) == websites_id,
            )
            .order_by(Voucher.created_at.desc())
            .all()
        )

    def get_highest_code(self) -> Optional[str]:
        row = self.db.query(Voucher.lgx_voucher).order_by(Voucher.lgx_voucher.desc()).first()
        return row[0] if row else None

    def create(self, **fields) -> Voucher:
        """Insert a voucher and return it as persisted"""
        voucher = Voucher(**fields)
        self.db.add(voucher)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(voucher)
        return voucher

    def assign_next_code(self) -> Optional[str]:
        """Atomic code from the database-side sequence function."""
        return self._call_function("generate_voucher_code")

    def current_prefix(self) -> Optional[str]:
        return self._call_function("get_current_prefix")

    def _call_function(self, name: str) -> Optional[str]:
        try:
            result = self.db.execute(text(f"SELECT {name}()")).scalar()
        except SQLAlchemyError:
            # A failed statement poisons the transaction on Postgres
            self.db.rollback()
            raise
        return str(result) if result else None


class ConfigRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self) -> Optional[VoucherConfig]:
        """Get the singleton voucher config"""
        return self.db.query(VoucherConfig).order_by(VoucherConfig.id).first()
