import logging
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from doorprize.models.voucher import Voucher
from doorprize.repositories.voucher_repo import VoucherRepository
from doorprize.repositories.reference_repo import ReferenceRepository
from doorprize.services.exceptions import ValidationError, VoucherLookupError
from doorprize.utils.helpers import normalize_username, normalize_site_id

logger = logging.getLogger(__name__)

EMPTY_LIVE_DRAW = {
    "live_url": None,
    "kode_undian": None,
    "nama_undian": None,
    "tanggal_undian": None,
}


class VoucherQueryService:
    """Read-only voucher lookups joined with website and draw names"""

    def __init__(self, voucher_repo: VoucherRepository, reference_repo: ReferenceRepository):
        self.voucher_repo = voucher_repo
        self.reference_repo = reference_repo

    def list_vouchers(self) -> List[Voucher]:
        try:
            return self.voucher_repo.get_all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching vouchers: {e}")
            raise VoucherLookupError(f"Could not fetch vouchers: {e}") from e

    def find_by_source(self, username: Optional[str], xcode: Optional[str]) -> dict:
        """
        Vouchers of a participant on one website.

        `websites` carries the site name (or the raw id if it cannot be
        resolved) and `kode_undian` the draw code once a draw is attached.
        """
        if not username or not username.strip() or not xcode or not xcode.strip():
            raise ValidationError("username and xcode are required!")

        try:
            vouchers = self.voucher_repo.get_by_username_and_site(
                normalize_username(username), normalize_site_id(xcode)
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching vouchers by source: {e}")
            raise VoucherLookupError(f"Could not fetch vouchers: {e}") from e

        # Snapshot rows first: a failed lookup rolls back and expires them
        data = [voucher.to_dict() for voucher in vouchers]
        for item in data:
            item["websites"] = self._website_name(item["websites_id"])
            item["kode_undian"] = self._draw_code(item["undian_id"])

        return {"success": True, "count": len(data), "data": data}

    def get_live_draw(self) -> dict:
        try:
            draw = self.reference_repo.get_latest_live_draw()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching live draw: {e}")
            raise VoucherLookupError(f"Could not fetch live draw: {e}") from e

        if draw is None:
            return dict(EMPTY_LIVE_DRAW)

        return {
            "live_url": draw.live_url,
            "kode_undian": draw.kode_undian,
            "nama_undian": draw.nama_undian,
            "tanggal_undian": draw.tanggal_undian,
        }

    def _website_name(self, website_id: str) -> str:
        try:
            website = self.reference_repo.get_website(website_id)
        except SQLAlchemyError as e:
            logger.warning(f"Website lookup failed for {website_id}: {e}")
            self.reference_repo.db.rollback()
            return website_id
        return website.name if website and website.name else website_id

    def _draw_code(self, draw_id: Optional[str]) -> Optional[str]:
        if draw_id is None:
            return None
        try:
            draw = self.reference_repo.get_draw(draw_id)
        except SQLAlchemyError as e:
            logger.warning(f"Draw lookup failed for {draw_id}: {e}")
            self.reference_repo.db.rollback()
            return None
        return draw.kode_undian if draw else None
