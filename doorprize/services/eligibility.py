import logging
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from doorprize.models.voucher import Voucher
from doorprize.repositories.voucher_repo import VoucherRepository
from doorprize.services.exceptions import VoucherLookupError
from doorprize.utils.helpers import normalize_username, normalize_site_id

logger = logging.getLogger(__name__)


class EligibilityChecker:
    """Answers whether a participant already holds an active voucher on a website."""

    def __init__(self, repo: VoucherRepository):
        self.repo = repo

    def find_active_voucher(self, username: str, site_id: str) -> Optional[Voucher]:
        try:
            return self.repo.find_active(normalize_username(username), normalize_site_id(site_id))
        except SQLAlchemyError as e:
            logger.error(f"Error fetching active vouchers: {e}")
            raise VoucherLookupError(f"Could not check active vouchers: {e}") from e

    def has_active_voucher(self, username: str, site_id: str) -> bool:
        return self.find_active_voucher(username, site_id) is not None
