import logging
from sqlalchemy.exc import SQLAlchemyError
from doorprize.config import Settings
from doorprize.repositories.voucher_repo import VoucherRepository
from doorprize.services.exceptions import GenerationError
from doorprize.utils.helpers import compose_voucher_code, prefix_from_code

logger = logging.getLogger(__name__)


class VoucherCodeGenerator:
    """
    Produces unique voucher codes.

    The database-side `generate_voucher_code()` function is preferred since it
    is atomic. When it is missing or fails, codes are composed locally from the
    current prefix and a timestamp tail and checked against the store, for a
    bounded number of attempts.
    """

    def __init__(self, repo: VoucherRepository, settings: Settings):
        self.repo = repo
        self.default_prefix = settings.VOUCHER_CODE_PREFIX
        self.max_attempts = settings.VOUCHER_CODE_MAX_ATTEMPTS
        self.digits = settings.VOUCHER_CODE_DIGITS

    def generate_unique_code(self) -> str:
        try:
            code = self.repo.assign_next_code()
        except SQLAlchemyError as e:
            logger.warning(f"generate_voucher_code() unavailable, using fallback: {e}")
            code = None

        if code:
            return code

        return self._generate_fallback()

    def _generate_fallback(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            try:
                prefix = self._current_prefix()
                candidate = compose_voucher_code(prefix, self.digits)
                if not self.repo.code_exists(candidate):
                    logger.info(f"Fallback voucher code {candidate} accepted on attempt {attempt}")
                    return candidate
                logger.info(f"Voucher code {candidate} already taken (attempt {attempt})")
            except SQLAlchemyError as e:
                logger.error(f"Fallback code generation attempt {attempt} failed: {e}")

        raise GenerationError(
            f"Could not generate a unique voucher code: exhausted attempts ({self.max_attempts})"
        )

    def _current_prefix(self) -> str:
        try:
            prefix = self.repo.current_prefix()
            if prefix:
                return prefix
        except SQLAlchemyError as e:
            logger.debug(f"get_current_prefix() unavailable: {e}")

        return prefix_from_code(self.repo.get_highest_code()) or self.default_prefix
