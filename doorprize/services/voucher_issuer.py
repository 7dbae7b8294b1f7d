import uuid
import logging
from datetime import datetime, timezone
from typing import Callable, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from doorprize.config import Settings
from doorprize.models.voucher import Voucher, VOUCHER_STATUS_ACTIVE, PLAYER_STATUS_REAL
from doorprize.models.config import VoucherConfig
from doorprize.repositories.voucher_repo import VoucherRepository, ConfigRepository
from doorprize.services.code_generator import VoucherCodeGenerator
from doorprize.services.eligibility import EligibilityChecker
from doorprize.services.exceptions import (
    ValidationError,
    NominalTooLow,
    EligibilityConflict,
    ConfigUnavailable,
    InsertError,
)
from doorprize.utils.helpers import normalize_username, normalize_site_id, compute_expiry_date

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VoucherIssuer:
    """
    Issues a doorprize voucher for a participant on a website.

    Steps run in order and stop at the first rejection: input validation,
    active-voucher check, config load, nominal check, expiry, code generation,
    insert. Only the insert writes anything, so a failure at any earlier step
    leaves the store untouched.
    """

    def __init__(
        self,
        voucher_repo: VoucherRepository,
        config_repo: ConfigRepository,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
        code_generator: Optional[VoucherCodeGenerator] = None,
    ):
        self.voucher_repo = voucher_repo
        self.config_repo = config_repo
        self.eligibility = EligibilityChecker(voucher_repo)
        self.code_generator = code_generator or VoucherCodeGenerator(voucher_repo, settings)
        self.clock = clock

    def issue(self, username: Optional[str], websites_id: Optional[str], nominal) -> Voucher:
        if not username or not websites_id or not nominal:
            raise ValidationError("username, websites_id and nominal are required!")

        username = normalize_username(username)
        websites_id = normalize_site_id(websites_id)
        if not username or not websites_id:
            raise ValidationError("username, websites_id and nominal are required!")

        existing = self.eligibility.find_active_voucher(username, websites_id)
        if existing is not None:
            logger.info(f"Rejected voucher for {username}@{websites_id}: active {existing.lgx_voucher}")
            raise EligibilityConflict(existing.lgx_voucher)

        config = self._load_config()

        if nominal < config.minimal_nominal:
            logger.info(f"Rejected voucher for {username}@{websites_id}: nominal {nominal} below minimum")
            raise NominalTooLow(config.minimal_nominal)

        created_at = self.clock()
        expired_date = compute_expiry_date(created_at, config.max_day_exp_voucher)

        code = self.code_generator.generate_unique_code()

        voucher = self._insert(
            id=str(uuid.uuid4()),
            lgx_voucher=code,
            username=username,
            websites_id=websites_id,
            nominal=nominal,
            status=VOUCHER_STATUS_ACTIVE,
            player_status=PLAYER_STATUS_REAL,
            expired_date=expired_date,
            undian_id=None,
            hasil_undi=None,
            created_at=created_at,
            updated_at=created_at,
        )
        logger.info(f"Issued voucher {voucher.lgx_voucher} for {username}@{websites_id}")
        return voucher

    def _load_config(self) -> VoucherConfig:
        try:
            config = self.config_repo.get()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching config: {e}")
            raise ConfigUnavailable(f"Voucher config unavailable: {e}") from e

        if config is None:
            raise ConfigUnavailable("Voucher config unavailable: no config row")
        return config

    def _insert(self, **fields) -> Voucher:
        try:
            return self.voucher_repo.create(**fields)
        except IntegrityError as e:
            # The partial unique index caught a concurrent issuance for the same identity
            existing = self.eligibility.find_active_voucher(fields["username"], fields["websites_id"])
            if existing is not None:
                logger.warning(f"Concurrent issuance for {fields['username']}@{fields['websites_id']}")
                raise EligibilityConflict(existing.lgx_voucher) from e
            logger.error(f"Error inserting voucher: {e}")
            raise InsertError(f"Could not save voucher: {e.orig}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error inserting voucher: {e}")
            raise InsertError(f"Could not save voucher: {e}") from e
