import re
import random
import time
from datetime import date, datetime, timedelta
from typing import Optional


LEGACY_PREFIX_PATTERN = re.compile(r"^LG(\d+)$")


def normalize_username(username: str) -> str:
    """Usernames compare case-insensitively: trim and lowercase."""
    return username.strip().lower()


def normalize_site_id(site_id: str) -> str:
    """Website ids compare exactly after trimming."""
    return site_id.strip()


def compute_expiry_date(created_at: datetime, days: int) -> date:
    """Calendar date `days` after creation, without time of day."""
    return created_at.date() + timedelta(days=days)


def prefix_from_code(code: Optional[str]) -> Optional[str]:
    """
    Read the LG<number> prefix out of an existing voucher code.

    Returns None if the code has no recognizable prefix.
    """
    if not code:
        return None
    head = code.split("-", 1)[0]
    match = LEGACY_PREFIX_PATTERN.match(head)
    if not match:
        return None
    return f"LG{int(match.group(1))}"


def compose_voucher_code(prefix: str, digits: int = 6, now_ms: Optional[int] = None) -> str:
    """
    Build a candidate code: prefix, dash, the tail of the millisecond
    timestamp, then random digits until `digits` wide.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    timestamp = str(now_ms)[-digits:]
    filler = str(random.randrange(10 ** digits)).zfill(digits)
    return f"{prefix}-{timestamp}{filler[:digits - len(timestamp)]}"
