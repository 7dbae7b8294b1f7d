"""Tests for normalization, expiry and code composition helpers."""

import re
from datetime import date, datetime, timezone

import pytest

from doorprize.utils.helpers import (
    normalize_username,
    normalize_site_id,
    compute_expiry_date,
    prefix_from_code,
    compose_voucher_code,
)

CODE_PATTERN = re.compile(r"^[A-Z]+[0-9]*-\d{6}$")


@pytest.mark.parametrize("raw", ["Alice ", "  ALICE", "alice", "\tAlIcE\n"])
def test_normalize_username_is_idempotent(raw):
    once = normalize_username(raw)
    assert once == "alice"
    assert normalize_username(once) == once


@pytest.mark.parametrize("raw, expected", [(" S1", "S1"), ("S1 ", "S1"), ("s1", "s1")])
def test_normalize_site_id_trims_but_keeps_case(raw, expected):
    once = normalize_site_id(raw)
    assert once == expected
    assert normalize_site_id(once) == once


def test_expiry_is_date_only():
    created = datetime(2026, 1, 30, 23, 59, 59, tzinfo=timezone.utc)
    expiry = compute_expiry_date(created, 7)
    assert expiry == date(2026, 2, 6)
    assert not isinstance(expiry, datetime)


def test_expiry_with_zero_days_is_creation_date():
    assert compute_expiry_date(datetime(2026, 3, 1, 8, 0), 0) == date(2026, 3, 1)


@pytest.mark.parametrize("code, expected", [
    ("LG1-123456", "LG1"),
    ("LG12-000001", "LG12"),
    ("LG007-123456", "LG7"),
    ("XX1-123456", None),
    ("LG-123456", None),
    ("", None),
    (None, None),
])
def test_prefix_from_code(code, expected):
    assert prefix_from_code(code) == expected


def test_compose_voucher_code_uses_timestamp_tail():
    assert compose_voucher_code("LG3", now_ms=1700000123456) == "LG3-123456"


def test_compose_voucher_code_fills_short_timestamp_with_random_digits():
    code = compose_voucher_code("LG1", now_ms=42)
    assert code.startswith("LG1-42")
    assert CODE_PATTERN.match(code)


def test_compose_voucher_code_format():
    for _ in range(20):
        assert CODE_PATTERN.match(compose_voucher_code("LG1"))
