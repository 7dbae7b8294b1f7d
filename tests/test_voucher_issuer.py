"""Tests for the voucher issuance workflow and eligibility rule."""

import re
from datetime import date, datetime, timezone

import pytest

from doorprize.models.voucher import Voucher
from doorprize.repositories.voucher_repo import VoucherRepository, ConfigRepository
from doorprize.services.eligibility import EligibilityChecker
from doorprize.services.exceptions import (
    ValidationError,
    NominalTooLow,
    EligibilityConflict,
    ConfigUnavailable,
    InsertError,
)
from doorprize.services.voucher_issuer import VoucherIssuer

FIXED_NOW = datetime(2026, 1, 30, 10, 15, tzinfo=timezone.utc)


class FixedCodeGenerator:
    def __init__(self, *codes):
        self.codes = list(codes)

    def generate_unique_code(self):
        return self.codes.pop(0)


@pytest.fixture
def issuer(db, settings):
    return VoucherIssuer(VoucherRepository(db), ConfigRepository(db), settings, clock=lambda: FIXED_NOW)


def active_count(db, username, websites_id):
    return (
        db.query(Voucher)
        .filter(Voucher.username == username, Voucher.websites_id == websites_id, Voucher.status == "active")
        .count()
    )


def test_issue_normalizes_and_stores_active_voucher(issuer, db, voucher_config):
    voucher = issuer.issue("Alice ", " S1", 100000)

    assert voucher.username == "alice"
    assert voucher.websites_id == "S1"
    assert voucher.status == "active"
    assert voucher.player_status == "real"
    assert voucher.undian_id is None
    assert voucher.hasil_undi is None
    assert re.match(r"^[A-Z]+[0-9]*-\d{6}$", voucher.lgx_voucher)
    assert active_count(db, "alice", "S1") == 1


def test_expiry_is_creation_date_plus_configured_days(issuer, voucher_config):
    voucher = issuer.issue("bob", "S1", 50000)
    assert voucher.expired_date == date(2026, 2, 6)


def test_second_issue_for_same_identity_is_rejected(issuer, db, voucher_config):
    first = issuer.issue("Alice ", " S1", 100000)

    with pytest.raises(EligibilityConflict) as exc_info:
        issuer.issue("ALICE", "S1", 100000)

    assert first.lgx_voucher in exc_info.value.message
    assert exc_info.value.existing_code == first.lgx_voucher
    assert active_count(db, "alice", "S1") == 1


def test_same_user_on_another_site_is_allowed(issuer, voucher_config):
    issuer.issue("alice", "S1", 100000)
    assert issuer.issue("alice", "S2", 100000).websites_id == "S2"


def test_site_id_comparison_is_case_sensitive(issuer, voucher_config):
    issuer.issue("alice", "S1", 100000)
    assert issuer.issue("alice", "s1", 100000).websites_id == "s1"


def test_used_voucher_does_not_block_new_one(issuer, voucher_config, make_voucher):
    make_voucher(lgx_voucher="LG1-111111", status="used")
    assert issuer.issue("alice", "S1", 100000).status == "active"


def test_nominal_too_low_mentions_minimum(issuer, db, voucher_config):
    with pytest.raises(NominalTooLow) as exc_info:
        issuer.issue("alice", "S1", 10000)

    assert "50000" in exc_info.value.message
    assert exc_info.value.status_code == 400
    assert db.query(Voucher).count() == 0


@pytest.mark.parametrize("username, websites_id, nominal", [
    (None, "S1", 100000),
    ("alice", None, 100000),
    ("alice", "S1", None),
    ("", "S1", 100000),
    ("alice", "S1", 0),
    ("   ", "S1", 100000),
])
def test_missing_fields_are_rejected(issuer, voucher_config, username, websites_id, nominal):
    with pytest.raises(ValidationError):
        issuer.issue(username, websites_id, nominal)


def test_missing_config_is_reported(issuer):
    with pytest.raises(ConfigUnavailable):
        issuer.issue("alice", "S1", 100000)


def test_duplicate_check_runs_before_nominal_check(issuer, voucher_config, make_voucher):
    make_voucher(lgx_voucher="LG1-222222")
    with pytest.raises(EligibilityConflict):
        issuer.issue("alice", "S1", 10)


def test_concurrent_insert_is_reported_as_conflict(db, settings, voucher_config, make_voucher, monkeypatch):
    issuer = VoucherIssuer(
        VoucherRepository(db), ConfigRepository(db), settings,
        code_generator=FixedCodeGenerator("LG1-999999"),
    )
    make_voucher(lgx_voucher="LG1-333333")

    # The first read misses the row, as a request racing the other insert would
    real_find = EligibilityChecker.find_active_voucher
    calls = []

    def racing_find(self, username, site_id):
        calls.append(username)
        if len(calls) == 1:
            return None
        return real_find(self, username, site_id)

    monkeypatch.setattr(EligibilityChecker, "find_active_voucher", racing_find)

    with pytest.raises(EligibilityConflict) as exc_info:
        issuer.issue("alice", "S1", 100000)

    assert exc_info.value.existing_code == "LG1-333333"
    assert active_count(db, "alice", "S1") == 1


def test_code_collision_on_insert_is_insert_error(db, settings, voucher_config, make_voucher):
    make_voucher(lgx_voucher="LG1-444444", username="carol")
    issuer = VoucherIssuer(
        VoucherRepository(db), ConfigRepository(db), settings,
        code_generator=FixedCodeGenerator("LG1-444444"),
    )

    with pytest.raises(InsertError):
        issuer.issue("dave", "S1", 100000)


def test_has_active_voucher(db, make_voucher):
    make_voucher(lgx_voucher="LG1-555555", username=" Alice", websites_id="S1 ")
    checker = EligibilityChecker(VoucherRepository(db))

    assert checker.has_active_voucher("ALICE ", " S1") is True
    assert checker.has_active_voucher("alice", "S2") is False
    assert checker.find_active_voucher("alice", "S1").lgx_voucher == "LG1-555555"
