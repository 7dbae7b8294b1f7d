"""Pytest configuration and fixtures."""

import os

# The module-level app in doorprize.main is built from the environment
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SKIP_DB_INIT", "true")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from doorprize.config import Settings
from doorprize.database import Base, Database
from doorprize.main import create_app
from doorprize.models.voucher import Voucher
from doorprize.models.config import VoucherConfig
from doorprize.models.website import Website
from doorprize.models.draw import Draw

API_KEY = "test-secret"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        API_SECRET_KEY=API_KEY,
        SKIP_DB_INIT=True,
    )


@pytest.fixture
def engine():
    """In-memory database standing in for the hosted Postgres."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def database(engine):
    return Database(engine)


@pytest.fixture
def db(database):
    session = database.service_session()
    yield session
    session.close()


@pytest.fixture
def voucher_config(db):
    config = VoucherConfig(id=1, minimal_nominal=50000, max_day_exp_voucher=7)
    db.add(config)
    db.commit()
    return config


@pytest.fixture
def reference_data(db):
    db.add_all([
        Website(id="S1", name="Lucky Site One"),
        Draw(id="draw-1", kode_undian="UND-001", nama_undian="Weekly Draw", live_url=None),
    ])
    db.commit()


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"x-api-key": API_KEY}


@pytest.fixture
def make_voucher(db):
    """Insert a voucher row directly, bypassing the issuer."""
    def _make(**overrides) -> Voucher:
        fields = {
            "id": overrides.pop("id", f"id-{overrides.get('lgx_voucher', 'LG1-000001')}"),
            "lgx_voucher": "LG1-000001",
            "username": "alice",
            "websites_id": "S1",
            "nominal": 100000,
            "status": "active",
            "player_status": "real",
        }
        fields.update(overrides)
        voucher = Voucher(**fields)
        db.add(voucher)
        db.commit()
        return voucher

    return _make
