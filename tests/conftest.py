import os
import secrets
import sys
from datetime import datetime
from pathlib import Path
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure project root on sys.path so 'farm_market' resolves without an editable install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from farm_market.main import app  # type: ignore
from farm_market.database import Base  # type: ignore
from farm_market.api import deps  # type: ignore
"""Pytest fixtures and factories.

Important: SQLAlchemy relationship configuration requires all model modules to be imported
before Base.metadata.create_all(), otherwise back_populates targets might not exist yet.
"""
from farm_market.models.db import User, Commodity, Region, Price, PriceHistory, Harvest
from farm_market.models.db.enums import UserRole
from farm_market.jobs.report_dispatcher import ReportDispatcher, LAST_EXCEPTIONS
from farm_market.services.report_store import MemoryReportStore

# File-based SQLite so request handlers and the test thread share committed data
SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///./test_farm_market.db"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Health checks import SessionLocal lazily from the module; point it at the test DB.
import farm_market.database as _fm_database  # noqa: E402
_fm_database.SessionLocal = TestingSessionLocal  # type: ignore

@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    try:
        os.remove("test_farm_market.db")
    except OSError:
        pass

@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

# Override dependency
def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

app.dependency_overrides[deps.get_db] = _override_get_db

@pytest.fixture()
def report_store():
    return MemoryReportStore()

@pytest.fixture(autouse=True)
def report_services(report_store):
    """Install a store and dispatcher on app.state.

    The production app builds these in lifespan. Tests bypass lifespan so we replicate here.
    """
    dispatcher = ReportDispatcher(report_store, max_workers=2)
    app.state.report_store = report_store  # type: ignore[attr-defined]
    app.state.report_dispatcher = dispatcher  # type: ignore[attr-defined]
    LAST_EXCEPTIONS.clear()
    yield dispatcher
    dispatcher.shutdown(wait=True)
    LAST_EXCEPTIONS.clear()

@pytest.fixture()
def client():
    return TestClient(app)

# ---------- Data factory helpers ----------

@pytest.fixture()
def user_factory(db_session):
    def _create(role: UserRole = UserRole.FARMER, name: str | None = None):
        suffix = secrets.token_hex(4)
        user = User(
            name=name or f"{role.value.title()} {suffix}",
            email=f"{role.value.lower()}_{suffix}@example.com",
            api_key=f"fm_{secrets.token_hex(12)}",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create

@pytest.fixture()
def commodity_factory(db_session):
    def _create(name: str | None = None):
        commodity = Commodity(name=name or f"Commodity {secrets.token_hex(4)}")
        db_session.add(commodity)
        db_session.commit()
        db_session.refresh(commodity)
        return commodity
    return _create

@pytest.fixture()
def region_factory(db_session):
    def _create(name: str | None = None, province: str | None = "West Java"):
        region = Region(name=name or f"Region {secrets.token_hex(4)}", province=province)
        db_session.add(region)
        db_session.commit()
        db_session.refresh(region)
        return region
    return _create

@pytest.fixture()
def price_factory(db_session):
    def _create(commodity, region, price: float = 10000, *, updated_at: datetime | None = None, history: list | None = None):
        """Current price plus optional archived (recorded_at, price) points."""
        for recorded_at, old_price in history or []:
            db_session.add(PriceHistory(
                commodity_id=commodity.id,
                region_id=region.id,
                price=old_price,
                unit="kg",
                recorded_at=recorded_at,
            ))
        moment = updated_at or datetime(2023, 1, 31, 12, 0, 0)
        current = Price(
            commodity_id=commodity.id,
            region_id=region.id,
            price=price,
            unit="kg",
            created_at=moment,
            updated_at=moment,
        )
        db_session.add(current)
        db_session.commit()
        db_session.refresh(current)
        return current
    return _create

@pytest.fixture()
def harvest_factory(db_session):
    def _create(commodity, region, harvest_date, quantity: float = 100, user=None):
        harvest = Harvest(
            commodity_id=commodity.id,
            region_id=region.id,
            user_id=user.id if user else None,
            quantity=quantity,
            unit="kg",
            harvest_date=harvest_date,
        )
        db_session.add(harvest)
        db_session.commit()
        db_session.refresh(harvest)
        return harvest
    return _create

@pytest.fixture()
def admin_header(user_factory):
    admin = user_factory(UserRole.ADMIN)
    return {"Authorization": f"Bearer {admin.api_key}"}, admin

@pytest.fixture()
def auth_header(user_factory):
    farmer = user_factory(UserRole.FARMER)
    return {"Authorization": f"Bearer {farmer.api_key}"}, farmer
