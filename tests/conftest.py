import pytest
from fastapi.testclient import TestClient

from inventory_service.core_settings import Settings
from inventory_service.infrastructure.db import build_engine, build_session_factory, init_models
from inventory_service.infrastructure.repository import InventoryRecordStore
from inventory_service.infrastructure.ledger import AdjustmentLedger
from inventory_service.application.adjustment import AdjustmentEngine
from inventory_service.application.service import InventoryService
from inventory_service.main import create_app

@pytest.fixture
def settings(tmp_path):
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'inventory.db'}", LOG_LEVEL="INFO")

@pytest.fixture
def engine(settings):
    engine = build_engine(settings.database_url)
    init_models(engine)
    yield engine
    engine.dispose()

@pytest.fixture
def broken_ledger_engine(tmp_path):
    """A reachable database without the ledger table: every append fails."""
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger-down.db'}")
    yield engine
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)

@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def store(db):
    return InventoryRecordStore(db)

@pytest.fixture
def ledger(session_factory):
    return AdjustmentLedger(session_factory)

@pytest.fixture
def adjustment_engine(store, ledger):
    return AdjustmentEngine(store, ledger)

@pytest.fixture
def service(store, ledger):
    return InventoryService(store, ledger, default_low_stock_threshold=10)

@pytest.fixture
def client(settings, engine):
    app = create_app(settings, engine=engine)
    with TestClient(app) as client:
        yield client

@pytest.fixture
def client_ledger_down(settings, engine, broken_ledger_engine):
    app = create_app(settings, engine=engine, ledger_engine=broken_ledger_engine)
    # No lifespan: it would create the missing ledger table
    yield TestClient(app)
