"""Pytest configuration and fixtures for service and controller tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import StaticPool

from src.models.base import Base
from src.services.database import create_database_engine
from src.services.scan_ledger_service import ScanLedger
from src.tests.fakes import FakeReportStore, make_packages


def _patch_session_factory(engine):
    """Point src.services.database at a session factory bound to engine."""
    import src.services.database as db_module

    Base.metadata.create_all(engine)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session
    return Session, original_get_session_factory


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean in-memory database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database shared across threads
    2. Creates all tables
    3. Provides the scoped session to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Session, original = _patch_session_factory(engine)

    yield Session

    import src.services.database as db_module

    Session.remove()
    Base.metadata.drop_all(engine)
    db_module.get_session_factory = original


@pytest.fixture(scope="function")
def file_db(tmp_path):
    """Provide a file-backed database for tests that call the store from worker threads."""
    engine = create_database_engine(f"sqlite:///{tmp_path / 'delivery_tracker.db'}")
    Session, original = _patch_session_factory(engine)

    yield Session

    import src.services.database as db_module

    Session.remove()
    engine.dispose()
    db_module.get_session_factory = original


@pytest.fixture
def ledger(tmp_path):
    """Provide a scan ledger stored in a temporary directory."""
    return ScanLedger(tmp_path / "scan_ledger.json")


@pytest.fixture
def fake_store():
    """Provide a fake store with a two-package manifest."""
    return FakeReportStore(packages=make_packages("P1", "P2"))

