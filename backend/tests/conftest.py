import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from outage_tracker.database import build_engine, init_db
from outage_tracker.services import reconciliation


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _reset_last_report():
    reconciliation._last_report = None
    yield
    reconciliation._last_report = None
