"""Common test fixtures for all test modules"""
import pytest
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.db import Base
from core.models import Account
from analysis.store import SqlCounterStore
from helpers import BERLIN


@pytest.fixture
def now():
    """Monday 2023-05-15, 10:00 in Berlin"""
    return datetime(2023, 5, 15, 10, 0, tzinfo=ZoneInfo(BERLIN)).astimezone(timezone.utc)


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across connections"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session):
    return SqlCounterStore(db_session)


@pytest.fixture
def berlin_account(db_session):
    """Active account living in Europe/Berlin"""
    account = Account(id="acc-berlin", name="alice", server_url="https://mastodon.social", timezone=BERLIN)
    db_session.add(account)
    db_session.commit()
    return account
