from __future__ import annotations

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from clinic_booking.database import get_db, make_engine
from clinic_booking.dependencies import get_admission
from clinic_booking.main import app
from clinic_booking.models import Base
from clinic_booking.services.admission import Actor, BookingAdmission
from clinic_booking.services.booking_store import BookingStore
from clinic_booking.services.locks import LocalSlotLocks
from clinic_booking.services.slots.config import BookingConfig

from tests.helpers import NOW, FakeClock, RecordingNotifier


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def config(clock: FakeClock) -> BookingConfig:
    return BookingConfig(clock=clock)


@pytest.fixture
def engine(tmp_path):
    # file database: worker threads in the concurrency tests need their own connections
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def locks() -> LocalSlotLocks:
    return LocalSlotLocks(timeout=5)


@pytest.fixture
def admission(db, config, locks, notifier) -> BookingAdmission:
    return BookingAdmission(BookingStore(db), config=config, locks=locks, notify=notifier)


@pytest.fixture
def patient() -> Actor:
    return Actor(id="patient-1")


@pytest.fixture
def other_patient() -> Actor:
    return Actor(id="patient-2")


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin-1", is_admin=True)


@pytest.fixture
def client(session_factory, config, locks, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_get_admission(db: Session = Depends(get_db)):
        return BookingAdmission(BookingStore(db), config=config, locks=locks, notify=notifier)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_admission] = override_get_admission
    yield TestClient(app)
    app.dependency_overrides.clear()
