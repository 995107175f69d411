import os

# Must be set before the application modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from scheduling_service.config.settings import Settings
from scheduling_service.main import app
from scheduling_service.models.entities import ResourceType
from scheduling_service.storage.database import (
    Base,
    EventModel,
    ResourceModel,
    ScheduleModel,
    TaskModel,
    build_engine,
    get_db,
)

BASE_DAY = datetime(2025, 6, 15, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0, day_offset: int = 0) -> datetime:
    """Timestamp on the fixture day (UTC)."""
    return BASE_DAY + timedelta(days=day_offset, hours=hour, minutes=minute)


class Seeder:
    """Inserts store rows the way the surrounding CRUD app would."""

    def __init__(self, db):
        self.db = db

    def _add(self, model):
        self.db.add(model)
        self.db.commit()
        return model

    def resource(self, name="Chef", type=ResourceType.STAFF, hourly_rate=None, is_available=True, notes=None):
        return self._add(
            ResourceModel(name=name, type=type, hourly_rate=hourly_rate, is_available=is_available, notes=notes)
        )

    def event(self, name="Summer Gala"):
        return self._add(EventModel(event_name=name))

    def task(self, title="Prepare canapes"):
        return self._add(TaskModel(title=title))

    def entry(self, resource, event, start, end, task=None, notes=None):
        return self._add(
            ScheduleModel(
                resource_id=resource.id,
                event_id=event.id,
                task_id=task.id if task is not None else None,
                start_time=start,
                end_time=end,
                notes=notes,
            )
        )


@pytest.fixture(scope="session")
def db_engine():
    engine = build_engine(Settings(database_url="sqlite+pysqlite:///:memory:"))
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(db_engine):
    session = sessionmaker(bind=db_engine, autoflush=False)()
    try:
        yield session
    finally:
        session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()


@pytest.fixture
def broken_db():
    """Session on a store with no tables: every query fails."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    session = sessionmaker(bind=engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def booked_chef(seed):
    """Chef booked 09:00-17:00 on the fixture day for the Summer Gala."""
    chef = seed.resource(name="Chef")
    gala = seed.event(name="Summer Gala")
    entry = seed.entry(chef, gala, at(9), at(17))
    return chef, gala, entry
