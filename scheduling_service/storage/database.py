from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    text,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from scheduling_service.config.settings import Settings, get_settings
from scheduling_service.models.entities import ResourceType

Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    """
    Create the Schedule Store engine.

    PostgreSQL connections get a server-side ``statement_timeout`` so a slow
    query is abandoned instead of holding a worker. In-memory SQLite shares a
    single connection so every session sees the same tables.
    """
    url = make_url(settings.database_url)
    kwargs = {"pool_pre_ping": True, "echo": False}
    if url.get_backend_name() == "postgresql" and settings.statement_timeout_ms > 0:
        kwargs["connect_args"] = {"options": f"-c statement_timeout={settings.statement_timeout_ms}"}
    elif url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


engine = build_engine(get_settings())
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class ResourceModel(Base):
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    type = Column(
        Enum(ResourceType, name="resource_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


# Only the columns this service joins on; the full tables belong to the event/task CRUD app.
class EventModel(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    event_name = Column(String(255), nullable=False)


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)


class ScheduleModel(Base):
    __tablename__ = "resource_schedule"

    id = Column(Integer, primary_key=True)
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


def init_db(bind: Engine = engine) -> None:
    Base.metadata.create_all(bind=bind)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping(db: Session) -> bool:
    """Check the store connection."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
