from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import itdesk.models  # noqa: F401
from itdesk.core.config import Settings
from itdesk.database.base_class import Base
from itdesk.models.user import User
from itdesk.schemas.notification import PersonRef, TicketSnapshot

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def make_engine():
    return create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


def make_sessionmaker(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


def seed_users():
    return [
        User(id=1, name="admin", email="admin@example.com", role="ADMIN", first_name="Somchai", last_name="Jaidee", department="IT"),
        User(id=2, name="owner", email="owner@example.com", role="USER", department="Finance"),
        User(id=3, name="other", email="other@example.com", role="USER", department="HR"),
        User(id=4, name="tech", email="tech@example.com", role="USER", department="IT"),
    ]


@pytest.fixture
def settings():
    return Settings(
        APP_BASE_URL="https://itdesk.example.com/",
        SMTP_USER="it-support@example.com",
        SMTP_PASS="app-password",
        IT_TEAM_EMAIL="it-team@example.com",
        LINE_CHANNEL_ACCESS_TOKEN="line-token",
        LINE_IT_TEAM_USER_ID="Uteam",
        LINE_WEBHOOK_URL="https://hooks.example.com/line",
    )


@pytest.fixture
async def db():
    engine = make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with make_sessionmaker(engine)() as session:
        session.add_all(seed_users())
        await session.commit()
        yield session

    await engine.dispose()


@pytest.fixture
async def users(db):
    result = await db.execute(select(User).order_by(User.id))
    return {user.name: user for user in result.scalars().all()}


@pytest.fixture
def snapshot():
    return TicketSnapshot(
        ticket_id=42,
        title="Printer on 3rd floor jams",
        description="Paper jams on every print job since this morning.",
        category="PRINTER",
        priority="LOW",
        status="OPEN",
        reported_by=PersonRef(name="Somsri Rakdee", email="somsri@example.com", department="Finance"),
        created_at=datetime(2026, 10, 19, 7, 30, tzinfo=timezone.utc),
        updated_at=datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc),
    )


# ------------------------------------------------------------------------- #
# Channel fakes
# ------------------------------------------------------------------------- #
class FakeSMTP:
    def __init__(self, factory):
        self.factory = factory
        self.sent = []
        self.closed = False

    def noop(self):
        return self.factory.noop_reply

    def send_message(self, msg):
        if self.factory.send_errors:
            raise self.factory.send_errors.pop(0)
        self.sent.append(msg)

    def quit(self):
        self.closed = True


class FakeSMTPFactory:
    """Stands in for smtplib.SMTP construction; queued errors are raised by send_message."""

    def __init__(self, send_errors=None, noop_reply=(250, b"OK")):
        self.send_errors = list(send_errors or [])
        self.noop_reply = noop_reply
        self.connections = []

    def __call__(self):
        connection = FakeSMTP(self)
        self.connections.append(connection)
        return connection

    @property
    def sent(self):
        return [msg for conn in self.connections for msg in conn.sent]


class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


class RecordingEmailChannel:
    def __init__(self, delivered=True, error=None):
        self.delivered = delivered
        self.error = error
        self.messages = []

    async def send(self, message):
        self.messages.append(message)
        if self.error:
            raise self.error
        return self.delivered

    async def close(self):
        pass


class RecordingLineChannel:
    def __init__(self, delivered=True, error=None):
        self.delivered = delivered
        self.error = error
        self.calls = []

    async def send(self, message, event_type, context=None):
        self.calls.append((message, event_type, context))
        if self.error:
            raise self.error
        return self.delivered
