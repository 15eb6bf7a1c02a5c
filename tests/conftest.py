from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fleet_alerts.api.deps import get_db_session, get_notification_channel
from fleet_alerts.core.app_config import get_app_json_config
from fleet_alerts.core.config import get_settings
from fleet_alerts.core.errors import PermanentSendError, TransientSendError
from fleet_alerts.db.base import Base
from fleet_alerts.messaging.templates import Message
from main import app

CRON_SECRET = "test-cron-secret"


class RecordingChannel:
    """Fake channel: records every delivered message and fails on demand."""

    def __init__(self) -> None:
        self.sent: list[Message] = []
        self.calls: list[str] = []
        self.transient_failures: set[str] = set()
        self.permanent_failures: set[str] = set()

    async def send(self, message: Message) -> None:
        self.calls.append(message.to)
        if message.to in self.permanent_failures:
            raise PermanentSendError(f"mailbox unavailable: {message.to}")
        if message.to in self.transient_failures:
            raise TransientSendError(f"connection reset while sending to {message.to}")
        self.sent.append(message)

    def sent_to(self) -> list[str]:
        return [message.to for message in self.sent]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def test_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("CRON_SECRET", CRON_SECRET)
    monkeypatch.setenv("AUDIT_LOG_PATH", str(tmp_path / "logs" / "app.log"))
    monkeypatch.setenv("DISPATCH_BACKOFF_SECONDS", "0")
    monkeypatch.setenv("NOTIFICATION_CHANNEL", "log")
    get_settings.cache_clear()
    get_app_json_config.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
    get_app_json_config.cache_clear()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    db_path = tmp_path / "test.db"
    db_url = f"sqlite+aiosqlite:///{db_path}"

    engine = create_async_engine(db_url, future=True)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield factory

    await engine.dispose()


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    channel: RecordingChannel,
) -> AsyncGenerator[AsyncClient, None]:
    async def _override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _override_get_db_session
    app.dependency_overrides[get_notification_channel] = lambda: channel

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()
