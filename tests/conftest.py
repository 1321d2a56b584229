"""Test fixtures and configuration."""

import uuid
from contextlib import asynccontextmanager

import httpx
import pytest
import pytest_asyncio

from contact_api.api.dependencies import get_notifier
from contact_api.config import Settings
from contact_api.database import create_engine, create_session_factory, create_tables
from contact_api.main import create_app
from contact_api.models.submission import Submission
from contact_api.notifications.email import DeliveryResult


class FakeNotifier:
    """Records submissions instead of emailing them."""

    def __init__(self, result=None):
        self.result = result or DeliveryResult(success=True, message_id="msg_test")
        self.sent = []

    async def send(self, submission):
        self.sent.append(submission)
        return self.result


@asynccontextmanager
async def running_app(settings, notifier=None):
    """Start the app (lifespan included) and yield it with an HTTP client."""
    app = create_app(settings)
    if notifier is not None:
        app.dependency_overrides[get_notifier] = lambda: notifier

    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield app, client


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        redis_url=None,
        resend_api_key="re_test_key",
        email_to="owner@example.com",
        environment="test",
        log_level="WARNING",
    )


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def failing_notifier():
    return FakeNotifier(DeliveryResult(success=False, error="Email provider returned 422: Invalid `to` field"))


@pytest.fixture
def start_app():
    """The ``running_app`` helper, for tests that need custom settings."""
    return running_app


@pytest_asyncio.fixture
async def app_client(settings, notifier):
    async with running_app(settings, notifier) as (app, client):
        yield app, client


@pytest_asyncio.fixture
async def db_session(settings):
    """Session on a fresh SQLite database with tables created."""
    engine = create_engine(settings.database_url)
    await create_tables(engine)
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def valid_payload():
    return {
        "name": "Jane Doe",
        "email": "jane@x.com",
        "message": "Hello, I would like to connect.",
    }


@pytest.fixture
def sample_submission():
    """Unsaved submission for rendering and notifier tests."""
    return Submission(
        id=uuid.uuid4(),
        name="Jane Doe",
        email="jane@example.com",
        organization="Acme Labs",
        message="Hello,\nI would like to talk about a project.",
        notified=False,
    )
