"""Shared pytest fixtures and configuration."""

import os
import pytest
from freezegun import freeze_time
from fastapi.testclient import TestClient

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_MASK_SENSITIVE", "true")
os.environ.setdefault("WHATSAPP_BRIDGE_COMMAND", "node whatsapp-bridge.js")

from api.app import create_app
from src.config import AppConfig
from src.services.connection_tracker import ConnectionTracker
from src.services.message_intake import MessageIntake
from src.services.task_store import TaskStore
from tests.utils.helpers import FakeProviderFactory, fake_qr_renderer


@pytest.fixture
def task_store():
    """Empty in-memory task store."""
    return TaskStore()


@pytest.fixture
def provider_factory():
    """Factory producing fake messaging providers that record their calls."""
    return FakeProviderFactory()


@pytest.fixture
def connection_tracker(provider_factory, task_store):
    """Tracker wired to fake providers, a fake QR renderer and the task store."""
    intake = MessageIntake(task_store)
    return ConnectionTracker(
        provider_factory=provider_factory,
        message_handler=intake.handle_message,
        qr_renderer=fake_qr_renderer,
        release_timeout=1.0,
    )


@pytest.fixture
def app_config():
    return AppConfig(port=3001, provider_shutdown_timeout_seconds=1.0)


@pytest.fixture
def app(app_config, task_store, connection_tracker):
    return create_app(config=app_config, task_store=task_store, connection_tracker=connection_tracker)


@pytest.fixture
def client(app):
    """TestClient with lifespan events running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
