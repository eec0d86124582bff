# tests/conftest.py
import os

# Settings are read once at import time, so the environment must be in place first
os.environ.update({
    "PROJECT_NAME": "Taskminder Test",
    "LOG_LEVEL": "DEBUG",
    "MONGODB_URI": "mongodb://localhost:27017/taskminder_test",
    "SECRET_KEY": "test-secret-key",
    "ALGORITHM": "HS256",
    "AUTH_USERNAME": "testuser",
    "AUTH_PASSWORD": "testpassword",
    "REMINDER_SCANNER_ENABLED": "false",
})

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from taskminder.core.security import create_access_token
from taskminder.main import create_app
from taskminder.modules.tasks.repository import TaskRepository
from taskminder.modules.tasks.services import TaskManager

START = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

class FakeClock:
    """Deterministic clock. Each read returns the current time, then moves it forward by `step`."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def db_client():
    client = AsyncMongoMockClient()
    return client[f"test_db_{os.urandom(4).hex()}"]

@pytest.fixture
def task_repo(db_client) -> TaskRepository:
    return TaskRepository(db_client)

@pytest.fixture
def task_manager(task_repo, clock) -> TaskManager:
    return TaskManager(task_repo, clock=clock)

@pytest.fixture
def app(task_manager):
    return create_app(task_manager=task_manager)

@pytest_asyncio.fixture
async def test_client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client

@pytest_asyncio.fixture
async def authenticated_client(app) -> AsyncGenerator[AsyncClient, None]:
    token = create_access_token({"sub": "testuser"})
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
        headers={"Authorization": f"Bearer {token}"},
    ) as client:
        yield client
