"""Shared fixtures: isolated settings, fake sinks, a tiny scenario, and the app client."""
import asyncio
import os

# Must be set before app modules read settings at import time.
os.environ["SELECTION_DELAY_SECONDS"] = "0"
for var in (
    "GOOGLE_SHEET_ID",
    "GOOGLE_CREDENTIALS",
    "GOOGLE_SERVICE_ACCOUNT_EMAIL",
    "GOOGLE_PRIVATE_KEY",
    "RESEND_API_KEY",
    "RESEND_FROM_EMAIL",
):
    os.environ[var] = ""

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.routers.deps import get_subscription_service
from app.schemas.scenario import ScenarioSchema
from app.services.subscription import SubscriptionService


class FakeLedger:
    def __init__(self, configured=True, error=None, delay=0.0):
        self.configured = configured
        self.error = error
        self.delay = delay
        self.rows = []

    async def append(self, row):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        self.rows.append(row)


class FakeNotifier:
    def __init__(self, configured=True, error=None):
        self.configured = configured
        self.error = error
        self.sent = []

    async def send_confirmation(self, name, email):
        if self.error:
            raise self.error
        self.sent.append((name, email))


# 12 non-empty lines, a blank after every third
ESSAY_LINES = []
for i in range(1, 13):
    ESSAY_LINES.append(f"line {i}")
    if i % 3 == 0 and i != 12:
        ESSAY_LINES.append("")
ESSAY = "\n".join(ESSAY_LINES)


def make_scenario(scenario_id="test", content=ESSAY):
    return ScenarioSchema.model_validate({
        "id": scenario_id,
        "category": "테스트",
        "question": "테스트 질문?",
        "tarot": {"name": "The Fool", "keywords": ["시작"], "image_url": "https://example.com/fool.png"},
        "rational_solution": {"title": "제목", "advice": "조언", "action_item": "할 일"},
        "emotional_content": {"title": "에세이", "content": content},
    })


@pytest.fixture
def scenario():
    return make_scenario()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def configured_client(ledger, notifier):
    """App wired to fake, configured sinks."""
    service = SubscriptionService(ledger, notifier, timeout=1.0)
    app.dependency_overrides[get_subscription_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
