"""Functional test bootstrap.

Builds the application around an in-memory record store, a scripted
conversion gateway and a low-cost scrypt hasher so tests never touch the
network or a real database.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from survey_builder.config import (
    AppConfig,
    AuthConfig,
    CorsConfig,
    ExportConfig,
    GatewayConfig,
    StoreConfig,
)
from survey_builder.logic.credentials import ScryptHasher
from survey_builder.logic.events import get_buffered_events
from survey_builder.logic.record_store import InMemoryRecordStore
from survey_builder.logic.survey_repository import SurveyRepository
from survey_builder.logic.user_directory import UserDirectory
from survey_builder.main import create_app


SAMPLE_GATEWAY_SURVEY: Dict[str, Any] = {
    "title": "استبيان رضا الطلاب",
    "questions": [
        {"text": "ما هو تخصصك؟", "type": "single-choice", "options": ["علوم", "آداب"]},
        {"text": "المحاضرات مفيدة", "type": "likert-5", "options": ["yes", "no"]},
        {"text": "ما الأدوات التي تستخدمها؟", "type": "multiple-choice", "options": ["Excel", "SPSS", "R"]},
        {"text": "هل تنصح بالمقرر؟", "type": "binary"},
        {"text": "ملاحظات إضافية", "type": "text", "options": ["ignored"]},
    ],
}


class ScriptedGateway:
    """Conversion gateway double returning a fixed survey or raising."""

    def __init__(self, result: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None) -> None:
        self.result = copy.deepcopy(result if result is not None else SAMPLE_GATEWAY_SURVEY)
        self.error = error
        self.calls: list[str] = []

    def convert(self, text: str) -> Dict[str, Any]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.result)


@pytest.fixture(autouse=True)
def _clear_events():
    get_buffered_events(clear=True)
    yield
    get_buffered_events(clear=True)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        store=StoreConfig(dsn="sqlite+pysqlite:///:memory:"),
        gateway=GatewayConfig(api_key="", model="gemini-2.0-flash"),
        auth=AuthConfig(scrypt_n=16, scrypt_r=1, scrypt_p=1),
        export=ExportConfig(include_bom=True),
        cors=CorsConfig(origins=["*"]),
    )


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def hasher() -> ScryptHasher:
    return ScryptHasher(n=16, r=1, p=1)


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def directory(store, hasher) -> UserDirectory:
    return UserDirectory(store, hasher)


@pytest.fixture
def repository(store, directory) -> SurveyRepository:
    ticks = iter(range(1_700_000_000_000, 1_700_000_000_000 + 10_000))
    return SurveyRepository(store, directory, clock=lambda: next(ticks))


@pytest.fixture
def app(config, store, gateway, hasher):
    return create_app(config=config, store=store, gateway=gateway, hasher=hasher)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def build_client(config, store, hasher):
    """Factory for a client around a custom gateway (failure scenarios)."""

    def _build(gateway, raise_server_exceptions: bool = True) -> TestClient:
        app = create_app(config=config, store=store, gateway=gateway, hasher=hasher)
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return _build


@pytest.fixture
def post_action():
    def _post(client: TestClient, action: str, payload: Any, username: Optional[str] = None):
        headers = {"x-username": username} if username else {}
        return client.post("/api/data", json={"action": action, "payload": payload}, headers=headers)

    return _post


@pytest.fixture
def scripted_gateway():
    """The ScriptedGateway class, for tests that need a custom result or error."""
    return ScriptedGateway
