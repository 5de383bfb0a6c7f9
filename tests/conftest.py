"""Shared fixtures: fake provider, fake generation backend and an in-memory Prisma double."""
import asyncio
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from teachassist.services.assistant.provider import AssistantProvider, Completion
from teachassist.workspace.backend import GenerationBackend
from teachassist.workspace.storage import MemoryKeyValueStore

FIXED_NOW = datetime(2026, 10, 19, 15, 5)


# ---------------------------------------------------------------------------
# Generation doubles
# ---------------------------------------------------------------------------
class FakeProvider(AssistantProvider):
    model = "test/model"

    def __init__(self, content: str = "Generated text", *, tokens=(100, 50), error: Exception = None):
        self.content = content
        self.tokens = tokens
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def complete_chat(self, messages, *, system_prompt):
        self.calls.append({"messages": list(messages), "system_prompt": system_prompt})
        if self.error is not None:
            raise self.error
        return Completion(self.content, self.model, *self.tokens)

    async def complete_vision(self, *, system_prompt, text, image_url):
        self.calls.append({"system_prompt": system_prompt, "text": text, "image_url": image_url})
        if self.error is not None:
            raise self.error
        return Completion(self.content, self.model, *self.tokens)


class ScriptedBackend(GenerationBackend):
    """Returns queued responses in order; exceptions in the queue are raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None

    async def _next(self, call):
        self.calls.append(call)
        if self.gate is not None:
            await self.gate.wait()
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def generate(self, kind, input_text):
        return await self._next(("generate", kind, input_text))

    async def refine(self, kind, transcript):
        return await self._next(("refine", kind, list(transcript)))

    async def assess(self, year_level, image_data, image_type):
        return await self._next(("assess", year_level, image_data, image_type))


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


# ---------------------------------------------------------------------------
# Prisma double
# ---------------------------------------------------------------------------
def _matches(record, where: Optional[Dict[str, Any]]) -> bool:
    for key, expected in (where or {}).items():
        if key == "OR":
            if not any(_matches(record, clause) for clause in expected):
                return False
            continue
        value = getattr(record, key, None)
        if isinstance(expected, dict):
            for op, operand in expected.items():
                if op == "gte" and (value is None or value < operand):
                    return False
                if op == "not" and value == operand:
                    return False
                if op == "contains":
                    haystack, needle = value or "", operand
                    if expected.get("mode") == "insensitive":
                        haystack, needle = haystack.lower(), needle.lower()
                    if needle not in haystack:
                        return False
                if op == "is" and (value is None or not _matches(value, operand)):
                    return False
        elif value != expected:
            return False
    return True


class FakeDelegate:
    def __init__(self, defaults: Optional[Dict[str, Any]] = None):
        self.records: List[SimpleNamespace] = []
        self.defaults = defaults or {}

    def add(self, **fields):
        record = SimpleNamespace(**{"id": str(uuid.uuid4()), **self.defaults, **fields})
        self.records.append(record)
        return record

    async def create(self, data):
        return self.add(**data)

    async def count(self, where=None):
        return sum(1 for record in self.records if _matches(record, where))

    async def find_many(self, where=None, take=None, skip=None, order=None, include=None, distinct=None):
        rows = [record for record in self.records if _matches(record, where)]
        if order:
            (field, direction), = order.items()
            rows.sort(key=lambda r: getattr(r, field), reverse=direction == "desc")
        if distinct:
            seen, unique = set(), []
            for row in rows:
                marker = tuple(getattr(row, field) for field in distinct)
                if marker not in seen:
                    seen.add(marker)
                    unique.append(row)
            rows = unique
        rows = rows[skip or 0:]
        return rows[:take] if take is not None else rows

    async def find_unique(self, where):
        rows = await self.find_many(where=where)
        return rows[0] if rows else None

    async def update(self, where, data):
        record = await self.find_unique(where)
        if record is not None:
            for key, value in data.items():
                setattr(record, key, value)
        return record

    async def update_many(self, where, data):
        rows = await self.find_many(where=where)
        for record in rows:
            for key, value in data.items():
                setattr(record, key, value)
        return len(rows)


class FakeDb:
    def __init__(self):
        self.user = FakeDelegate({"name": "", "currentTier": "free", "country": None})
        self.subscription = FakeDelegate({"cancelledAt": None})
        self.usagelog = FakeDelegate({"user": None, "costUsd": None})
        self.session = FakeDelegate({"ipAddress": None, "userAgent": None})
        self.event = FakeDelegate()
        self.raw_results: Dict[str, List[Dict[str, Any]]] = {}
        self.raw_queries: List[str] = []

    async def query_raw(self, query, *args):
        self.raw_queries.append(query)
        if "SELECT 1" in query:
            return [{"test": 1}]
        for marker, rows in self.raw_results.items():
            if marker in query:
                return rows
        return []


@pytest.fixture
def fake_db():
    return FakeDb()


def utcnow():
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
@pytest.fixture
def provider():
    return FakeProvider("Generated report")


@pytest.fixture
def app(fake_db, provider, monkeypatch):
    from teachassist.core.config import settings
    from teachassist.main import create_app
    from teachassist.services.assistant import GenerationService

    monkeypatch.setattr(settings, "GEOLOCATION_ENABLED", False)
    monkeypatch.setattr(settings, "ADMIN_API_KEY", None)
    application = create_app()
    application.state.db = fake_db
    application.state.generation_service = GenerationService(provider)
    return application


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)
