# shared fixtures for backend api tests
# provides mock db, fake generation collaborators, and httpx test client

from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId

from httpx import AsyncClient, ASGITransport

from app.main import app
from app.dependencies import get_renderer
from app.services.db import BoardRepository, JournalRepository, get_db
from app.services.flow_service import SessionStore, get_session_store
from app.services.image_service import ImageRenderer
from app.services.llm_service import (
    GeneratedImage,
    ImageGenerationError,
    get_image_generator,
    get_text_generator,
)


# fake generation collaborators

class FakeTextGenerator:
    """replays scripted replies in order; once they run out every call fails"""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    def queue(self, *replies):
        self.replies.extend(replies)

    async def generate(self, system_instruction, user_prompt):
        self.calls.append((system_instruction, user_prompt))
        if not self.replies:
            raise RuntimeError("text model unavailable")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeImageGenerator:
    """returns a tiny png; prompts containing a `fail_on` marker raise.
    set `gate` to hold every call until the event is set."""

    def __init__(self, fail_on=None):
        self.fail_on = set(fail_on or [])
        self.prompts = []
        self.gate = None

    async def generate(self, prompt, size="1024x1024"):
        self.prompts.append(prompt)
        if self.gate is not None:
            await self.gate.wait()
        if any(marker in prompt for marker in self.fail_on):
            raise ImageGenerationError("provider rejected the prompt")
        return GeneratedImage(media_type="image/png", data=b"\x89PNG-test")


# async cursor mock

class AsyncCursorMock:
    """mock for motor's async cursor - supports async for and chained methods"""

    def __init__(self, data=None):
        self._data = list(data or [])
        self._index = 0

    def sort(self, key, direction=1):
        self._data.sort(key=lambda d: d.get(key) or "", reverse=direction == -1)
        return self

    def limit(self, n):
        self._data = self._data[:n]
        return self

    def __aiter__(self):
        self._index = 0
        return self

    async def __anext__(self):
        if self._index >= len(self._data):
            raise StopAsyncIteration
        item = self._data[self._index]
        self._index += 1
        return item


def _lookup(doc, path):
    """all values at a dotted path, descending through lists like mongodb does"""
    values = [doc]
    for part in path.split("."):
        found = []
        for value in values:
            if isinstance(value, dict) and part in value:
                found.append(value[part])
            elif isinstance(value, list):
                found.extend(item[part] for item in value if isinstance(item, dict) and part in item)
        values = found
    return values


def _set_path(target, path, value):
    parts = path.split(".")
    for part in parts[:-1]:
        target = target.setdefault(part, {})
    target[parts[-1]] = value


class MockCollection:
    """mock for a motor collection with async methods"""

    def __init__(self, data=None):
        self._data = data or []
        self.inserted = []

    def find(self, query=None, projection=None):
        results = self._data
        if query:
            results = [d for d in results if self._matches(d, query)]
        return AsyncCursorMock(results)

    async def find_one(self, query=None, projection=None):
        for doc in self._data:
            if not query or self._matches(doc, query):
                return doc
        return None

    async def insert_one(self, doc):
        oid = doc.get("_id", ObjectId())
        doc["_id"] = oid
        self._data.append(doc)
        self.inserted.append(doc)
        result = MagicMock()
        result.inserted_id = oid
        return result

    async def update_one(self, query, update, upsert=False):
        result = MagicMock()
        result.matched_count = 0
        result.modified_count = 0
        for doc in self._data:
            if not self._matches(doc, query):
                continue
            for key, value in update.get("$set", {}).items():
                if ".$." in key:
                    self._set_positional(doc, query, key, value)
                else:
                    _set_path(doc, key, value)
            for key, value in update.get("$push", {}).items():
                _lookup(doc, key)[0].append(value)
            for key, cond in update.get("$pull", {}).items():
                array = _lookup(doc, key)[0]
                array[:] = [item for item in array if not all(item.get(k) == v for k, v in cond.items())]
            result.matched_count = 1
            result.modified_count = 1
            break
        return result

    async def create_index(self, *args, **kwargs):
        return "mock_index"

    @staticmethod
    def _set_positional(doc, query, key, value):
        """resolve `array.$.rest` against the array condition in the query"""
        array_path, rest = key.split(".$.", 1)
        array = _lookup(doc, array_path)[0]
        for cond_key, cond_value in query.items():
            if cond_key.startswith(array_path + "."):
                field = cond_key[len(array_path) + 1:]
                for item in array:
                    if _lookup(item, field) == [cond_value]:
                        _set_path(item, rest, value)
                        return

    def _matches(self, doc, query):
        """basic mongodb query matching for tests"""
        for key, value in query.items():
            if value not in _lookup(doc, key):
                return False
        return True


class MockDatabase:
    """mock database that mimics the Database class"""

    def __init__(self):
        self.journals = MockCollection([])
        self.boards = MockCollection([])

    async def connect(self):
        pass

    async def close(self):
        pass


@pytest.fixture
def mock_db():
    """create a fresh mock database for each test"""
    return MockDatabase()


@pytest.fixture
def journal_repo(mock_db):
    return JournalRepository(mock_db.journals)


@pytest.fixture
def board_repo(mock_db):
    return BoardRepository(mock_db.boards)


@pytest.fixture
def text_generator():
    return FakeTextGenerator()


@pytest.fixture
def image_generator():
    return FakeImageGenerator()


@pytest.fixture
def renderer(image_generator):
    return ImageRenderer(image_generator)


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def answers():
    """a complete set of prescribed answers, keyed by prompt id"""
    return {
        "year-feeling": "Proud, calm and genuinely rested",
        "year-word": "Bloom",
        "core-transformation": "My health, especially sleep and movement",
        "identity-becoming": "Someone who keeps the promises I make to myself",
    }


@pytest_asyncio.fixture
async def client(mock_db, text_generator, image_generator, renderer, sessions):
    """httpx async test client with mocked dependencies"""

    async def override_get_db():
        return mock_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_text_generator] = lambda: text_generator
    app.dependency_overrides[get_image_generator] = lambda: image_generator
    app.dependency_overrides[get_renderer] = lambda: renderer
    app.dependency_overrides[get_session_store] = lambda: sessions

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
