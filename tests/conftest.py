"""Pytest configuration and fixtures."""
import copy
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import unquote

import pytest
import pytest_asyncio
from aiohttp import web, test_utils
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError


class InMemoryCollection:
    """
    Just enough of a motor collection for the repositories.

    Supports equality filters, ``$set``/``$setOnInsert`` upserts and unique
    indexes, and records every write so tests can assert on them.
    """

    def __init__(self):
        self.documents: Dict[Any, Dict[str, Any]] = {}
        self.unique_fields: List[str] = []
        self.writes = 0
        self._next_id = 0

    async def create_index(self, field, unique=False, **kwargs):
        if unique:
            self.unique_fields.append(field)
        return f"{field}_1"

    def _matches(self, doc, query):
        return all(doc.get(key) == value for key, value in query.items())

    def _find(self, query) -> Optional[Dict[str, Any]]:
        for doc in self.documents.values():
            if self._matches(doc, query):
                return doc
        return None

    def _check_unique(self, doc):
        for field in self.unique_fields:
            for other in self.documents.values():
                if other["_id"] != doc["_id"] and other.get(field) == doc.get(field):
                    raise DuplicateKeyError(f"E11000 duplicate key error: {field}")

    def _upsert(self, query, update, upsert):
        doc = self._find(query)
        if doc is None:
            if not upsert:
                return None
            doc = dict(query)
            doc.update(update.get("$setOnInsert", {}))
            doc.update(update.get("$set", {}))
            if "_id" not in doc:
                self._next_id += 1
                doc["_id"] = f"oid_{self._next_id}"
            self._check_unique(doc)
            self.documents[doc["_id"]] = doc
        else:
            doc.update(update.get("$set", {}))
        self.writes += 1
        return doc

    async def find_one(self, query):
        doc = self._find(query)
        return copy.deepcopy(doc) if doc else None

    async def find_one_and_update(self, query, update, upsert=False, return_document=ReturnDocument.BEFORE):
        before = copy.deepcopy(self._find(query))
        doc = self._upsert(query, update, upsert)
        if return_document == ReturnDocument.AFTER:
            return copy.deepcopy(doc)
        return before

    async def update_one(self, query, update, upsert=False):
        self._upsert(query, update, upsert)
        return MagicMock(modified_count=1)

    async def count_documents(self, query):
        return sum(1 for doc in self.documents.values() if self._matches(doc, query))


class InMemoryDatabase:
    def __init__(self):
        self.feeds = InMemoryCollection()
        self.articles = InMemoryCollection()
        self.users = InMemoryCollection()

    @property
    def total_writes(self) -> int:
        return self.feeds.writes + self.articles.writes + self.users.writes


@pytest_asyncio.fixture
async def memory_db():
    """In-memory database with the production indexes applied."""
    from database.connection import setup_indexes

    db = InMemoryDatabase()
    await setup_indexes(db)
    return db


@pytest.fixture
def mock_mongo_db():
    """Create mock MongoDB database."""
    db = MagicMock()

    db.feeds = MagicMock()
    db.articles = MagicMock()
    db.users = MagicMock()

    db.feeds.find_one_and_update = AsyncMock()
    db.articles.find_one_and_update = AsyncMock()
    db.articles.find_one = AsyncMock()
    db.users.update_one = AsyncMock()

    return db


@pytest.fixture
def mock_redis_client():
    """Create mock Redis client."""
    redis = AsyncMock()

    redis.lpush = AsyncMock(return_value=1)
    redis.lmove = AsyncMock(return_value=None)
    redis.lrem = AsyncMock(return_value=1)
    redis.llen = AsyncMock(return_value=0)

    return redis


@pytest.fixture
def sample_task():
    """Create sample article task."""
    return {
        "source_item_id": "tag:google.com,2005:reader/item/0000000000000001",
        "feed_id": "feed_1",
        "title": "New Framework Released",
        "content": "<p>A new framework has been released.</p><script>alert(1)</script>",
        "summary": "<p>A new framework.</p>",
        "author_name": "Jane Doe",
        "original_link": "https://techblog.example.com/new-framework",
        "published_at": 1672531200
    }


def make_item(item_id: str, title: str, content: Optional[str] = None, summary: str = "Summary text",
              published: Optional[int] = 1672531200, author: str = "Jane Doe") -> Dict[str, Any]:
    """Build a stream item the way FreshRSS serialises it."""
    item = {
        "id": item_id,
        "crawlTimeMsec": "1672531200000",
        "timestampUsec": "1672531200000000",
        "categories": ["user/-/state/com.google/reading-list"],
        "title": title,
        "canonical": [{"href": f"https://example.com/{item_id.rsplit('/', 1)[-1]}"}],
        "alternate": [{"href": f"https://example.com/alt/{item_id.rsplit('/', 1)[-1]}", "type": "text/html"}],
        "summary": {"direction": "ltr", "content": f"<p>{summary}</p>"},
        "author": author,
        "origin": {"streamId": "feed/1", "title": "Tech Blog", "htmlUrl": "https://techblog.example.com"},
    }
    if content is not None:
        item["content"] = {"direction": "ltr", "content": content}
    if published is not None:
        item["published"] = published
    return item


class FakeFreshRss:
    """Configurable FreshRSS double served over real HTTP."""

    USER = "admin"
    PASSWORD = "password123"
    TOKEN = "admin/abc123synctoken"

    def __init__(self):
        self.subscriptions: List[Dict[str, Any]] = []
        self.streams: Dict[str, List[Dict[str, Any]]] = {}
        self.failing_streams: set = set()
        self.login_status = 200
        self.login_body: Optional[str] = None
        self.login_calls = 0
        self.requests: List[web.Request] = []

    def add_feed(self, feed_id: str, title: str, items: List[Dict[str, Any]], categories=None):
        self.subscriptions.append({
            "id": feed_id,
            "title": title,
            "url": f"https://{feed_id.replace('/', '')}.example.com/rss",
            "htmlUrl": f"https://{feed_id.replace('/', '')}.example.com",
            "iconUrl": "",
            "categories": categories if categories is not None else [{"id": "user/-/label/Tech", "label": "Tech"}],
        })
        self.streams[feed_id] = items

    def _authorized(self, request: web.Request) -> bool:
        return request.headers.get("Authorization") == f"GoogleLogin auth={self.TOKEN}"

    async def login(self, request: web.Request):
        self.login_calls += 1
        form = await request.post()
        if self.login_status != 200:
            return web.Response(status=self.login_status, text="Error=BadAuthentication")
        if form.get("Email") != self.USER or form.get("Passwd") != self.PASSWORD:
            return web.Response(status=401, text="Error=BadAuthentication")
        body = self.login_body if self.login_body is not None else f"SID={self.TOKEN}\nLSID=null\nAuth={self.TOKEN}\n"
        return web.Response(text=body)

    async def subscription_list(self, request: web.Request):
        self.requests.append(request)
        if not self._authorized(request):
            return web.Response(status=401)
        return web.json_response({"subscriptions": self.subscriptions})

    async def stream_contents(self, request: web.Request):
        self.requests.append(request)
        if not self._authorized(request):
            return web.Response(status=401)
        feed_id = unquote(request.match_info["feed_id"])
        if feed_id in self.failing_streams:
            return web.Response(status=500, text="boom")
        items = self.streams.get(feed_id, [])
        since = request.query.get("ot")
        if since:
            items = [item for item in items if item.get("published", 0) > int(since)]
        limit = int(request.query.get("n", "100"))
        return web.json_response({"id": feed_id, "items": items[:limit]})

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/api/greader.php/accounts/ClientLogin", self.login)
        app.router.add_get("/api/greader.php/reader/api/0/subscription/list", self.subscription_list)
        app.router.add_get("/api/greader.php/reader/api/0/stream/contents/{feed_id:.+}", self.stream_contents)
        return app


@pytest.fixture
def item_factory():
    """Builder for FreshRSS stream items."""
    return make_item


@pytest.fixture
def freshrss():
    """FreshRSS double with one feed and two items."""
    fake = FakeFreshRss()
    fake.add_feed("feed/1", "Tech Blog", [
        make_item("tag:google.com,2005:reader/item/0000000000000001", "New Framework Released",
                  content="<p>A new framework has been released.</p>"),
        make_item("tag:google.com,2005:reader/item/0000000000000002", "CSS Tips", summary="Some CSS tips."),
    ])
    return fake


@pytest_asyncio.fixture
async def freshrss_url(freshrss):
    """Serve the FreshRSS double and yield its base URL."""
    server = test_utils.TestServer(freshrss.app())
    await server.start_server()
    yield str(server.make_url("/")).rstrip("/")
    await server.close()


@pytest.fixture
def make_client(freshrss_url):
    """Factory for clients pointed at the FreshRSS double."""
    from sync.client import FreshRssClient

    def _make(**overrides):
        options = {
            "base_url": freshrss_url,
            "user": FakeFreshRss.USER,
            "api_password": FakeFreshRss.PASSWORD,
            "timeout": 5,
        }
        options.update(overrides)
        return FreshRssClient(**options)

    return _make
