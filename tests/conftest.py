"""
esgate — Test Configuration (conftest.py)
=========================================

What:  Shared pytest fixtures for the entire test suite.
How:   The engine is replaced by FakeEngine, an in-memory stand-in for the
       Elasticsearch REST endpoints, mounted through httpx.MockTransport.
       The FastAPI app is driven through httpx.AsyncClient + ASGITransport.

Fixture Hierarchy (all function-scoped):
    ├── fake_engine: Fresh in-memory engine with no indices
    ├── connection_config: ConnectionConfig pointing at the fake engine
    ├── engine_client: EngineClient wired to fake_engine
    └── test_client: HTTP client for the app, using engine_client
"""

import json
import os
import re
from typing import Any, Dict, List

# Override settings for testing BEFORE any esgate imports
os.environ["ENGINE_URL"] = "http://engine.test:9200"
os.environ["ENGINE_PASSWORD"] = "test-password"
os.environ["ENGINE_INDEX"] = "employee"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from esgate.config import ConnectionConfig
from esgate.services.engine_client import EngineClient


# ══════════════════════════════════════════════════════════════════════════
# Fake Engine
# ══════════════════════════════════════════════════════════════════════════

_DOC_PATH = re.compile(r"^/(?P<index>[^/_][^/]*)/_doc/(?P<id>[^/]+)$")
_UPDATE_PATH = re.compile(r"^/(?P<index>[^/_][^/]*)/_update/(?P<id>[^/]+)$")
_SEARCH_PATH = re.compile(r"^/(?P<index>[^/_][^/]*)/_search$")
_INDEX_PATH = re.compile(r"^/(?P<index>[^/_][^/]*)$")


class FakeEngine:
    """
    Minimal in-memory engine speaking the subset of the REST API we use.

    Search matches when any lowercase whitespace token of the keyword equals a
    token of the document's `name`; hits come back in insertion order.
    """

    def __init__(self) -> None:
        self.indices: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.mappings: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        method = request.method
        body = json.loads(request.content) if request.content else None

        if path == "/" and method == "GET":
            return httpx.Response(
                200,
                json={"cluster_name": "fake", "version": {"number": "8.13.0"}},
            )

        m = _DOC_PATH.match(path)
        if m:
            return self._doc(method, m["index"], m["id"], body)

        m = _UPDATE_PATH.match(path)
        if m and method == "POST":
            docs = self.indices.get(m["index"])
            if docs is None or m["id"] not in docs:
                return httpx.Response(
                    404,
                    json={"error": {"type": "document_missing_exception"}, "status": 404},
                )
            docs[m["id"]].update(body["doc"])
            return httpx.Response(200, json={"result": "updated"})

        m = _SEARCH_PATH.match(path)
        if m:
            docs = self.indices.get(m["index"])
            if docs is None:
                return self._index_missing(m["index"])
            keyword = body["query"]["match"]["name"]
            terms = set(keyword.lower().split())
            hits = [
                {"_id": doc_id, "_source": source}
                for doc_id, source in docs.items()
                if terms & set(str(source.get("name", "")).lower().split())
            ]
            return httpx.Response(200, json={"hits": {"total": {"value": len(hits)}, "hits": hits}})

        m = _INDEX_PATH.match(path)
        if m and method == "PUT":
            if m["index"] in self.indices:
                return httpx.Response(
                    400,
                    json={
                        "error": {"type": "resource_already_exists_exception"},
                        "status": 400,
                    },
                )
            self.indices[m["index"]] = {}
            self.mappings[m["index"]] = body
            return httpx.Response(200, json={"acknowledged": True, "index": m["index"]})

        return httpx.Response(405, json={"error": "unsupported", "path": path})

    def _doc(self, method: str, index: str, doc_id: str, body: Any) -> httpx.Response:
        if method == "PUT":
            docs = self.indices.setdefault(index, {})
            result = "updated" if doc_id in docs else "created"
            docs[doc_id] = dict(body)
            return httpx.Response(201 if result == "created" else 200, json={"result": result})

        docs = self.indices.get(index)
        if docs is None:
            return self._index_missing(index)

        if method == "GET":
            if doc_id not in docs:
                return httpx.Response(404, json={"_index": index, "_id": doc_id, "found": False})
            return httpx.Response(
                200,
                json={"_index": index, "_id": doc_id, "found": True, "_source": docs[doc_id]},
            )

        if method == "DELETE":
            if docs.pop(doc_id, None) is None:
                return httpx.Response(404, json={"result": "not_found"})
            return httpx.Response(200, json={"result": "deleted"})

        return httpx.Response(405, json={"error": "unsupported"})

    @staticmethod
    def _index_missing(index: str) -> httpx.Response:
        return httpx.Response(
            404,
            json={"error": {"type": "index_not_found_exception", "index": index}, "status": 404},
        )


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def connection_config():
    return ConnectionConfig(
        base_url="http://engine.test:9200",
        username="elastic",
        password="test-password",
        index="employee",
    )


@pytest_asyncio.fixture
async def engine_client(fake_engine, connection_config):
    """EngineClient talking to the fake engine instead of the network."""
    client = EngineClient(connection_config, transport=httpx.MockTransport(fake_engine.handle))
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def test_client(engine_client):
    """
    HTTP client for the FastAPI app.

    ASGITransport does not run the lifespan, so the index is created here.
    """
    from esgate.main import create_app

    await engine_client.create_index()
    app = create_app(engine_client=engine_client)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
