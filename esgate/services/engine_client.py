"""
esgate — Search Engine Client
==============================

What:  Async client translating typed operations into REST calls against an
       Elasticsearch-compatible engine, and engine responses back into Employees.
How:   One httpx.AsyncClient per EngineClient carries the base URL, basic-auth
       credentials and timeout. Every operation goes through `_request()`,
       the single place that builds, sends, reads, logs and checks a call.
Who:   Created in the application lifespan (main.py) and by `python -m esgate seed`;
       injected into route handlers through `get_engine_client`.

Wire contract:
    GET    /                          cluster info (health)
    PUT    /<index>                   create index with the fixed mapping
    PUT    /<index>/_doc/<id>         insert / overwrite a document
    GET    /<index>/_doc/<id>         fetch a document
    POST   /<index>/_update/<id>      partial update ({"doc": ...})
    DELETE /<index>/_doc/<id>         delete a document
    GET    /<index>/_search           match query on `name`

Failure steps map to exceptions:
    building the request   → RequestConstructionError
    sending it             → ConnectivityError
    reading/decoding body  → ResponseReadError
    non-2xx status         → EngineReportedError
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx
from fastapi import Request

from esgate.config import ConnectionConfig
from esgate.exceptions import (
    ConnectivityError,
    DocumentNotFoundError,
    EngineError,
    EngineReportedError,
    RequestConstructionError,
    ResponseReadError,
)
from esgate.schemas.employee import Employee

logger = logging.getLogger(__name__)


# Field mapping sent on index creation
INDEX_MAPPING: Dict[str, Any] = {
    "mappings": {
        "properties": {
            "id": {"type": "integer"},
            "name": {"type": "text"},
            "address": {"type": "text"},
            "salary": {"type": "float"},
        }
    }
}


class EngineClient:
    """
    Stateless gateway to the search engine.

    The only state is the frozen ConnectionConfig and the underlying
    httpx.AsyncClient, which is safe to share between concurrent requests.

    Args:
        config:     Connection parameters (address, credentials, index).
        transport:  Optional httpx transport; tests pass httpx.MockTransport.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            auth=httpx.BasicAuth(config.username, config.password),
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(config.timeout),
            transport=transport,
        )

    @property
    def index(self) -> str:
        return self.config.index

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "EngineClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # ══════════════════════════════════════════════════════════════════════
    # Request Builder
    # ══════════════════════════════════════════════════════════════════════

    async def _request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        accept: Tuple[int, ...] = (),
    ) -> Tuple[int, str]:
        """
        Perform one engine round trip and return (status, raw body text).

        Args:
            method:  HTTP method.
            path:    Path relative to the engine base URL.
            action:  Short description used in log lines and error messages.
            body:    JSON body, if any.
            params:  Query string parameters.
            accept:  Non-2xx statuses the caller handles itself.

        Raises:
            RequestConstructionError, ConnectivityError, ResponseReadError,
            EngineReportedError (status not 2xx and not in `accept`).
        """
        try:
            request = self._client.build_request(method, path, json=body, params=params)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise RequestConstructionError(
                message=f"failed to make a {action} request: {e}",
                action=action,
            ) from e

        try:
            response = await self._client.send(request, stream=True)
        except httpx.TransportError as e:
            raise ConnectivityError(
                message=f"failed to make a http call to {action}: {e!r}",
                action=action,
                context={"url": str(request.url)},
            ) from e

        try:
            raw = await response.aread()
        except httpx.HTTPError as e:
            raise ResponseReadError(
                message=f"failed read {action} response: {e!r}",
                action=action,
            ) from e
        finally:
            await response.aclose()

        text = raw.decode(response.encoding or "utf-8", errors="replace")
        logger.debug("debug %s response: %s %s", action, response.status_code, text)

        if not response.is_success and response.status_code not in accept:
            logger.warning(
                "Engine rejected %s: status=%d body=%s",
                action,
                response.status_code,
                text,
            )
            raise EngineReportedError(
                status=response.status_code,
                body=text,
                action=action,
            )

        return response.status_code, text

    @staticmethod
    def _decode(text: str, action: str) -> Dict[str, Any]:
        """Decode a JSON object body; an empty body decodes to {}."""
        if not text.strip():
            return {}
        try:
            payload = json.loads(text)
        except ValueError as e:
            raise ResponseReadError(
                message=f"failed read unmarshal {action} response: {e}",
                action=action,
            ) from e
        if not isinstance(payload, dict):
            raise ResponseReadError(
                message=f"failed read unmarshal {action} response: expected a JSON object",
                action=action,
            )
        return payload

    def _write_params(self) -> Optional[Dict[str, str]]:
        if self.config.refresh is None:
            return None
        return {"refresh": self.config.refresh}

    def _doc_path(self, document_id: int) -> str:
        return f"/{self.index}/_doc/{document_id}"

    # ══════════════════════════════════════════════════════════════════════
    # Operations
    # ══════════════════════════════════════════════════════════════════════

    async def check_health(self) -> None:
        """
        Verify the engine is reachable.

        Any HTTP response counts as reachable; only transport failures raise.
        A non-2xx answer (e.g. bad credentials) is logged as a warning.

        Raises:
            ConnectivityError: The engine could not be reached.
        """
        status, text = await self._request(
            "GET", "/", action="check health", accept=tuple(range(300, 600))
        )
        if status >= 300:
            logger.warning("Engine health check answered with status %d", status)
        logger.debug("debug health check response: %s", text)

    async def create_index(self) -> None:
        """
        Create the target index with the fixed field mapping.

        Idempotent: an index that already exists is logged and treated as success.
        """
        status, text = await self._request(
            "PUT",
            f"/{self.index}",
            action="create index",
            body=INDEX_MAPPING,
            accept=(400,),
        )
        if status == 400:
            payload = self._decode(text, "create index")
            error = payload.get("error")
            error_type = error.get("type") if isinstance(error, dict) else None
            if error_type != "resource_already_exists_exception":
                raise EngineReportedError(status=status, body=text, action="create index")
            logger.info("Index %s already exists", self.index)
            return
        logger.info("Index %s created successfully", self.index)

    async def insert(self, employee: Employee) -> None:
        """Index `employee` under its id, overwriting any existing document."""
        await self._request(
            "PUT",
            self._doc_path(employee.id),
            action="insert data",
            body=employee.model_dump(),
            params=self._write_params(),
        )
        logger.info("Document %d indexed successfully", employee.id)

    async def update(self, employee: Employee) -> None:
        """
        Partially update the document with `employee.id`.

        Raises:
            EngineReportedError: No document with that id exists (engine 404).
        """
        await self._request(
            "POST",
            f"/{self.index}/_update/{employee.id}",
            action="update data",
            body={"doc": employee.model_dump()},
            params=self._write_params(),
        )

    async def delete(self, document_id: int) -> None:
        """Delete a document by id; a missing document is not an error."""
        status, _ = await self._request(
            "DELETE",
            self._doc_path(document_id),
            action="delete data",
            params=self._write_params(),
            accept=(404,),
        )
        if status == 404:
            logger.info("Document %d not found, nothing to delete", document_id)

    async def get(self, document_id: int) -> Employee:
        """
        Fetch one document by id.

        Raises:
            DocumentNotFoundError: The engine reports the document as missing.
        """
        status, text = await self._request(
            "GET", self._doc_path(document_id), action="get data", accept=(404,)
        )
        payload = self._decode(text, "get data")
        if status == 404:
            if payload.get("found") is False:
                raise DocumentNotFoundError(document_id=document_id, index=self.index)
            raise EngineReportedError(status=status, body=text, action="get data")
        return Employee.from_payload(payload.get("_source"))

    async def search(self, keyword: str) -> List[Employee]:
        """
        Match `keyword` against the `name` field.

        Returns:
            Employees in engine relevance order. Empty when nothing matches;
            callers must check the length before indexing into the result.
        """
        query = {"query": {"match": {"name": keyword}}}
        _, text = await self._request(
            "GET", f"/{self.index}/_search", action="search data", body=query
        )
        payload = self._decode(text, "search data")

        hits = (payload.get("hits") or {}).get("hits") or []
        employees = [Employee.from_payload(hit.get("_source")) for hit in hits]
        logger.info("Search for %r returned %d hit(s)", keyword, len(employees))
        return employees

    async def seed(self, id_start: int, n: int) -> int:
        """
        Insert generated employees with ids in [id_start, n).

        Returns:
            Number of documents inserted.

        Raises:
            EngineError: The first failed insert; its message names the offending id.
        """
        inserted = 0
        for i in range(id_start, n):
            employee = Employee(
                id=i,
                name=f"person{i}",
                address=f"address{i}",
                salary=float(i * 100),
            )
            try:
                await self.insert(employee)
            except EngineError as e:
                raise EngineError(
                    message=f"failed seeding data with id {i}: {e.message}",
                    action="seed data",
                    context={"document_id": i},
                ) from e
            inserted += 1
        return inserted


def get_engine_client(request: Request) -> EngineClient:
    """
    FastAPI dependency returning the EngineClient created in the lifespan.

    Tests replace it with `app.dependency_overrides[get_engine_client]`.
    """
    return request.app.state.engine_client
