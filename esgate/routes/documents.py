"""
esgate — Document Route Handlers
================================

What:  Insert, update, delete, search and get-by-id over the engine.
How:   Each handler decodes its input, awaits one EngineClient call and
       returns a Pydantic model; FastAPI writes it as JSON with status 200.

Input decoding is lenient: malformed JSON bodies and unparseable `id`
parameters become zero values instead of 400 responses.
"""

import logging
import re
from typing import List

from fastapi import APIRouter, Depends, Query, Request

from esgate.schemas.employee import DeleteResponse, Employee, ErrorResponse
from esgate.services.engine_client import EngineClient, get_engine_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])

_ERROR_RESPONSES = {500: {"description": "Engine call failed", "model": ErrorResponse}}

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_ID_MIN, _ID_MAX = -(2**63), 2**63 - 1


async def read_employee(request: Request) -> Employee:
    """Decode the request body into an Employee, zero-filling anything invalid."""
    try:
        payload = await request.json()
    except ValueError:
        logger.debug("Request body is not valid JSON; using an empty record")
        payload = None
    return Employee.from_payload(payload)


def parse_id(raw: str) -> int:
    """
    Parse a query-string id; anything that is not a plain integer becomes 0.

    Only an optional sign followed by ASCII digits is accepted, within the
    signed 64-bit range. Whitespace, underscores and non-ASCII digits, which
    int() would otherwise tolerate, are rejected.
    """
    if not _ID_PATTERN.fullmatch(raw):
        return 0
    value = int(raw)
    if not _ID_MIN <= value <= _ID_MAX:
        return 0
    return value


@router.api_route(
    "/insert",
    methods=["POST", "PUT"],
    response_model=Employee,
    responses=_ERROR_RESPONSES,
    summary="Insert or overwrite a record",
)
async def insert_data(
    employee: Employee = Depends(read_employee),
    client: EngineClient = Depends(get_engine_client),
) -> Employee:
    await client.insert(employee)
    return employee


@router.api_route(
    "/update",
    methods=["POST", "PUT"],
    response_model=Employee,
    responses=_ERROR_RESPONSES,
    summary="Partially update an existing record",
)
async def update_data(
    employee: Employee = Depends(read_employee),
    client: EngineClient = Depends(get_engine_client),
) -> Employee:
    await client.update(employee)
    return employee


@router.api_route(
    "/delete",
    methods=["DELETE", "POST", "GET"],
    response_model=DeleteResponse,
    responses=_ERROR_RESPONSES,
    summary="Delete a record by id",
)
async def delete_data(
    raw_id: str = Query(default="", alias="id", description="Record identifier"),
    client: EngineClient = Depends(get_engine_client),
) -> DeleteResponse:
    document_id = parse_id(raw_id)
    await client.delete(document_id)
    return DeleteResponse(id=document_id)


@router.api_route(
    "/search",
    methods=["GET", "POST"],
    response_model=List[Employee],
    responses=_ERROR_RESPONSES,
    summary="Search records by name",
)
async def search_data(
    keyword: str = Query(default="", description="Text matched against `name`"),
    client: EngineClient = Depends(get_engine_client),
) -> List[Employee]:
    return await client.search(keyword)


@router.get(
    "/get",
    response_model=Employee,
    responses={
        404: {"description": "No record with that id", "model": ErrorResponse},
        **_ERROR_RESPONSES,
    },
    summary="Fetch a record by id",
)
async def get_data(
    raw_id: str = Query(default="", alias="id", description="Record identifier"),
    client: EngineClient = Depends(get_engine_client),
) -> Employee:
    return await client.get(parse_id(raw_id))
