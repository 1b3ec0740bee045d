"""
esgate — Health Check Route
===========================

What:  Liveness endpoint that proves the engine is reachable.
How:   Delegates to EngineClient.check_health(); a transport failure raises
       ConnectivityError, which the global handler turns into a 500.
Who:   Docker health checks, load balancers, humans with curl.
"""

from fastapi import APIRouter, Depends

from esgate.schemas.employee import ErrorResponse, StatusResponse
from esgate.services.engine_client import EngineClient, get_engine_client

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=StatusResponse,
    responses={500: {"description": "Engine unreachable", "model": ErrorResponse}},
    summary="Engine health check",
)
async def health_check(
    client: EngineClient = Depends(get_engine_client),
) -> StatusResponse:
    await client.check_health()
    return StatusResponse(status="OK")
