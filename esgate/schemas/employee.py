"""
esgate — Pydantic Request/Response Schemas
==========================================

What:  Pydantic models defining the API contract and the engine document shape.
How:   Routes decode request bodies into Employee, EngineClient serializes
       Employee into engine documents and decodes `_source` back into it.
       FastAPI uses the response models for serialization and OpenAPI docs.

Decoding is deliberately lenient: a field that is missing or has the wrong
type falls back to its zero value ("", 0, 0.0) instead of failing the request.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError


# ══════════════════════════════════════════════════════════════════════════
# Domain Record
# ══════════════════════════════════════════════════════════════════════════


class Employee(BaseModel):
    """
    The searchable record stored in the engine.

    `id` doubles as the engine document id; callers always supply it.
    """

    id: int = Field(default=0, description="Document identifier in the engine")
    name: str = Field(default="", description="Full-text searchable name")
    address: str = Field(default="", description="Postal address")
    salary: float = Field(default=0.0, description="Salary amount")

    @classmethod
    def from_payload(cls, payload: Any) -> "Employee":
        """
        Build an Employee from arbitrary decoded JSON, zero-filling bad fields.

        Non-object payloads (lists, strings, null) produce an all-zero record.
        Fields that fail validation are dropped and take their defaults; the
        valid remainder is kept.
        """
        if not isinstance(payload, dict):
            return cls()
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            invalid = {err["loc"][0] for err in exc.errors() if err["loc"]}
            return cls.model_validate(
                {k: v for k, v in payload.items() if k not in invalid}
            )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class DeleteResponse(BaseModel):
    """Returned by /delete: the id that was forwarded to the engine."""

    id: int = Field(description="Identifier of the deleted document")


class StatusResponse(BaseModel):
    """Returned by /health while the engine is reachable."""

    status: str = Field(default="OK", description="Always 'OK' on success")


class ErrorResponse(BaseModel):
    """
    Error payload for every failed request.

    Example:
        {
            "error": "engine_error",
            "message": "failed to make a http call to insert data: ...",
            "request_id": "1f0c2a9e"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
