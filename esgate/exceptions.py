"""
esgate — Custom Exception Hierarchy
====================================

What:  Application-specific exceptions for every way an engine call can fail.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return JSON error responses.
Who:   Raised by EngineClient; caught by the global handlers.

Exception Hierarchy:
    GatewayError (base)
    └── EngineError                  → 500 Internal Server Error
        ├── RequestConstructionError   outbound request could not be built
        ├── ConnectivityError          transport failure reaching the engine
        ├── ResponseReadError          body could not be read or decoded
        ├── EngineReportedError        engine answered with a non-2xx status
        └── DocumentNotFoundError    → 404 Not Found (get-by-id only)

Client-caused and engine-caused failures are not distinguished: every
EngineError other than DocumentNotFoundError is reported as a 500.
"""

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """
    Base exception for all esgate application errors.

    Attributes:
        message:  Error description (returned in the API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class EngineError(GatewayError):
    """
    Raised when a call to the search engine fails.

    Attributes:
        action: The operation that failed, e.g. "insert data", "search data".
    """

    def __init__(
        self,
        message: str = "Search engine request failed",
        action: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if action:
            ctx["action"] = action
        super().__init__(message=message, context=ctx)
        self.action = action


class RequestConstructionError(EngineError):
    """The outbound request could not be built (bad URL, unserializable body)."""


class ConnectivityError(EngineError):
    """
    The engine could not be reached.

    When:    Connection refused, DNS failure, TLS failure, timeout.
    """


class ResponseReadError(EngineError):
    """The response body could not be fully read or was not valid JSON."""


class EngineReportedError(EngineError):
    """
    The engine responded with a non-2xx status.

    The raw body is kept opaque: it is logged and attached to the context,
    never parsed into a structured error.

    Attributes:
        status:  HTTP status code returned by the engine
        body:    Raw response body text
    """

    def __init__(
        self,
        status: int,
        body: str = "",
        action: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"engine returned status {status}"
        if action:
            message = f"failed to {action}: engine returned status {status}"
        ctx = context or {}
        ctx["status"] = status
        ctx["body"] = body
        super().__init__(message=message, action=action, context=ctx)
        self.status = status
        self.body = body


class DocumentNotFoundError(EngineError):
    """
    Raised when a document looked up by id does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        document_id: int,
        index: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["document_id"] = document_id
        if index:
            ctx["index"] = index
        super().__init__(
            message=f"document with ID '{document_id}' was not found",
            action="get data",
            context=ctx,
        )
        self.document_id = document_id
