"""
esgate — Middleware Package
===========================

What:  Cross-cutting concerns applied to every request.

    Request → [Access Log] → Route Handler

    The access log middleware assigns the correlation ID used in error
    payloads, then logs method, path, status, duration and, for a failed
    engine call, the engine action and engine status.
"""
