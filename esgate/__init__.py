"""
esgate — Application Package Initializer
=========================================

What: Marks the `esgate` directory as a Python package.
Who:  Used by uvicorn (`uvicorn esgate.main:app`), pytest, and `python -m esgate`.

Architecture Note:
    A thin HTTP gateway in front of an Elasticsearch-compatible engine:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← decode request, encode JSON
    ├─────────────────────────────────────┤
    │      Services (Engine Client)       │  ← one HTTP round trip per call
    ├─────────────────────────────────────┤
    │        Schemas (Employee record)    │  ← Pydantic models
    ├─────────────────────────────────────┤
    │     External engine (REST API)      │  ← system of record
    └─────────────────────────────────────┘

    Routes never talk to the engine directly; every engine call goes
    through EngineClient so auth and content-type handling live in one place.
"""

__version__ = "1.0.0"
