# Services package init
"""
esgate — Services Layer
=======================

What:  The layer between routes (HTTP) and the external search engine.

Service Inventory:
    - EngineClient: typed operations (health, create index, insert, update,
      delete, get, search, seed) over the engine's REST API
"""
