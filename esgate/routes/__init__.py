# Routes package init
"""
esgate — API Routes Package
===========================

Route Inventory:
    - documents.py:  POST   /insert          (create/overwrite a record)
                     POST   /update          (partial update of a record)
                     DELETE /delete?id=      (remove a record)
                     GET    /search?keyword= (match query on name)
                     GET    /get?id=         (fetch a record by id)
    - health.py:     GET    /health          (engine reachability)

Routes are thin: decode the request, call EngineClient, return the model.
Errors propagate to the global exception handlers in main.py.
"""
