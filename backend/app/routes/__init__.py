# Routes package init
"""
Site Content API — API Routes Package
======================================

Route Inventory:
    - content.py: POST/GET /E, GET/PUT/DELETE /E/{record_id} for every entity
                  in the registry (taglines, toservices, clientlogos, ...)
    - files.py:   GET /files/{bucket}/{key} (local object store only)
    - health.py:  GET /health

Routes stay thin: they turn the request into (verb, id, fields, file) and
hand it to EntityDispatcher.
"""
