# Middleware package init
"""
Site Content API — Middleware Package
======================================

Middleware Chain (last added runs first):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID first, so the access line and every handler log share the id
    - Logging wraps everything below it, so the duration covers the upload
      and the database calls
    - CORS answers browser preflights from the public site and admin panel
"""
