# Services package init
"""
Site Content API — Services Layer
==================================

Service Inventory:
    - ObjectStore (abstract): blob store contract (upload, delete, public URL)
    - SupabaseStorage: Supabase Storage REST implementation (httpx)
    - LocalStorage: filesystem implementation (aiofiles) for development
    - UploadService: size checks, timestamp keys, upload and orphan cleanup
    - TableGateway: SQLAlchemy Core access to one content table at a time
    - EntityDispatcher: verb-keyed CRUD over any entity in the registry

Routes depend on EntityDispatcher only; the dispatcher depends on the
gateway and the upload service; nothing in this package knows about HTTP.
"""
