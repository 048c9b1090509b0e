"""
Site Content API — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:        in-memory SQLite (aiosqlite + StaticPool) with all content tables
    ├── session_factory:  async_sessionmaker bound to db_engine
    ├── db_session:       one AsyncSession for service-level tests
    ├── object_store:     InMemoryObjectStore (no Supabase needed)
    ├── upload_service:   UploadService with a deterministic, increasing clock
    ├── dispatcher:       EntityDispatcher wired to the two above
    └── test_client:      HTTPX AsyncClient on the FastAPI app, dependencies overridden
"""

import itertools
import os
import tempfile
from typing import Dict, List, Tuple

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="sitecontent_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models.content  # noqa: F401
from app.database import Base, get_db_session
from app.dependencies import get_entity_dispatcher, get_object_store
from app.exceptions import ObjectStorageError
from app.services.entity_service import EntityDispatcher
from app.services.object_store import ObjectStore
from app.services.upload_service import UploadService

STORE_BASE_URL = "https://project.supabase.co/storage/v1/object/public"


class InMemoryObjectStore(ObjectStore):
    """
    Object store fake that keeps blobs in a dict.

    Set `fail_uploads` / `fail_deletes` to simulate an unreachable store.
    """

    def __init__(self, overwrite: bool = False):
        self.overwrite = overwrite
        self.objects: Dict[Tuple[str, str], Tuple[bytes, str]] = {}
        self.uploads: List[Tuple[str, str]] = []
        self.deletes: List[Tuple[str, str]] = []
        self.fail_uploads = False
        self.fail_deletes = False

    def public_url(self, bucket: str, key: str) -> str:
        return f"{STORE_BASE_URL}/{bucket}/{key}"

    async def upload(self, bucket: str, key: str, content: bytes, content_type: str) -> str:
        self.uploads.append((bucket, key))
        if self.fail_uploads:
            raise ObjectStorageError(context={"bucket": bucket, "key": key})
        if (bucket, key) in self.objects and not self.overwrite:
            raise ObjectStorageError(context={"bucket": bucket, "key": key, "reason": "duplicate"})
        self.objects[(bucket, key)] = (content, content_type)
        return self.public_url(bucket, key)

    async def delete(self, bucket: str, key: str) -> bool:
        self.deletes.append((bucket, key))
        if self.fail_deletes:
            raise ObjectStorageError(message="Failed to delete stored object")
        return self.objects.pop((bucket, key), None) is not None

    async def health_check(self) -> bool:
        return not self.fail_uploads


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine with every content table created.

    StaticPool keeps a single connection so all sessions see the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
def clock():
    """Epoch-millisecond clock that advances by 1ms per call."""
    counter = itertools.count(1_700_000_000_000)
    return lambda: next(counter)


@pytest.fixture
def upload_service(object_store, clock):
    return UploadService(object_store, clock=clock)


@pytest.fixture
def dispatcher(upload_service):
    return EntityDispatcher(upload_service, cleanup_orphans=True)


@pytest.fixture
def sample_image_bytes():
    """PNG signature plus a few bytes — enough for an upload, not a real picture."""
    return b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"


@pytest_asyncio.fixture
async def test_client(session_factory, object_store, dispatcher):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    The DB session, object store and dispatcher dependencies are replaced
    with the fixtures above; the lifespan does not run.
    """
    from app.main import app

    async def _override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _override_session
    app.dependency_overrides[get_object_store] = lambda: object_store
    app.dependency_overrides[get_entity_dispatcher] = lambda: dispatcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
