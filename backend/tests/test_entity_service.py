"""
Site Content API — Entity Dispatcher Tests
===========================================

What:  Tests for EntityDispatcher.handle(): verb dispatch, upload ordering,
       replace-all semantics and orphan cleanup.
How:   Real SQLite tables through the gateway; InMemoryObjectStore for images.
"""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest

from app.exceptions import (
    DatabaseError,
    MethodNotAllowedError,
    NotFoundError,
    ObjectStorageError,
    ValidationError,
)
from app.services.entity_service import EntityDispatcher
from app.services.table_gateway import TableGateway
from app.services.upload_service import IncomingFile, UploadService

STORE_BASE_URL = "https://project.supabase.co/storage/v1/object/public"


def png(name="logo.png", content=b"\x89PNG-data"):
    return IncomingFile(filename=name, content=content, content_type="image/png")


class TestCreate:
    """Tests for POST on the collection path."""

    @pytest.mark.asyncio
    async def test_create_with_image_stores_url(self, dispatcher, db_session, object_store):
        rows = await dispatcher.handle(
            db_session, "taglines", "POST",
            body={"tagline_title": "Hello", "tagline_subtitle": "World"},
            upload=png(),
        )

        assert len(rows) == 1
        row = rows[0]
        assert row["tagline_title"] == "Hello"
        assert row["tagline_image"] == f"{STORE_BASE_URL}/myhomebucket/1700000000000.png"
        assert list(object_store.objects) == [("myhomebucket", "1700000000000.png")]

    @pytest.mark.asyncio
    async def test_create_without_image(self, dispatcher, db_session, object_store):
        rows = await dispatcher.handle(db_session, "testimonials", "POST", body={"testimonial_name": "Ana"})

        assert rows[0]["testimonial_image"] is None
        assert object_store.uploads == []

    @pytest.mark.asyncio
    async def test_image_goes_to_entity_bucket(self, dispatcher, db_session, object_store):
        rows = await dispatcher.handle(
            db_session, "myblogs", "POST",
            body={"myblog_title": "Post", "myblog_date": "2024-03-01"},
            upload=png("cover.jpg"),
        )

        assert rows[0]["myblog_image"].startswith(f"{STORE_BASE_URL}/myblogbucket/")
        assert rows[0]["myblog_image"].endswith(".jpg")
        assert rows[0]["myblog_date"] == date(2024, 3, 1)

    @pytest.mark.asyncio
    async def test_append_entities_keep_every_row(self, dispatcher, db_session):
        await dispatcher.handle(db_session, "clientlogos", "POST", body={"clientlogo_name": "A"})
        await dispatcher.handle(db_session, "clientlogos", "POST", body={"clientlogo_name": "B"})

        rows = await dispatcher.handle(db_session, "clientlogos", "GET")
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_replace_existing_keeps_latest_row(self, dispatcher, db_session):
        await dispatcher.handle(db_session, "toservices", "POST", body={"toservice_subtitle": "first"})
        await dispatcher.handle(db_session, "toservices", "POST", body={"toservice_subtitle": "second"})

        rows = await dispatcher.handle(db_session, "toservices", "GET")
        assert [row["toservice_subtitle"] for row in rows] == ["second"]

    @pytest.mark.asyncio
    async def test_concurrent_replace_all_leaves_one_row(self, dispatcher, session_factory):
        async with session_factory() as first, session_factory() as second:
            await asyncio.gather(
                dispatcher.handle(first, "toservices", "POST", body={"toservice_subtitle": "a"}),
                dispatcher.handle(second, "toservices", "POST", body={"toservice_subtitle": "b"}),
            )

        async with session_factory() as session:
            rows = await dispatcher.handle(session, "toservices", "GET")
        assert len(rows) == 1
        assert rows[0]["toservice_subtitle"] in {"a", "b"}

    @pytest.mark.asyncio
    async def test_upload_failure_writes_no_row(self, dispatcher, db_session, object_store):
        object_store.fail_uploads = True

        with pytest.raises(ObjectStorageError):
            await dispatcher.handle(
                db_session, "taglines", "POST", body={"tagline_title": "x"}, upload=png()
            )

        assert await dispatcher.handle(db_session, "taglines", "GET") == []

    @pytest.mark.asyncio
    async def test_invalid_body_uploads_nothing(self, dispatcher, db_session, object_store):
        with pytest.raises(ValidationError):
            await dispatcher.handle(
                db_session, "myportofolios", "POST",
                body={"myportofolio_date": "not-a-date"},
                upload=png(),
            )

        assert object_store.uploads == []

    @pytest.mark.asyncio
    async def test_database_failure_discards_upload(self, dispatcher, db_session, object_store):
        with patch.object(
            TableGateway, "insert", AsyncMock(side_effect=DatabaseError())
        ):
            with pytest.raises(DatabaseError):
                await dispatcher.handle(
                    db_session, "taglines", "POST", body={"tagline_title": "x"}, upload=png()
                )

        assert object_store.deletes == [("myhomebucket", "1700000000000.png")]
        assert object_store.objects == {}

    @pytest.mark.asyncio
    async def test_database_failure_keeps_upload_when_cleanup_disabled(
        self, upload_service, db_session, object_store
    ):
        dispatcher = EntityDispatcher(upload_service, cleanup_orphans=False)

        with patch.object(TableGateway, "insert", AsyncMock(side_effect=DatabaseError())):
            with pytest.raises(DatabaseError):
                await dispatcher.handle(db_session, "taglines", "POST", body={}, upload=png())

        assert object_store.deletes == []
        assert len(object_store.objects) == 1

    @pytest.mark.asyncio
    async def test_successive_uploads_get_distinct_keys(self, dispatcher, db_session):
        first = await dispatcher.handle(db_session, "taglines", "POST", body={}, upload=png())
        second = await dispatcher.handle(db_session, "taglines", "POST", body={}, upload=png())

        assert first[0]["tagline_image"] != second[0]["tagline_image"]


class TestReadUpdateDelete:
    """Tests for the item path."""

    @pytest.mark.asyncio
    async def test_get_by_id(self, dispatcher, db_session):
        created = (await dispatcher.handle(db_session, "myservices", "POST", body={"myservice_name": "SEO"}))[0]

        row = await dispatcher.handle(db_session, "myservices", "GET", record_id=created["id"])

        assert row == created

    @pytest.mark.asyncio
    async def test_get_missing_id_is_not_found(self, dispatcher, db_session):
        with pytest.raises(NotFoundError, match="myservices with ID '77'"):
            await dispatcher.handle(db_session, "myservices", "GET", record_id=77)

    @pytest.mark.asyncio
    async def test_update_text_fields_keeps_image(self, dispatcher, db_session):
        created = (
            await dispatcher.handle(
                db_session, "clientlogos", "POST", body={"clientlogo_name": "Old"}, upload=png()
            )
        )[0]

        rows = await dispatcher.handle(
            db_session, "clientlogos", "PUT", record_id=created["id"], body={"clientlogo_name": "New"}
        )

        assert len(rows) == 1
        row = rows[0]
        assert row["clientlogo_name"] == "New"
        assert row["clientlogo_image"] == created["clientlogo_image"]

    @pytest.mark.asyncio
    async def test_update_with_new_image(self, dispatcher, db_session, object_store):
        created = (await dispatcher.handle(db_session, "toinstagrams", "POST", body={"toinstagram_name": "x"}))[0]

        rows = await dispatcher.handle(
            db_session, "toinstagrams", "PUT", record_id=created["id"], upload=png("new.webp")
        )

        row = rows[0]
        assert row["toinstagram_image"] == f"{STORE_BASE_URL}/myhomebucket/1700000000000.webp"
        assert row["toinstagram_name"] == "x"

    @pytest.mark.asyncio
    async def test_update_image_field_as_text_rejected(self, dispatcher, db_session, object_store):
        created = (await dispatcher.handle(db_session, "taglines", "POST", body={}, upload=png()))[0]

        with pytest.raises(ValidationError) as exc_info:
            await dispatcher.handle(
                db_session, "taglines", "PUT",
                record_id=created["id"],
                body={"tagline_title": "b", "tagline_image": ""},
            )
        assert exc_info.value.field == "tagline_image"

        row = await dispatcher.handle(db_session, "taglines", "GET", record_id=created["id"])
        assert row["tagline_image"] == created["tagline_image"]
        assert row["tagline_title"] is None

    @pytest.mark.asyncio
    async def test_update_without_fields_or_file_rejected(self, dispatcher, db_session):
        created = (await dispatcher.handle(db_session, "taglines", "POST", body={}))[0]

        with pytest.raises(ValidationError, match="No fields to update"):
            await dispatcher.handle(db_session, "taglines", "PUT", record_id=created["id"], body={})

    @pytest.mark.asyncio
    async def test_update_missing_row_discards_upload(self, dispatcher, db_session, object_store):
        with pytest.raises(NotFoundError):
            await dispatcher.handle(db_session, "taglines", "PUT", record_id=5, upload=png())

        assert object_store.objects == {}
        assert object_store.deletes == [("myhomebucket", "1700000000000.png")]

    @pytest.mark.asyncio
    async def test_delete_returns_label_and_rows(self, dispatcher, db_session):
        created = (await dispatcher.handle(db_session, "myblogs", "POST", body={"myblog_title": "Bye"}))[0]

        result = await dispatcher.handle(db_session, "myblogs", "DELETE", record_id=created["id"])

        assert result["message"] == "Blog post deleted"
        assert [row["id"] for row in result["data"]] == [created["id"]]
        assert await dispatcher.handle(db_session, "myblogs", "GET") == []

    @pytest.mark.asyncio
    async def test_delete_missing_id_still_succeeds(self, dispatcher, db_session):
        result = await dispatcher.handle(db_session, "testimonials", "DELETE", record_id=42)

        assert result == {"message": "Testimonial deleted", "data": []}

    @pytest.mark.asyncio
    async def test_delete_leaves_stored_image(self, dispatcher, db_session, object_store):
        created = (await dispatcher.handle(db_session, "taglines", "POST", body={}, upload=png()))[0]

        await dispatcher.handle(db_session, "taglines", "DELETE", record_id=created["id"])

        assert len(object_store.objects) == 1


class TestVerbDispatch:
    """Tests for method checks and unknown entities."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "verb,record_id,allowed",
        [
            ("PATCH", None, ["GET", "POST"]),
            ("PUT", None, ["GET", "POST"]),
            ("DELETE", None, ["GET", "POST"]),
            ("POST", 1, ["DELETE", "GET", "PUT"]),
            ("PATCH", 1, ["DELETE", "GET", "PUT"]),
        ],
    )
    async def test_unsupported_verbs(self, dispatcher, db_session, verb, record_id, allowed):
        with pytest.raises(MethodNotAllowedError) as exc_info:
            await dispatcher.handle(db_session, "taglines", verb, record_id=record_id)
        assert exc_info.value.allowed == allowed

    @pytest.mark.asyncio
    async def test_verb_is_case_insensitive(self, dispatcher, db_session):
        assert await dispatcher.handle(db_session, "taglines", "get") == []

    @pytest.mark.asyncio
    async def test_unknown_entity(self, dispatcher, db_session):
        with pytest.raises(NotFoundError):
            await dispatcher.handle(db_session, "widgets", "GET")

    @pytest.mark.asyncio
    async def test_rejected_verb_touches_nothing(self, db_session, object_store):
        dispatcher = EntityDispatcher(UploadService(object_store), cleanup_orphans=True)

        with pytest.raises(MethodNotAllowedError):
            await dispatcher.handle(db_session, "taglines", "POST", record_id=1, upload=png())

        assert object_store.uploads == []
