"""
Site Content API — Entity Registry
===================================

What:  The static table of per-entity options that drives the generic
       dispatcher and the route registration loop.
Why:   Every content type differs only in its table, image column, bucket and
       create semantics. Keeping those four facts here means the rest of the
       code never spells out a table name.
How:   Frozen dataclasses collected into a read-only mapping, built once at
       import time and passed by reference wherever needed.

Create semantics:
    append (default)   POST inserts a new row.
    replace_existing   POST deletes every existing row, then inserts — the
                       table behaves as a singleton whose latest write wins.
"""

from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Optional, Type

from sqlalchemy import Table

from app.database import Base
from app.exceptions import NotFoundError
from app.models.content import (
    ClientLogo,
    MyBlog,
    MyPortofolio,
    MyService,
    Tagline,
    Testimonial,
    ToInstagram,
    ToService,
)

COLLECTION_VERBS: FrozenSet[str] = frozenset({"GET", "POST"})
ITEM_VERBS: FrozenSet[str] = frozenset({"GET", "PUT", "DELETE"})

# Every verb the HTTP layer forwards to the dispatcher
ROUTED_VERBS = ("GET", "POST", "PUT", "PATCH", "DELETE")

# Columns owned by the database; never accepted from a request body
SYSTEM_COLUMNS = frozenset({"id", "created_at"})

DEFAULT_BUCKET = "myhomebucket"


@dataclass(frozen=True)
class EntityConfig:
    """
    Options for one content entity.

    Attributes:
        name:              Entity name; also the route segment and table name.
        model:             ORM class mapped to the entity's table.
        label:             Subject of the DELETE confirmation ("<label> deleted").
        image_field:       Column that receives the uploaded image's public URL.
        bucket:            Object store bucket for the entity's images.
        replace_existing:  POST replaces all rows instead of appending.
        verbs:             HTTP verbs the entity accepts.
    """

    name: str
    model: Type[Base]
    label: str
    image_field: Optional[str] = None
    bucket: str = DEFAULT_BUCKET
    replace_existing: bool = False
    verbs: FrozenSet[str] = field(default=COLLECTION_VERBS | ITEM_VERBS)

    def __post_init__(self) -> None:
        if self.image_field and self.image_field not in self.model.__table__.columns:
            raise ValueError(
                f"Entity '{self.name}': image field '{self.image_field}' "
                f"is not a column of table '{self.model.__tablename__}'"
            )

    @property
    def table(self) -> Table:
        return self.model.__table__

    @property
    def route(self) -> str:
        return self.name

    @cached_property
    def fields(self) -> Dict[str, type]:
        """
        Body-writable columns mapped to their Python types.

        The image field is excluded: it is only ever set from an uploaded
        file's public URL, never from a text field.
        """
        return {
            column.name: column.type.python_type
            for column in self.table.columns
            if column.name not in SYSTEM_COLUMNS and column.name != self.image_field
        }


def _build_registry(*configs: EntityConfig) -> Mapping[str, EntityConfig]:
    return MappingProxyType({config.name: config for config in configs})


ENTITY_REGISTRY: Mapping[str, EntityConfig] = _build_registry(
    EntityConfig(
        name="taglines",
        model=Tagline,
        label="Tagline",
        image_field="tagline_image",
    ),
    EntityConfig(
        name="toservices",
        model=ToService,
        label="ToService",
        image_field="toservice_image",
        replace_existing=True,
    ),
    EntityConfig(
        name="clientlogos",
        model=ClientLogo,
        label="ClientLogo",
        image_field="clientlogo_image",
    ),
    EntityConfig(
        name="testimonials",
        model=Testimonial,
        label="Testimonial",
        image_field="testimonial_image",
    ),
    EntityConfig(
        name="toinstagrams",
        model=ToInstagram,
        label="ToInstagram",
        image_field="toinstagram_image",
    ),
    EntityConfig(
        name="myservices",
        model=MyService,
        label="myservice",
        image_field="myservice_image",
        bucket="myservicesbucket",
    ),
    EntityConfig(
        name="myportofolios",
        model=MyPortofolio,
        label="myportofolio",
        image_field="myportofolio_image",
        bucket="myportofoliobucket",
    ),
    EntityConfig(
        name="myblogs",
        model=MyBlog,
        label="Blog post",
        image_field="myblog_image",
        bucket="myblogbucket",
    ),
)


def get_entity(name: str) -> EntityConfig:
    """Look up an entity by name; unknown names are a 404, not a KeyError."""
    try:
        return ENTITY_REGISTRY[name]
    except KeyError:
        raise NotFoundError(resource="entity", resource_id=name) from None
