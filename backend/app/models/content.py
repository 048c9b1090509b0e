"""
Site Content API — Content Table Models
========================================

What:  ORM models for the eight website content tables.
Why:   The models are the single description of each table's columns. Alembic
       migrates from them, the registry derives each entity's writable field
       list from them, and the gateway queries their `__table__` directly.

Table Design:
    Every table has the same skeleton — an auto-increment `id`, a
    `created_at` stamp set by the database, a nullable `<prefix>_image`
    column holding the public URL of an uploaded image, and free-form content
    columns. All content columns are nullable: the admin panel can save a
    half-filled record and complete it with a later PUT.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import BigInteger, Date, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

# BIGINT identity on Postgres; SQLite only auto-increments INTEGER PRIMARY KEY
_ID_TYPE = BigInteger().with_variant(Integer(), "sqlite")

# Public URLs are bounded by bucket + key length
_URL_TYPE = String(1024)


class ContentRecordMixin:
    """Columns shared by every content table."""

    id: Mapped[int] = mapped_column(_ID_TYPE, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class Tagline(ContentRecordMixin, Base):
    """Hero banner copy on the landing page."""

    __tablename__ = "taglines"

    tagline_image: Mapped[Optional[str]] = mapped_column(_URL_TYPE)
    tagline_title: Mapped[Optional[str]] = mapped_column(Text)
    tagline_subtitle: Mapped[Optional[str]] = mapped_column(Text)


class ToService(ContentRecordMixin, Base):
    """
    "Our services" teaser block. Singleton: a new POST replaces the previous
    row (see `replace_existing` in the registry).
    """

    __tablename__ = "toservices"

    toservice_image: Mapped[Optional[str]] = mapped_column(_URL_TYPE)
    toservice_subtitle: Mapped[Optional[str]] = mapped_column(Text)


class ClientLogo(ContentRecordMixin, Base):
    __tablename__ = "clientlogos"

    clientlogo_image: Mapped[Optional[str]] = mapped_column(_URL_TYPE)
    clientlogo_name: Mapped[Optional[str]] = mapped_column(Text)
    clientlogo_link: Mapped[Optional[str]] = mapped_column(Text)


class Testimonial(ContentRecordMixin, Base):
    __tablename__ = "testimonials"

    testimonial_image: Mapped[Optional[str]] = mapped_column(_URL_TYPE)
    testimonial_text: Mapped[Optional[str]] = mapped_column(Text)
    testimonial_name: Mapped[Optional[str]] = mapped_column(Text)


class ToInstagram(ContentRecordMixin, Base):
    __tablename__ = "toinstagrams"

    toinstagram_image: Mapped[Optional[str]] = mapped_column(_URL_TYPE)
    toinstagram_name: Mapped[Optional[str]] = mapped_column(Text)
    toinstagram_link: Mapped[Optional[str]] = mapped_column(Text)


class MyService(ContentRecordMixin, Base):
    __tablename__ = "myservices"

    myservice_name: Mapped[Optional[str]] = mapped_column(Text)
    myservice_image: Mapped[Optional[str]] = mapped_column(_URL_TYPE)
    myservice_description: Mapped[Optional[str]] = mapped_column(Text)
    myservice_type: Mapped[Optional[str]] = mapped_column(Text)


class MyPortofolio(ContentRecordMixin, Base):
    __tablename__ = "myportofolios"

    myportofolio_name: Mapped[Optional[str]] = mapped_column(Text)
    myportofolio_image: Mapped[Optional[str]] = mapped_column(_URL_TYPE)
    myportofolio_description: Mapped[Optional[str]] = mapped_column(Text)
    myportofolio_date: Mapped[Optional[date]] = mapped_column(Date)


class MyBlog(ContentRecordMixin, Base):
    __tablename__ = "myblogs"

    myblog_title: Mapped[Optional[str]] = mapped_column(Text)
    myblog_image: Mapped[Optional[str]] = mapped_column(_URL_TYPE)
    myblog_content: Mapped[Optional[str]] = mapped_column(Text)
    myblog_date: Mapped[Optional[date]] = mapped_column(Date)
