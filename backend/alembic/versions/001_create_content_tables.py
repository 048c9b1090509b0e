"""Create content tables

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  Creates the eight website content tables.
How:   Each table gets a BIGINT identity `id`, a `created_at` timestamp set by
       the database, a nullable image URL column and nullable content columns.

Rollback: downgrade() drops every table (destructive — all content lost).
"""

from typing import Dict, Sequence, Tuple, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_TEXT = sa.Text()
_URL = sa.String(1024)
_DATE = sa.Date()

# table → ordered (column, type) pairs after id/created_at
CONTENT_TABLES: Dict[str, Tuple[Tuple[str, sa.types.TypeEngine], ...]] = {
    "taglines": (
        ("tagline_image", _URL),
        ("tagline_title", _TEXT),
        ("tagline_subtitle", _TEXT),
    ),
    "toservices": (
        ("toservice_image", _URL),
        ("toservice_subtitle", _TEXT),
    ),
    "clientlogos": (
        ("clientlogo_image", _URL),
        ("clientlogo_name", _TEXT),
        ("clientlogo_link", _TEXT),
    ),
    "testimonials": (
        ("testimonial_image", _URL),
        ("testimonial_text", _TEXT),
        ("testimonial_name", _TEXT),
    ),
    "toinstagrams": (
        ("toinstagram_image", _URL),
        ("toinstagram_name", _TEXT),
        ("toinstagram_link", _TEXT),
    ),
    "myservices": (
        ("myservice_name", _TEXT),
        ("myservice_image", _URL),
        ("myservice_description", _TEXT),
        ("myservice_type", _TEXT),
    ),
    "myportofolios": (
        ("myportofolio_name", _TEXT),
        ("myportofolio_image", _URL),
        ("myportofolio_description", _TEXT),
        ("myportofolio_date", _DATE),
    ),
    "myblogs": (
        ("myblog_title", _TEXT),
        ("myblog_image", _URL),
        ("myblog_content", _TEXT),
        ("myblog_date", _DATE),
    ),
}


def upgrade() -> None:
    for table_name, columns in CONTENT_TABLES.items():
        op.create_table(
            table_name,
            sa.Column("id", sa.BigInteger(), sa.Identity(always=False), nullable=False),
            sa.Column(
                "created_at",
                sa.TIMESTAMP(timezone=True),
                server_default=sa.text("CURRENT_TIMESTAMP"),
                nullable=False,
            ),
            *(sa.Column(name, column_type, nullable=True) for name, column_type in columns),
            sa.PrimaryKeyConstraint("id", name=f"{table_name}_pkey"),
        )


def downgrade() -> None:
    for table_name in reversed(list(CONTENT_TABLES)):
        op.drop_table(table_name)
