"""Initial schema for the Object History Service

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # OBJECT REVISIONS
    # ==========================================================================
    op.execute("""
        CREATE TABLE object_revisions (
            id SERIAL PRIMARY KEY,
            target_type VARCHAR(255) NOT NULL,
            target_id VARCHAR(255) NOT NULL,
            rev_num INTEGER NOT NULL CHECK (rev_num > 0),
            rev_ts TIMESTAMPTZ NOT NULL,
            rev_user VARCHAR(255),
            data_prev TEXT,
            data_obj TEXT,
            data_diff TEXT,
            CONSTRAINT uq_object_revisions_target_rev UNIQUE (target_type, target_id, rev_num)
        )
    """)
    op.execute("CREATE INDEX idx_object_revisions_target ON object_revisions(target_type, target_id)")

    # ==========================================================================
    # OBJECT SCHEDULES
    # ==========================================================================
    op.execute("""
        CREATE TABLE object_schedules (
            id SERIAL PRIMARY KEY,
            target_type VARCHAR(255),
            target_id VARCHAR(255),
            scheduled_date TIMESTAMPTZ,
            data_diff TEXT,
            processed BOOLEAN NOT NULL DEFAULT FALSE,
            processed_date TIMESTAMPTZ
        )
    """)
    op.execute(
        "CREATE INDEX idx_object_schedules_pending ON object_schedules(processed, scheduled_date)"
    )

    # ==========================================================================
    # OBJECT ROUTES
    # ==========================================================================
    op.execute("""
        CREATE TABLE object_routes (
            id SERIAL PRIMARY KEY,
            active BOOLEAN NOT NULL DEFAULT TRUE,
            slug VARCHAR(255),
            lang VARCHAR(16),
            creation_date TIMESTAMPTZ,
            last_modification_date TIMESTAMPTZ,
            route_obj_type VARCHAR(255),
            route_obj_id VARCHAR(255),
            route_template VARCHAR(255),
            route_options TEXT,
            route_options_ident VARCHAR(255)
        )
    """)
    op.execute("CREATE INDEX idx_object_routes_slug ON object_routes(slug, lang)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS object_routes")
    op.execute("DROP TABLE IF EXISTS object_schedules")
    op.execute("DROP TABLE IF EXISTS object_revisions")
