"""
SQLAlchemy Core table definitions for the history subsystem's own records.

Snapshot and diff payloads are stored as JSON text; the models decode
them and treat NULL or invalid JSON as an empty mapping.
"""

import sqlalchemy as sa

metadata = sa.MetaData()

REVISION_TYPE = "object_revision"
SCHEDULE_TYPE = "object_schedule"
ROUTE_TYPE = "object_route"

object_revisions = sa.Table(
    "object_revisions",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("target_type", sa.String(255), nullable=False),
    sa.Column("target_id", sa.String(255), nullable=False),
    sa.Column("rev_num", sa.Integer, nullable=False),
    sa.Column("rev_ts", sa.DateTime(timezone=True), nullable=False),
    sa.Column("rev_user", sa.String(255), nullable=True),
    sa.Column("data_prev", sa.Text, nullable=True),
    sa.Column("data_obj", sa.Text, nullable=True),
    sa.Column("data_diff", sa.Text, nullable=True),
    sa.UniqueConstraint("target_type", "target_id", "rev_num", name="uq_object_revisions_target_rev"),
)

object_schedules = sa.Table(
    "object_schedules",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("target_type", sa.String(255), nullable=True),
    sa.Column("target_id", sa.String(255), nullable=True),
    sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("data_diff", sa.Text, nullable=True),
    sa.Column("processed", sa.Boolean, nullable=False, default=False),
    sa.Column("processed_date", sa.DateTime(timezone=True), nullable=True),
)

object_routes = sa.Table(
    "object_routes",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("active", sa.Boolean, nullable=False, default=True),
    sa.Column("slug", sa.String(255), nullable=True),
    sa.Column("lang", sa.String(16), nullable=True),
    sa.Column("creation_date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("last_modification_date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("route_obj_type", sa.String(255), nullable=True),
    sa.Column("route_obj_id", sa.String(255), nullable=True),
    sa.Column("route_template", sa.String(255), nullable=True),
    sa.Column("route_options", sa.Text, nullable=True),
    sa.Column("route_options_ident", sa.String(255), nullable=True),
)

sa.Index("idx_object_revisions_target", object_revisions.c.target_type, object_revisions.c.target_id)
sa.Index("idx_object_schedules_pending", object_schedules.c.processed, object_schedules.c.scheduled_date)
sa.Index("idx_object_routes_slug", object_routes.c.slug, object_routes.c.lang)

DEFAULT_TABLES: dict[str, sa.Table] = {
    REVISION_TYPE: object_revisions,
    SCHEDULE_TYPE: object_schedules,
    ROUTE_TYPE: object_routes,
}
