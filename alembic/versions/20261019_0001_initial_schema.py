"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum(
    "owner",
    "manager",
    "coordinator",
    "instructor",
    "student",
    name="role_enum",
    native_enum=False,
)
booking_status_enum = sa.Enum("booked", "completed", name="booking_status_enum", native_enum=False)
session_status_enum = sa.Enum(
    "DRAFT",
    "SCHEDULED",
    "READY",
    "ACTIVE",
    "COMPLETED",
    "CANCELLED",
    name="session_status_enum",
    native_enum=False,
)
attendance_status_enum = sa.Enum(
    "present",
    "absent",
    "late",
    "excused",
    name="attendance_status_enum",
    native_enum=False,
)
outbox_status_enum = sa.Enum("pending", "processed", "failed", name="outbox_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "roles",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", role_enum, nullable=False),
        sa.UniqueConstraint("name", name="uq_roles_name"),
    )

    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], name="fk_users_role_id_roles", ondelete="RESTRICT"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)

    op.create_table(
        "tracks",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("grade_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("instructor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["instructor_id"], ["users.id"], name="fk_tracks_instructor_id_users", ondelete="SET NULL"),
    )
    op.create_index("ix_tracks_grade_id", "tracks", ["grade_id"], unique=False)
    op.create_index("ix_tracks_instructor_id", "tracks", ["instructor_id"], unique=False)

    op.create_table(
        "schedule_policies",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("scope", sa.String(length=32), nullable=False),
        sa.Column("week_reset_day", sa.Integer(), nullable=False),
        sa.Column("week_reset_hour", sa.Integer(), nullable=False),
        sa.Column("availability_open_hours", sa.Integer(), nullable=False),
        sa.Column("next_open_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("updated_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["updated_by_id"],
            ["users.id"],
            name="fk_schedule_policies_updated_by_id_users",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("scope", name="uq_schedule_policies_scope"),
        sa.CheckConstraint(
            "week_reset_day BETWEEN 0 AND 6",
            name="ck_schedule_policies_week_reset_day_range",
        ),
        sa.CheckConstraint(
            "week_reset_hour BETWEEN 0 AND 23",
            name="ck_schedule_policies_week_reset_hour_range",
        ),
        sa.CheckConstraint(
            "availability_open_hours > 0",
            name="ck_schedule_policies_availability_open_hours_positive",
        ),
    )

    op.create_table(
        "availability_slots",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("instructor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("track_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("week_start_date", sa.Date(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_hour", sa.Integer(), nullable=False),
        sa.Column("end_hour", sa.Integer(), nullable=False),
        sa.Column("is_booked", sa.Boolean(), nullable=False),
        sa.Column("is_confirmed", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(
            ["instructor_id"],
            ["users.id"],
            name="fk_availability_slots_instructor_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(["track_id"], ["tracks.id"], name="fk_availability_slots_track_id_tracks", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["created_by_id"],
            ["users.id"],
            name="fk_availability_slots_created_by_id_users",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint(
            "instructor_id",
            "track_id",
            "week_start_date",
            "day_of_week",
            "start_hour",
            name="uq_availability_slots_instructor_week_hour",
        ),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_slots_day_of_week_range"),
        sa.CheckConstraint("start_hour BETWEEN 0 AND 23", name="ck_availability_slots_start_hour_range"),
        sa.CheckConstraint("end_hour > start_hour AND end_hour <= 24", name="ck_availability_slots_end_hour_range"),
    )
    op.create_index("ix_availability_slots_instructor_id", "availability_slots", ["instructor_id"], unique=False)
    op.create_index("ix_availability_slots_track_id", "availability_slots", ["track_id"], unique=False)
    op.create_index("ix_availability_slots_week_start_date", "availability_slots", ["week_start_date"], unique=False)
    op.create_index("ix_availability_slots_is_booked", "availability_slots", ["is_booked"], unique=False)

    op.create_table(
        "live_sessions",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("track_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("instructor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("status", session_status_enum, nullable=False),
        sa.Column("external_link", sa.String(length=2048), nullable=True),
        sa.Column("link_added_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["track_id"], ["tracks.id"], name="fk_live_sessions_track_id_tracks", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["instructor_id"],
            ["users.id"],
            name="fk_live_sessions_instructor_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["created_by_id"],
            ["users.id"],
            name="fk_live_sessions_created_by_id_users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_live_sessions_track_id", "live_sessions", ["track_id"], unique=False)
    op.create_index("ix_live_sessions_instructor_id", "live_sessions", ["instructor_id"], unique=False)
    op.create_index("ix_live_sessions_date", "live_sessions", ["date"], unique=False)
    op.create_index("ix_live_sessions_status", "live_sessions", ["status"], unique=False)

    op.create_table(
        "bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("availability_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("track_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("student_notes", sa.Text(), nullable=True),
        sa.Column("instructor_notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["availability_id"],
            ["availability_slots.id"],
            name="fk_bookings_availability_id_availability_slots",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], name="fk_bookings_student_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["track_id"], ["tracks.id"], name="fk_bookings_track_id_tracks", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["live_sessions.id"],
            name="fk_bookings_session_id_live_sessions",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint("availability_id", name="uq_bookings_availability_id"),
    )
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"], unique=False)
    op.create_index("ix_bookings_track_id", "bookings", ["track_id"], unique=False)
    op.create_index("ix_bookings_session_id", "bookings", ["session_id"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)

    op.create_table(
        "attendance_records",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", attendance_status_enum, nullable=False),
        sa.Column("marked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("marked_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["live_sessions.id"],
            name="fk_attendance_records_session_id_live_sessions",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["users.id"],
            name="fk_attendance_records_student_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["marked_by_id"],
            ["users.id"],
            name="fk_attendance_records_marked_by_id_users",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("session_id", "student_id", name="uq_attendance_records_session_student"),
    )
    op.create_index("ix_attendance_records_session_id", "attendance_records", ["session_id"], unique=False)
    op.create_index("ix_attendance_records_student_id", "attendance_records", ["student_id"], unique=False)

    op.create_table(
        "audit_logs",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("entity_type", sa.String(length=128), nullable=False),
        sa.Column("entity_id", sa.String(length=128), nullable=True),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], name="fk_audit_logs_actor_id_users", ondelete="SET NULL"),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"], unique=False)

    op.create_table(
        "outbox_events",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("aggregate_type", sa.String(length=128), nullable=False),
        sa.Column("aggregate_id", sa.String(length=128), nullable=False),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", outbox_status_enum, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_outbox_events_aggregate_type", "outbox_events", ["aggregate_type"], unique=False)
    op.create_index("ix_outbox_events_aggregate_id", "outbox_events", ["aggregate_id"], unique=False)
    op.create_index("ix_outbox_events_event_type", "outbox_events", ["event_type"], unique=False)
    op.create_index("ix_outbox_events_status", "outbox_events", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_outbox_events_status", table_name="outbox_events")
    op.drop_index("ix_outbox_events_event_type", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_id", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_type", table_name="outbox_events")
    op.drop_table("outbox_events")

    op.drop_index("ix_audit_logs_entity_id", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_actor_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_attendance_records_student_id", table_name="attendance_records")
    op.drop_index("ix_attendance_records_session_id", table_name="attendance_records")
    op.drop_table("attendance_records")

    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_session_id", table_name="bookings")
    op.drop_index("ix_bookings_track_id", table_name="bookings")
    op.drop_index("ix_bookings_student_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_live_sessions_status", table_name="live_sessions")
    op.drop_index("ix_live_sessions_date", table_name="live_sessions")
    op.drop_index("ix_live_sessions_instructor_id", table_name="live_sessions")
    op.drop_index("ix_live_sessions_track_id", table_name="live_sessions")
    op.drop_table("live_sessions")

    op.drop_index("ix_availability_slots_is_booked", table_name="availability_slots")
    op.drop_index("ix_availability_slots_week_start_date", table_name="availability_slots")
    op.drop_index("ix_availability_slots_track_id", table_name="availability_slots")
    op.drop_index("ix_availability_slots_instructor_id", table_name="availability_slots")
    op.drop_table("availability_slots")

    op.drop_table("schedule_policies")

    op.drop_index("ix_tracks_instructor_id", table_name="tracks")
    op.drop_index("ix_tracks_grade_id", table_name="tracks")
    op.drop_table("tracks")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_table("roles")
