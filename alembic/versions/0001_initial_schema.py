"""initial schema: users, psychologists, availability, sessions, questionnaires

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


SPECIALIZATIONS = [
    (1, "anxiety", "Тревожность", "Изтироб"),
    (2, "depression", "Депрессия", "Афсурдагӣ"),
    (3, "burnout", "Выгорание", "Хастагӣ"),
    (4, "relationships", "Отношения", "Муносибатҳо"),
    (5, "postpartum", "Послеродовая депрессия", "Афсурдагии баъд аз таваллуд"),
    (6, "stress", "Стресс", "Стресс"),
    (7, "self_esteem", "Самооценка", "Худбаҳодиҳӣ"),
    (8, "grief", "Горе и утрата", "Ғам ва талафот"),
    (9, "trauma", "Травма", "Садама"),
    (10, "family", "Семейные проблемы", "Мушкилоти оилавӣ"),
]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("language", sa.String(10), server_default="ru", nullable=False),
        sa.Column("is_guest", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    specializations = op.create_table(
        "specializations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(50), nullable=False),
        sa.Column("name_ru", sa.String(100), nullable=False),
        sa.Column("name_tj", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key"),
    )

    op.create_table(
        "psychologists",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("photo_path", sa.String(500), nullable=True),
        sa.Column("experience_years", sa.Integer(), server_default="0", nullable=False),
        sa.Column("education", sa.String(500), nullable=True),
        sa.Column("approach_description", sa.String(2000), nullable=True),
        sa.Column("languages", sa.String(50), server_default="ru", nullable=False),
        sa.Column("work_formats", sa.String(50), server_default="online", nullable=False),
        sa.Column("price_per_session", sa.Numeric(10, 2), server_default="0", nullable=False),
        sa.Column("meeting_link", sa.String(500), nullable=True),
        sa.Column("is_verified", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "psychologist_specializations",
        sa.Column("psychologist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("specialization_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["psychologist_id"], ["psychologists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["specialization_id"], ["specializations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("psychologist_id", "specialization_id"),
    )

    op.create_table(
        "availabilities",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("psychologist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("slot_duration_minutes", sa.Integer(), server_default="60", nullable=False),
        sa.ForeignKeyConstraint(["psychologist_id"], ["psychologists.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("psychologist_id", "day_of_week", name="uq_availabilities_psychologist_day"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availabilities_day_of_week"),
        sa.CheckConstraint("start_time < end_time", name="ck_availabilities_time_order"),
        sa.CheckConstraint("slot_duration_minutes > 0", name="ck_availabilities_slot_duration"),
    )
    op.create_index("idx_availabilities_psychologist", "availabilities", ["psychologist_id"])

    op.create_table(
        "sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("psychologist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), server_default="60", nullable=False),
        sa.Column("status", sa.String(20), server_default="pending", nullable=False),
        sa.Column("meeting_link", sa.String(500), nullable=True),
        sa.Column("notes", sa.String(2000), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["client_id"], ["users.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["psychologist_id"], ["psychologists.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    # one live booking per psychologist per start time
    op.create_index(
        "uq_sessions_psychologist_slot",
        "sessions",
        ["psychologist_id", "scheduled_at"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
    )
    op.create_index("idx_sessions_client_time", "sessions", ["client_id", "scheduled_at"])
    op.create_index("idx_sessions_status_time", "sessions", ["status", "scheduled_at"])

    op.create_table(
        "questionnaire_responses",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("guest_session_id", sa.String(100), nullable=True),
        sa.Column("gender", sa.String(20), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("preferred_language", sa.String(10), nullable=False),
        sa.Column("main_issue", sa.String(500), nullable=False),
        sa.Column("urgency_level", sa.String(20), nullable=False),
        sa.Column("format_preference", sa.String(20), nullable=False),
        sa.Column("additional_info", sa.String(2000), nullable=True),
        sa.Column("ranking_snapshot", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_questionnaire_responses_user", "questionnaire_responses", ["user_id"])
    op.create_index("idx_questionnaire_responses_guest", "questionnaire_responses", ["guest_session_id"])

    op.bulk_insert(
        specializations,
        [
            {"id": sid, "key": key, "name_ru": name_ru, "name_tj": name_tj}
            for sid, key, name_ru, name_tj in SPECIALIZATIONS
        ],
    )


def downgrade() -> None:
    op.drop_index("idx_questionnaire_responses_guest", table_name="questionnaire_responses")
    op.drop_index("idx_questionnaire_responses_user", table_name="questionnaire_responses")
    op.drop_table("questionnaire_responses")
    op.drop_index("idx_sessions_status_time", table_name="sessions")
    op.drop_index("idx_sessions_client_time", table_name="sessions")
    op.drop_index("uq_sessions_psychologist_slot", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("idx_availabilities_psychologist", table_name="availabilities")
    op.drop_table("availabilities")
    op.drop_table("psychologist_specializations")
    op.drop_table("psychologists")
    op.drop_table("specializations")
    op.drop_table("users")
