"""Начальная схема движка зачислений и расписания привычек

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-16 12:00:00.000000
"""

from typing import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Типы создаются явно в upgrade(), поэтому create_type=False
cadence_enum = postgresql.ENUM("daily", "weekly", "as-needed", name="cadence_enum", create_type=False)
intensity_enum = postgresql.ENUM("lite", "intense", name="intensity_enum", create_type=False)
enrollment_status_enum = postgresql.ENUM(
    "active", "paused", "abandoned", name="enrollment_status_enum", create_type=False
)
routine_tier_enum = postgresql.ENUM("free", "premium", name="routine_tier_enum", create_type=False)
reward_type_enum = postgresql.ENUM("earn", "spend", name="reward_type_enum", create_type=False)

ALL_ENUMS = (cadence_enum, intensity_enum, enrollment_status_enum, routine_tier_enum, reward_type_enum)


def timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
            comment="Время создания записи",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
            comment="Время последнего обновления записи",
        ),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ALL_ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "wellness_routines",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("duration_days", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("tier", routine_tier_enum, nullable=False),
        sa.Column("is_featured", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        *timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_wellness_routines")),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("active_routine_id", sa.String(length=64), nullable=True),
        sa.Column("routine_intensity", intensity_enum, nullable=True),
        sa.Column("current_streak", sa.Integer(), nullable=False),
        sa.Column("longest_streak", sa.Integer(), nullable=False),
        sa.Column("reward_balance", sa.Integer(), nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(
            ["active_routine_id"],
            ["wellness_routines.id"],
            name=op.f("fk_users_active_routine_id_wellness_routines"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_external_id"), "users", ["external_id"], unique=True)

    op.create_table(
        "habit_templates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("routine_id", sa.String(length=64), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("short_description", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("recommended_time", sa.String(length=50), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("cadence", cadence_enum, nullable=False),
        sa.Column("intensity", intensity_enum, nullable=False),
        sa.Column("day_start", sa.Integer(), nullable=True),
        sa.Column("day_end", sa.Integer(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(
            ["routine_id"],
            ["wellness_routines.id"],
            name=op.f("fk_habit_templates_routine_id_wellness_routines"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_habit_templates")),
    )
    op.create_index(op.f("ix_habit_templates_id"), "habit_templates", ["id"], unique=False)
    op.create_index(op.f("ix_habit_templates_routine_id"), "habit_templates", ["routine_id"], unique=False)

    op.create_table(
        "habit_routine_assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("habit_template_id", sa.Integer(), nullable=False),
        sa.Column("routine_id", sa.String(length=64), nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(
            ["habit_template_id"],
            ["habit_templates.id"],
            name=op.f("fk_habit_routine_assignments_habit_template_id_habit_templates"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["routine_id"],
            ["wellness_routines.id"],
            name=op.f("fk_habit_routine_assignments_routine_id_wellness_routines"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_habit_routine_assignments")),
        sa.UniqueConstraint("habit_template_id", "routine_id", name="uq_habit_routine_assignment"),
    )
    op.create_index(op.f("ix_habit_routine_assignments_id"), "habit_routine_assignments", ["id"], unique=False)
    op.create_index(
        op.f("ix_habit_routine_assignments_habit_template_id"),
        "habit_routine_assignments",
        ["habit_template_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_habit_routine_assignments_routine_id"), "habit_routine_assignments", ["routine_id"], unique=False
    )

    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("routine_id", sa.String(length=64), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", enrollment_status_enum, nullable=False),
        sa.Column("intensity", intensity_enum, nullable=False),
        sa.Column("idempotency_key", sa.String(length=64), nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_enrollments_user_id_users"), ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["routine_id"],
            ["wellness_routines.id"],
            name=op.f("fk_enrollments_routine_id_wellness_routines"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_enrollments")),
        sa.UniqueConstraint("idempotency_key", name=op.f("uq_enrollments_idempotency_key")),
    )
    op.create_index(op.f("ix_enrollments_id"), "enrollments", ["id"], unique=False)
    op.create_index(op.f("ix_enrollments_user_id"), "enrollments", ["user_id"], unique=False)
    op.create_index(op.f("ix_enrollments_routine_id"), "enrollments", ["routine_id"], unique=False)
    op.create_index(op.f("ix_enrollments_status"), "enrollments", ["status"], unique=False)
    # Не больше одного активного зачисления на пользователя
    op.create_index(
        "uq_enrollments_one_active_per_user",
        "enrollments",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "habit_instances",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("enrollment_id", sa.Integer(), nullable=True),
        sa.Column("template_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cadence", cadence_enum, nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reward_granted_at", sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_habit_instances_user_id_users"), ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["enrollment_id"],
            ["enrollments.id"],
            name=op.f("fk_habit_instances_enrollment_id_enrollments"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["template_id"],
            ["habit_templates.id"],
            name=op.f("fk_habit_instances_template_id_habit_templates"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_habit_instances")),
        sa.UniqueConstraint(
            "user_id", "template_id", "scheduled_date", name="uq_habit_instance_per_template_day"
        ),
    )
    op.create_index(op.f("ix_habit_instances_id"), "habit_instances", ["id"], unique=False)
    op.create_index(op.f("ix_habit_instances_user_id"), "habit_instances", ["user_id"], unique=False)
    op.create_index(op.f("ix_habit_instances_enrollment_id"), "habit_instances", ["enrollment_id"], unique=False)
    op.create_index(op.f("ix_habit_instances_template_id"), "habit_instances", ["template_id"], unique=False)
    op.create_index(op.f("ix_habit_instances_scheduled_date"), "habit_instances", ["scheduled_date"], unique=False)

    op.create_table(
        "standalone_assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("template_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cadence", cadence_enum, nullable=False),
        sa.Column("recommended_time", sa.String(length=50), nullable=True),
        sa.Column("is_custom", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_standalone_assignments_user_id_users"), ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["template_id"],
            ["habit_templates.id"],
            name=op.f("fk_standalone_assignments_template_id_habit_templates"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_standalone_assignments")),
    )
    op.create_index(op.f("ix_standalone_assignments_id"), "standalone_assignments", ["id"], unique=False)
    op.create_index(op.f("ix_standalone_assignments_user_id"), "standalone_assignments", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_standalone_assignments_template_id"), "standalone_assignments", ["template_id"], unique=False
    )
    op.create_index(
        op.f("ix_standalone_assignments_is_active"), "standalone_assignments", ["is_active"], unique=False
    )

    op.create_table(
        "reward_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=False),
        sa.Column("type", reward_type_enum, nullable=False),
        *timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name=op.f("fk_reward_transactions_user_id_users"), ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_reward_transactions")),
    )
    op.create_index(op.f("ix_reward_transactions_id"), "reward_transactions", ["id"], unique=False)
    op.create_index(op.f("ix_reward_transactions_user_id"), "reward_transactions", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_table("reward_transactions")
    op.drop_table("standalone_assignments")
    op.drop_table("habit_instances")
    op.drop_index("uq_enrollments_one_active_per_user", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_table("habit_routine_assignments")
    op.drop_table("habit_templates")
    op.drop_table("users")
    op.drop_table("wellness_routines")

    bind = op.get_bind()
    for enum_type in reversed(ALL_ENUMS):
        enum_type.drop(bind, checkfirst=True)
