"""initial coaching portal schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated: bool = True):
    columns = [sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False)]
    if with_updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=True))
    return columns


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("ADMIN", "COACH", "USER", name="userrole"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "coaches",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_coaches_id", "coaches", ["id"])
    op.create_index("ix_coaches_email", "coaches", ["email"], unique=True)

    op.create_table(
        "user_coach_mapping",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("coach_id", sa.Integer(), sa.ForeignKey("coaches.id"), nullable=False),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_coach_mapping_user_id", "user_coach_mapping", ["user_id"], unique=True)
    op.create_index("ix_user_coach_mapping_coach_id", "user_coach_mapping", ["coach_id"])

    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("assigned_coach_id", sa.Integer(), sa.ForeignKey("coaches.id"), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_leads_id", "leads", ["id"])
    op.create_index("ix_leads_email", "leads", ["email"], unique=True)
    op.create_index("ix_leads_assigned_coach_id", "leads", ["assigned_coach_id"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("coach_id", sa.Integer(), sa.ForeignKey("coaches.id"), nullable=True),
        sa.Column("assigned_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("deadline", sa.DateTime(), nullable=False),
        sa.Column("allow_document_upload", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("report_type", sa.String(50), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tasks_id", "tasks", ["id"])
    op.create_index("ix_tasks_coach_id", "tasks", ["coach_id"])

    op.create_table(
        "user_tasks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("status", sa.Enum("COMPLETED", "INCOMPLETE", name="usertaskstatus"), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("done_date", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "task_id", name="uq_user_tasks_user_task"),
    )
    op.create_index("ix_user_tasks_id", "user_tasks", ["id"])
    op.create_index("ix_user_tasks_user_id", "user_tasks", ["user_id"])
    op.create_index("ix_user_tasks_task_id", "user_tasks", ["task_id"])

    op.create_table(
        "otp_verifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("otp_hash", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verification_attempts", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_otp_verifications_email", "otp_verifications", ["email"])
    op.create_index("ix_otp_verifications_expires_at", "otp_verifications", ["expires_at"])
    op.create_index("ix_otp_verifications_is_used", "otp_verifications", ["is_used"])

    op.create_table(
        "task_documents",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("user_task_id", sa.Integer(), sa.ForeignKey("user_tasks.id"), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_path", sa.String(512), nullable=False),
        sa.Column("file_type", sa.String(100), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("uploaded_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_task_documents_id", "task_documents", ["id"])
    op.create_index("ix_task_documents_task_id", "task_documents", ["task_id"])
    op.create_index("ix_task_documents_user_task_id", "task_documents", ["user_task_id"])

    op.create_table(
        "report_data",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("user_task_id", sa.Integer(), sa.ForeignKey("user_tasks.id"), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("document_id", sa.Integer(), sa.ForeignKey("task_documents.id"), nullable=True),
        sa.Column("report_type", sa.Enum("SUGAR_REPORT", "OTHER", name="reporttype"), nullable=False),
        sa.Column("patient_name", sa.String(255), nullable=True),
        sa.Column("age", sa.String(50), nullable=True),
        sa.Column("gender", sa.String(50), nullable=True),
        sa.Column("lab_name", sa.String(255), nullable=True),
        sa.Column("doctor_name", sa.String(255), nullable=True),
        sa.Column("blood_sugar_fasting", sa.String(50), nullable=True),
        sa.Column("blood_sugar_pp", sa.String(50), nullable=True),
        sa.Column("hba1c_value", sa.String(50), nullable=True),
        sa.Column("total_cholesterol", sa.String(50), nullable=True),
        sa.Column("extracted_data", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_report_data_id", "report_data", ["id"])
    op.create_index("ix_report_data_task_id", "report_data", ["task_id"])
    op.create_index("ix_report_data_user_task_id", "report_data", ["user_task_id"])


def downgrade() -> None:
    op.drop_table("report_data")
    op.drop_table("task_documents")
    op.drop_table("otp_verifications")
    op.drop_table("user_tasks")
    op.drop_table("tasks")
    op.drop_table("leads")
    op.drop_table("user_coach_mapping")
    op.drop_table("coaches")
    op.drop_table("users")
    sa.Enum(name="reporttype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="usertaskstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="userrole").drop(op.get_bind(), checkfirst=True)
