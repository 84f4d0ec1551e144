"""initial detection tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("username"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "course_modules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("module_type", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("team_submission", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_course_modules_id", "course_modules", ["id"])
    op.create_index("ix_course_modules_course_id", "course_modules", ["course_id"])

    op.create_table(
        "group_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )
    op.create_index("ix_group_members_id", "group_members", ["id"])
    op.create_index("ix_group_members_group_id", "group_members", ["group_id"])
    op.create_index("ix_group_members_course_id", "group_members", ["course_id"])
    op.create_index("ix_group_members_user_id", "group_members", ["user_id"])

    op.create_table(
        "stored_files",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("pathname_hash", sa.String(length=40), nullable=False),
        sa.Column("content_hash", sa.String(length=40), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("filepath", sa.String(length=255), nullable=False),
        sa.Column("mimetype", sa.String(length=100), nullable=True),
        sa.Column("content", sa.LargeBinary(), nullable=False),
        sa.Column("cm_id", sa.Integer(), sa.ForeignKey("course_modules.id"), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_stored_files_id", "stored_files", ["id"])
    op.create_index("ix_stored_files_pathname_hash", "stored_files", ["pathname_hash"], unique=True)
    op.create_index("ix_stored_files_content_hash", "stored_files", ["content_hash"])

    op.create_table(
        "detection_module_configs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cm_id", sa.Integer(), sa.ForeignKey("course_modules.id"), nullable=False),
        sa.Column("use_detection", sa.Boolean(), nullable=False),
        sa.Column("show_student_results", sa.Boolean(), nullable=False),
        sa.Column("draft_submit", sa.Integer(), nullable=False),
        sa.Column("external_assignment_id", sa.String(length=100), nullable=True),
        sa.Column("creator_email", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_detection_module_configs_id", "detection_module_configs", ["id"])
    op.create_index(
        "ix_detection_module_configs_cm_id", "detection_module_configs", ["cm_id"], unique=True
    )

    op.create_table(
        "detection_files",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cm_id", sa.Integer(), sa.ForeignKey("course_modules.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=True),
        sa.Column("identifier", sa.String(length=64), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("predicted_class", sa.String(length=20), nullable=True),
        sa.Column("class_probability", sa.Numeric(5, 4), nullable=True),
        sa.Column("confidence_category", sa.String(length=50), nullable=True),
        sa.Column("scan_id", sa.String(length=100), nullable=True),
        sa.Column("scan_url", sa.String(length=1024), nullable=True),
        sa.Column("attempt", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "cm_id", "user_id", "identifier", name="uq_detection_files_cm_user_identifier"
        ),
    )
    op.create_index("ix_detection_files_id", "detection_files", ["id"])
    op.create_index("ix_detection_files_cm_id", "detection_files", ["cm_id"])
    op.create_index("ix_detection_files_user_id", "detection_files", ["user_id"])


def downgrade() -> None:
    op.drop_table("detection_files")
    op.drop_table("detection_module_configs")
    op.drop_table("stored_files")
    op.drop_table("group_members")
    op.drop_table("course_modules")
    op.drop_table("users")
