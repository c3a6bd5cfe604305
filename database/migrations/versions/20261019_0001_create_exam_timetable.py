"""create exam timetable tables

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum("admin", "teacher", "student", name="user_role")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("student_number", sa.String(length=50), nullable=True, unique=True),
        sa.Column("staff_number", sa.String(length=50), nullable=True, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="50"),
    )
    op.create_index("ix_rooms_name", "rooms", ["name"], unique=True)

    op.create_table(
        "class_codes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("teacher_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_class_codes_code", "class_codes", ["code"], unique=True)
    op.create_index("ix_class_codes_teacher_id", "class_codes", ["teacher_id"])

    op.create_table(
        "class_code_students",
        sa.Column(
            "class_code_id",
            sa.Integer(),
            sa.ForeignKey("class_codes.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "exam_tables",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("day", sa.String(length=10), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("class_code_id", sa.Integer(), sa.ForeignKey("class_codes.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_exam_tables_date_start", "exam_tables", ["date", "start_time"])
    op.create_index("ix_exam_tables_room_id", "exam_tables", ["room_id"])
    op.create_index("ix_exam_tables_class_code_id", "exam_tables", ["class_code_id"])

    op.create_table(
        "user_classes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("exam_id", sa.Integer(), sa.ForeignKey("exam_tables.id", ondelete="CASCADE"), nullable=True),
        sa.Column(
            "class_code_id",
            sa.Integer(),
            sa.ForeignKey("class_codes.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_user_classes_user_id", "user_classes", ["user_id"])
    op.create_index(
        "uq_user_classes_user_exam",
        "user_classes",
        ["user_id", "exam_id"],
        unique=True,
        sqlite_where=sa.text("exam_id IS NOT NULL"),
        postgresql_where=sa.text("exam_id IS NOT NULL"),
    )
    op.create_index(
        "uq_user_classes_user_class_code",
        "user_classes",
        ["user_id", "class_code_id"],
        unique=True,
        sqlite_where=sa.text("class_code_id IS NOT NULL"),
        postgresql_where=sa.text("class_code_id IS NOT NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_user_classes_user_class_code", table_name="user_classes")
    op.drop_index("uq_user_classes_user_exam", table_name="user_classes")
    op.drop_index("ix_user_classes_user_id", table_name="user_classes")
    op.drop_table("user_classes")
    op.drop_index("ix_exam_tables_class_code_id", table_name="exam_tables")
    op.drop_index("ix_exam_tables_room_id", table_name="exam_tables")
    op.drop_index("ix_exam_tables_date_start", table_name="exam_tables")
    op.drop_table("exam_tables")
    op.drop_table("class_code_students")
    op.drop_index("ix_class_codes_teacher_id", table_name="class_codes")
    op.drop_index("ix_class_codes_code", table_name="class_codes")
    op.drop_table("class_codes")
    op.drop_index("ix_rooms_name", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    user_role_enum.drop(op.get_bind(), checkfirst=True)
