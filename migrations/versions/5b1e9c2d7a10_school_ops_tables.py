"""Students, teachers, grade rosters, lesson plans and app settings.

Revision ID: 5b1e9c2d7a10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5b1e9c2d7a10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("stu_id", sa.String(length=20), nullable=False),
        sa.Column("full_name", sa.String(length=150), nullable=False),
        sa.Column("dob", sa.Date(), nullable=False),
        sa.Column("gender", sa.String(length=20), nullable=False),
        sa.Column("grade", sa.String(length=50), nullable=False),
        sa.Column("section", sa.String(length=50), nullable=False),
        sa.Column("parent_name", sa.String(length=150), nullable=False),
        sa.Column("parent_contact", sa.String(length=20), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("previous_school", sa.String(length=150), nullable=True),
        sa.Column("documents", sa.JSON(), nullable=True),
        sa.Column("subjects", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("admission_date", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    # Unique: the year-scoped id is issued read-then-write, a race must fail here
    op.create_index("ix_students_stu_id", "students", ["stu_id"], unique=True)
    op.create_index("ix_students_grade", "students", ["grade"])

    op.create_table(
        "grades",
        sa.Column("grade", sa.String(length=50), primary_key=True),
        sa.Column("students", sa.JSON(), nullable=True),
    )

    op.create_table(
        "teachers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("teacher_id", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("contact", sa.String(length=20), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("dob", sa.Date(), nullable=False),
        sa.Column("gender", sa.String(length=20), nullable=False),
        sa.Column("qualifications", sa.String(length=255), nullable=False),
        sa.Column("joining_date", sa.Date(), nullable=False),
        sa.Column("contract_type", sa.String(length=50), nullable=False),
        sa.Column("salary", sa.Numeric(12, 2), nullable=False),
        sa.Column("subjects", sa.JSON(), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_teachers_teacher_id", "teachers", ["teacher_id"], unique=True)
    op.create_index("ix_teachers_department", "teachers", ["department"])

    op.create_table(
        "lesson_plans",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("subject", sa.String(length=100), nullable=False),
        sa.Column("grade", sa.String(length=50), nullable=False),
        sa.Column("objectives", sa.Text(), nullable=False),
        sa.Column("materials", sa.Text(), nullable=True),
        sa.Column("warmup", sa.Text(), nullable=True),
        sa.Column("introduction", sa.Text(), nullable=False),
        sa.Column("main_activity", sa.Text(), nullable=True),
        sa.Column("closure", sa.Text(), nullable=True),
        sa.Column("differentiation", sa.Text(), nullable=True),
        sa.Column("formative_assessment", sa.Text(), nullable=True),
        sa.Column("summative_assessment", sa.Text(), nullable=True),
        sa.Column("standards", sa.Text(), nullable=True),
        sa.Column("assessments", sa.JSON(), nullable=False),
        sa.Column("units", sa.JSON(), nullable=False),
        sa.Column("total_units", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_lesson_plans_email", "lesson_plans", ["email"])

    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(length=100), nullable=False, unique=True),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )


def downgrade():
    op.drop_table("app_settings")
    op.drop_index("ix_lesson_plans_email", table_name="lesson_plans")
    op.drop_table("lesson_plans")
    op.drop_index("ix_teachers_department", table_name="teachers")
    op.drop_index("ix_teachers_teacher_id", table_name="teachers")
    op.drop_table("teachers")
    op.drop_table("grades")
    op.drop_index("ix_students_grade", table_name="students")
    op.drop_index("ix_students_stu_id", table_name="students")
    op.drop_table("students")
