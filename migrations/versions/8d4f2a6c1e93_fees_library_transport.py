"""Fee accounts and payments, library loans, transport records.

Revision ID: 8d4f2a6c1e93
Revises: 5b1e9c2d7a10
Create Date: 2026-10-19 15:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8d4f2a6c1e93"
down_revision = "5b1e9c2d7a10"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "fee_structures",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("class_program", sa.String(length=100), nullable=False),
        sa.Column("installment_plans", sa.JSON(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_fee_structures_class_program", "fee_structures", ["class_program"])

    op.create_table(
        "fee_accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("stu_id", sa.String(length=20), sa.ForeignKey("students.stu_id"), nullable=False, unique=True),
        sa.Column("student_name", sa.String(length=150), nullable=False),
        sa.Column("balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("family_account_id", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "fee_payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("receipt_id", sa.String(length=20), nullable=False),
        sa.Column("stu_id", sa.String(length=20), sa.ForeignKey("fee_accounts.stu_id"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("late_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("method", sa.String(length=50), nullable=False),
        sa.Column("is_partial", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    # Receipt numbers come from the same read-then-write sequence as student ids
    op.create_index("ix_fee_payments_receipt_id", "fee_payments", ["receipt_id"], unique=True)
    op.create_index("ix_fee_payments_stu_id", "fee_payments", ["stu_id"])
    op.create_index("ix_fee_payments_payment_date", "fee_payments", ["payment_date"])

    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("author", sa.String(length=150), nullable=False),
        sa.Column("classification", sa.String(length=50), nullable=False),
        sa.Column("genre", sa.String(length=100), nullable=False),
        sa.Column("grade_level", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_books_status", "books", ["status"])

    op.create_table(
        "book_issues",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("book_id", sa.Integer(), sa.ForeignKey("books.id"), nullable=False),
        sa.Column("user_id", sa.String(length=100), nullable=False),
        sa.Column("issue_date", sa.DateTime(), nullable=False),
        sa.Column("due_date", sa.DateTime(), nullable=False),
        sa.Column("return_date", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_book_issues_book_id", "book_issues", ["book_id"])
    op.create_index("ix_book_issues_user_id", "book_issues", ["user_id"])

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("license_plate", sa.String(length=20), nullable=False, unique=True),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("last_maintenance", sa.Date(), nullable=False),
        sa.Column("gps_installed", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "transport_routes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("zone", sa.String(length=100), nullable=False),
        sa.Column("schedule", sa.String(length=100), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), sa.ForeignKey("vehicles.id"), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
    )
    op.create_index("ix_transport_routes_zone", "transport_routes", ["zone"])

    op.create_table(
        "drivers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("training_completed", sa.JSON(), nullable=True),
        sa.Column("background_check_status", sa.String(length=50), nullable=False),
    )

    op.create_table(
        "safety_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("stu_id", sa.String(length=20), sa.ForeignKey("students.stu_id"), nullable=False),
        sa.Column("route_id", sa.Integer(), sa.ForeignKey("transport_routes.id"), nullable=False),
        sa.Column("boarding_time", sa.DateTime(), nullable=False),
        sa.Column("alighting_time", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_safety_records_stu_id", "safety_records", ["stu_id"])
    op.create_index("ix_safety_records_route_id", "safety_records", ["route_id"])


def downgrade():
    op.drop_index("ix_safety_records_route_id", table_name="safety_records")
    op.drop_index("ix_safety_records_stu_id", table_name="safety_records")
    op.drop_table("safety_records")
    op.drop_table("drivers")
    op.drop_index("ix_transport_routes_zone", table_name="transport_routes")
    op.drop_table("transport_routes")
    op.drop_table("vehicles")
    op.drop_index("ix_book_issues_user_id", table_name="book_issues")
    op.drop_index("ix_book_issues_book_id", table_name="book_issues")
    op.drop_table("book_issues")
    op.drop_index("ix_books_status", table_name="books")
    op.drop_table("books")
    op.drop_index("ix_fee_payments_payment_date", table_name="fee_payments")
    op.drop_index("ix_fee_payments_stu_id", table_name="fee_payments")
    op.drop_index("ix_fee_payments_receipt_id", table_name="fee_payments")
    op.drop_table("fee_payments")
    op.drop_table("fee_accounts")
    op.drop_index("ix_fee_structures_class_program", table_name="fee_structures")
    op.drop_table("fee_structures")
