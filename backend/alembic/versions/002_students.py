"""Students table (unique roll_number; parent/academic details as JSON).

Revision ID: 002
Revises: 001
Create Date: Initial

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "students",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("roll_number", sa.String(50), nullable=False),
        sa.Column("class", sa.String(50), nullable=False),
        sa.Column("section", sa.String(20), nullable=False),
        sa.Column("gender", sa.String(10), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("accommodation_type", sa.String(20), nullable=False, server_default="Day Scholler"),
        sa.Column("transport_needed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("address", sa.String(200), nullable=False),
        sa.Column("location", sa.String(100), nullable=True),
        sa.Column("district", sa.String(100), nullable=True),
        sa.Column("pincode", sa.String(10), nullable=True),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("contact_number", sa.String(30), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("parent_details", sa.JSON(), nullable=True),
        sa.Column("academic_details", sa.JSON(), nullable=True),
        sa.Column("avatar", sa.String(1024), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("gender IN ('Male', 'Female', 'Other')", name="students_gender_check"),
        sa.CheckConstraint(
            "accommodation_type IN ('Day Scholler', 'Hosteller')", name="students_accommodation_type_check"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_students_roll_number", "students", ["roll_number"], unique=True)
    op.create_index("ix_students_class", "students", ["class"], unique=False)
    op.create_index("ix_students_created_at", "students", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_students_created_at", table_name="students")
    op.drop_index("ix_students_class", table_name="students")
    op.drop_index("ix_students_roll_number", table_name="students")
    op.drop_table("students")
