"""add patients and consultation_refs

Patients embed their consultation history as a JSONB array. The
consultation_refs table indexes that array by consultation id (globally
unique) and is maintained in the same transaction as the patient row.

Revision ID: 0002_patients
Revises: 0001_better_auth_session
Create Date: 2026-10-19
"""

from collections.abc import Sequence
from typing import Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0002_patients"
down_revision: Union[str, Sequence[str], None] = "0001_better_auth_session"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create patients and consultation_refs with their indexes."""
    op.create_table(
        "patients",
        sa.Column("id", sa.Uuid(), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("doctor_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("height", sa.Float(), nullable=True),
        sa.Column("medical_history", sa.Text(), nullable=False, server_default=""),
        sa.Column("file_urls", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("consultations", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("current_remedy", sa.String(255), nullable=True),
        sa.Column("last_consultation_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_consultations", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("age IS NULL OR (age >= 0 AND age <= 150)", name="ck_patients_age"),
        sa.CheckConstraint("weight IS NULL OR (weight >= 0 AND weight <= 500)", name="ck_patients_weight"),
        sa.CheckConstraint("height IS NULL OR (height >= 0 AND height <= 300)", name="ck_patients_height"),
    )
    op.create_index("ix_patients_doctor_id", "patients", ["doctor_id"])
    op.create_index("idx_patient_doctor_created", "patients", ["doctor_id", "created_at"])
    op.create_index("idx_patient_doctor_name", "patients", ["doctor_id", "name"])

    op.create_table(
        "consultation_refs",
        sa.Column("consultation_id", sa.String(64), primary_key=True),
        sa.Column(
            "patient_id",
            sa.Uuid(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    op.create_index("ix_consultation_refs_patient_id", "consultation_refs", ["patient_id"])


def downgrade() -> None:
    """Drop consultation_refs and patients."""
    op.drop_table("consultation_refs")
    op.drop_table("patients")
