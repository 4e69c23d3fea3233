"""add better-auth session table

Better-Auth in the frontend signs practitioners in and writes one row per
session. The API only reads it to resolve bearer tokens to a doctor id, but
the table is created here so schema ownership is explicit.

Revision ID: 0001_better_auth_session
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence
from typing import Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_better_auth_session"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "session",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("expiresAt", sa.DateTime(timezone=True), nullable=False),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("createdAt", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updatedAt", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("ipAddress", sa.Text(), nullable=True),
        sa.Column("userAgent", sa.Text(), nullable=True),
        sa.Column("userId", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_session_token", "session", ["token"], unique=True)
    op.create_index("ix_session_userId", "session", ["userId"])


def downgrade() -> None:
    op.drop_index("ix_session_userId", table_name="session")
    op.drop_index("ix_session_token", table_name="session")
    op.drop_table("session")
