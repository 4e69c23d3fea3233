"""Read-only model for the identity provider's session table.

The Better-Auth frontend owns this table and writes a row per signed-in
practitioner. The API only reads it to turn a bearer token into a doctor id.
"""

from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from similia.database import Base


class BetterAuthSession(Base):
    """Better-Auth session table."""

    __tablename__ = "session"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    expiresAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    token: Mapped[str] = mapped_column(Text, unique=True, index=True)
    createdAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updatedAt: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ipAddress: Mapped[str | None] = mapped_column(Text, nullable=True)
    userAgent: Mapped[str | None] = mapped_column(Text, nullable=True)
    userId: Mapped[str] = mapped_column(Text, nullable=False, index=True)
