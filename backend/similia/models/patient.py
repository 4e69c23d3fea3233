"""SQLAlchemy models for the Patient aggregate.

A patient row carries its full consultation history as an embedded JSON
document array. ``consultation_refs`` is a lookup projection of that array
(consultation_id -> patient_id) so a consultation can be resolved by id alone
and its id is unique across the whole store.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from similia.database import Base, JSONDocument


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Patient(Base):
    """A person under one doctor's care, owning all of their consultations.

    ``current_remedy``, ``last_consultation_date`` and ``total_consultations``
    are derived from ``consultations`` and are only ever written by
    ``similia.services.lifecycle.refresh_summary``.
    """

    __tablename__ = "patients"

    # === Identity ===
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # === Ownership ===
    doctor_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # === Demographics ===
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    height: Mapped[float | None] = mapped_column(Float, nullable=True)
    medical_history: Mapped[str] = mapped_column(Text, nullable=False, default="")
    file_urls: Mapped[list[str]] = mapped_column(JSONDocument, nullable=False, default=list)

    # === Embedded consultation history (append order) ===
    consultations: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument,
        nullable=False,
        default=list,
    )

    # === Derived summary ===
    current_remedy: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_consultation_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    total_consultations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # === Optimistic concurrency ===
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # === Timing ===
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_patient_doctor_created", "doctor_id", "created_at"),
        Index("idx_patient_doctor_name", "doctor_id", "name"),
        CheckConstraint("age IS NULL OR (age >= 0 AND age <= 150)", name="ck_patients_age"),
        CheckConstraint("weight IS NULL OR (weight >= 0 AND weight <= 500)", name="ck_patients_weight"),
        CheckConstraint("height IS NULL OR (height >= 0 AND height <= 300)", name="ck_patients_height"),
    )

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, name={self.name!r}, consultations={self.total_consultations})>"


class ConsultationRef(Base):
    """Lookup row for one embedded consultation.

    Written in the same flush as the patient document. The primary key makes
    consultation ids globally unique.
    """

    __tablename__ = "consultation_refs"

    consultation_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    patient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<ConsultationRef(consultation_id={self.consultation_id}, patient_id={self.patient_id})>"
