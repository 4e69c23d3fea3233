"""Patient repository.

Every query here is filtered by the requesting doctor's id. A patient or
consultation owned by someone else is indistinguishable from one that does not
exist: both come back as ``None``.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from similia.models.patient import ConsultationRef, Patient


class PatientRepository:
    """Data access for the Patient aggregate.

    Consultations live inside ``Patient.consultations``; the
    ``consultation_refs`` rows written by ``save`` only index them by id.
    """

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session.
        """
        self.db = db

    def _owned(self, doctor_id: str) -> Select[tuple[Patient]]:
        """Base query restricted to one doctor's patients."""
        return select(Patient).where(Patient.doctor_id == doctor_id)

    async def add(self, patient: Patient) -> Patient:
        """Insert a new patient."""
        self.db.add(patient)
        await self.db.flush()
        await self.db.refresh(patient)
        return patient

    async def get(
        self,
        patient_id: uuid.UUID,
        doctor_id: str,
        *,
        fresh: bool = False,
    ) -> Patient | None:
        """Get a patient owned by ``doctor_id``.

        Args:
            patient_id: Patient UUID.
            doctor_id: Requesting doctor.
            fresh: Overwrite any copy already in the session with the row as
                currently stored (used before a read-modify-write).

        Returns:
            The patient, or None if missing or owned by another doctor.
        """
        query = self._owned(doctor_id).where(Patient.id == patient_id)
        if fresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_consultation_id(
        self,
        consultation_id: str,
        doctor_id: str,
        *,
        fresh: bool = False,
    ) -> Patient | None:
        """Get the patient owning a consultation, if it belongs to ``doctor_id``."""
        query = (
            self._owned(doctor_id)
            .join(ConsultationRef, ConsultationRef.patient_id == Patient.id)
            .where(ConsultationRef.consultation_id == consultation_id)
        )
        if fresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_doctor(self, doctor_id: str) -> list[Patient]:
        """All of a doctor's patients, newest first."""
        result = await self.db.execute(
            self._owned(doctor_id).order_by(Patient.created_at.desc())
        )
        return list(result.scalars().all())

    async def created_between(
        self,
        doctor_id: str,
        start: datetime,
        end: datetime,
    ) -> list[Patient]:
        """Patients registered in ``[start, end)``, newest first."""
        result = await self.db.execute(
            self._owned(doctor_id)
            .where(Patient.created_at >= start, Patient.created_at < end)
            .order_by(Patient.created_at.desc())
        )
        return list(result.scalars().all())

    async def search(
        self,
        doctor_id: str,
        *,
        name_query: str | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Patient], int]:
        """Filter, sort and paginate a doctor's patients.

        Args:
            name_query: Case-insensitive substring of the patient name.
            created_from: Inclusive lower bound on creation time.
            created_to: Exclusive upper bound on creation time.
            sort_by: Patient column name to order by.
            descending: Sort direction.

        Returns:
            Tuple of (page of patients, total matching count).
        """
        query = self._owned(doctor_id)

        if name_query:
            query = query.where(Patient.name.icontains(name_query, autoescape=True))
        if created_from is not None:
            query = query.where(Patient.created_at >= created_from)
        if created_to is not None:
            query = query.where(Patient.created_at < created_to)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        column = getattr(Patient, sort_by)
        query = query.order_by(column.desc() if descending else column.asc(), Patient.id)
        result = await self.db.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all()), total

    async def save(self, patient: Patient, new_consultation_ids: Iterable[str] = ()) -> Patient:
        """Flush a mutated patient together with refs for its new consultations.

        The patient UPDATE is conditional on its version, so this raises
        ``sqlalchemy.orm.exc.StaleDataError`` if another writer got there
        first, and ``IntegrityError`` if a consultation id is already taken.
        """
        for consultation_id in new_consultation_ids:
            self.db.add(ConsultationRef(consultation_id=consultation_id, patient_id=patient.id))
        await self.db.flush()
        return patient

    async def delete(self, patient_id: uuid.UUID, doctor_id: str) -> bool:
        """Delete a patient and its consultation refs.

        Returns:
            True if deleted, False if not found for this doctor.
        """
        patient = await self.get(patient_id, doctor_id)
        if patient is None:
            return False
        await self.db.execute(
            delete(ConsultationRef).where(ConsultationRef.patient_id == patient.id)
        )
        await self.db.delete(patient)
        await self.db.flush()
        return True
