"""Consultation lifecycle.

Consultations are embedded in their patient, so every operation here is a
read-modify-write of one patient row:

1. Load the patient through the ownership filter.
2. Apply the change to the consultation list.
3. Recompute the derived summary with ``refresh_summary``.
4. Flush one version-checked UPDATE (plus refs for new consultations).

If step 4 loses a race the whole cycle is replayed on a fresh read, up to
``settings.write_retry_attempts`` times.
"""

import logging
import secrets
import string
import time
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from similia.config import settings
from similia.constants import CONSULTATION_ID_PREFIX
from similia.models.patient import Patient
from similia.repositories.patient import PatientRepository
from similia.schemas.consultation import (
    Consultation,
    ConsultationCreate,
    FollowUpCreate,
    FollowUpDecision,
    PatientSummary,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ID_ALPHABET = string.ascii_lowercase + string.digits


class PatientNotFoundError(ValueError):
    """Raised when a patient is missing or owned by another doctor."""

    pass


class ConsultationNotFoundError(ValueError):
    """Raised when a consultation is missing or owned by another doctor."""

    pass


class ConcurrentUpdateError(RuntimeError):
    """Raised when a patient write keeps conflicting after all retries."""

    pass


# =============================================================================
# Aggregate helpers
# =============================================================================


def new_consultation_id() -> str:
    """Generate an id like ``CONS-1718000000000-k3j9x2a1q``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{CONSULTATION_ID_PREFIX}-{int(time.time() * 1000)}-{suffix}"


def load_consultations(patient: Patient) -> list[Consultation]:
    """Parse the embedded documents in storage (append) order."""
    return [Consultation.model_validate(doc) for doc in patient.consultations or []]


def refresh_summary(patient: Patient) -> None:
    """Recompute the derived summary fields from ``patient.consultations``.

    Called by every mutator before the write, so the summary always describes
    the last appended consultation.
    """
    consultations = patient.consultations or []
    patient.total_consultations = len(consultations)
    if not consultations:
        patient.current_remedy = None
        patient.last_consultation_date = None
        return
    latest = Consultation.model_validate(consultations[-1])
    patient.current_remedy = latest.prescribed_remedy.remedy_name
    patient.last_consultation_date = latest.consultation_date


def store_consultations(patient: Patient, consultations: list[Consultation]) -> None:
    """Replace the embedded list and refresh the summary in one step."""
    patient.consultations = [c.model_dump(mode="json") for c in consultations]
    refresh_summary(patient)


def build_consultation(data: ConsultationCreate, now: datetime | None = None) -> Consultation:
    """Create a consultation document with a fresh id and date."""
    return Consultation(
        consultation_id=new_consultation_id(),
        consultation_date=now or datetime.now(timezone.utc),
        **data.model_dump(),
    )


def apply_follow_up(
    consultations: list[Consultation],
    consultation_id: str,
    follow_up: FollowUpCreate,
    now: datetime | None = None,
) -> tuple[Consultation, Consultation | None]:
    """Record a follow-up against one consultation of the list, in place.

    A 'change' decision that carries a new prescription appends a new
    consultation continuing the same case; the original keeps its remedy.

    Returns:
        Tuple of (updated target, spawned consultation or None).

    Raises:
        ConsultationNotFoundError: If the id is not in the list.
    """
    index = next(
        (i for i, c in enumerate(consultations) if c.consultation_id == consultation_id),
        None,
    )
    if index is None:
        raise ConsultationNotFoundError(f"Consultation {consultation_id} not found")

    original = consultations[index]
    updates = {
        "response_to_treatment": follow_up.response_to_treatment,
        "improvements_noted": follow_up.improvements_noted or "",
        "remaining_symptoms": follow_up.remaining_symptoms or "",
        "new_symptoms": follow_up.new_symptoms or "",
        "follow_up_notes": follow_up.follow_up_notes or "",
        "decision": follow_up.decision,
    }
    if follow_up.next_follow_up_date is not None:
        updates["follow_up_date"] = follow_up.next_follow_up_date
    target = original.model_copy(update=updates)
    consultations[index] = target

    spawned = None
    if follow_up.decision == FollowUpDecision.CHANGE and follow_up.new_prescription is not None:
        new_remedy = follow_up.new_prescription
        spawned = Consultation(
            consultation_id=new_consultation_id(),
            consultation_date=now or datetime.now(timezone.utc),
            chief_complaint=f"Follow-up to {original.consultation_id}",
            physical_symptoms=original.physical_symptoms.model_copy(deep=True),
            mental_emotional_state=original.mental_emotional_state.model_copy(deep=True),
            general_characteristics=original.general_characteristics.model_copy(deep=True),
            prescribed_remedy=new_remedy,
            doctor_notes=(
                f"Changed remedy from {original.prescribed_remedy.remedy_name} "
                f"to {new_remedy.remedy_name}"
            ),
            diagnosis_approach=original.diagnosis_approach,
            follow_up_date=follow_up.next_follow_up_date,
        )
        consultations.append(spawned)

    return target, spawned


def newest_first(consultations: list[Consultation]) -> list[Consultation]:
    """Presentation order for a patient's consultation history."""
    return sorted(consultations, key=lambda c: c.consultation_date, reverse=True)


# =============================================================================
# Service
# =============================================================================


class ConsultationService:
    """Consultation operations scoped to the requesting doctor."""

    def __init__(
        self,
        db: AsyncSession,
        repository: PatientRepository | None = None,
        max_attempts: int | None = None,
    ):
        self.db = db
        self.patients = repository or PatientRepository(db)
        self.max_attempts = max_attempts or settings.write_retry_attempts

    async def _with_retry(self, label: str, attempt_write: Callable[[], Awaitable[T]]) -> T:
        """Run a read-modify-write, replaying it when the write conflicts."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await attempt_write()
            except (StaleDataError, IntegrityError) as exc:
                await self.db.rollback()
                logger.warning(
                    "%s conflicted (attempt %d/%d): %s",
                    label,
                    attempt,
                    self.max_attempts,
                    exc.__class__.__name__,
                )
        raise ConcurrentUpdateError(f"{label} failed after {self.max_attempts} attempts")

    async def create_consultation(
        self,
        patient_id: uuid.UUID,
        doctor_id: str,
        data: ConsultationCreate,
    ) -> Consultation:
        """Append a new consultation to a patient.

        Raises:
            PatientNotFoundError: If the patient is missing or not owned.
            ConcurrentUpdateError: If every write attempt conflicted.
        """

        async def attempt() -> Consultation:
            patient = await self.patients.get(patient_id, doctor_id, fresh=True)
            if patient is None:
                raise PatientNotFoundError(f"Patient {patient_id} not found")

            consultation = build_consultation(data)
            consultations = load_consultations(patient)
            consultations.append(consultation)
            store_consultations(patient, consultations)

            await self.patients.save(patient, [consultation.consultation_id])
            return consultation

        consultation = await self._with_retry("create consultation", attempt)
        logger.info(
            "Created consultation %s for patient %s",
            consultation.consultation_id,
            patient_id,
        )
        return consultation

    async def record_follow_up(
        self,
        consultation_id: str,
        doctor_id: str,
        follow_up: FollowUpCreate,
    ) -> Consultation:
        """Record a follow-up on a consultation and apply the decision.

        Returns:
            The updated target consultation (not a consultation spawned by a
            'change' decision).

        Raises:
            ConsultationNotFoundError: If the consultation is missing or not owned.
            ConcurrentUpdateError: If every write attempt conflicted.
        """

        async def attempt() -> Consultation:
            patient = await self.patients.get_by_consultation_id(
                consultation_id, doctor_id, fresh=True
            )
            if patient is None:
                raise ConsultationNotFoundError(f"Consultation {consultation_id} not found")

            consultations = load_consultations(patient)
            target, spawned = apply_follow_up(consultations, consultation_id, follow_up)
            store_consultations(patient, consultations)

            new_ids = [spawned.consultation_id] if spawned else []
            await self.patients.save(patient, new_ids)
            if spawned:
                logger.info(
                    "Remedy changed on %s: spawned consultation %s",
                    consultation_id,
                    spawned.consultation_id,
                )
            return target

        target = await self._with_retry("record follow-up", attempt)
        logger.info("Recorded follow-up (%s) on consultation %s", target.decision.value, consultation_id)
        return target

    async def fetch_consultation(
        self,
        consultation_id: str,
        doctor_id: str,
    ) -> tuple[Consultation, PatientSummary]:
        """Get one consultation with a minimal summary of its patient.

        Raises:
            ConsultationNotFoundError: If missing or not owned.
        """
        patient = await self.patients.get_by_consultation_id(consultation_id, doctor_id)
        if patient is None:
            raise ConsultationNotFoundError(f"Consultation {consultation_id} not found")

        consultation = next(
            (c for c in load_consultations(patient) if c.consultation_id == consultation_id),
            None,
        )
        if consultation is None:
            raise ConsultationNotFoundError(f"Consultation {consultation_id} not found")
        return consultation, PatientSummary.model_validate(patient)

    async def list_consultations(
        self,
        patient_id: uuid.UUID,
        doctor_id: str,
    ) -> list[Consultation]:
        """All consultations of a patient, newest first.

        Raises:
            PatientNotFoundError: If missing or not owned.
        """
        patient = await self.patients.get(patient_id, doctor_id)
        if patient is None:
            raise PatientNotFoundError(f"Patient {patient_id} not found")
        return newest_first(load_consultations(patient))
