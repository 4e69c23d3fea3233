"""Patient API routes.

CRUD, search and dashboard endpoints. Every query is scoped to the doctor
resolved from the bearer token; other doctors' patients answer 404.
"""

import math
import uuid
from datetime import date, datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from similia.auth import verify_bearer_token
from similia.config import settings
from similia.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from similia.database import get_db
from similia.models.patient import Patient
from similia.repositories.patient import PatientRepository
from similia.schemas.patient import (
    DateRange,
    FollowupsDueResponse,
    Pagination,
    PatientCreate,
    PatientListItem,
    PatientListResponse,
    PatientResponse,
    PatientSearchResponse,
    PatientStatsResponse,
    PatientUpdate,
    SortField,
    SortOrder,
    TodayPatientsResponse,
)
from similia.services.followups import scan_followups_due
from similia.services.stats import consultation_stats

router = APIRouter(prefix="/patients", tags=["patients"])


def _local_midnight(day: date) -> datetime:
    """Start of ``day`` in the clinic timezone, as UTC."""
    return datetime.combine(day, time.min, tzinfo=settings.tz).astimezone(timezone.utc)


def creation_window(
    today: date,
    date_range: DateRange | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    month: int | None = None,
    year: int | None = None,
) -> tuple[datetime | None, datetime | None]:
    """Translate search date filters into a [from, to) creation-time window.

    Precedence: named range, then explicit start/end dates, then month (of
    ``year`` or the current year), then a whole year.
    """
    if date_range == DateRange.TODAY:
        return _local_midnight(today), _local_midnight(today + timedelta(days=1))
    if date_range == DateRange.WEEK:
        # Weeks start on Sunday
        start_of_week = today - timedelta(days=(today.weekday() + 1) % 7)
        return _local_midnight(start_of_week), None
    if date_range == DateRange.MONTH:
        return _local_midnight(today.replace(day=1)), None
    if date_range == DateRange.YEAR:
        return _local_midnight(today.replace(month=1, day=1)), None

    if start_date or end_date:
        return (
            _local_midnight(start_date) if start_date else None,
            _local_midnight(end_date + timedelta(days=1)) if end_date else None,
        )

    if month:
        first = date(year or today.year, month, 1)
        following = date(first.year + 1, 1, 1) if month == 12 else date(first.year, month + 1, 1)
        return _local_midnight(first), _local_midnight(following)

    if year:
        return _local_midnight(date(year, 1, 1)), _local_midnight(date(year + 1, 1, 1))

    return None, None


def _today() -> date:
    return datetime.now(settings.tz).date()


async def _get_owned_or_404(repo: PatientRepository, patient_id: uuid.UUID, doctor_id: str) -> Patient:
    patient = await repo.get(patient_id, doctor_id)
    if patient is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )
    return patient


@router.get("", response_model=PatientListResponse)
async def list_patients(
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> PatientListResponse:
    """List all of the doctor's patients, newest first."""
    patients = await PatientRepository(db).list_for_doctor(doctor_id)
    return PatientListResponse(
        items=[PatientListItem.model_validate(p) for p in patients],
        count=len(patients),
    )


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    patient_data: PatientCreate,
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> PatientResponse:
    """Register a new patient under the authenticated doctor."""
    patient = Patient(
        doctor_id=doctor_id,
        consultations=[],
        file_urls=[],
        total_consultations=0,
        **patient_data.model_dump(),
    )
    patient = await PatientRepository(db).add(patient)
    return PatientResponse.model_validate(patient)


@router.get("/search", response_model=PatientSearchResponse)
async def search_patients(
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
    q: str | None = Query(None, max_length=100, description="Partial name, case-insensitive"),
    date_range: DateRange | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None, ge=1900, le=9999),
    sort_by: SortField = SortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> PatientSearchResponse:
    """Search and filter patients with pagination.

    Args:
        q: Name search.
        date_range: today, week, month or year (by registration date).
        start_date: Custom range start (inclusive).
        end_date: Custom range end (inclusive).
        month: Registration month, with ``year`` or the current year.
        year: Registration year.
        sort_by: Column to sort by.
        sort_order: asc or desc.
        page: 1-based page number.
        limit: Page size.
    """
    created_from, created_to = creation_window(
        _today(), date_range, start_date, end_date, month, year
    )
    patients, total = await PatientRepository(db).search(
        doctor_id,
        name_query=q,
        created_from=created_from,
        created_to=created_to,
        sort_by=sort_by.value,
        descending=sort_order == SortOrder.DESC,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return PatientSearchResponse(
        patients=[PatientListItem.model_validate(p) for p in patients],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
        query=q or None,
    )


@router.get("/today", response_model=TodayPatientsResponse)
async def todays_patients(
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> TodayPatientsResponse:
    """Patients registered today (clinic timezone), newest first."""
    today = _today()
    patients = await PatientRepository(db).created_between(
        doctor_id,
        _local_midnight(today),
        _local_midnight(today + timedelta(days=1)),
    )
    return TodayPatientsResponse(
        patients=[PatientListItem.model_validate(p) for p in patients],
        count=len(patients),
        date=datetime.now(timezone.utc),
    )


@router.get("/followups-due", response_model=FollowupsDueResponse)
async def followups_due(
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> FollowupsDueResponse:
    """Patients whose latest scheduled follow-up is overdue or due soon.

    Most overdue first. Computed fresh on every request.
    """
    patients = await PatientRepository(db).list_for_doctor(doctor_id)
    entries = scan_followups_due(
        patients,
        as_of=datetime.now(timezone.utc),
        tz=settings.tz,
        horizon_days=settings.followup_horizon_days,
    )
    return FollowupsDueResponse(patients=entries)


@router.get("/stats", response_model=PatientStatsResponse)
async def patient_stats(
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> PatientStatsResponse:
    """Consultation statistics for the dashboard."""
    patients = await PatientRepository(db).list_for_doctor(doctor_id)
    return consultation_stats(
        patients,
        now=datetime.now(timezone.utc),
        tz=settings.tz,
        horizon_days=settings.followup_horizon_days,
    )


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> PatientResponse:
    """Get a single patient with their consultation history.

    Raises:
        HTTPException: 404 if not found or owned by another doctor.
    """
    patient = await _get_owned_or_404(PatientRepository(db), patient_id, doctor_id)
    return PatientResponse.model_validate(patient)


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: uuid.UUID,
    patient_data: PatientUpdate,
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> PatientResponse:
    """Update patient demographics.

    Only fields present in the body are changed.

    Raises:
        HTTPException: 404 if not found or owned by another doctor.
    """
    repo = PatientRepository(db)
    patient = await _get_owned_or_404(repo, patient_id, doctor_id)

    for field, value in patient_data.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "medical_history"):
            continue
        setattr(patient, field, value)

    await repo.save(patient)
    await db.refresh(patient)
    return PatientResponse.model_validate(patient)


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> None:
    """Delete a patient and their consultation history.

    Raises:
        HTTPException: 404 if not found or owned by another doctor.
    """
    deleted = await PatientRepository(db).delete(patient_id, doctor_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )
