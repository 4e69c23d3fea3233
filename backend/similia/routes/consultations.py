"""Consultation API routes.

Consultations have no table of their own: creating one or recording a
follow-up rewrites the owning patient. Lookups by consultation id resolve
through the owning patient's doctor, so a foreign id answers 404.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from similia.auth import verify_bearer_token
from similia.database import get_db
from similia.schemas.consultation import (
    Consultation,
    ConsultationCreate,
    ConsultationDetailResponse,
    ConsultationListResponse,
    FollowUpCreate,
    FollowUpResponse,
)
from similia.services.lifecycle import (
    ConcurrentUpdateError,
    ConsultationNotFoundError,
    ConsultationService,
    PatientNotFoundError,
)

router = APIRouter(tags=["consultations"])


def _conflict() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Patient record was modified concurrently, please retry",
    )


@router.post(
    "/patients/{patient_id}/consultations",
    response_model=Consultation,
    status_code=status.HTTP_201_CREATED,
)
async def create_consultation(
    patient_id: uuid.UUID,
    consultation_data: ConsultationCreate,
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> Consultation:
    """Record a new consultation for a patient.

    Args:
        patient_id: The patient UUID.
        consultation_data: Intake and prescription. Chief complaint and
            remedy name are required; omitted groups are stored empty.

    Returns:
        The created consultation with its generated id and date.

    Raises:
        HTTPException: 404 if patient not found, 409 on repeated write conflicts.
    """
    try:
        return await ConsultationService(db).create_consultation(
            patient_id, doctor_id, consultation_data
        )
    except PatientNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )
    except ConcurrentUpdateError:
        raise _conflict()


@router.get("/patients/{patient_id}/consultations", response_model=ConsultationListResponse)
async def list_consultations(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> ConsultationListResponse:
    """List a patient's consultations, newest first.

    Raises:
        HTTPException: 404 if patient not found.
    """
    try:
        consultations = await ConsultationService(db).list_consultations(patient_id, doctor_id)
    except PatientNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )
    return ConsultationListResponse(consultations=consultations)


@router.get("/consultations/{consultation_id}", response_model=ConsultationDetailResponse)
async def get_consultation(
    consultation_id: str,
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> ConsultationDetailResponse:
    """Get one consultation with its patient's id, name and age.

    Raises:
        HTTPException: 404 if consultation not found.
    """
    try:
        consultation, patient = await ConsultationService(db).fetch_consultation(
            consultation_id, doctor_id
        )
    except ConsultationNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Consultation not found",
        )
    return ConsultationDetailResponse(consultation=consultation, patient=patient)


@router.put("/consultations/{consultation_id}/followup", response_model=FollowUpResponse)
async def record_follow_up(
    consultation_id: str,
    follow_up: FollowUpCreate,
    db: AsyncSession = Depends(get_db),
    doctor_id: str = Depends(verify_bearer_token),
) -> FollowUpResponse:
    """Record a follow-up on a consultation.

    A 'change' decision with a new prescription also starts a new
    consultation carrying the case forward; the response still describes the
    consultation the follow-up was recorded on.

    Raises:
        HTTPException: 404 if consultation not found, 409 on repeated write conflicts.
    """
    try:
        consultation = await ConsultationService(db).record_follow_up(
            consultation_id, doctor_id, follow_up
        )
    except ConsultationNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Consultation not found",
        )
    except ConcurrentUpdateError:
        raise _conflict()
    return FollowUpResponse(message="Follow-up added successfully", consultation=consultation)
