"""Pydantic schemas."""

from similia.schemas.consultation import (
    Consultation,
    ConsultationCreate,
    ConsultationDetailResponse,
    ConsultationListResponse,
    DiagnosisApproach,
    FollowUpCreate,
    FollowUpDecision,
    FollowUpResponse,
    GeneralCharacteristics,
    MentalEmotionalState,
    NewPrescription,
    PatientSummary,
    PhysicalSymptoms,
    PrescribedRemedy,
    ResponseToTreatment,
)
from similia.schemas.patient import (
    FollowupEntry,
    FollowupsDueResponse,
    PatientCreate,
    PatientListItem,
    PatientListResponse,
    PatientResponse,
    PatientSearchResponse,
    PatientStatsResponse,
    PatientUpdate,
    TodayPatientsResponse,
)

__all__ = [
    # Consultation schemas
    "Consultation",
    "ConsultationCreate",
    "ConsultationDetailResponse",
    "ConsultationListResponse",
    "DiagnosisApproach",
    "FollowUpCreate",
    "FollowUpDecision",
    "FollowUpResponse",
    "GeneralCharacteristics",
    "MentalEmotionalState",
    "NewPrescription",
    "PatientSummary",
    "PhysicalSymptoms",
    "PrescribedRemedy",
    "ResponseToTreatment",
    # Patient schemas
    "FollowupEntry",
    "FollowupsDueResponse",
    "PatientCreate",
    "PatientListItem",
    "PatientListResponse",
    "PatientResponse",
    "PatientSearchResponse",
    "PatientStatsResponse",
    "PatientUpdate",
    "TodayPatientsResponse",
]
