"""Pydantic schemas for consultations and follow-ups.

``Consultation`` is both the API response shape and the shape of each element
of ``Patient.consultations`` (dumped with ``mode="json"``). Nested intake
groups always carry every key so consumers can rely on a complete structure.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# === Enums ===


class DiagnosisApproach(str, Enum):
    """How the remedy was selected."""

    CONSTITUTIONAL = "constitutional"
    ACUTE = "acute"
    CHRONIC = "chronic"
    MIASMATIC = "miasmatic"


class ResponseToTreatment(str, Enum):
    """Patient response recorded at follow-up."""

    IMPROVED = "improved"
    SAME = "same"
    WORSENED = "worsened"
    PARTIALLY_IMPROVED = "partially_improved"


class FollowUpDecision(str, Enum):
    """Doctor's decision at follow-up."""

    REPEAT = "repeat"
    CHANGE = "change"
    OBSERVE = "observe"


# === Intake groups ===


class Modalities(BaseModel):
    """What makes the complaint better or worse."""

    better_by: list[str] = Field(default_factory=list)
    worse_by: list[str] = Field(default_factory=list)


class PhysicalSymptoms(BaseModel):
    location: str = ""
    sensation: str = ""
    timing: str = ""
    modalities: Modalities = Field(default_factory=Modalities)


class MentalEmotionalState(BaseModel):
    primary_emotion: str = ""
    personality: str = ""
    stress_response: str = ""


class GeneralCharacteristics(BaseModel):
    thermal_state: str = Field(default="", description="e.g. 'chilly' or 'hot'")
    appetite: str = ""
    thirst: str = ""
    food_cravings: list[str] = Field(default_factory=list)
    sleep_pattern: str = ""
    energy_level: str = ""


class PrescribedRemedy(BaseModel):
    """Remedy as entered with a new consultation.

    Only the remedy name is required here; the other prescription fields
    default to empty strings.
    """

    remedy_name: str = Field(min_length=1, max_length=255)
    potency: str = ""
    dosage: str = ""
    frequency: str = ""
    duration: str = ""
    instructions: str = ""
    reason_for_selection: str = Field(default="", max_length=1000)


class NewPrescription(PrescribedRemedy):
    """Full replacement prescription supplied with a 'change' decision."""

    potency: str = Field(min_length=1)
    dosage: str = Field(min_length=1)
    frequency: str = Field(min_length=1)
    duration: str = Field(min_length=1)


# === Requests ===


class ConsultationCreate(BaseModel):
    """Schema for recording a new consultation on a patient."""

    chief_complaint: str = Field(min_length=1, max_length=2000)
    physical_symptoms: PhysicalSymptoms = Field(default_factory=PhysicalSymptoms)
    mental_emotional_state: MentalEmotionalState = Field(default_factory=MentalEmotionalState)
    general_characteristics: GeneralCharacteristics = Field(default_factory=GeneralCharacteristics)
    prescribed_remedy: PrescribedRemedy
    doctor_notes: str = Field(default="", max_length=3000)
    diagnosis_approach: DiagnosisApproach = DiagnosisApproach.CONSTITUTIONAL
    follow_up_date: datetime | None = None
    next_steps: str = Field(default="", max_length=1000)


class FollowUpCreate(BaseModel):
    """Schema for recording a follow-up against an existing consultation."""

    response_to_treatment: ResponseToTreatment
    decision: FollowUpDecision
    improvements_noted: str | None = None
    remaining_symptoms: str | None = None
    new_symptoms: str | None = None
    follow_up_notes: str | None = Field(default=None, max_length=2000)
    next_follow_up_date: datetime | None = None
    new_prescription: NewPrescription | None = Field(
        default=None,
        description="Only used when decision is 'change'",
    )


# === Stored document / responses ===


class Consultation(BaseModel):
    """One clinical visit, embedded in its patient."""

    consultation_id: str
    consultation_date: datetime
    chief_complaint: str = Field(max_length=2000)
    physical_symptoms: PhysicalSymptoms = Field(default_factory=PhysicalSymptoms)
    mental_emotional_state: MentalEmotionalState = Field(default_factory=MentalEmotionalState)
    general_characteristics: GeneralCharacteristics = Field(default_factory=GeneralCharacteristics)
    prescribed_remedy: PrescribedRemedy
    doctor_notes: str = Field(default="", max_length=3000)
    diagnosis_approach: DiagnosisApproach = DiagnosisApproach.CONSTITUTIONAL
    follow_up_date: datetime | None = None
    next_steps: str = ""

    # Populated once a follow-up is recorded
    response_to_treatment: ResponseToTreatment | None = None
    improvements_noted: str | None = None
    remaining_symptoms: str | None = None
    new_symptoms: str | None = None
    follow_up_notes: str | None = None
    decision: FollowUpDecision | None = None


class PatientSummary(BaseModel):
    """Minimal patient identity returned alongside a consultation."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    age: int | None


class ConsultationDetailResponse(BaseModel):
    consultation: Consultation
    patient: PatientSummary


class ConsultationListResponse(BaseModel):
    """Consultations for one patient, newest first."""

    consultations: list[Consultation]


class FollowUpResponse(BaseModel):
    message: str
    consultation: Consultation
