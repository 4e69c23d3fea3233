"""Pydantic schemas for the Patient API and dashboards."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from similia.schemas.consultation import Consultation


class PatientCreate(BaseModel):
    """Schema for registering a new patient.

    The owning doctor comes from the bearer token, never from the body.
    """

    name: str = Field(min_length=1, max_length=100)
    age: int | None = Field(default=None, ge=0, le=150)
    weight: float | None = Field(default=None, ge=0, le=500, description="Kilograms")
    height: float | None = Field(default=None, ge=0, le=300, description="Centimetres")
    medical_history: str = Field(default="", max_length=5000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Patient name is required")
        return value


class PatientUpdate(BaseModel):
    """Schema for updating patient demographics.

    Derived consultation fields and ownership are not updatable.
    """

    name: str | None = Field(default=None, min_length=1, max_length=100)
    age: int | None = Field(default=None, ge=0, le=150)
    weight: float | None = Field(default=None, ge=0, le=500)
    height: float | None = Field(default=None, ge=0, le=300)
    medical_history: str | None = Field(default=None, max_length=5000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Patient name cannot be blank")
        return value


class PatientResponse(BaseModel):
    """Full patient aggregate as seen by its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    doctor_id: str
    name: str
    age: int | None
    weight: float | None
    height: float | None
    medical_history: str
    file_urls: list[str]
    consultations: list[Consultation]
    current_remedy: str | None
    last_consultation_date: datetime | None
    total_consultations: int
    created_at: datetime
    updated_at: datetime


class PatientListItem(BaseModel):
    """Patient row without the embedded consultation history."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    age: int | None
    weight: float | None
    height: float | None
    medical_history: str
    current_remedy: str | None
    last_consultation_date: datetime | None
    total_consultations: int
    created_at: datetime
    updated_at: datetime


class PatientListResponse(BaseModel):
    items: list[PatientListItem]
    count: int


# === Search ===


class DateRange(str, Enum):
    """Named creation-date windows for patient search."""

    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class SortField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    NAME = "name"
    AGE = "age"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PatientSearchResponse(BaseModel):
    patients: list[PatientListItem]
    pagination: Pagination
    query: str | None = None


class TodayPatientsResponse(BaseModel):
    patients: list[PatientListItem]
    count: int
    date: datetime


# === Dashboards ===


class FollowupEntry(BaseModel):
    """A patient whose most recent scheduled follow-up is due or overdue."""

    patient_id: UUID
    name: str
    age: int | None
    current_remedy: str | None
    last_consultation_date: datetime | None
    consultation_id: str
    follow_up_date: datetime
    days_until_followup: int
    is_overdue: bool


class FollowupsDueResponse(BaseModel):
    patients: list[FollowupEntry]


class PatientStatsResponse(BaseModel):
    """Consultation statistics for the dashboard."""

    total_patients: int
    total_consultations: int
    patients_today: int
    consultations_this_month: int
    followups_overdue: int
    followups_upcoming: int
    by_diagnosis_approach: dict[str, int]
    by_response_to_treatment: dict[str, int]
    by_decision: dict[str, int]
