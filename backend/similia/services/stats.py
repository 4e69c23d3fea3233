"""Consultation statistics for the practitioner dashboard."""

from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timezone, tzinfo

from similia.models.patient import Patient
from similia.schemas.consultation import DiagnosisApproach, FollowUpDecision, ResponseToTreatment
from similia.schemas.patient import PatientStatsResponse
from similia.services.followups import local_date, scan_followups_due
from similia.services.lifecycle import load_consultations


def _stored_utc(value: datetime) -> datetime:
    # Timestamp columns come back naive from SQLite; they are always UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def consultation_stats(
    patients: Sequence[Patient],
    now: datetime,
    tz: tzinfo,
    horizon_days: int = 7,
) -> PatientStatsResponse:
    """Summarize one doctor's patients and consultations."""
    today = local_date(now, tz)

    approaches: Counter[str] = Counter({a.value: 0 for a in DiagnosisApproach})
    responses: Counter[str] = Counter({r.value: 0 for r in ResponseToTreatment})
    decisions: Counter[str] = Counter({d.value: 0 for d in FollowUpDecision})
    total_consultations = 0
    this_month = 0
    patients_today = 0

    for patient in patients:
        if local_date(_stored_utc(patient.created_at), tz) == today:
            patients_today += 1
        for consultation in load_consultations(patient):
            total_consultations += 1
            held_on = local_date(consultation.consultation_date, tz)
            if (held_on.year, held_on.month) == (today.year, today.month):
                this_month += 1
            approaches[consultation.diagnosis_approach.value] += 1
            if consultation.response_to_treatment is not None:
                responses[consultation.response_to_treatment.value] += 1
            if consultation.decision is not None:
                decisions[consultation.decision.value] += 1

    due = scan_followups_due(patients, now, tz, horizon_days)
    overdue = sum(1 for entry in due if entry.is_overdue)

    return PatientStatsResponse(
        total_patients=len(patients),
        total_consultations=total_consultations,
        patients_today=patients_today,
        consultations_this_month=this_month,
        followups_overdue=overdue,
        followups_upcoming=len(due) - overdue,
        by_diagnosis_approach=dict(approaches),
        by_response_to_treatment=dict(responses),
        by_decision=dict(decisions),
    )
