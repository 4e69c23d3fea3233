"""Follow-up due scanner.

Derives, for each of a doctor's patients, whether their most recent scheduled
follow-up is overdue or falls within the next ``horizon_days`` days. Pure
function of the stored patients and the reference date; nothing is cached.
"""

from collections.abc import Iterable
from datetime import date, datetime, tzinfo

from similia.models.patient import Patient
from similia.schemas.consultation import Consultation
from similia.schemas.patient import FollowupEntry
from similia.services.lifecycle import load_consultations


def local_date(value: datetime, tz: tzinfo) -> date:
    """Calendar date of ``value`` in the clinic timezone.

    Naive values are taken to already be clinic-local (a bare ``2024-06-17``
    from a form means that day in the clinic).
    """
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(tz).date()


def latest_scheduled(consultations: Iterable[Consultation]) -> Consultation | None:
    """Most recently held consultation that has a follow-up date.

    Ordered by consultation date, not follow-up date.
    """
    scheduled = [c for c in consultations if c.follow_up_date is not None]
    if not scheduled:
        return None
    return max(scheduled, key=lambda c: c.consultation_date)


def followup_entry(
    patient: Patient,
    as_of: datetime,
    horizon_days: int,
    tz: tzinfo,
) -> FollowupEntry | None:
    """Follow-up entry for one patient, or None if nothing is due."""
    selected = latest_scheduled(load_consultations(patient))
    if selected is None:
        return None

    days_until = (local_date(selected.follow_up_date, tz) - local_date(as_of, tz)).days
    if days_until > horizon_days:
        return None

    return FollowupEntry(
        patient_id=patient.id,
        name=patient.name,
        age=patient.age,
        current_remedy=patient.current_remedy or selected.prescribed_remedy.remedy_name,
        last_consultation_date=patient.last_consultation_date or selected.consultation_date,
        consultation_id=selected.consultation_id,
        follow_up_date=selected.follow_up_date,
        days_until_followup=days_until,
        is_overdue=days_until < 0,
    )


def scan_followups_due(
    patients: Iterable[Patient],
    as_of: datetime,
    tz: tzinfo,
    horizon_days: int = 7,
) -> list[FollowupEntry]:
    """Patients with an overdue or upcoming follow-up, most overdue first.

    Args:
        patients: All patients of one doctor.
        as_of: Reference time; only its clinic-local date matters.
        tz: Clinic timezone used to truncate both dates to midnight.
        horizon_days: Include follow-ups due up to this many days ahead
            (inclusive). Overdue follow-ups are always included.

    Returns:
        Entries sorted ascending by days until the follow-up.
    """
    entries = [
        entry
        for entry in (followup_entry(p, as_of, horizon_days, tz) for p in patients)
        if entry is not None
    ]
    return sorted(entries, key=lambda e: e.days_until_followup)
