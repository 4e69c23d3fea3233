"""SQLAlchemy models."""

from similia.models.auth import BetterAuthSession
from similia.models.patient import ConsultationRef, Patient

__all__ = [
    "BetterAuthSession",
    "ConsultationRef",
    "Patient",
]
