"""Repository layer for data access.

Repositories encapsulate database operations and apply the ownership filter
to every query.
"""

from similia.repositories.patient import PatientRepository

__all__ = ["PatientRepository"]
