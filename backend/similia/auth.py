"""Bearer token authentication.

The rest of the API only ever sees the resulting doctor id. How a token maps to
that id is the job of an ``IdentityVerifier``; the default one looks the token
up in the Better-Auth session table.
"""

from datetime import datetime, timezone
from typing import Protocol

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from similia.database import get_db
from similia.models.auth import BetterAuthSession

bearer_scheme = HTTPBearer(auto_error=False)


class IdentityVerifier(Protocol):
    """Turns a bearer credential into a stable subject id."""

    async def verify(self, token: str) -> str | None:
        """Return the subject id, or None if the token is not valid."""
        ...


class SessionTableVerifier:
    """Validate tokens against unexpired rows of the Better-Auth session table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def verify(self, token: str) -> str | None:
        result = await self.db.execute(
            select(BetterAuthSession).where(
                BetterAuthSession.token == token,
                BetterAuthSession.expiresAt > datetime.now(timezone.utc),
            )
        )
        session = result.scalar_one_or_none()
        return session.userId if session else None


async def get_identity_verifier(db: AsyncSession = Depends(get_db)) -> IdentityVerifier:
    """Dependency providing the configured identity verifier."""
    return SessionTableVerifier(db)


async def verify_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> str:
    """Validate the request's bearer token.

    Returns:
        The authenticated doctor id.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
        )

    doctor_id = await verifier.verify(credentials.credentials)
    if doctor_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return doctor_id
