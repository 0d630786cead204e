"""Authentication dependency — bearer token checked against the live session."""

from __future__ import annotations

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from interview_desk.models import Session
from interview_desk.state import DeskState, get_state

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    state: DeskState = Depends(get_state),
) -> Session:
    """Return the signed-in session if the request carries its token."""
    provider = state.session
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if not provider.is_authenticated or provider.session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired or signed out")
    if not secrets.compare_digest(credentials.credentials.encode(), provider.session.access_token.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return provider.session
