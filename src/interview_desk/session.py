"""Session provider — sign-in/sign-up against the backend auth API.

The rest of the app only asks two things of it: is there a session, and is
it still loading. Login and logout transitions are broadcast to
subscribers.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

import jwt

from interview_desk import database as db
from interview_desk.errors import QueryError, ValidationError
from interview_desk.models import HRUserProfile, Session, SignUpRequest
from interview_desk.store import SupabaseStore

log = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

SessionListener = Callable[[str, "Session | None"], None]


def _token_claims(token: str) -> dict:
    """Read the claims of a backend-issued token; the backend verifies it, not us."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return {}


def session_from_auth_response(data: dict) -> Session:
    token = data.get("access_token", "")
    if not token:
        raise QueryError("Auth response did not include an access token")
    claims = _token_claims(token)
    user = data.get("user") or {}
    expires = data.get("expires_at") or claims.get("exp")
    return Session(
        access_token=token,
        refresh_token=data.get("refresh_token", ""),
        user_id=user.get("id") or claims.get("sub", ""),
        email=user.get("email") or claims.get("email", ""),
        expires_at=datetime.fromtimestamp(int(expires), tz=timezone.utc) if expires else None,
    )


class SessionProvider:
    def __init__(self, store: SupabaseStore) -> None:
        self.store = store
        self.session: Session | None = None
        self.loading = True
        self._listeners: list[SessionListener] = []

    # -- Subscriptions --------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; call the returned function to unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self.session)

    # -- State ----------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        if self.session is None:
            return False
        if self.session.expires_at and self.session.expires_at <= datetime.now(timezone.utc):
            return False
        return True

    def restore(self, session: Session | None) -> None:
        """Adopt a previously issued session (or none) and finish loading."""
        self.session = session
        self.store.access_token = session.access_token if session else None
        self.loading = False
        if session is not None:
            self._notify(SIGNED_IN)

    # -- Auth calls -----------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> Session:
        if not email.strip() or not password:
            raise ValidationError("email", "Email and password are required")
        data = await self.store.auth(
            "token",
            {"email": email.strip(), "password": password},
            params={"grant_type": "password"},
        )
        self.session = session_from_auth_response(data)
        self.store.access_token = self.session.access_token
        self.loading = False
        log.info("Signed in as %s", self.session.email or email)
        self._notify(SIGNED_IN)
        return self.session

    async def sign_up(self, req: SignUpRequest) -> HRUserProfile:
        """Create the auth user, then the matching ``hr_users`` profile row."""
        if "@" not in req.company_email:
            raise ValidationError("company_email", "Please enter a valid email address")
        if not req.password:
            raise ValidationError("password", "Password is required")

        data = await self.store.auth("signup", {"email": req.company_email, "password": req.password})
        user_id = (data.get("user") or {}).get("id") or data.get("id")
        if not user_id:
            raise QueryError("Could not create user. Try again.")

        profile = HRUserProfile(
            id=user_id,
            first_name=req.first_name,
            last_name=req.last_name,
            phone=req.phone,
            company_email=req.company_email,
            company_name=req.company_name,
        )
        await db.insert_hr_user(self.store, profile)
        return profile

    async def sign_out(self) -> None:
        try:
            if self.session is not None:
                await self.store.auth("logout")
        finally:
            self.session = None
            self.store.access_token = None
            self._notify(SIGNED_OUT)
