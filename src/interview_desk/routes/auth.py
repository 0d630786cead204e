"""Auth routes — sign-in, sign-up, sign-out, me."""

from fastapi import APIRouter, Depends

from interview_desk.auth import get_current_session
from interview_desk.models import LoginRequest, Session, SignUpRequest
from interview_desk.state import DeskState, get_state

router = APIRouter()


@router.post("/login")
async def login(req: LoginRequest, state: DeskState = Depends(get_state)):
    session = await state.session.sign_in(req.email, req.password)
    return {"token": session.access_token, "session": session.model_dump(exclude={"refresh_token"})}


@router.post("/signup")
async def signup(req: SignUpRequest, state: DeskState = Depends(get_state)):
    profile = await state.session.sign_up(req)
    return {"message": "Account created. You can sign in now.", "profile": profile.model_dump()}


@router.post("/logout")
async def logout(_session: Session = Depends(get_current_session), state: DeskState = Depends(get_state)):
    await state.session.sign_out()
    return {"status": "signed_out"}


@router.get("/me")
async def me(session: Session = Depends(get_current_session)):
    return session.model_dump(exclude={"access_token", "refresh_token"})
