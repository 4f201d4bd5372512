"""Authentication API: exchange password and TOTP code for a bearer token."""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from journal.config import settings
from journal.database import get_session
from journal.schemas.auth import LoginRequest, LoginResponse
from journal.services.auth import authenticate, issue_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, session: Session = Depends(get_session)):
    user = authenticate(session, body.username, body.password, body.totp_code)
    return LoginResponse(
        access_token=issue_token(user.username),
        expires_in=settings.jwt_expire_minutes * 60,
    )
