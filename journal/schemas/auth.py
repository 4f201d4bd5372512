"""Pydantic schemas for the login endpoint."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str
    totp_code: str = Field(pattern=r"^\d{6}$")


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
