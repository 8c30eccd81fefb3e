from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    remember_me: bool = Field(default=False, validation_alias="rememberMe")


class LoginResponse(BaseModel):
    ok: bool = True


class SignupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str
    first_name: str = Field(validation_alias="firstName")
    last_name: str = Field(validation_alias="lastName")


class SignupResponse(BaseModel):
    ok: bool = True


class RefreshResponse(BaseModel):
    ok: bool = True


class LogoutResponse(BaseModel):
    ok: bool = True


class CsrfResponse(BaseModel):
    ok: bool = True
    csrfToken: str
