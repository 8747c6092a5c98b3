# app/schemas/auth.py
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # JSON em camelCase (userId, newPassword...), atributos em snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginIn(CamelModel):
    email: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., min_length=1)


class LoginOut(CamelModel):
    status: Literal["Authenticated", "PasswordRotationRequired", "Rejected"]
    user_id: Optional[str] = None
    reason: Optional[str] = None
    access_token: Optional[str] = None
    token_type: Optional[str] = None
    rotation_token: Optional[str] = None


class ChangePasswordIn(CamelModel):
    user_id: str = Field(..., min_length=1)
    new_password: str


class RegisterIn(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=200)
    password: str
    whatsapp: Optional[str] = None
    company_name: str = Field(..., min_length=1, max_length=160)
    cnpj: str = Field(..., min_length=14, max_length=18)


class RegisterOut(CamelModel):
    success: bool = True
    user_id: str
    company_id: str
    message: Optional[str] = None


class ResultOut(CamelModel):
    success: bool
    message: Optional[str] = None
    reason: Optional[str] = None


class ResetRequestIn(CamelModel):
    email: str = Field(..., max_length=200)


class ResetRequestOut(CamelModel):
    accepted: bool = True


class ResetConsumeIn(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str


class MeOut(CamelModel):
    id: str
    email: str
    full_name: str
    whatsapp: Optional[str] = None
    company_id: str
    is_admin: bool
    temporary_password: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None
