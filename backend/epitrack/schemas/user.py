from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from epitrack.core.permissions import ROLE_PERMISSIONS
from epitrack.schemas.common import CamelModel


class LoginRequest(CamelModel):
    email: EmailStr
    senha: str = Field(..., min_length=6)


class UserCreate(CamelModel):
    name: Optional[str] = Field(None, max_length=255)
    email: EmailStr
    senha: str
    cargo: str = "OPERADOR"

    @field_validator("senha")
    @classmethod
    def senha_min_length(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("A senha deve ter pelo menos 6 caracteres")
        return v

    @field_validator("cargo")
    @classmethod
    def cargo_known(cls, v: str) -> str:
        v = v.upper()
        if v not in ROLE_PERMISSIONS:
            raise ValueError(f"Cargo deve ser um de: {', '.join(ROLE_PERMISSIONS)}")
        return v


class UserLink(CamelModel):
    cargo: str = "OPERADOR"

    @field_validator("cargo")
    @classmethod
    def cargo_known(cls, v: str) -> str:
        v = v.upper()
        if v not in ROLE_PERMISSIONS:
            raise ValueError(f"Cargo deve ser um de: {', '.join(ROLE_PERMISSIONS)}")
        return v


class UserOut(CamelModel):
    id_user: str
    name: Optional[str] = None
    email: str
    status_user: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
