import re
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from epitrack.schemas.common import CamelModel


def only_digits(value: str, size: int, label: str) -> str:
    digits = re.sub(r"\D", "", value or "")
    if len(digits) != size:
        raise ValueError(f"{label} deve conter {size} dígitos")
    return digits


class CompanyBase(CamelModel):
    razao_social: Optional[str] = Field(None, max_length=255)
    uf: Optional[str] = Field(None, min_length=2, max_length=2)
    cep: Optional[str] = None
    logradouro: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    telefone: Optional[str] = Field(None, max_length=20)

    @field_validator("cep")
    @classmethod
    def cep_digits(cls, v):
        return only_digits(v, 8, "CEP") if v is not None else v

    @field_validator("uf")
    @classmethod
    def uf_upper(cls, v):
        return v.upper() if v else v


class CompanyCreate(CompanyBase):
    nome_fantasia: str = Field(..., min_length=1, max_length=255)
    cnpj: str

    @field_validator("cnpj")
    @classmethod
    def cnpj_digits(cls, v):
        return only_digits(v, 14, "CNPJ")


class CompanyUpdate(CompanyBase):
    nome_fantasia: Optional[str] = Field(None, min_length=1, max_length=255)
    cnpj: Optional[str] = None

    @field_validator("cnpj")
    @classmethod
    def cnpj_digits(cls, v):
        return only_digits(v, 14, "CNPJ") if v is not None else v


class CompanyOut(CamelModel):
    id_empresa: str
    nome_fantasia: str
    razao_social: Optional[str] = None
    cnpj: str
    uf: Optional[str] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    status_empresa: bool
    created_at: Optional[datetime] = None


class CompanyWithKey(CompanyOut):
    api_key: str
