from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from epitrack.schemas.common import CamelModel
from epitrack.schemas.company import only_digits


class CollaboratorCreate(CamelModel):
    nome_colaborador: str = Field(..., min_length=1, max_length=255)
    cpf: str
    status: bool = True

    @field_validator("cpf")
    @classmethod
    def cpf_digits(cls, v):
        return only_digits(v, 11, "CPF")


class CollaboratorUpdate(CamelModel):
    nome_colaborador: Optional[str] = Field(None, min_length=1, max_length=255)
    cpf: Optional[str] = None
    status: Optional[bool] = None

    @field_validator("cpf")
    @classmethod
    def cpf_digits(cls, v):
        return only_digits(v, 11, "CPF") if v is not None else v


class CollaboratorOut(CamelModel):
    id_colaborador: str
    id_empresa: str
    nome_colaborador: str
    cpf: str
    status: bool
    created_at: Optional[datetime] = None
    total_processos: int = 0
    total_biometrias: int = 0
