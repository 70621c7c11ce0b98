from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from epitrack.schemas.common import CamelModel


class ProcessItemIn(CamelModel):
    id_epi: str = Field(..., min_length=1)
    quantidade: int = Field(..., ge=1)


class ProcessCreate(CamelModel):
    id_colaborador: str = Field(..., min_length=1)
    data_agendada: datetime
    epis: List[ProcessItemIn] = Field(..., min_length=1)
    observacoes: Optional[str] = Field(None, max_length=2000)


class ProcessUpdate(CamelModel):
    """Partial update. Only the fields present in the request body are applied."""
    id_colaborador: Optional[str] = None
    data_agendada: Optional[datetime] = None
    epis: Optional[List[ProcessItemIn]] = None
    observacoes: Optional[str] = Field(None, max_length=2000)
    status_entrega: Optional[bool] = None
    data_entrega: Optional[datetime] = None
    data_devolucao: Optional[datetime] = None
    pdf_url: Optional[str] = Field(None, max_length=1024)

    @field_validator("epis")
    @classmethod
    def epis_not_empty(cls, v):
        if v is not None and len(v) == 0:
            raise ValueError("Informe ao menos um EPI")
        return v


class ConfirmDelivery(CamelModel):
    data_entrega: Optional[datetime] = None
    pdf_url: Optional[str] = Field(None, max_length=1024)


class RegisterReturn(CamelModel):
    data_devolucao: datetime
    observacoes: Optional[str] = Field(None, max_length=2000)


class EmpresaResumo(CamelModel):
    id_empresa: str
    nome_fantasia: str


class ColaboradorResumo(CamelModel):
    id_colaborador: str
    nome_colaborador: str
    cpf: str


class EpiResumo(CamelModel):
    id_epi: str
    nome_epi: str
    ca: str


class ProcessItemOut(CamelModel):
    id_epi: str
    quantidade: int
    epi: Optional[EpiResumo] = None


class ProcessOut(CamelModel):
    id_processo: str
    id_empresa: str
    id_colaborador: str
    data_agendada: datetime
    data_entrega: Optional[datetime] = None
    data_devolucao: Optional[datetime] = None
    status_entrega: bool
    observacoes: Optional[str] = None
    pdf_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    empresa: Optional[EmpresaResumo] = None
    colaborador: Optional[ColaboradorResumo] = None
    process_epis: List[ProcessItemOut] = []
