from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from epitrack.schemas.common import CamelModel


class EpiCreate(CamelModel):
    ca: str = Field(..., min_length=1, max_length=16)
    nome_epi: str = Field(..., min_length=1, max_length=255)
    descricao: Optional[str] = None
    quantidade: int = Field(0, ge=0)
    quantidade_minima: int = Field(0, ge=0)
    preco: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    data_compra: Optional[date] = None
    vida_util: Optional[date] = None
    validade: Optional[date] = None


class EpiUpdate(CamelModel):
    ca: Optional[str] = Field(None, min_length=1, max_length=16)
    nome_epi: Optional[str] = Field(None, min_length=1, max_length=255)
    descricao: Optional[str] = None
    quantidade: Optional[int] = Field(None, ge=0)
    quantidade_minima: Optional[int] = Field(None, ge=0)
    preco: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    data_compra: Optional[date] = None
    vida_util: Optional[date] = None
    validade: Optional[date] = None
    status: Optional[bool] = None


class EpiOut(CamelModel):
    id_epi: str
    id_empresa: str
    ca: str
    nome_epi: str
    descricao: Optional[str] = None
    quantidade: int
    quantidade_minima: int
    preco: Optional[Decimal] = None
    data_compra: Optional[date] = None
    vida_util: Optional[date] = None
    validade: Optional[date] = None
    status: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
