from datetime import datetime
from typing import Optional

from pydantic import Field

from epitrack.schemas.common import CamelModel


class BiometriaCreate(CamelModel):
    id_colaborador: str = Field(..., min_length=1)
    biometria_path: str = Field(..., min_length=1, max_length=1024)
    certificado_path: Optional[str] = Field(None, max_length=1024)


class BiometriaUpdate(CamelModel):
    biometria_path: Optional[str] = Field(None, min_length=1, max_length=1024)
    certificado_path: Optional[str] = Field(None, max_length=1024)


class ColaboradorRef(CamelModel):
    id_colaborador: str
    nome_colaborador: str
    cpf: str
    status: bool


class BiometriaOut(CamelModel):
    id_biometria: str
    id_colaborador: str
    biometria_path: Optional[str] = None
    certificado_path: Optional[str] = None
    created_at: Optional[datetime] = None
    colaborador: Optional[ColaboradorRef] = None
