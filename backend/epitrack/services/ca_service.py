"""Lookup of a CA (certificado de aprovação) in the external registry."""
import logging

import requests

from epitrack.core.config import settings
from epitrack.core.exceptions import BusinessError

logger = logging.getLogger(__name__)


def consultar_ca(ca: str) -> dict:
    if not (settings.CA_API_URL and settings.CA_API_KEY and settings.CA_API_TOKEN):
        raise BusinessError.bad_request(
            "Variáveis de ambiente da API externa não configuradas: CA_API_URL, CA_API_KEY, CA_API_TOKEN"
        )

    url = f"{settings.CA_API_URL.rstrip('/')}/ca/{ca}"
    logger.info(f"Consulting CA {ca} at {url}")
    try:
        r = requests.get(
            url,
            headers={
                "Content-Type": "application/json",
                "x-api-key": settings.CA_API_KEY,
                "x-api-token": settings.CA_API_TOKEN,
            },
            timeout=settings.CA_API_TIMEOUT_SECONDS,
        )
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        logger.error(f"CA lookup failed for {ca}: {e}")
        raise BusinessError.bad_request(f"Falha na consulta do CA: {e}")
    except ValueError as e:
        # Upstream answered with something other than JSON
        logger.error(f"CA lookup for {ca} returned invalid JSON: {e}")
        raise BusinessError.bad_request("Falha na consulta do CA: resposta inválida da API externa")
