"""
EPI Track API - multi-tenant PPE (EPI) inventory and issuance backend.

LAYERS:
- api/routes: HTTP surface under /v1, JSON envelope {success, message, data?, pagination?}
- services: business rules; the process engine keeps stock consistent with
  issuance state inside database transactions
- models: SQLAlchemy ORM, source of truth

Every protected request carries the company API key (x-api-token) and a
user JWT (Authorization: Bearer).
"""
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from epitrack.api.routes import (
    auth, biometria, ca, collaborator, company, dashboard, epi, financial, logs, process, user,
)
from epitrack.core.config import settings
from epitrack.core.exceptions import register_exception_handlers
from epitrack.core.rate_limiter import RateLimitMiddleware
from epitrack.db.init_db import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database...")
    init_db()
    logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")
    yield
    logger.info("Shutting down")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Controle de estoque, entrega e devolução de EPIs por empresa.",
    version="1.0.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        settings.API_KEY_HEADER,
    ],
    max_age=600,
    expose_headers=["Content-Type", "Content-Disposition", "X-Request-ID"],
)

app.add_middleware(RateLimitMiddleware)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    # Correlation id for logs and the 500 envelope
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


v1 = settings.API_V1_STR
app.include_router(auth.router, prefix=f"{v1}/auth", tags=["auth"])
app.include_router(user.router, prefix=f"{v1}/user", tags=["user"])
app.include_router(company.router, prefix=f"{v1}/company", tags=["company"])
app.include_router(collaborator.router, prefix=f"{v1}/collaborator", tags=["collaborator"])
app.include_router(epi.router, prefix=f"{v1}/epi", tags=["epi"])
app.include_router(process.router, prefix=f"{v1}/process", tags=["process"])
app.include_router(biometria.router, prefix=f"{v1}/biometria", tags=["biometria"])
app.include_router(dashboard.router, prefix=f"{v1}/dashboard", tags=["dashboard"])
app.include_router(financial.router, prefix=f"{v1}/financial-report", tags=["financial-report"])
app.include_router(logs.router, prefix=f"{v1}/logs", tags=["logs"])
app.include_router(ca.router, prefix=f"{v1}/consulta-epi", tags=["consulta-epi"])


@app.get("/health")
def health():
    return {"status": "ok", "environment": settings.ENVIRONMENT}
