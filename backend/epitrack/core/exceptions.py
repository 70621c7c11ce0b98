"""
Typed business errors and the handlers that turn them into JSON envelopes.

Every failure leaves the API as ``{"success": false, "message": ...}``.
Internal errors are logged with a correlation id and never expose details
(stack traces, SQL, paths) to the caller.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for errors raised by services and dependencies."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}
        self.headers = headers


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT


class InsufficientStockError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, nome_epi: str, disponivel: int, solicitado: int, id_epi: Optional[str] = None):
        super().__init__(
            f"Estoque insuficiente para EPI {nome_epi}. "
            f"Disponível: {disponivel}, Solicitado: {solicitado}",
            extra={"idEpi": id_epi, "disponivel": disponivel, "solicitado": solicitado},
        )
        self.disponivel = disponivel
        self.solicitado = solicitado


class InvalidStateTransitionError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Token inválido", extra: Optional[Dict[str, Any]] = None):
        super().__init__(message, extra=extra, headers={"WWW-Authenticate": "Bearer"})


class RateLimitError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class BusinessError:
    """Factory for business-domain errors with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Recurso", reason: str = "") -> NotFoundError:
        """
        404 for a missing tenant-scoped entity.

        Same response whether the row does not exist or belongs to another
        tenant, so ids of other companies cannot be probed.

        Example:
            if not processo:
                raise BusinessError.not_found("Processo")
        """
        if reason:
            logger.warning(f"Not found: {resource} - {reason}")
        return NotFoundError(f"{resource} não encontrado")

    @staticmethod
    def forbidden(message: str = "Acesso negado", reason: str = "") -> ForbiddenError:
        logger.warning(f"Forbidden access: {reason or message}")
        return ForbiddenError(message)

    @staticmethod
    def unauthorized(message: str = "Token inválido", reason: str = "") -> UnauthorizedError:
        logger.warning(f"Unauthorized access attempt: {reason or message}")
        return UnauthorizedError(message)

    @staticmethod
    def bad_request(detail: str) -> BadRequestError:
        """400 for business rule violations the caller caused."""
        logger.info(f"Bad request: {detail}")
        return BadRequestError(detail)

    @staticmethod
    def conflict(detail: str) -> ConflictError:
        """409, e.g. "CA já cadastrado"."""
        logger.info(f"Conflict: {detail}")
        return ConflictError(detail)

    @staticmethod
    def invalid_transition(detail: str) -> InvalidStateTransitionError:
        logger.info(f"Invalid state transition: {detail}")
        return InvalidStateTransitionError(detail)


def _envelope(message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or uuid.uuid4().hex


def _validation_issues(exc: RequestValidationError) -> List[Dict[str, str]]:
    issues = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        issues.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return issues


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(exc.message, **exc.extra),
        headers=exc.headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    issues = _validation_issues(exc)
    logger.info(f"Validation failed on {request.method} {request.url.path}: {issues}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope("Dados inválidos", errors=issues),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Erro na requisição"
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic 500 - logs the real error with the correlation id, hides it from the user.
    """
    request_id = _request_id(request)
    logger.error(
        f"Internal server error [{request_id}] on {request.method} {request.url.path}: "
        f"{type(exc).__name__}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope("Erro interno do servidor", requestId=request_id),
        headers={"X-Request-ID": request_id},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
