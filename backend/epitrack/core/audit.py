"""
Audit logging for business mutations.

Every event is written twice: as a ``Log`` row (queried by the logs API)
and as one JSON document on the ``audit`` logger, which can be shipped to
centralized logging.

Writes are best-effort. ``record`` opens its own session, so it can run
from FastAPI ``BackgroundTasks`` after the request session is closed, and
never raises: a broken audit trail must not undo a committed stock change.
"""
import json
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from epitrack.core.dates import utcnow
from epitrack.db.session import SessionLocal
from epitrack.models.log import Log

audit_logger = logging.getLogger("audit")

# Log.tipo values
EPI_CREATED = "EPI_CREATED"
EPI_UPDATED = "EPI_UPDATED"
EPI_DELETED = "EPI_DELETED"
PROCESS_CREATED = "PROCESS_CREATED"
PROCESS_UPDATED = "PROCESS_UPDATED"
PROCESS_DELETED = "PROCESS_DELETED"
PROCESS_DELIVERED = "PROCESS_DELIVERED"
PROCESS_RETURNED = "PROCESS_RETURNED"

EPI_LOG_TYPES = (EPI_CREATED, EPI_UPDATED, EPI_DELETED)


class AuditLog:
    """Central audit sink. Use ``record`` directly or schedule it as a background task."""

    session_factory: Callable[[], Session] = SessionLocal

    @classmethod
    def record(
        cls,
        tipo: str,
        id_empresa: Optional[str] = None,
        id_user: Optional[str] = None,
        id_epi: Optional[str] = None,
        id_processo: Optional[str] = None,
        id_colaborador: Optional[str] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Persist one audit event.

        Usage:
            AuditLog.record(EPI_CREATED, id_empresa=..., id_user=..., id_epi=..., body={"ca": "12345"})
            background_tasks.add_task(AuditLog.record, PROCESS_DELIVERED, id_processo=...)
        """
        entry = {
            "timestamp": utcnow().isoformat(),
            "event_type": tipo,
            "id_empresa": id_empresa,
            "id_user": id_user,
            "id_epi": id_epi,
            "id_processo": id_processo,
            "id_colaborador": id_colaborador,
        }
        if body:
            entry["body"] = body
        audit_logger.info(json.dumps(entry, default=str))

        db = None
        try:
            db = cls.session_factory()
            db.add(Log(
                tipo=tipo,
                id_empresa=id_empresa,
                id_user=id_user,
                id_epi=id_epi,
                id_processo=id_processo,
                id_colaborador=id_colaborador,
                body=json.loads(json.dumps(body, default=str)) if body else None,
            ))
            db.commit()
        except Exception:
            # Swallowed: the primary operation already committed
            audit_logger.exception(f"Failed to persist audit event {tipo}")
            if db is not None:
                db.rollback()
        finally:
            if db is not None:
                db.close()

    @staticmethod
    def log_authentication(action: str, email: str, ip_address: str, success: bool, reason: str = ""):
        """Login/refresh attempts. Never includes passwords or tokens."""
        log_entry = {
            "timestamp": utcnow().isoformat(),
            "event_type": f"auth.{action}",
            "email": email,
            "ip_address": ip_address,
            "success": success,
        }
        if reason and not success:
            log_entry["reason"] = reason
        if success:
            audit_logger.info(json.dumps(log_entry))
        else:
            audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_access_denied(permission: str, id_user: Optional[str], id_empresa: Optional[str], reason: str):
        audit_logger.warning(json.dumps({
            "timestamp": utcnow().isoformat(),
            "event_type": "access_denied",
            "permission": permission,
            "id_user": id_user,
            "id_empresa": id_empresa,
            "reason": reason,
        }))
