"""Declarative base shared by all models."""
import uuid

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def new_id() -> str:
    """Primary keys are UUID4 strings, portable across SQLite and PostgreSQL."""
    return str(uuid.uuid4())
