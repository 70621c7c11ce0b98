import math
from typing import Any, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case attributes, camelCase on the wire (idEpi, dataAgendada, ...)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def pagination(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def envelope(message: str, data: Any = None, pagination: Optional[dict] = None) -> dict:
    """Success body shared by every route: {success, message, data?, pagination?}."""
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    if pagination is not None:
        body["pagination"] = pagination
    return body


def dump(schema: type, obj: Any) -> dict:
    return schema.model_validate(obj).model_dump(by_alias=True, mode="json")


def dump_list(schema: type, objs) -> list:
    return [dump(schema, o) for o in objs]
