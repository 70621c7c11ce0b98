"""
Role permissions.

Each role carries CRUD flags; endpoints ask for "resource:operation"
(e.g. "process:update") and only the operation part is checked against the
flags. The resource names the 403 message.
"""
from typing import Dict

ADMIN = "ADMIN"
GESTOR = "GESTOR"
OPERADOR = "OPERADOR"

OPERATIONS = ("create", "read", "update", "delete")

ROLE_PERMISSIONS: Dict[str, Dict[str, bool]] = {
    ADMIN: {"create": True, "read": True, "update": True, "delete": True},
    GESTOR: {"create": True, "read": True, "update": True, "delete": False},
    OPERADOR: {"create": False, "read": True, "update": True, "delete": False},
}

RESOURCE_LABELS = {
    "process": "processos",
    "epi": "EPIs",
    "collaborator": "colaboradores",
    "company": "empresas",
    "user": "usuários",
    "biometria": "biometrias",
    "dashboard": "dashboard",
    "financial": "relatórios financeiros",
    "logs": "logs",
    "ca": "consulta de CA",
}

_VERBS = {"create": "criar", "read": "visualizar", "update": "editar", "delete": "excluir"}


def parse_permission(permission: str):
    resource, _, operation = permission.partition(":")
    if operation not in OPERATIONS:
        raise ValueError(f"Unknown permission operation: {permission}")
    return resource, operation


def has_permission(permissao: Dict[str, bool], permission: str) -> bool:
    _, operation = parse_permission(permission)
    return bool((permissao or {}).get(operation))


def denied_message(permission: str) -> str:
    resource, operation = parse_permission(permission)
    return f"Sem permissão para {_VERBS[operation]} {RESOURCE_LABELS.get(resource, resource)}"
