"""Command and working-directory permission policy."""

from ptyhost.permission.engine import PermissionEngine, Verdict
from ptyhost.permission.models import Action, PermissionConfig

__all__ = [
    "Action",
    "PermissionConfig",
    "PermissionEngine",
    "Verdict",
]
