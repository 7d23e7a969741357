"""Screen permissions for CRM users."""

from .cache import PermissionsCache, has_permission, has_permission_async
from .defaults import DEFAULT_PERMISSIONS, SUPERUSER_ROLES

__all__ = [
    "PermissionsCache",
    "has_permission",
    "has_permission_async",
    "DEFAULT_PERMISSIONS",
    "SUPERUSER_ROLES",
]
