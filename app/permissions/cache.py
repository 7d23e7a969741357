"""
Permissions cache.

Area permissions live in a single store record that rarely changes, so they
are cached in memory with a TTL. Loading is single-flight: concurrent callers
wait on one fetch. When the fetch fails the cache serves the previous value,
or the built-in defaults if nothing was ever loaded. A missing or empty
record also means the defaults.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Optional

from app.data.schemas import User
from .defaults import DEFAULT_PERMISSIONS, SUPERUSER_ROLES, ScreenPermissions

logger = logging.getLogger(__name__)

AreaPermissions = Dict[str, ScreenPermissions]


class PermissionsCache:
    """Read-through cache of per-area screen permissions."""

    def __init__(
        self,
        loader: Callable[[], Awaitable[AreaPermissions]],
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._permissions: Optional[AreaPermissions] = None
        self._loaded_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._permissions is not None

    def _is_fresh(self) -> bool:
        return (
            self._permissions is not None
            and self._loaded_at is not None
            and self._clock() - self._loaded_at < self._ttl
        )

    async def initialize(self) -> AreaPermissions:
        """Load permissions unless a fresh copy is cached."""
        if self._is_fresh():
            return self._permissions

        async with self._lock:
            # Another caller may have loaded while we waited
            if self._is_fresh():
                return self._permissions

            try:
                loaded = await self._loader()
                if not loaded:
                    logger.warning("No area permissions stored, using defaults")
                self._permissions = loaded or DEFAULT_PERMISSIONS
                self._loaded_at = self._clock()
            except Exception as e:
                logger.warning(f"Failed to load area permissions, using fallback: {e}")
                return self.snapshot()

        return self._permissions

    async def get(self) -> AreaPermissions:
        return await self.initialize()

    def snapshot(self) -> AreaPermissions:
        """Cached permissions without I/O; defaults until the first load."""
        return self._permissions if self._permissions is not None else DEFAULT_PERMISSIONS

    def invalidate(self) -> None:
        """Drop the cached copy; call after permissions are edited."""
        self._permissions = None
        self._loaded_at = None


def _check(user: Optional[User], screen: str, kind: str, area_permissions: AreaPermissions) -> bool:
    if user is None:
        return False

    if user.role in SUPERUSER_ROLES:
        return True

    # User-specific overrides
    override = user.permissions.get(screen)
    if override is not None:
        return override.get(kind) is True

    if user.area:
        screen_permission = area_permissions.get(user.area, {}).get(screen)
        if screen_permission is not None:
            return screen_permission.get(kind) is True

    return False


async def has_permission_async(
    user: Optional[User], screen: str, kind: str, cache: PermissionsCache
) -> bool:
    """
    Check a screen permission, loading area permissions if needed.

    Order: superuser role, then the user's own overrides, then the user's
    area, else denied.
    """
    return _check(user, screen, kind, await cache.get())


def has_permission(
    user: Optional[User], screen: str, kind: str, cache: Optional[PermissionsCache] = None
) -> bool:
    """Synchronous check against whatever is cached (or the defaults)."""
    area_permissions = cache.snapshot() if cache is not None else DEFAULT_PERMISSIONS
    return _check(user, screen, kind, area_permissions)
