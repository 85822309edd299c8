"""
SettingsService -- cached access to runtime settings.

Responsibility:
    Reads and writes ``SettingModel`` rows and keeps a per-instance TTL cache
    so classifiers evaluated over thousands of payments do not hit the
    database for ``payment_due_days`` on every row.

Architecture position:
    Kernel > Services.  Module configs (``CollectionConfig``,
    ``ContractConfig``) are built from values resolved here and injected
    into the pure classifiers.

Invariants enforced:
    - Cache entries expire ``ttl_seconds`` after they were loaded, measured
      on the injected clock.
    - ``set`` and ``forget`` keep the cache coherent with the rows they
      write.
    - Typed accessors raise ``InvalidSettingError`` for unparseable values;
      they never fall back to a default silently.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import select

from rental_kernel.exceptions import InvalidSettingError
from rental_kernel.logging_config import get_logger
from rental_kernel.models.setting import SettingModel
from rental_kernel.services.base import BaseService

logger = get_logger("services.settings")

DEFAULT_TTL_SECONDS = 3600

# Distinguishes "cached as missing" from "not cached".
_MISSING = object()


class SettingsService(BaseService):
    """Key/value settings with a TTL cache."""

    def __init__(self, session, clock=None, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        super().__init__(session, clock)
        if ttl_seconds < 0:
            raise InvalidSettingError("setting_cache_ttl_seconds", ttl_seconds, "cannot be negative")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._cache: dict[str, tuple[Any, datetime]] = {}

    # -------------------------------------------------------------------------
    # Cache plumbing
    # -------------------------------------------------------------------------

    def _cached(self, key: str) -> Any:
        entry = self._cache.get(key)
        if entry is None:
            return _MISSING
        value, expires_at = entry
        if self.clock.now() >= expires_at:
            del self._cache[key]
            return _MISSING
        return value

    def _remember(self, key: str, value: str | None) -> None:
        self._cache[key] = (value, self.clock.now() + self._ttl)

    def _load(self, key: str) -> str | None:
        row = self.session.execute(
            select(SettingModel).where(SettingModel.key == key)
        ).scalar_one_or_none()
        return row.value if row is not None else None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Stored value for ``key`` or ``default`` when no row exists."""
        value = self._cached(key)
        if value is _MISSING:
            value = self._load(key)
            self._remember(key, value)
        return default if value is None else value

    def get_many(self, keys: Iterable[str] | Mapping[str, Any]) -> dict[str, Any]:
        """
        Resolve several keys at once.

        Accepts either plain keys (default ``None``) or a mapping of
        key -> default.
        """
        if isinstance(keys, Mapping):
            return {key: self.get(key, default) for key, default in keys.items()}
        return {key: self.get(key) for key in keys}

    def set(self, key: str, value: Any) -> None:
        """Insert or update ``key``; the cache is refreshed immediately."""
        stored = None if value is None else str(value)
        row = self.session.execute(
            select(SettingModel).where(SettingModel.key == key)
        ).scalar_one_or_none()
        if row is None:
            self.session.add(SettingModel(key=key, value=stored))
        else:
            row.value = stored
        self.session.flush()
        self._remember(key, stored)
        logger.info("setting_updated", extra={"setting_key": key, "setting_value": stored})

    def set_many(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self.set(key, value)

    def forget(self, key: str) -> bool:
        """Delete ``key``; returns True when a row existed."""
        row = self.session.execute(
            select(SettingModel).where(SettingModel.key == key)
        ).scalar_one_or_none()
        self._cache.pop(key, None)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        logger.info("setting_forgotten", extra={"setting_key": key})
        return True

    def clear_cache(self) -> None:
        self._cache.clear()

    # -------------------------------------------------------------------------
    # Typed accessors
    # -------------------------------------------------------------------------

    def get_int(self, key: str, default: int) -> int:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return int(str(raw).strip())
        except ValueError:
            raise InvalidSettingError(key, raw, "not an integer") from None

    def get_decimal(self, key: str, default: Decimal) -> Decimal:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return Decimal(str(raw).strip())
        except InvalidOperation:
            raise InvalidSettingError(key, raw, "not a decimal number") from None
