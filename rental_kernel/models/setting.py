"""
Module: rental_kernel.models.setting
Responsibility: Key/value store for runtime overrides of engine settings
    (``payment_due_days``, ``late_fee_daily_rate`` ...).
Architecture position: Kernel > Models.  Read and written only through
    ``rental_kernel.services.settings_service.SettingsService``.

Invariants enforced:
    - ``key`` is unique; one row per setting.
    - ``value`` is stored as text; typed accessors live in the service.
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import Base


class SettingModel(Base):
    """A single runtime setting."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<SettingModel {self.key}={self.value!r}>"
