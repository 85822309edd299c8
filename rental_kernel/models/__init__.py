"""Kernel ORM models."""

from rental_kernel.models.setting import SettingModel

__all__ = ["SettingModel"]
