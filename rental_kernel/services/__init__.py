"""Services for the rental kernel."""

from rental_kernel.services.settings_service import SettingsService

__all__ = ["SettingsService"]
