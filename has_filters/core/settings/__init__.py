from .settings import AppSettings, app_settings_constructor

__all__ = [
    "AppSettings",
    "app_settings_constructor",
]
