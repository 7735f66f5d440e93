"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_export_coordinator,
    get_gemini_client,
    get_regeneration_service,
    get_report_store,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_export_coordinator",
    "get_gemini_client",
    "get_regeneration_service",
    "get_report_store",
]
