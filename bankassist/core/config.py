"""
Application configuration models and helpers.

Centralizes settings management so both the FastAPI app and the offline export
script share a consistent configuration surface.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bankassist.schemas import ReportLanguage


class GeminiSettings(BaseSettings):
    """Configuration for Gemini model access."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_", env_file=".env", extra="ignore"
    )

    api_key: str = Field(..., description="API key used to configure google-generativeai.")
    model_name: str = Field("gemini-2.0-flash")


class ExportSettings(BaseSettings):
    """Page format and rendering options for report exports."""

    model_config = SettingsConfigDict(
        env_prefix="EXPORT_", env_file=".env", extra="ignore"
    )

    page_width_mm: float = Field(210.0, gt=0)
    page_height_mm: float = Field(297.0, gt=0)
    page_margin_mm: float = Field(15.0, ge=0)
    settle_delay_seconds: float = Field(
        0.5,
        ge=0,
        description="Bounded wait for the off-screen layout to settle before capture.",
    )
    prompt_timeout_seconds: Optional[float] = Field(
        300.0,
        gt=0,
        description="Seconds before an unanswered download prompt is released.",
    )
    render_scale: float = Field(
        2.0, gt=0, description="Pixel density multiplier applied when rasterizing."
    )
    render_dpi: int = Field(96, gt=0, description="Layout resolution in CSS pixels per inch.")
    font_path: Optional[str] = Field(
        None, description="TrueType font used for left-to-right reports."
    )
    rtl_font_path: Optional[str] = Field(
        None,
        description="TrueType font with Arabic glyph coverage for right-to-left reports.",
    )

    @field_validator("page_margin_mm")
    @classmethod
    def _margin_fits_page(cls, value: float, info: ValidationInfo) -> float:
        width = info.data.get("page_width_mm")
        height = info.data.get("page_height_mm")
        if width is not None and height is not None and 2 * value >= min(width, height):
            raise ValueError("page margin leaves no printable area")
        return value


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    default_language: ReportLanguage = Field(
        ReportLanguage.EN, validation_alias="DEFAULT_REPORT_LANGUAGE"
    )
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "ExportSettings",
    "GeminiSettings",
    "get_settings",
]
