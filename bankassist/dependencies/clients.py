"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from bankassist.clients import GeminiClient
from bankassist.core.config import get_settings
from bankassist.services import (
    DocumentAssembler,
    ExportCoordinator,
    PageFormat,
    PillowRasterizer,
    ReportRegenerationService,
    ReportRenderer,
    ReportStore,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_gemini_client() -> GeminiClient:
    """Provide Gemini client instance."""
    return GeminiClient(_settings().gemini)


@lru_cache()
def get_report_store() -> ReportStore:
    """Provide the process-wide report store."""
    return ReportStore()


def get_regeneration_service() -> ReportRegenerationService:
    """Build a report regeneration service backed by Gemini."""
    return ReportRegenerationService(get_gemini_client())


@lru_cache()
def get_export_coordinator() -> ExportCoordinator:
    """Provide the single export coordinator shared by every report page."""
    export = _settings().export
    page_format = PageFormat(
        width=export.page_width_mm,
        height=export.page_height_mm,
        margin=export.page_margin_mm,
    )
    return ExportCoordinator(
        store=get_report_store(),
        regenerator=get_regeneration_service(),
        renderer=ReportRenderer(export),
        rasterizer=PillowRasterizer(scale=export.render_scale),
        assembler=DocumentAssembler(page_format),
        settle_delay=export.settle_delay_seconds,
        prompt_timeout=export.prompt_timeout_seconds,
    )


__all__ = [
    "get_export_coordinator",
    "get_gemini_client",
    "get_regeneration_service",
    "get_report_store",
]
