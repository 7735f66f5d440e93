"""Error taxonomy for the report export pipeline."""

from __future__ import annotations

from typing import Optional

from bankassist.schemas import ReportLanguage


class ExportError(Exception):
    """Base exception for all export-related errors."""


class ExportInProgressError(ExportError):
    """Raised when a download is requested while another one is active."""


class ReportNotFoundError(ExportError):
    """Raised when a report handle is unknown to the report store."""


class DownloadRequestNotFoundError(ExportError):
    """Raised when a language choice references no active download request."""


class ExportCancelled(ExportError):
    """Raised when the user discards the export dialog mid-pipeline."""


class ExportFailure(ExportError):
    """Terminal failure of one export attempt, tagged with its language."""

    def __init__(self, reason: str, language: Optional[ReportLanguage] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.language = language

    def with_language(self, language: ReportLanguage) -> "ExportFailure":
        self.language = language
        return self


class RegenerationFailed(ExportFailure):
    """The remote analysis call failed or returned an invalid or empty result."""


class RasterizationFailed(ExportFailure):
    """Capturing the rendered report as a raster image failed."""


class EmptyContent(ExportFailure):
    """The captured snapshot has no height, so there is nothing to export."""


__all__ = [
    "DownloadRequestNotFoundError",
    "EmptyContent",
    "ExportCancelled",
    "ExportError",
    "ExportFailure",
    "ExportInProgressError",
    "RasterizationFailed",
    "RegenerationFailed",
    "ReportNotFoundError",
]
