"""Service layer exports."""

from .exceptions import (
    DownloadRequestNotFoundError,
    EmptyContent,
    ExportCancelled,
    ExportError,
    ExportFailure,
    ExportInProgressError,
    RasterizationFailed,
    RegenerationFailed,
    ReportNotFoundError,
)
from .export_coordinator import (
    DownloadRequest,
    ExportArtifact,
    ExportCoordinator,
    ExportState,
)
from .pagination import (
    DocumentAssembler,
    Page,
    PageFormat,
    PaginatedDocument,
    plan_pages,
    scale_factor,
)
from .rasterizer import PillowRasterizer, RasterSnapshot
from .regeneration import ReportRegenerationService
from .rendering import RenderedRegion, ReportRenderer
from .report_store import ReportStore, StoredReport

__all__ = [
    "DocumentAssembler",
    "DownloadRequest",
    "DownloadRequestNotFoundError",
    "EmptyContent",
    "ExportArtifact",
    "ExportCancelled",
    "ExportCoordinator",
    "ExportError",
    "ExportFailure",
    "ExportInProgressError",
    "ExportState",
    "Page",
    "PageFormat",
    "PaginatedDocument",
    "PillowRasterizer",
    "RasterSnapshot",
    "RasterizationFailed",
    "RegenerationFailed",
    "RenderedRegion",
    "ReportNotFoundError",
    "ReportRegenerationService",
    "ReportRenderer",
    "ReportStore",
    "StoredReport",
    "plan_pages",
    "scale_factor",
]
