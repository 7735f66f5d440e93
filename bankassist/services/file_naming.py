"""File naming strategy for exported report documents."""

from __future__ import annotations

import re
from typing import Callable, Dict, Optional

from bankassist.schemas import AnalysisReport, ReportLanguage, ReportType

_SLUG_PATTERN = re.compile(r"[^A-Za-z0-9]+")

_TYPE_SLUGS: Dict[ReportType, str] = {
    ReportType.LOAN: "loan-report",
    ReportType.FINANCIAL: "financial-report",
}


def slugify(value: str) -> str:
    """Collapse anything outside ``[A-Za-z0-9]`` into single hyphens."""
    return _SLUG_PATTERN.sub("-", value).strip("-")


def _report_key(report: AnalysisReport) -> Optional[str]:
    return getattr(report, "loan_id", None)


def build_export_filename(
    report: AnalysisReport,
    language: ReportLanguage,
    extension: str = "pdf",
) -> str:
    """Return ``<report-type-slug>[-<report-key>]-<language>.<ext>``."""
    parts = [_TYPE_SLUGS[ReportType(report.report_type)]]
    key = _report_key(report)
    if key:
        slug = slugify(key)
        if slug:
            parts.append(slug)
    parts.append(language.value)
    return f"{'-'.join(parts)}.{extension}"


FilenameStrategy = Callable[[AnalysisReport, ReportLanguage], str]


__all__ = ["FilenameStrategy", "build_export_filename", "slugify"]
