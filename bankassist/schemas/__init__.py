"""Public schema exports."""

from .report import (
    AnalysisReport,
    CreateReportRequest,
    DownloadPrompt,
    ExportStatus,
    FinancialReport,
    KeyMetric,
    LanguageChoice,
    LoanReport,
    RegenerationInputs,
    ReportEnvelope,
    ReportLanguage,
    ReportType,
)

__all__ = [
    "AnalysisReport",
    "CreateReportRequest",
    "DownloadPrompt",
    "ExportStatus",
    "FinancialReport",
    "KeyMetric",
    "LanguageChoice",
    "LoanReport",
    "RegenerationInputs",
    "ReportEnvelope",
    "ReportLanguage",
    "ReportType",
]
