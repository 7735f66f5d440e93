"""Process-local store for the latest version of each analysis report."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
from uuid import uuid4

from bankassist.schemas import AnalysisReport, RegenerationInputs, ReportLanguage


@dataclass(frozen=True, slots=True)
class StoredReport:
    """A report paired with the language it was last generated in."""

    report: AnalysisReport
    language: ReportLanguage


class ReportStore:
    """Keep the most recent ``(report, language)`` pair per report handle.

    Writes overwrite unconditionally; no history is retained. The inputs needed
    to regenerate a report are captured once on creation and never replaced.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, StoredReport] = {}
        self._inputs: Dict[str, RegenerationInputs] = {}

    def create(
        self,
        report: AnalysisReport,
        language: ReportLanguage,
        inputs: RegenerationInputs,
    ) -> str:
        """Register a freshly generated report and return its handle."""
        if report.report_type != inputs.report_type:
            raise ValueError(
                f"Report variant {report.report_type!r} does not match inputs "
                f"variant {inputs.report_type.value!r}"
            )
        handle = uuid4().hex
        self._entries[handle] = StoredReport(report=report, language=language)
        self._inputs[handle] = inputs
        return handle

    def get(self, handle: str) -> Optional[StoredReport]:
        return self._entries.get(handle)

    def put(
        self, handle: str, report: AnalysisReport, language: ReportLanguage
    ) -> None:
        """Replace the stored pair for ``handle``.

        The variant of a stored report is fixed; only a full record of the same
        variant may replace it.
        """
        current = self._entries.get(handle)
        if current is not None and current.report.report_type != report.report_type:
            raise ValueError(
                f"Cannot replace a {current.report.report_type} report with a "
                f"{report.report_type} report"
            )
        self._entries[handle] = StoredReport(report=report, language=language)

    def inputs_for(self, handle: str) -> Optional[RegenerationInputs]:
        return self._inputs.get(handle)

    def __contains__(self, handle: object) -> bool:
        return handle in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["ReportStore", "StoredReport"]
