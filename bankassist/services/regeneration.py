"""Service that produces analysis reports in a requested language via Gemini."""

from __future__ import annotations

import logging
from typing import Any, Dict, Protocol

from pydantic import ValidationError

from bankassist.clients.gemini import GeminiModelError
from bankassist.schemas import (
    AnalysisReport,
    FinancialReport,
    LoanReport,
    RegenerationInputs,
    ReportLanguage,
    ReportType,
)
from bankassist.services.exceptions import RegenerationFailed

logger = logging.getLogger(__name__)


class AnalysisClient(Protocol):
    """Subset of the Gemini client used to (re)generate reports."""

    async def analyze_loan(
        self, *, csv_data: str, loan_id: str, language: ReportLanguage
    ) -> Dict[str, Any]:
        ...

    async def analyze_financial_statement(
        self, *, pdf_data: bytes, language: ReportLanguage, mime_type: str = ...
    ) -> Dict[str, Any]:
        ...


class ReportRegenerationService:
    """Reproduce a report from its original inputs in a target language."""

    def __init__(self, analysis_client: AnalysisClient) -> None:
        self._client = analysis_client

    async def regenerate(
        self,
        report_type: ReportType,
        inputs: RegenerationInputs,
        language: ReportLanguage,
    ) -> AnalysisReport:
        """Return a full report of the same variant, written in ``language``.

        Raises:
            RegenerationFailed: when the model call fails, returns nothing, or
                returns a payload that does not describe a complete report.
        """
        variant = ReportType(report_type)
        if inputs.report_type != variant:
            raise RegenerationFailed(
                f"Inputs describe a {inputs.report_type.value} report, "
                f"not a {variant.value} report",
                language,
            )

        try:
            if variant is ReportType.LOAN:
                payload = await self._client.analyze_loan(
                    csv_data=inputs.csv_data or "",
                    loan_id=inputs.loan_id or "",
                    language=language,
                )
            else:
                payload = await self._client.analyze_financial_statement(
                    pdf_data=inputs.pdf_data or b"",
                    language=language,
                    mime_type=inputs.pdf_mime_type,
                )
        except GeminiModelError as exc:
            logger.warning(
                "Analysis call for %s report in %s failed: %s",
                variant.value,
                language.value,
                exc,
            )
            raise RegenerationFailed(str(exc), language) from exc

        if not isinstance(payload, dict) or not payload or "raw" in payload:
            raise RegenerationFailed(
                "Analysis returned an empty or unstructured response", language
            )

        try:
            if variant is ReportType.LOAN:
                # The model never echoes the identifier reliably; reattach ours.
                return LoanReport.model_validate(
                    {**payload, "loanId": inputs.loan_id, "reportType": "loan"}
                )
            return FinancialReport.model_validate(
                {**payload, "reportType": "financial"}
            )
        except ValidationError as exc:
            raise RegenerationFailed(
                f"Analysis response is missing required fields: {exc.error_count()} error(s)",
                language,
            ) from exc


__all__ = ["AnalysisClient", "ReportRegenerationService"]
