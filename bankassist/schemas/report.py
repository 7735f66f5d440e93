"""
Pydantic models for analysis reports and the export workflow.
"""

from __future__ import annotations

import base64
import binascii
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ReportLanguage(str, Enum):
    """Languages a report can be generated in."""

    EN = "en"
    AR = "ar"

    @property
    def is_rtl(self) -> bool:
        return self is ReportLanguage.AR

    @property
    def display_name(self) -> str:
        return _LANGUAGE_NAMES[self]


_LANGUAGE_NAMES = {
    ReportLanguage.EN: "English",
    ReportLanguage.AR: "Arabic",
}


class ReportType(str, Enum):
    """Analysis variants that can be exported."""

    LOAN = "loan"
    FINANCIAL = "financial"


class _ReportModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class KeyMetric(_ReportModel):
    """A single reporting period plotted on the financial performance chart."""

    period: str = Field(..., description="Label of the reporting period (e.g. FY2023).")
    revenue: float = Field(..., description="Revenue for the period.")
    net_income: float = Field(..., description="Net income for the period.")


class LoanReport(_ReportModel):
    """Outcome of analysing one loan application row."""

    report_type: Literal["loan"] = "loan"
    summary: str = Field(..., min_length=1)
    prediction: str = Field(..., min_length=1)
    eligibility: str = Field(..., min_length=1)
    loan_id: str = Field(..., min_length=1)


class FinancialReport(_ReportModel):
    """Outcome of analysing a financial statement document."""

    report_type: Literal["financial"] = "financial"
    summary: str = Field(..., min_length=1)
    prediction: str = Field(..., min_length=1)
    credit_score_prediction: str = Field(..., min_length=1)
    trends_and_graphs: Optional[str] = None
    identified_flaws: tuple[str, ...] = Field(default_factory=tuple)
    key_metrics: tuple[KeyMetric, ...] = Field(default_factory=tuple)


AnalysisReport = Annotated[
    Union[LoanReport, FinancialReport],
    Field(discriminator="report_type"),
]


class RegenerationInputs(_ReportModel):
    """Original request payload required to reproduce a report.

    Captured once when the report is first created and never mutated.
    """

    report_type: ReportType
    csv_data: Optional[str] = None
    loan_id: Optional[str] = None
    pdf_data: Optional[bytes] = None
    pdf_mime_type: str = "application/pdf"

    @model_validator(mode="after")
    def _check_variant_inputs(self) -> "RegenerationInputs":
        if self.report_type is ReportType.LOAN:
            if not self.csv_data or not self.loan_id:
                raise ValueError("Loan reports require csv_data and loan_id")
        elif not self.pdf_data:
            raise ValueError("Financial reports require pdf_data")
        return self


class CreateReportRequest(BaseModel):
    """Request to run the first analysis for a loan row or statement."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    report_type: ReportType
    language: Optional[ReportLanguage] = Field(
        None, description="Report language; defaults to DEFAULT_REPORT_LANGUAGE."
    )
    csv_data: Optional[str] = Field(
        None, description="Loan dataset in CSV format (loan reports)."
    )
    loan_id: Optional[str] = Field(
        None, description="Loan identifier to analyse from the CSV data."
    )
    pdf_base64: Optional[str] = Field(
        None,
        description="Base64 encoded financial statement PDF (financial reports).",
    )

    @field_validator("pdf_base64")
    @classmethod
    def _strip_data_uri(cls, value: Optional[str]) -> Optional[str]:
        """Accept either raw base64 or a ``data:application/pdf;base64,`` URI."""
        if value and value.startswith("data:"):
            _, _, value = value.partition(",")
        return value

    def to_inputs(self) -> RegenerationInputs:
        pdf_data: Optional[bytes] = None
        if self.pdf_base64:
            try:
                pdf_data = base64.b64decode(self.pdf_base64, validate=True)
            except binascii.Error as exc:
                raise ValueError("pdf_base64 is not valid base64") from exc
        return RegenerationInputs(
            report_type=self.report_type,
            csv_data=self.csv_data,
            loan_id=self.loan_id.strip() if self.loan_id else None,
            pdf_data=pdf_data,
        )


class ReportEnvelope(BaseModel):
    """Stored report together with the language it was generated in."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    handle: str
    language: ReportLanguage
    report: AnalysisReport


class DownloadPrompt(BaseModel):
    """Language choice offered to the user after requesting a download."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    request_id: str
    handle: str
    report_type: ReportType
    current_language: ReportLanguage
    languages: list[ReportLanguage] = Field(
        default_factory=lambda: list(ReportLanguage)
    )


class LanguageChoice(BaseModel):
    """Target language selected in the download prompt."""

    language: ReportLanguage


class ExportStatus(BaseModel):
    """Snapshot of the export coordinator for polling clients."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    state: str
    busy: bool
    request_id: Optional[str] = None
    handle: Optional[str] = None
