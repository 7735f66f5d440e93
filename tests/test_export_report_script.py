"""Tests for the offline export command line tool."""

from __future__ import annotations

from pathlib import Path

import pytest

from bankassist.core.config import ExportSettings
from bankassist.services import (
    DocumentAssembler,
    ExportCoordinator,
    PillowRasterizer,
    ReportRegenerationService,
    ReportRenderer,
    ReportStore,
)
from scripts import export_report


class StubAnalysisClient:
    def __init__(self, payload):
        self.payload = payload
        self.languages = []

    async def analyze_loan(self, *, csv_data, loan_id, language):
        self.languages.append(language)
        return self.payload

    async def analyze_financial_statement(self, *, pdf_data, language, mime_type="application/pdf"):
        self.languages.append(language)
        return self.payload


@pytest.fixture()
def analysis(monkeypatch: pytest.MonkeyPatch) -> StubAnalysisClient:
    client = StubAnalysisClient(
        {"summary": "Stable", "prediction": "Approved", "eligibility": "Eligible"}
    )
    store = ReportStore()
    regeneration = ReportRegenerationService(client)
    coordinator = ExportCoordinator(
        store=store,
        regenerator=regeneration,
        renderer=ReportRenderer(ExportSettings()),
        rasterizer=PillowRasterizer(scale=1.0),
        assembler=DocumentAssembler(),
        settle_delay=0,
    )
    monkeypatch.setattr(export_report, "get_report_store", lambda: store)
    monkeypatch.setattr(export_report, "get_regeneration_service", lambda: regeneration)
    monkeypatch.setattr(export_report, "get_export_coordinator", lambda: coordinator)
    return client


def test_exports_loan_report_in_requested_language(tmp_path: Path, analysis) -> None:
    source = tmp_path / "loans.csv"
    source.write_text("loan_id,amount\nLP001002,5849\n", encoding="utf-8")

    exit_code = export_report.main(
        [
            "loan",
            str(source),
            "--loan-id",
            "LP001002",
            "--language",
            "en",
            "--export-language",
            "ar",
            "--output-dir",
            str(tmp_path / "out"),
        ]
    )

    target = tmp_path / "out" / "loan-report-LP001002-ar.pdf"
    assert exit_code == 0
    assert target.read_bytes().startswith(b"%PDF")
    assert [language.value for language in analysis.languages] == ["en", "ar"]


def test_missing_source_file_is_reported(tmp_path: Path, analysis) -> None:
    exit_code = export_report.main(
        ["financial", str(tmp_path / "missing.pdf"), "--output-dir", str(tmp_path)]
    )

    assert exit_code == 2
    assert analysis.languages == []


def test_unusable_analysis_is_an_export_failure(tmp_path: Path, analysis) -> None:
    source = tmp_path / "statement.pdf"
    source.write_bytes(b"%PDF-1.4 statement")
    analysis.payload = {"raw": "I could not read this document"}

    exit_code = export_report.main(["financial", str(source), "--output-dir", str(tmp_path)])

    assert exit_code == 3
    assert list(tmp_path.glob("*-report-*.pdf")) == []
