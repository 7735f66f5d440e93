try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from bankassist.schemas import FinancialReport, LoanReport, ReportLanguage
from bankassist.services.file_naming import build_export_filename, slugify


def test_loan_filename_includes_key_and_language():
    report = LoanReport(summary="s", prediction="p", eligibility="e", loan_id="LP001002")

    assert build_export_filename(report, ReportLanguage.AR) == "loan-report-LP001002-ar.pdf"


def test_financial_filename_has_no_key():
    report = FinancialReport(summary="s", prediction="p", credit_score_prediction="c")

    assert build_export_filename(report, ReportLanguage.EN) == "financial-report-en.pdf"


def test_unsafe_loan_ids_are_slugified():
    report = LoanReport(summary="s", prediction="p", eligibility="e", loan_id="../LN 7/..")

    assert build_export_filename(report, ReportLanguage.EN) == "loan-report-LN-7-en.pdf"
    assert slugify("///") == ""
