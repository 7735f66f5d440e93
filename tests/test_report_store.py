try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from bankassist.schemas import (
    FinancialReport,
    LoanReport,
    RegenerationInputs,
    ReportLanguage,
    ReportType,
)
from bankassist.services import ReportStore


def _loan_report(summary: str = "Stable income") -> LoanReport:
    return LoanReport(
        summary=summary,
        prediction="Low default risk",
        eligibility="Eligible",
        loan_id="LN-1",
    )


def _loan_inputs() -> RegenerationInputs:
    return RegenerationInputs(
        report_type=ReportType.LOAN, csv_data="loan_id,amount\nLN-1,1000", loan_id="LN-1"
    )


def test_create_and_get_returns_stored_pair():
    store = ReportStore()
    report = _loan_report()

    handle = store.create(report, ReportLanguage.EN, _loan_inputs())

    stored = store.get(handle)
    assert stored is not None
    assert stored.report == report
    assert stored.language is ReportLanguage.EN
    assert handle in store
    assert len(store) == 1


def test_put_overwrites_report_and_language_but_keeps_inputs():
    store = ReportStore()
    inputs = _loan_inputs()
    handle = store.create(_loan_report(), ReportLanguage.EN, inputs)

    arabic = _loan_report(summary="دخل مستقر")
    store.put(handle, arabic, ReportLanguage.AR)

    stored = store.get(handle)
    assert stored.report == arabic
    assert stored.language is ReportLanguage.AR
    assert store.inputs_for(handle) is inputs


def test_put_rejects_variant_change():
    store = ReportStore()
    handle = store.create(_loan_report(), ReportLanguage.EN, _loan_inputs())
    financial = FinancialReport(
        summary="Healthy margins",
        prediction="Growth",
        credit_score_prediction="Good",
    )

    with pytest.raises(ValueError):
        store.put(handle, financial, ReportLanguage.EN)

    assert isinstance(store.get(handle).report, LoanReport)


def test_create_rejects_inputs_of_other_variant():
    store = ReportStore()
    inputs = RegenerationInputs(report_type=ReportType.FINANCIAL, pdf_data=b"%PDF-1.4")

    with pytest.raises(ValueError):
        store.create(_loan_report(), ReportLanguage.EN, inputs)

    assert len(store) == 0


def test_unknown_handle_returns_none():
    store = ReportStore()

    assert store.get("missing") is None
    assert store.inputs_for("missing") is None
    assert "missing" not in store
