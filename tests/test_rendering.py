try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest
from PIL import ImageFont

from bankassist.core.config import ExportSettings
from bankassist.schemas import FinancialReport, KeyMetric, LoanReport, ReportLanguage
from bankassist.services import PillowRasterizer, RasterizationFailed, ReportRenderer
from bankassist.services.rendering import (
    BODY,
    ChartBlock,
    FontSet,
    RenderedRegion,
    TextBlock,
    wrap_text,
)


def _renderer() -> ReportRenderer:
    return ReportRenderer(ExportSettings())


def _loan_report() -> LoanReport:
    return LoanReport(
        summary="Applicant has stable salaried income and a clean repayment history. " * 8,
        prediction="Approved",
        eligibility="Eligible: debt-to-income ratio of 21% is within policy.",
        loan_id="LN-1",
    )


def _financial_report() -> FinancialReport:
    return FinancialReport(
        summary="Revenue grew steadily while margins held.",
        prediction="Continued moderate growth.",
        credit_score_prediction="720-750",
        trends_and_graphs="Revenue up 12% year over year.",
        identified_flaws=("Rising receivables", "Short-term debt concentration"),
        key_metrics=(
            KeyMetric(period="FY2022", revenue=1200.0, net_income=150.0),
            KeyMetric(period="FY2023", revenue=1350.0, net_income=-40.0),
        ),
    )


def test_region_width_matches_printable_width_at_layout_dpi():
    region = _renderer().render(_loan_report(), ReportLanguage.EN)

    # 180 mm at 96 dpi
    assert region.width_px == 680
    assert region.padding_px == 23
    assert region.height_px > region.padding_px * 2
    assert isinstance(region.blocks[0], TextBlock)
    assert region.blocks[0].lines[0].startswith("Loan Analysis Report: ID LN-1")


def test_blocks_are_stacked_top_to_bottom():
    region = _renderer().render(_financial_report(), ReportLanguage.EN)

    tops = [block.top for block in region.blocks]
    assert tops == sorted(tops)
    last = region.blocks[-1]
    assert region.height_px == last.top + last.height + region.padding_px


def test_financial_report_includes_chart_and_flaw_bullets():
    region = _renderer().render(_financial_report(), ReportLanguage.EN)

    charts = [block for block in region.blocks if isinstance(block, ChartBlock)]
    bullets = [
        block
        for block in region.blocks
        if isinstance(block, TextBlock) and block.bullet
    ]
    assert len(charts) == 1
    assert charts[0].revenue_label == "Revenue"
    assert [block.lines[0] for block in bullets] == [
        "Rising receivables",
        "Short-term debt concentration",
    ]


def test_financial_report_without_metrics_has_no_chart():
    report = _financial_report().model_copy(update={"key_metrics": ()})

    region = _renderer().render(report, ReportLanguage.EN)

    assert not any(isinstance(block, ChartBlock) for block in region.blocks)


def test_arabic_report_uses_translated_titles():
    region = _renderer().render(_loan_report(), ReportLanguage.AR)

    assert region.is_rtl
    assert region.blocks[0].lines[0].startswith("تقرير تحليل القرض")
    assert region.blocks[-1].lines == ("تم إنشاؤه بواسطة ساشا",)


def test_wrap_text_respects_width_and_paragraphs():
    font = ImageFont.load_default(size=11)
    lines = wrap_text("alpha beta gamma delta\n\nepsilon", font, 60)

    assert "" in lines
    assert lines[-1] == "epsilon"
    assert all(font.getlength(line) <= 60 for line in lines if " " in line)


def test_wrap_text_splits_words_longer_than_the_line():
    font = ImageFont.load_default(size=11)
    lines = wrap_text("x" * 200, font, 50)

    assert len(lines) > 1
    assert "".join(lines) == "x" * 200


@pytest.mark.asyncio
async def test_rasterizer_scales_region_to_snapshot():
    region = _renderer().render(_financial_report(), ReportLanguage.EN)

    snapshot = await PillowRasterizer(scale=2.0).capture(region)

    assert snapshot.width_px == region.width_px * 2
    assert snapshot.height_px == region.height_px * 2
    assert snapshot.image.size == (snapshot.width_px, snapshot.height_px)


@pytest.mark.asyncio
async def test_rasterizer_right_aligns_rtl_text():
    fonts = FontSet(None)
    block = TextBlock(top=10, lines=("abc",), style=BODY)
    ltr = RenderedRegion(400, 60, 20, ReportLanguage.EN, fonts, (block,))
    rtl = RenderedRegion(400, 60, 20, ReportLanguage.AR, fonts, (block,))
    rasterizer = PillowRasterizer(scale=1.0)

    ltr_box = (await rasterizer.capture(ltr)).image.convert("L").point(_ink).getbbox()
    rtl_box = (await rasterizer.capture(rtl)).image.convert("L").point(_ink).getbbox()

    assert ltr_box[0] < 200 < rtl_box[0]
    assert rtl_box[2] <= 382


@pytest.mark.asyncio
async def test_rasterizer_wraps_drawing_errors():
    region = RenderedRegion(
        400, 60, 20, ReportLanguage.EN, FontSet(None), (object(),)  # type: ignore[arg-type]
    )

    with pytest.raises(RasterizationFailed):
        await PillowRasterizer().capture(region)


def _ink(value: int) -> int:
    return 255 if value < 128 else 0
