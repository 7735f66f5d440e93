"""Off-screen layout of analysis reports prior to rasterization.

The renderer turns a report into a :class:`RenderedRegion`: a fixed-width
column of positioned blocks whose total pixel height is known up front. The
region is expressed in layout pixels (``render_dpi`` pixels per inch); the
rasterizer multiplies every coordinate by its own pixel density.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple, Union

from PIL import ImageFont, features

from bankassist.core.config import ExportSettings
from bankassist.schemas import (
    AnalysisReport,
    FinancialReport,
    KeyMetric,
    LoanReport,
    ReportLanguage,
)

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4

Color = Tuple[int, int, int]
Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

_TITLES: Dict[ReportLanguage, Dict[str, str]] = {
    ReportLanguage.EN: {
        "loan_report_title": "Loan Analysis Report: ID {loan_id}",
        "financial_report_title": "Financial Statement Analysis",
        "summary": "Summary",
        "prediction": "Prediction",
        "eligibility": "Eligibility",
        "credit_score_assessment": "Credit Score Assessment",
        "generated_by": "AI generated by Sasha",
        "trends_and_graphs": "Trends & Visualizations",
        "identified_flaws": "Identified Flaws & Risks",
        "financial_performance": "Financial Performance",
        "revenue": "Revenue",
        "net_income": "Net Income",
    },
    ReportLanguage.AR: {
        "loan_report_title": "تقرير تحليل القرض: معرف {loan_id}",
        "financial_report_title": "تحليل البيان المالي",
        "summary": "ملخص",
        "prediction": "توقع",
        "eligibility": "الأهلية",
        "credit_score_assessment": "تقييم الجدارة الائتمانية",
        "generated_by": "تم إنشاؤه بواسطة ساشا",
        "trends_and_graphs": "الاتجاهات والتصورات",
        "identified_flaws": "العيوب والمخاطر المحددة",
        "financial_performance": "الأداء المالي",
        "revenue": "الإيرادات",
        "net_income": "صافي الدخل",
    },
}


@dataclass(frozen=True, slots=True)
class TextStyle:
    size: int
    bold: bool = False
    color: Color = (0, 0, 0)
    line_spacing: float = 1.6


TITLE = TextStyle(size=18, bold=True, line_spacing=1.3)
HEADING = TextStyle(size=14, bold=True, line_spacing=1.3)
BODY = TextStyle(size=11)
FOOTER = TextStyle(size=9, color=(85, 85, 85), line_spacing=1.3)


@dataclass(frozen=True, slots=True)
class TextBlock:
    """Wrapped lines of text anchored at ``top``."""

    top: int
    lines: Tuple[str, ...]
    style: TextStyle
    align: str = "start"
    indent: int = 0
    bullet: bool = False

    @property
    def line_height(self) -> int:
        return round(self.style.size * self.style.line_spacing)

    @property
    def height(self) -> int:
        return self.line_height * len(self.lines)


@dataclass(frozen=True, slots=True)
class ChartBlock:
    """Grouped bar chart of revenue and net income per period."""

    top: int
    height: int
    metrics: Tuple[KeyMetric, ...]
    revenue_label: str
    net_income_label: str


Block = Union[TextBlock, ChartBlock]


class FontSet:
    """Resolve fonts for a report language at any pixel size."""

    def __init__(self, path: Optional[str]) -> None:
        self._path = path

    def get(self, size: int) -> Font:
        return _load_font(self._path, max(1, size))


@lru_cache(maxsize=64)
def _load_font(path: Optional[str], size: int) -> Font:
    if path:
        return ImageFont.truetype(path, size)
    return ImageFont.load_default(size=size)


def text_options(language: ReportLanguage) -> Dict[str, Any]:
    """Shaping options for ``ImageDraw.text``; requires libraqm for RTL scripts."""
    if language.is_rtl and features.check_feature("raqm"):
        return {"direction": "rtl", "language": language.value}
    return {}


@dataclass(frozen=True, slots=True)
class RenderedRegion:
    """A fully laid-out report ready for capture."""

    width_px: int
    height_px: int
    padding_px: int
    language: ReportLanguage
    fonts: FontSet
    blocks: Tuple[Block, ...] = field(default_factory=tuple)

    @property
    def is_rtl(self) -> bool:
        return self.language.is_rtl


def _fit_prefix(word: str, font: Font, max_width: float, options: Dict[str, Any]) -> int:
    cut = len(word)
    while cut > 1 and font.getlength(word[:cut], **options) > max_width:
        cut -= 1
    return cut


def wrap_text(
    text: str,
    font: Font,
    max_width: float,
    options: Optional[Dict[str, Any]] = None,
) -> List[str]:
    """Greedy word wrap that preserves explicit line breaks."""
    options = options or {}
    lines: List[str] = []
    for paragraph in text.splitlines() or [""]:
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if font.getlength(candidate, **options) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            while len(word) > 1 and font.getlength(word, **options) > max_width:
                cut = _fit_prefix(word, font, max_width, options)
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        lines.append(current)
    return lines


class _LayoutBuilder:
    def __init__(
        self, width: int, padding: int, fonts: FontSet, language: ReportLanguage
    ) -> None:
        self._width = width
        self._padding = padding
        self._fonts = fonts
        self._language = language
        self._options = text_options(language)
        self._cursor = padding
        self._blocks: List[Block] = []

    @property
    def content_width(self) -> int:
        return self._width - 2 * self._padding

    def text(
        self,
        text: str,
        style: TextStyle,
        *,
        margin_top: int = 0,
        margin_bottom: int = 0,
        align: str = "start",
        indent: int = 0,
        bullet: bool = False,
    ) -> None:
        font = self._fonts.get(style.size)
        lines = wrap_text(text, font, self.content_width - indent, self._options)
        block = TextBlock(
            top=self._cursor + margin_top,
            lines=tuple(lines),
            style=style,
            align=align,
            indent=indent,
            bullet=bullet,
        )
        self._blocks.append(block)
        self._cursor = block.top + block.height + margin_bottom

    def section(self, heading: str, body: str) -> None:
        self.text(heading, HEADING, margin_top=15, margin_bottom=5)
        self.text(body, BODY, margin_bottom=11)

    def chart(
        self, metrics: Tuple[KeyMetric, ...], revenue_label: str, net_income_label: str
    ) -> None:
        block = ChartBlock(
            top=self._cursor,
            height=round(self.content_width * 320 / 680),
            metrics=metrics,
            revenue_label=revenue_label,
            net_income_label=net_income_label,
        )
        self._blocks.append(block)
        self._cursor = block.top + block.height + 11

    def finish(self) -> RenderedRegion:
        return RenderedRegion(
            width_px=self._width,
            height_px=self._cursor + self._padding,
            padding_px=self._padding,
            language=self._language,
            fonts=self._fonts,
            blocks=tuple(self._blocks),
        )


class ReportRenderer:
    """Lay out loan and financial reports in the printable page width."""

    PADDING_MM = 6.0

    def __init__(self, settings: ExportSettings) -> None:
        printable_mm = settings.page_width_mm - 2 * settings.page_margin_mm
        self._dpi = settings.render_dpi
        self._width_px = self._mm_to_px(printable_mm)
        self._padding_px = self._mm_to_px(self.PADDING_MM)
        self._font_paths = {
            ReportLanguage.EN: settings.font_path,
            ReportLanguage.AR: settings.rtl_font_path or settings.font_path,
        }

    def _mm_to_px(self, value_mm: float) -> int:
        return round(value_mm / MM_PER_INCH * self._dpi)

    def render(self, report: AnalysisReport, language: ReportLanguage) -> RenderedRegion:
        titles = _TITLES[language]
        layout = _LayoutBuilder(
            self._width_px,
            self._padding_px,
            FontSet(self._font_paths.get(language)),
            language,
        )
        if isinstance(report, LoanReport):
            layout.text(
                titles["loan_report_title"].format(loan_id=report.loan_id),
                TITLE,
                margin_bottom=20,
            )
            layout.section(titles["summary"], report.summary)
            layout.section(titles["prediction"], report.prediction)
            layout.section(titles["eligibility"], report.eligibility)
        elif isinstance(report, FinancialReport):
            self._render_financial(layout, report, titles)
        else:
            raise TypeError(f"Unsupported report type: {type(report).__name__}")

        layout.text(titles["generated_by"], FOOTER, margin_top=40, align="center")
        region = layout.finish()
        logger.debug(
            "Rendered %s report in %s: %dx%d px, %d blocks",
            report.report_type,
            language.value,
            region.width_px,
            region.height_px,
            len(region.blocks),
        )
        return region

    @staticmethod
    def _render_financial(
        layout: _LayoutBuilder, report: FinancialReport, titles: Dict[str, str]
    ) -> None:
        layout.text(titles["financial_report_title"], TITLE, margin_bottom=20)
        layout.section(titles["summary"], report.summary)
        if report.trends_and_graphs:
            layout.section(titles["trends_and_graphs"], report.trends_and_graphs)
        if report.key_metrics:
            layout.text(
                titles["financial_performance"], HEADING, margin_top=15, margin_bottom=5
            )
            layout.chart(report.key_metrics, titles["revenue"], titles["net_income"])
        layout.section(titles["prediction"], report.prediction)
        layout.section(titles["credit_score_assessment"], report.credit_score_prediction)
        if report.identified_flaws:
            layout.text(
                titles["identified_flaws"], HEADING, margin_top=15, margin_bottom=5
            )
            for flaw in report.identified_flaws:
                layout.text(flaw, BODY, indent=20, bullet=True, margin_bottom=12)


__all__ = [
    "ChartBlock",
    "FontSet",
    "RenderedRegion",
    "ReportRenderer",
    "TextBlock",
    "TextStyle",
    "text_options",
    "wrap_text",
]
