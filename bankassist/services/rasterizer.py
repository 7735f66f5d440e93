"""Capture rendered report regions as raster snapshots using Pillow."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol, Tuple

from PIL import Image, ImageDraw

from bankassist.services.exceptions import RasterizationFailed
from bankassist.services.rendering import (
    ChartBlock,
    RenderedRegion,
    TextBlock,
    text_options,
)

logger = logging.getLogger(__name__)

_REVENUE_COLOR = (59, 130, 246)
_NET_INCOME_COLOR = (16, 185, 129)
_BULLET_COLOR = (239, 68, 68)
_AXIS_COLOR = (156, 163, 175)
_LABEL_COLOR = (55, 65, 81)


@dataclass(frozen=True, slots=True)
class RasterSnapshot:
    """Pixel buffer of a fully rendered report, however tall."""

    width_px: int
    height_px: int
    image: Image.Image


class Rasterizer(Protocol):
    async def capture(self, region: RenderedRegion) -> RasterSnapshot:
        ...


class PillowRasterizer:
    """Draw a :class:`RenderedRegion` onto a single RGB image."""

    def __init__(self, scale: float = 2.0, background: str = "white") -> None:
        if scale <= 0:
            raise ValueError("scale must be positive")
        self._scale = scale
        self._background = background

    async def capture(self, region: RenderedRegion) -> RasterSnapshot:
        try:
            image = await asyncio.to_thread(self._draw, region)
        except Exception as exc:  # pylint: disable=broad-except
            raise RasterizationFailed(f"Unable to capture report: {exc}") from exc
        logger.debug("Captured report snapshot %dx%d px", image.width, image.height)
        return RasterSnapshot(width_px=image.width, height_px=image.height, image=image)

    def _px(self, value: float) -> int:
        return round(value * self._scale)

    def _draw(self, region: RenderedRegion) -> Image.Image:
        size = (self._px(region.width_px), self._px(region.height_px))
        image = Image.new("RGB", size, self._background)
        draw = ImageDraw.Draw(image)
        for block in region.blocks:
            if isinstance(block, TextBlock):
                self._draw_text(draw, region, block)
            elif isinstance(block, ChartBlock):
                self._draw_chart(draw, region, block)
            else:
                raise TypeError(f"Unknown layout block {type(block).__name__}")
        return image

    def _draw_text(
        self, draw: ImageDraw.ImageDraw, region: RenderedRegion, block: TextBlock
    ) -> None:
        font = region.fonts.get(self._px(block.style.size))
        options = text_options(region.language)
        stroke = max(1, self._px(0.4)) if block.style.bold else 0
        start = region.padding_px + block.indent
        end = region.width_px - region.padding_px - block.indent

        for index, line in enumerate(block.lines):
            top = block.top + index * block.line_height
            if not line:
                continue
            line_width = font.getlength(line, **options) / self._scale
            if block.align == "center":
                x = (region.width_px - line_width) / 2
            elif region.is_rtl:
                x = end - line_width
            else:
                x = start
            draw.text(
                (self._px(x), self._px(top)),
                line,
                font=font,
                fill=block.style.color,
                stroke_width=stroke,
                stroke_fill=block.style.color,
                **options,
            )

        if block.bullet:
            radius = 4
            cx = region.width_px - region.padding_px - radius if region.is_rtl else (
                region.padding_px + radius
            )
            cy = block.top + 5 + radius
            draw.ellipse(
                (
                    self._px(cx - radius),
                    self._px(cy - radius),
                    self._px(cx + radius),
                    self._px(cy + radius),
                ),
                fill=_BULLET_COLOR,
            )

    def _draw_chart(
        self, draw: ImageDraw.ImageDraw, region: RenderedRegion, block: ChartBlock
    ) -> None:
        left = region.padding_px
        right = region.width_px - region.padding_px
        label_font = region.fonts.get(self._px(9))
        options = text_options(region.language)

        legend_top = block.top
        self._draw_legend(draw, region, block, legend_top, label_font, options)

        plot_top = block.top + 24
        plot_bottom = block.top + block.height - 20
        values = [m.revenue for m in block.metrics] + [m.net_income for m in block.metrics]
        high = max(max(values), 0.0)
        low = min(min(values), 0.0)
        span = (high - low) or 1.0

        def y_for(value: float) -> float:
            return plot_top + (high - value) / span * (plot_bottom - plot_top)

        baseline = y_for(0.0)
        draw.line(
            (self._px(left), self._px(baseline), self._px(right), self._px(baseline)),
            fill=_AXIS_COLOR,
            width=max(1, self._px(0.5)),
        )

        periods = block.metrics[::-1] if region.is_rtl else block.metrics
        group_width = (right - left) / len(periods)
        bar_width = group_width * 0.3
        for index, metric in enumerate(periods):
            group_left = left + index * group_width + group_width * 0.2
            bars: Tuple[Tuple[float, Tuple[int, int, int]], ...] = (
                (metric.revenue, _REVENUE_COLOR),
                (metric.net_income, _NET_INCOME_COLOR),
            )
            for offset, (value, color) in enumerate(bars):
                x0 = group_left + offset * bar_width
                y0, y1 = sorted((y_for(value), baseline))
                draw.rectangle(
                    (
                        self._px(x0),
                        self._px(y0),
                        self._px(x0 + bar_width * 0.9),
                        self._px(max(y1, y0 + 0.5)),
                    ),
                    fill=color,
                )
            label_width = label_font.getlength(metric.period, **options) / self._scale
            center = left + index * group_width + group_width / 2
            draw.text(
                (self._px(center - label_width / 2), self._px(plot_bottom + 6)),
                metric.period,
                font=label_font,
                fill=_LABEL_COLOR,
                **options,
            )

    def _draw_legend(self, draw, region, block, top, font, options) -> None:
        x = region.padding_px
        for label, color in (
            (block.revenue_label, _REVENUE_COLOR),
            (block.net_income_label, _NET_INCOME_COLOR),
        ):
            draw.rectangle(
                (self._px(x), self._px(top + 2), self._px(x + 10), self._px(top + 12)),
                fill=color,
            )
            draw.text(
                (self._px(x + 14), self._px(top)),
                label,
                font=font,
                fill=_LABEL_COLOR,
                **options,
            )
            x += 14 + font.getlength(label, **options) / self._scale + 16


__all__ = ["PillowRasterizer", "RasterSnapshot", "Rasterizer"]
