"""Slice a tall report snapshot into fixed-size pages of a PDF document.

All page geometry is expressed in millimetres. The raster is converted once
with a single scale factor ``s = printable_width / snapshot_width_px`` and the
same scaled image is positioned on every page, shifted up by the page offset
and clipped to the printable area.
"""

from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass
from typing import Tuple

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from bankassist.services.exceptions import EmptyContent
from bankassist.services.rasterizer import RasterSnapshot

logger = logging.getLogger(__name__)

# Guards against a spurious trailing page when Hc / Hp' is integral up to rounding.
_PAGE_COUNT_TOLERANCE = 1e-9


@dataclass(frozen=True, slots=True)
class PageFormat:
    """Physical page size and uniform margin, in millimetres."""

    width: float = 210.0
    height: float = 297.0
    margin: float = 15.0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("page dimensions must be positive")
        if self.margin < 0 or 2 * self.margin >= min(self.width, self.height):
            raise ValueError("page margin leaves no printable area")

    @property
    def printable_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def printable_height(self) -> float:
        return self.height - 2 * self.margin


@dataclass(frozen=True, slots=True)
class Page:
    """Crop of the scaled content drawn on one page.

    ``origin_y`` is the vertical offset into the scaled content and ``height``
    the amount of content visible on this page; both in millimetres.
    """

    index: int
    origin_x: float
    origin_y: float
    width: float
    height: float

    def pixel_box(self, scale: float) -> Tuple[int, int, int, int]:
        """Equivalent ``(left, top, right, bottom)`` crop in snapshot pixels."""
        return (
            round(self.origin_x / scale),
            round(self.origin_y / scale),
            round((self.origin_x + self.width) / scale),
            round((self.origin_y + self.height) / scale),
        )


@dataclass(frozen=True, slots=True)
class PaginatedDocument:
    pages: Tuple[Page, ...]
    content: bytes
    page_format: PageFormat
    scale: float

    @property
    def page_count(self) -> int:
        return len(self.pages)


def scale_factor(width_px: int, page_format: PageFormat) -> float:
    if width_px <= 0:
        raise ValueError("snapshot width must be positive")
    return page_format.printable_width / width_px


def plan_pages(width_px: int, height_px: int, page_format: PageFormat) -> Tuple[Page, ...]:
    """Compute the ordered page crops for a snapshot of the given size.

    Raises:
        EmptyContent: if the snapshot has no height.
    """
    if height_px <= 0:
        raise EmptyContent("Rendered report has no content to export")
    scale = scale_factor(width_px, page_format)
    content_height = height_px * scale
    page_height = page_format.printable_height

    if content_height <= page_height:
        count = 1
    else:
        count = math.ceil(content_height / page_height - _PAGE_COUNT_TOLERANCE)

    pages = []
    for index in range(count):
        offset = index * page_height
        pages.append(
            Page(
                index=index,
                origin_x=0.0,
                origin_y=offset,
                width=page_format.printable_width,
                height=min(page_height, content_height - offset),
            )
        )
    return tuple(pages)


class DocumentAssembler:
    """Assemble a multi-page PDF from one raster snapshot with reportlab."""

    def __init__(self, page_format: PageFormat | None = None) -> None:
        self._format = page_format or PageFormat()

    @property
    def page_format(self) -> PageFormat:
        return self._format

    def assemble(self, snapshot: RasterSnapshot) -> PaginatedDocument:
        fmt = self._format
        pages = plan_pages(snapshot.width_px, snapshot.height_px, fmt)
        scale = scale_factor(snapshot.width_px, fmt)
        content_height = snapshot.height_px * scale

        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=(fmt.width * mm, fmt.height * mm))
        # Encoded once; reportlab reuses the image XObject on every page.
        image = ImageReader(snapshot.image)
        for page in pages:
            pdf.saveState()
            clip = pdf.beginPath()
            clip.rect(
                fmt.margin * mm,
                fmt.margin * mm,
                fmt.printable_width * mm,
                fmt.printable_height * mm,
            )
            pdf.clipPath(clip, stroke=0, fill=0)
            # reportlab's origin is bottom-left: place the image top at the
            # printable top edge, raised by the page offset.
            image_top = fmt.height - fmt.margin + page.origin_y
            pdf.drawImage(
                image,
                (fmt.margin + page.origin_x) * mm,
                (image_top - content_height) * mm,
                width=fmt.printable_width * mm,
                height=content_height * mm,
            )
            pdf.restoreState()
            pdf.showPage()
            logger.debug(
                "Page %d shows snapshot box %s", page.index, page.pixel_box(scale)
            )
        pdf.save()

        logger.debug(
            "Assembled %d page(s) from %dx%d px snapshot (scale %.5f mm/px)",
            len(pages),
            snapshot.width_px,
            snapshot.height_px,
            scale,
        )
        return PaginatedDocument(
            pages=pages, content=buffer.getvalue(), page_format=fmt, scale=scale
        )


__all__ = [
    "DocumentAssembler",
    "Page",
    "PageFormat",
    "PaginatedDocument",
    "plan_pages",
    "scale_factor",
]
