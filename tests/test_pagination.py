try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import re

import pytest
from PIL import Image
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from bankassist.services import (
    DocumentAssembler,
    EmptyContent,
    PageFormat,
    RasterSnapshot,
    plan_pages,
    scale_factor,
)


def _snapshot(width: int, height: int) -> RasterSnapshot:
    image = Image.new("RGB", (width, height), "white")
    return RasterSnapshot(width_px=width, height_px=height, image=image)


def _pdf_page_count(content: bytes) -> int:
    return len(re.findall(rb"/Type /Page\b", content))


def test_page_format_defaults_to_a4_with_margin():
    fmt = PageFormat()

    assert fmt.printable_width == pytest.approx(180.0)
    assert fmt.printable_height == pytest.approx(267.0)


@pytest.mark.parametrize(
    "kwargs",
    [{"width": 0}, {"height": -1}, {"margin": -2}, {"margin": 105}],
)
def test_page_format_rejects_unusable_geometry(kwargs):
    with pytest.raises(ValueError):
        PageFormat(**kwargs)


def test_tall_snapshot_is_split_into_offset_pages():
    pages = plan_pages(1000, 3000, PageFormat())

    assert [page.index for page in pages] == [0, 1, 2]
    assert [page.origin_y for page in pages] == pytest.approx([0.0, 267.0, 534.0])
    assert [page.height for page in pages] == pytest.approx([267.0, 267.0, 6.0])
    assert all(page.width == pytest.approx(180.0) for page in pages)


def test_short_snapshot_fits_on_one_page():
    pages = plan_pages(1000, 1000, PageFormat())

    assert len(pages) == 1
    assert pages[0].origin_y == 0.0
    assert pages[0].height == pytest.approx(180.0)


def test_exact_multiple_does_not_add_trailing_page():
    fmt = PageFormat(width=120, height=220, margin=10)
    # scale 0.1 mm/px: 4000 px -> 400 mm == 2 * 200 mm pages
    pages = plan_pages(1000, 4000, fmt)

    assert len(pages) == 2
    assert pages[-1].height == pytest.approx(200.0)


def test_pages_cover_content_without_gaps():
    fmt = PageFormat()
    pages = plan_pages(1240, 9001, fmt)
    content_height = 9001 * scale_factor(1240, fmt)

    for previous, current in zip(pages, pages[1:]):
        assert current.origin_y == pytest.approx(previous.origin_y + previous.height)
    assert sum(page.height for page in pages) == pytest.approx(content_height)
    assert all(0 < page.height <= fmt.printable_height for page in pages)


def test_zero_height_snapshot_is_empty_content():
    with pytest.raises(EmptyContent):
        plan_pages(1000, 0, PageFormat())


def test_pixel_box_maps_back_to_snapshot_rows():
    fmt = PageFormat()
    scale = scale_factor(1000, fmt)
    second = plan_pages(1000, 3000, fmt)[1]

    assert second.pixel_box(scale) == (0, 1483, 1000, 2967)


def test_assembler_writes_one_pdf_page_per_planned_page():
    document = DocumentAssembler(PageFormat()).assemble(_snapshot(1000, 3000))

    assert document.content.startswith(b"%PDF")
    assert document.page_count == 3
    assert _pdf_page_count(document.content) == 3
    assert document.scale == pytest.approx(0.18)


def test_assembler_single_page_document():
    document = DocumentAssembler().assemble(_snapshot(400, 200))

    assert document.page_count == 1
    assert _pdf_page_count(document.content) == 1
    assert document.pages[0].origin_y == 0.0


def test_assembler_rejects_empty_snapshot():
    with pytest.raises(EmptyContent):
        DocumentAssembler().assemble(_snapshot(1000, 0))


def test_every_page_draws_the_full_image_shifted_and_clipped(monkeypatch):
    draws = []
    clips = []
    original_draw = canvas.Canvas.drawImage
    original_clip = canvas.Canvas.clipPath

    def recording_draw(self, image, x, y, width=None, height=None, **kwargs):
        draws.append((x, y, width, height))
        return original_draw(self, image, x, y, width=width, height=height, **kwargs)

    def recording_clip(self, path, *args, **kwargs):
        clips.append([float(value) for value in path.getCode().split()[:4]])
        return original_clip(self, path, *args, **kwargs)

    monkeypatch.setattr(canvas.Canvas, "drawImage", recording_draw)
    monkeypatch.setattr(canvas.Canvas, "clipPath", recording_clip)

    document = DocumentAssembler(PageFormat()).assemble(_snapshot(1000, 3000))

    # 3000 px at 0.18 mm/px is 540 mm of content on 267 mm pages.
    content_height = 540.0
    assert document.page_count == 3
    assert len(draws) == 3
    for index, (x, y, width, height) in enumerate(draws):
        assert x == pytest.approx(15 * mm)
        assert y == pytest.approx((297 - 15 + index * 267 - content_height) * mm)
        assert width == pytest.approx(180 * mm)
        assert height == pytest.approx(content_height * mm)

    assert len(clips) == 3
    for left, bottom, width, height in clips:
        assert left == pytest.approx(15 * mm, abs=0.01)
        assert bottom == pytest.approx(15 * mm, abs=0.01)
        assert width == pytest.approx(180 * mm, abs=0.01)
        assert height == pytest.approx(267 * mm, abs=0.01)


def test_single_page_image_top_sits_on_printable_top_edge(monkeypatch):
    draws = []
    original_draw = canvas.Canvas.drawImage

    def recording_draw(self, image, x, y, width=None, height=None, **kwargs):
        draws.append((y, height))
        return original_draw(self, image, x, y, width=width, height=height, **kwargs)

    monkeypatch.setattr(canvas.Canvas, "drawImage", recording_draw)

    DocumentAssembler(PageFormat()).assemble(_snapshot(1000, 500))

    [(y, height)] = draws
    assert y + height == pytest.approx((297 - 15) * mm)
    assert height == pytest.approx(90 * mm)
