from __future__ import annotations

import logging
from io import BytesIO

from reportlab.lib.colors import HexColor
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from pod_gen.errors import RenderError
from pod_gen.services.layout.elements import (
    BadgeEl,
    CircleEl,
    Element,
    ImageEl,
    LineEl,
    MarkerEl,
    PageSpec,
    PlaceholderEl,
    RectEl,
    TextEl,
)
from pod_gen.services.layout.fonts import unsupported_chars
from pod_gen.services.layout.style import A4_H, A4_W

logger = logging.getLogger(__name__)


class _PageWriter:
    """Draws top-left based page elements onto a reportlab canvas (bottom-left origin)."""

    def __init__(self, c: canvas.Canvas, page_h: float) -> None:
        self.c = c
        self.page_h = page_h
        self._readers: dict[int, ImageReader] = {}
        self._glyph_warnings: set[tuple[str, str]] = set()

    def fy(self, y: float) -> float:
        return self.page_h - y

    def _reader(self, data: bytes) -> ImageReader:
        # Same payload object (e.g. a photo reused on two pages) -> one reader.
        key = id(data)
        if key not in self._readers:
            self._readers[key] = ImageReader(BytesIO(data))
        return self._readers[key]

    def draw(self, el: Element) -> None:
        if isinstance(el, TextEl):
            self.text(el)
        elif isinstance(el, RectEl):
            self.rect(el)
        elif isinstance(el, LineEl):
            self.line(el)
        elif isinstance(el, CircleEl):
            self.circle(el)
        elif isinstance(el, ImageEl):
            self.image(el)
        elif isinstance(el, MarkerEl):
            self.marker(el)
        elif isinstance(el, BadgeEl):
            self.badge(el)
        elif isinstance(el, PlaceholderEl):
            self.placeholder(el)
        else:
            raise TypeError(f"unknown page element: {type(el).__name__}")

    def _check_glyphs(self, text: str, font: str) -> None:
        missing = unsupported_chars(text, font)
        if missing and (font, missing) not in self._glyph_warnings:
            self._glyph_warnings.add((font, missing))
            logger.warning("font %s has no glyph for %r; those characters will not render", font, missing)

    def text(self, el: TextEl) -> None:
        c = self.c
        self._check_glyphs(el.text, el.font)
        c.setFillColor(HexColor(el.color))
        c.setFont(el.font, el.size)
        y = self.fy(el.y)
        if el.align == "center":
            c.drawCentredString(el.x, y, el.text)
        elif el.align == "right":
            c.drawRightString(el.x, y, el.text)
        else:
            c.drawString(el.x, y, el.text)

    def rect(self, el: RectEl) -> None:
        c = self.c
        c.saveState()
        if el.fill:
            c.setFillColor(HexColor(el.fill))
        if el.stroke:
            c.setStrokeColor(HexColor(el.stroke))
            c.setLineWidth(el.line_width)
        if el.dashed:
            c.setDash(3, 2)
        y = self.fy(el.y + el.h)
        c.rect(el.x, y, el.w, el.h, stroke=int(bool(el.stroke)), fill=int(bool(el.fill)))
        c.restoreState()

    def line(self, el: LineEl) -> None:
        c = self.c
        c.setStrokeColor(HexColor(el.color))
        c.setLineWidth(el.line_width)
        c.line(el.x1, self.fy(el.y1), el.x2, self.fy(el.y2))

    def circle(self, el: CircleEl) -> None:
        c = self.c
        if el.fill:
            c.setFillColor(HexColor(el.fill))
        if el.stroke:
            c.setStrokeColor(HexColor(el.stroke))
            c.setLineWidth(el.line_width)
        c.circle(el.cx, self.fy(el.cy), el.r, stroke=int(bool(el.stroke)), fill=int(bool(el.fill)))

    def image(self, el: ImageEl) -> None:
        self.c.drawImage(
            self._reader(el.data),
            el.x,
            self.fy(el.y + el.h),
            width=el.w,
            height=el.h,
            preserveAspectRatio=True,
            anchor="c",
            mask="auto",
        )

    def marker(self, el: MarkerEl) -> None:
        c = self.c
        c.setFillColor(HexColor(el.fill))
        c.setStrokeColor(HexColor(el.border))
        c.setLineWidth(1.5)
        cy = self.fy(el.cy)
        c.circle(el.cx, cy, el.r, stroke=1, fill=1)
        size = el.r * (1.1 if el.number < 10 else 0.9)
        c.setFillColor(HexColor(el.text_color))
        c.setFont("Helvetica-Bold", size)
        c.drawCentredString(el.cx, cy - size * 0.35, str(el.number))

    def badge(self, el: BadgeEl) -> None:
        c = self.c
        c.setFillColor(HexColor(el.fill))
        c.roundRect(el.x, self.fy(el.y + el.h), el.w, el.h, 3, stroke=0, fill=1)
        size = el.h * 0.62
        c.setFillColor(HexColor(el.text_color))
        c.setFont("Helvetica-Bold", size)
        c.drawCentredString(el.x + el.w / 2, self.fy(el.y + el.h / 2) - size * 0.35, el.label)

    def placeholder(self, el: PlaceholderEl) -> None:
        c = self.c
        c.setFillColor(HexColor(el.fill))
        c.rect(el.x, self.fy(el.y + el.h), el.w, el.h, stroke=0, fill=1)
        mid = self.fy(el.y + el.h / 2)
        c.setFillColor(HexColor(el.text_color))
        c.setFont(el.font_bold, 11)
        c.drawCentredString(el.x + el.w / 2, mid + (4 if el.subtitle else -4), el.title)
        if el.subtitle:
            c.setFont(el.font, 8.5)
            c.drawCentredString(el.x + el.w / 2, mid - 10, el.subtitle)


def render_pages(
    pages: list[PageSpec],
    *,
    title: str = "",
    author: str = "",
    page_size: tuple[float, float] = (A4_W, A4_H),
) -> bytes:
    """Serialize page specs into one PDF.

    `invariant=1` pins the document timestamps and ID, so identical pages give identical bytes.
    """

    if not pages:
        raise RenderError("nothing to render: zero pages")
    buf = BytesIO()
    try:
        c = canvas.Canvas(buf, pagesize=page_size, invariant=1, pageCompression=1)
        c.setTitle(title)
        c.setAuthor(author)
        c.setCreator("pod-gen")
        writer = _PageWriter(c, page_size[1])
        for page in pages:
            for el in page.elements:
                writer.draw(el)
            c.showPage()
        c.save()
    except RenderError:
        raise
    except Exception as e:
        raise RenderError(f"failed to render PDF: {type(e).__name__}: {e}") from e
    data = buf.getvalue()
    logger.debug("rendered %d page(s), %d bytes", len(pages), len(data))
    return data
