from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from reportlab.pdfbase.pdfmetrics import stringWidth

from pod_gen.services.layout.elements import (
    BadgeEl,
    ImageEl,
    PageSpec,
    PlaceholderEl,
    RectEl,
    SlotState,
    TextEl,
)
from pod_gen.services.layout.style import PageStyle
from pod_gen.services.overlay.geometry import Box

logger = logging.getLogger(__name__)

NOT_PRESENT_TITLE = "N/A / Not Present"
NOT_CAPTURED_TITLE = "Photo not captured"
IMAGE_UNAVAILABLE_TITLE = "Image unavailable"


@dataclass(frozen=True)
class CardSlot:
    label: str
    state: SlotState
    images: tuple[tuple[str, bytes], ...] = ()
    placeholder: str = ""
    detail: str = ""
    badge_number: int | None = None
    marker_id: str | None = None
    extra_lines: tuple[str, ...] = field(default_factory=tuple)


def resolve_slot(
    label: str,
    images: list[tuple[str, bytes | None]],
    *,
    present: bool | None = None,
) -> CardSlot:
    """Decide which of the three card states a fixed slot is drawn in.

    A usable photo always wins. Without one, `present is False` means the item is known to
    be absent; anything else is an unavailable slot (not captured, or failed to decode).
    """

    usable = tuple((ref, data) for ref, data in images if data)
    if usable:
        return CardSlot(label=label, state=SlotState.PRESENT, images=usable)
    if present is False:
        return CardSlot(label=label, state=SlotState.NOT_PRESENT, placeholder=NOT_PRESENT_TITLE)
    if images:
        return CardSlot(label=label, state=SlotState.UNAVAILABLE, placeholder=IMAGE_UNAVAILABLE_TITLE)
    return CardSlot(label=label, state=SlotState.UNAVAILABLE, placeholder=NOT_CAPTURED_TITLE)


def grid_shape(n: int, *, cols: int = 2) -> tuple[int, int]:
    """Rows/cols for `n` fixed slots (2 -> 1x2, 4 -> 2x2, 6 -> 3x2 on a portrait page)."""
    if n <= 0:
        raise ValueError("grid needs at least one slot")
    return (max(1, math.ceil(n / cols)), cols)


def cell_boxes(area: Box, rows: int, cols: int, gap: float) -> list[Box]:
    cell_w = (area.w - (cols - 1) * gap) / cols
    cell_h = (area.h - (rows - 1) * gap) / rows
    if cell_w <= 20 or cell_h <= 20:
        raise ValueError("grid area too small; reduce slot count or gap")
    out: list[Box] = []
    for r in range(rows):
        for c in range(cols):
            out.append(Box(area.x + c * (cell_w + gap), area.y + r * (cell_h + gap), cell_w, cell_h))
    return out


def wrap_text(text: str, font: str, size: float, max_width: float) -> list[str]:
    # Word-wise wrapping; words wider than the line are split by character.
    lines: list[str] = []
    for paragraph in (text or "").split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        cur = ""
        for word in words:
            candidate = f"{cur} {word}" if cur else word
            if stringWidth(candidate, font, size) <= max_width:
                cur = candidate
                continue
            if cur:
                lines.append(cur)
            cur = ""
            for ch in word:
                if stringWidth(cur + ch, font, size) <= max_width or not cur:
                    cur += ch
                else:
                    lines.append(cur)
                    cur = ch
        if cur:
            lines.append(cur)
    return lines


def _image_boxes(area: Box, count: int, gap: float) -> list[Box]:
    if count <= 1:
        return [area]
    rows, cols = (1, 2) if count == 2 else (2, 2)
    return cell_boxes(area, rows, cols, gap)[:count]


def fit_line(text: str, font: str, size: float, max_width: float, suffix: str = "...") -> str:
    """`text` shortened until it fits `max_width` with `suffix` appended."""
    out = text.rstrip()
    while out and stringWidth(out + suffix, font, size) > max_width:
        out = out[:-1].rstrip()
    return out + suffix


def _caption_lines(slot: CardSlot, style: PageStyle, max_w: float, max_h: float) -> tuple[float, list[str]]:
    """Caption bar height and the description lines that fit in it."""
    size = style.caption_size - 1
    line_h = style.caption_size * 1.3
    extra_h = 11.0 * len(slot.extra_lines)
    lines = wrap_text(slot.detail, style.font, size, max_w) if slot.detail else []
    # the base bar holds the title and one description line
    wanted = style.caption_bar_h + line_h * max(0, len(lines) - 1) + extra_h
    caption_h = min(wanted, max_h)
    room = 1 + max(0, int((caption_h - style.caption_bar_h - extra_h) // line_h))
    if len(lines) > room:
        logger.warning("card %r: description cut to %d of %d line(s)", slot.label, room, len(lines))
        lines = lines[: room - 1] + [fit_line(lines[room - 1], style.font, size, max_w)]
    return caption_h, lines


def draw_card(page: PageSpec, box: Box, slot: CardSlot, style: PageStyle, *, max_images: int = 1) -> None:
    """Bordered card: image area (or placeholder), caption bar, optional numbered badge."""

    max_w = box.w - 12
    caption_h, detail_lines = _caption_lines(slot, style, max_w, box.h * 0.5)
    img_area = Box(box.x, box.y, box.w, box.h - caption_h)
    inner = img_area.inset(3.0)

    if slot.state is SlotState.PRESENT:
        shown = slot.images[:max_images]
        for ib, (ref, data) in zip(_image_boxes(inner, len(shown), 3.0), shown):
            page.add(ImageEl(ib.x, ib.y, ib.w, ib.h, ref=ref, data=data))
    else:
        if slot.state is SlotState.NOT_PRESENT:
            fill, fg = style.not_present_fill, style.not_present_text
        else:
            fill, fg = style.unavailable_fill, style.unavailable_text
        page.add(
            PlaceholderEl(
                inner.x,
                inner.y,
                inner.w,
                inner.h,
                state=slot.state,
                title=slot.placeholder,
                subtitle=slot.label,
                fill=fill,
                text_color=fg,
                font=style.font,
                font_bold=style.font_bold,
            )
        )

    # caption bar
    bar_y = img_area.y + img_area.h
    page.add(RectEl(box.x, bar_y, box.w, caption_h, stroke=None, fill=style.section_bg))
    size = style.caption_size
    ty = bar_y + size + 4
    title = slot.label
    if stringWidth(title, style.font_bold, size) > max_w:
        title = fit_line(title, style.font_bold, size, max_w)
    page.add(TextEl(box.x + 6, ty, title, font=style.font_bold, size=size, color=style.primary))
    ty += size * 1.3
    for ln in detail_lines:
        page.add(TextEl(box.x + 6, ty, ln, font=style.font, size=size - 1, color=style.text))
        ty += size * 1.3
    for extra in slot.extra_lines:
        page.add(TextEl(box.x + 6, ty, extra, font=style.font, size=size - 1, color=style.muted))
        ty += 11.0

    page.add(RectEl(box.x, box.y, box.w, box.h, stroke=style.border, line_width=style.card_border_w))

    if slot.badge_number is not None:
        bx = box.x + style.badge_margin
        by = box.y + style.badge_margin
        page.add(
            BadgeEl(
                bx,
                by,
                style.badge_w,
                style.badge_h,
                label=str(slot.badge_number),
                number=slot.badge_number,
                marker_id=slot.marker_id,
                fill=style.badge_fill,
            )
        )


def draw_grid(
    page: PageSpec,
    area: Box,
    slots: list[CardSlot],
    style: PageStyle,
    *,
    cols: int = 2,
    rows: int | None = None,
    max_images: int = 1,
) -> list[Box]:
    """Draw every slot of a fixed grid; returns the cell boxes used."""
    r, c = grid_shape(len(slots), cols=cols)
    if rows is not None:
        r = max(r, rows)
    boxes = cell_boxes(area, r, c, style.gap)
    for box, slot in zip(boxes, slots):
        draw_card(page, box, slot, style, max_images=max_images)
    return boxes[: len(slots)]
