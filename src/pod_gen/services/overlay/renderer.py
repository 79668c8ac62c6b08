from __future__ import annotations

import logging
import math

from pod_gen.models.inspection import DamageType, View
from pod_gen.services.assets import AssetSet
from pod_gen.services.layout.elements import CircleEl, ImageEl, MarkerEl, PageSpec, RectEl, TextEl
from pod_gen.services.layout.style import PageStyle
from pod_gen.services.overlay.geometry import (
    CANONICAL_VIEWS,
    Box,
    NumberedMarker,
    project_point,
)

logger = logging.getLogger(__name__)

LABEL_H = 16.0
LEGEND_COL_W = 90.0
LEGEND_ROW_H = 14.0
ROOF_STRIP_H = 34.0


def fit_aspect(frame: Box, aspect: float | None) -> Box:
    """Largest box of the given width/height ratio centred in `frame`."""
    if not aspect or frame.w <= 0 or frame.h <= 0:
        return frame
    if frame.w / frame.h > aspect:
        w = frame.h * aspect
        return Box(frame.x + (frame.w - w) / 2.0, frame.y, w, frame.h)
    h = frame.w / aspect
    return Box(frame.x, frame.y + (frame.h - h) / 2.0, frame.w, h)


def view_slot_boxes(area: Box, gap: float) -> dict[View, Box]:
    """2x2 slots in canonical order (front, rear / driver side, passenger side)."""
    cell_w = (area.w - gap) / 2.0
    cell_h = (area.h - gap) / 2.0
    out: dict[View, Box] = {}
    for i, view in enumerate(CANONICAL_VIEWS):
        r, c = divmod(i, 2)
        out[view] = Box(area.x + c * (cell_w + gap), area.y + r * (cell_h + gap), cell_w, cell_h)
    return out


def _marker_el(nm: NumberedMarker, cx: float, cy: float, radius: float, style: PageStyle) -> MarkerEl:
    return MarkerEl(
        cx=cx,
        cy=cy,
        r=radius,
        number=nm.number,
        marker_id=nm.marker.id,
        fill=style.damage_color(nm.marker.damage_type),
    )


def draw_view(
    page: PageSpec,
    view: View,
    slot: Box,
    numbered: list[NumberedMarker],
    assets: AssetSet,
    style: PageStyle,
    *,
    pad: float,
    correction: float,
    marker_radius: float,
) -> Box:
    """Draw one outline slot with its markers; returns the drawing box markers project into."""

    in_view = [nm for nm in numbered if nm.view == view]
    label = f"{view.label.upper()}  ({len(in_view)})"
    page.add(TextEl(slot.x, slot.y + 11, label, font=style.font_bold, size=10, color=style.primary))
    frame = Box(slot.x, slot.y + LABEL_H, slot.w, slot.h - LABEL_H)
    page.add(RectEl(frame.x, frame.y, frame.w, frame.h, stroke=style.border, line_width=0.8))

    outline = assets.outline(view)
    box = fit_aspect(frame.inset(4.0), outline.aspect if outline else None)
    if outline is not None:
        page.add(ImageEl(box.x, box.y, box.w, box.h, ref=f"outline:{view.value}", data=outline.data))
    else:
        page.add(RectEl(box.x, box.y, box.w, box.h, stroke=style.muted, line_width=0.6, dashed=True))
        cx, cy = box.center
        page.add(
            TextEl(cx, cy, f"{view.label} outline unavailable", font=style.font, size=9, color=style.muted, align="center")
        )

    for nm in in_view:
        px, py = project_point(nm.marker.x, nm.marker.y, box, pad=pad, correction=correction)
        page.add(_marker_el(nm, px, py, marker_radius, style))
    return box


def draw_roof_strip(page: PageSpec, area: Box, roof: list[NumberedMarker], style: PageStyle, *, marker_radius: float) -> None:
    page.add(RectEl(area.x, area.y, area.w, area.h, stroke=style.border, fill=style.section_bg, line_width=0.8))
    cy = area.y + area.h / 2.0
    page.add(TextEl(area.x + 8, cy + 3.5, "ROOF", font=style.font_bold, size=10, color=style.primary))
    x = area.x + 50 + marker_radius
    for nm in roof:
        page.add(_marker_el(nm, x, cy, marker_radius, style))
        x += marker_radius * 2.6
    page.add(TextEl(x + 4, cy + 3, "(no roof outline; see evidence page)", font=style.font, size=8, color=style.muted))


def legend_height(n_types: int, width: float) -> float:
    per_row = max(1, int(width // LEGEND_COL_W))
    rows = max(1, math.ceil(n_types / per_row))
    return 24.0 + LEGEND_ROW_H * (rows - 1) + 10.0


def draw_legend(page: PageSpec, area: Box, types: list[DamageType], style: PageStyle) -> None:
    page.add(TextEl(area.x, area.y + 10, "KEY", font=style.font_bold, size=9, color=style.primary))
    per_row = max(1, int(area.w // LEGEND_COL_W))
    for i, dt in enumerate(types):
        row, col = divmod(i, per_row)
        x = area.x + col * LEGEND_COL_W
        y = area.y + 24 + row * LEGEND_ROW_H
        page.add(CircleEl(x + 5, y - 3, 4.5, fill=style.damage_color(dt), stroke="#ffffff", line_width=0.8))
        page.add(TextEl(x + 14, y, dt.label, font=style.font, size=8.5, color=style.text))


def draw_damage_overlay(
    page: PageSpec,
    area: Box,
    numbered: list[NumberedMarker],
    assets: AssetSet,
    style: PageStyle,
    *,
    pad: float,
    correction: float,
    marker_radius: float,
) -> dict[View, Box]:
    """Four outline views with projected, sequentially numbered markers, roof strip and key."""

    roof = [nm for nm in numbered if nm.view == View.ROOF]
    present = {nm.marker.damage_type for nm in numbered}
    legend_types = [dt for dt in DamageType if dt in present]
    legend_h = legend_height(len(legend_types), area.w)
    legend_box = Box(area.x, area.y + area.h - legend_h, area.w, legend_h)
    bottom = legend_box.y
    roof_area: Box | None = None
    if roof:
        roof_area = Box(area.x, bottom - ROOF_STRIP_H - 6, area.w, ROOF_STRIP_H)
        bottom = roof_area.y - 6
    views_area = Box(area.x, area.y, area.w, bottom - area.y - 6)

    boxes: dict[View, Box] = {}
    for view, slot in view_slot_boxes(views_area, style.gap).items():
        boxes[view] = draw_view(
            page,
            view,
            slot,
            numbered,
            assets,
            style,
            pad=pad,
            correction=correction,
            marker_radius=marker_radius,
        )

    if roof_area is not None:
        draw_roof_strip(page, roof_area, roof, style, marker_radius=marker_radius)

    draw_legend(page, legend_box, legend_types, style)
    logger.debug("overlay: %d marker(s), roof=%d", len(numbered), len(roof))
    return boxes
