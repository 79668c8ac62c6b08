from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from pod_gen.config import Settings
from pod_gen.models.bundle import BundleManifest
from pod_gen.models.inspection import InspectionKind, InspectionRecord, View
from pod_gen.services.assets import Asset, AssetSet
from pod_gen.services.images.pipeline import SIGNATURE_KEY, ImageCache, marker_key
from pod_gen.services.layout.elements import (
    ImageEl,
    LineEl,
    PageKind,
    PageSpec,
    PlaceholderEl,
    RectEl,
    SlotState,
    TextEl,
)
from pod_gen.services.layout.grid import (
    IMAGE_UNAVAILABLE_TITLE,
    CardSlot,
    draw_grid,
    fit_line,
    resolve_slot,
    wrap_text,
)
from pod_gen.services.layout.style import PageStyle
from pod_gen.services.overlay.geometry import Box, NumberedMarker
from pod_gen.services.overlay.renderer import draw_damage_overlay

logger = logging.getLogger(__name__)

EVIDENCE_CARDS_PER_PAGE = 6
EVIDENCE_PHOTOS_PER_CARD = 4
SUMMARY_ROWS_PER_PAGE = 25
NOTES_LINE_H = 13.0

EXTERIOR_SLOTS: tuple[tuple[str, str], ...] = (
    ("exterior.front", "Front"),
    ("exterior.rear", "Rear"),
    ("exterior.driver_side", "Driver Side"),
    ("exterior.passenger_side", "Passenger Side"),
    ("exterior.roof", "Roof"),
)
INTERIOR_SLOTS: tuple[tuple[str, str], ...] = (
    ("interior.dashboard", "Dashboard"),
    ("interior.front_seats", "Front Seats"),
    ("interior.back_seats", "Back Seats"),
    ("interior.boot", "Boot"),
)
WHEEL_SLOTS: tuple[tuple[str, str], ...] = (
    ("wheels.front_left", "Front Left"),
    ("wheels.front_right", "Front Right"),
    ("wheels.rear_left", "Rear Left"),
    ("wheels.rear_right", "Rear Right"),
)
# (photo array, label, presence flag attribute)
DOCUMENT_SLOTS: tuple[tuple[str, str, str | None], ...] = (
    ("documents.keys", "Keys", "keys"),
    ("documents.v5", "V5 Document", "v5"),
    ("documents.locking_wheel_nut", "Locking Wheel Nut", "locking_wheel_nut"),
    ("documents.service_book", "Service Book", "service_book"),
    ("documents.fuel", "Fuel Level", None),
    ("documents.odometer", "Odometer", None),
)


@dataclass(frozen=True)
class PageContext:
    record: InspectionRecord
    cache: ImageCache
    assets: AssetSet
    style: PageStyle
    settings: Settings
    numbered: tuple[NumberedMarker, ...]


def _fmt_date(record: InspectionRecord) -> str:
    return record.completed_at.strftime("%d/%m/%Y")


def _fmt_time(record: InspectionRecord) -> str:
    return record.completed_at.strftime("%H:%M")


def _or_na(value: object) -> str:
    s = "" if value is None else str(value).strip()
    return s or "N/A"


def money(value: object, symbol: str) -> str:
    return f"{symbol}{value:,.2f}"


# ---------------------------------------------------------------------------
# shared page furniture
# ---------------------------------------------------------------------------


def draw_page_header(
    page: PageSpec,
    style: PageStyle,
    s: Settings,
    logo: Asset | None,
    title: str,
    right_lines: list[str],
) -> float:
    """Header band (logo or company name, page title, right-aligned references)."""

    x, y = style.margin, style.margin
    w, h = style.content_w, style.header_h - 10
    page.add(RectEl(x, y, w, h, stroke=style.border, fill=style.section_bg, line_width=0.8))
    if logo is not None:
        page.add(ImageEl(x + 8, y + 6, 110, h - 12, ref="logo", data=logo.data))
    else:
        page.add(TextEl(x + 10, y + h / 2 + 6, s.company_name, font=style.font_bold, size=17, color=style.primary))

    page.add(TextEl(x + w / 2, y + h / 2 + 5, title, font=style.font_bold, size=14, color=style.primary, align="center"))
    ry = y + 16
    for ln in right_lines[:3]:
        page.add(TextEl(x + w - 10, ry, ln, font=style.font, size=9, color=style.text, align="right"))
        ry += 12
    return style.content_top


def add_footers(pages: list[PageSpec], style: PageStyle, s: Settings, *, prefix: str = "Page") -> None:
    total = len(pages)
    y = style.page_h - style.margin - style.footer_h + 10
    company = f"{s.company_name} | {s.company_address} | Company No: {s.company_number}"
    for i, page in enumerate(pages, start=1):
        page.add(LineEl(style.margin, y, style.page_w - style.margin, y, color=style.border, line_width=0.6))
        page.add(TextEl(style.margin, y + 14, company, font=style.font, size=7.5, color=style.muted))
        page.add(
            TextEl(style.page_w - style.margin, y + 14, f"{prefix} {i} of {total}", font=style.font, size=8, color=style.text, align="right")
        )


def section_heading(page: PageSpec, style: PageStyle, y: float, text: str) -> float:
    page.add(RectEl(style.margin, y, style.content_w, 20, stroke=style.border, fill=style.section_bg, line_width=0.6))
    page.add(TextEl(style.margin + 8, y + 14, text, font=style.font_bold, size=11, color=style.primary))
    return y + 28


def kv_rows(
    page: PageSpec,
    style: PageStyle,
    x: float,
    y: float,
    w: float,
    rows: list[tuple[str, str]],
    *,
    label_w: float = 95.0,
    max_lines: int = 5,
) -> float:
    for label, value in rows:
        page.add(TextEl(x, y + 10, f"{label}:", font=style.font_bold, size=9.5, color=style.text))
        lines = wrap_text(value, style.font, 9.5, w - label_w) or [""]
        if len(lines) > max_lines:
            logger.warning("%s: value cut to %d of %d line(s)", label, max_lines, len(lines))
            lines = lines[: max_lines - 1] + [fit_line(lines[max_lines - 1], style.font, 9.5, w - label_w)]
        for ln in lines:
            page.add(TextEl(x + label_w, y + 10, ln, font=style.font, size=9.5, color=style.text))
            y += 13
        y += 3
    return y


def _two_columns(
    page: PageSpec,
    style: PageStyle,
    y: float,
    left: list[tuple[str, str]],
    right: list[tuple[str, str]],
) -> float:
    col_w = (style.content_w - style.gap) / 2
    y_left = kv_rows(page, style, style.margin + 6, y, col_w - 6, left)
    y_right = kv_rows(page, style, style.margin + col_w + style.gap, y, col_w - 6, right)
    return max(y_left, y_right) + 8


def _new_page(ctx: PageContext, kind: PageKind, title: str) -> tuple[PageSpec, float]:
    page = PageSpec(kind=kind, title=title)
    rec = ctx.record
    right = [f"Job: {rec.job_number}", f"Reg: {_or_na(rec.vehicle.registration)}", f"Date: {_fmt_date(rec)}"]
    top = draw_page_header(page, ctx.style, ctx.settings, ctx.assets.logo, title, right)
    return page, top


def _content_area(ctx: PageContext, top: float) -> Box:
    st = ctx.style
    return Box(st.margin, top, st.content_w, st.content_bottom - top)


def _category_slot(ctx: PageContext, key: str, label: str, *, present: bool | None = None, detail: str = "") -> CardSlot:
    images = ctx.cache.images_for(key)
    slot = resolve_slot(label, images, present=present)
    extra = len([d for _, d in images if d]) - 1
    if extra > 0:
        detail = (detail + "  " if detail else "") + f"(+{extra} more photo{'s' if extra != 1 else ''})"
    return CardSlot(
        label=slot.label,
        state=slot.state,
        images=slot.images,
        placeholder=slot.placeholder,
        detail=detail,
    )


# ---------------------------------------------------------------------------
# structural pages
# ---------------------------------------------------------------------------


def build_cover_page(ctx: PageContext) -> PageSpec:
    rec = ctx.record
    st = ctx.style
    page, y = _new_page(ctx, PageKind.COVER, rec.kind.document_title)

    stage = "Collection" if rec.kind is InspectionKind.COLLECTION else "Delivery"
    y = section_heading(page, st, y, "JOB INFORMATION")
    y = _two_columns(
        page,
        st,
        y,
        [
            ("Job Number", rec.job_number),
            (f"{stage} Date", _fmt_date(rec)),
            (f"{stage} Time", _fmt_time(rec)),
        ],
        [
            ("Driver", _or_na(rec.driver_name)),
            ("Customer", _or_na(rec.customer_name)),
            ("Inspection", stage),
        ],
    )

    v = rec.vehicle
    y = section_heading(page, st, y, "VEHICLE INFORMATION")
    y = _two_columns(
        page,
        st,
        y,
        [
            ("Registration", _or_na(v.registration)),
            ("Make", _or_na(v.make)),
            ("Model", _or_na(v.model)),
            ("VIN", _or_na(v.vin)),
        ],
        [
            ("Colour", _or_na(v.colour)),
            ("Year", _or_na(v.year)),
            ("Fuel Type", _or_na(v.fuel_type)),
        ],
    )

    y = section_heading(page, st, y, "ADDRESSES")
    y = _two_columns(
        page,
        st,
        y,
        [("Collection", "\n".join(rec.collection_address.lines()) or "N/A")],
        [("Delivery", "\n".join(rec.delivery_address.lines()) or "N/A")],
    )

    c = rec.conditions
    y = section_heading(page, st, y, f"CONDITION AT {stage.upper()}")
    y = _two_columns(
        page,
        st,
        y,
        [
            ("Mileage", _or_na(rec.mileage)),
            ("Fuel Level", rec.fuel_label),
            ("Number of Keys", _or_na(rec.number_of_keys)),
        ],
        [
            ("Weather", _or_na(c.weather)),
            ("Lighting", _or_na(c.lighting)),
            ("Cleanliness", _or_na(c.cleanliness)),
        ],
    )

    y = section_heading(page, st, y, "INSPECTION SUMMARY")
    per_view = []
    for view in View:
        n = sum(1 for nm in ctx.numbered if nm.view == view)
        if n:
            per_view.append(f"{view.label} {n}")
    damage = f"{len(ctx.numbered)}" + (f" ({', '.join(per_view)})" if per_view else " (no damage recorded)")
    kv_rows(
        page,
        st,
        st.margin + 6,
        y,
        st.content_w - 12,
        [
            ("Damage Markers", damage),
            ("Photos Embedded", str(len(ctx.cache.entries))),
            ("Photos Unavailable", str(len(ctx.cache.failures))),
        ],
        label_w=120.0,
    )
    return page


def _grid_page(ctx: PageContext, kind: PageKind, title: str, slots: list[CardSlot], *, rows: int | None = None) -> PageSpec:
    page, top = _new_page(ctx, kind, title)
    draw_grid(page, _content_area(ctx, top), slots, ctx.style, cols=2, rows=rows)
    return page


def build_documentation_page(ctx: PageContext) -> PageSpec:
    rec = ctx.record
    flags = rec.document_presence
    details = {
        "documents.keys": f"{rec.number_of_keys} key(s)" if rec.number_of_keys is not None else "",
        "documents.fuel": rec.fuel_label if rec.fuel_level is not None else "",
        "documents.odometer": rec.mileage,
    }
    slots = [
        _category_slot(
            ctx,
            key,
            label,
            present=getattr(flags, flag) if flag else None,
            detail=details.get(key, ""),
        )
        for key, label, flag in DOCUMENT_SLOTS
    ]
    return _grid_page(ctx, PageKind.DOCUMENTATION, "VEHICLE DOCUMENTATION", slots)


def build_exterior_page(ctx: PageContext) -> PageSpec:
    slots = [_category_slot(ctx, key, label) for key, label in EXTERIOR_SLOTS]
    return _grid_page(ctx, PageKind.EXTERIOR, "VEHICLE EXTERIOR", slots)


def build_interior_page(ctx: PageContext) -> PageSpec:
    slots = [_category_slot(ctx, key, label) for key, label in INTERIOR_SLOTS]
    return _grid_page(ctx, PageKind.INTERIOR, "VEHICLE INTERIOR", slots)


def build_wheels_page(ctx: PageContext) -> PageSpec:
    slots = [_category_slot(ctx, key, label) for key, label in WHEEL_SLOTS]
    return _grid_page(ctx, PageKind.WHEELS, "WHEELS & TYRES", slots)


# ---------------------------------------------------------------------------
# damage pages (only when markers exist)
# ---------------------------------------------------------------------------


def build_damage_overlay_page(ctx: PageContext) -> PageSpec:
    page, top = _new_page(ctx, PageKind.DAMAGE_OVERLAY, "DAMAGE OVERLAY")
    s = ctx.settings
    draw_damage_overlay(
        page,
        _content_area(ctx, top),
        list(ctx.numbered),
        ctx.assets,
        ctx.style,
        pad=s.overlay_pad_pt,
        correction=s.centering_correction,
        marker_radius=s.marker_radius_pt,
    )
    return page


def _evidence_slot(ctx: PageContext, nm: NumberedMarker) -> CardSlot:
    m = nm.marker
    images = ctx.cache.images_for(marker_key(nm.index))
    base = resolve_slot(m.view.label, images)
    placeholder = base.placeholder
    if base.state is SlotState.UNAVAILABLE and not images:
        placeholder = "No photos captured"
    usable = len(base.images)
    extra = (f"+{usable - EVIDENCE_PHOTOS_PER_CARD} more photo(s)",) if usable > EVIDENCE_PHOTOS_PER_CARD else ()
    return CardSlot(
        label=f"{m.view.label} - {m.damage_type.label} - {m.size.label}",
        state=base.state,
        images=base.images,
        placeholder=placeholder,
        detail=m.description,
        badge_number=nm.number,
        marker_id=m.id,
        extra_lines=extra,
    )


def build_damage_evidence_pages(ctx: PageContext) -> list[PageSpec]:
    numbered = list(ctx.numbered)
    pages: list[PageSpec] = []
    n_pages = math.ceil(len(numbered) / EVIDENCE_CARDS_PER_PAGE)
    for p in range(n_pages):
        chunk = numbered[p * EVIDENCE_CARDS_PER_PAGE : (p + 1) * EVIDENCE_CARDS_PER_PAGE]
        title = "DAMAGE EVIDENCE" if p == 0 else "DAMAGE EVIDENCE (CONT.)"
        page, top = _new_page(ctx, PageKind.DAMAGE_EVIDENCE, title)
        draw_grid(
            page,
            _content_area(ctx, top),
            [_evidence_slot(ctx, nm) for nm in chunk],
            ctx.style,
            cols=2,
            rows=EVIDENCE_CARDS_PER_PAGE // 2,
            max_images=EVIDENCE_PHOTOS_PER_CARD,
        )
        pages.append(page)
    return pages


# ---------------------------------------------------------------------------
# confirmation
# ---------------------------------------------------------------------------


def disclaimer_text(record: InspectionRecord, s: Settings) -> str:
    stage = "collection" if record.kind is InspectionKind.COLLECTION else "delivery"
    return (
        f"I confirm that the vehicle described in this document was inspected at the point of {stage} "
        "and that the photographs, damage markers and condition notes recorded here are an accurate "
        f"record of its condition at that time. Any damage not recorded in this report must be notified "
        f"to {s.company_name} in writing within 24 hours of {stage}. Marks that could not be seen because "
        "of the weather, lighting or cleanliness conditions stated in this report are excluded. "
        "This document was generated from data captured on site and has not been altered."
    )


def _draw_note_lines(page: PageSpec, st: PageStyle, y: float, lines: list[str]) -> float:
    for ln in lines:
        page.add(TextEl(st.margin + 6, y + 10, ln, font=st.font, size=9.5, color=st.text))
        y += NOTES_LINE_H
    return y


def build_confirmation_pages(ctx: PageContext) -> list[PageSpec]:
    """Confirmation page; notes that do not fit above the declaration continue on NOTES pages."""

    rec = ctx.record
    st = ctx.style
    page, y = _new_page(ctx, PageKind.CONFIRMATION, "CUSTOMER CONFIRMATION")

    y = section_heading(page, st, y, "POINT OF CONTACT")
    y = _two_columns(
        page,
        st,
        y,
        [("Name", _or_na(rec.customer_name)), ("Date", _fmt_date(rec))],
        [("Driver", _or_na(rec.driver_name)), ("Time", _fmt_time(rec))],
    )

    y = section_heading(page, st, y, "SIGNATURE")
    sig_box = Box(st.margin + 6, y, 240, 100)
    sigs = ctx.cache.images_for(SIGNATURE_KEY)
    sig = next((data for _, data in sigs if data), None)
    if sig is not None:
        page.add(ImageEl(sig_box.x, sig_box.y, sig_box.w, sig_box.h, ref="signature", data=sig))
    else:
        page.add(
            PlaceholderEl(
                sig_box.x,
                sig_box.y,
                sig_box.w,
                sig_box.h,
                state=SlotState.UNAVAILABLE,
                title=IMAGE_UNAVAILABLE_TITLE if sigs else "No signature captured",
                fill=st.unavailable_fill,
                text_color=st.unavailable_text,
                font=st.font,
                font_bold=st.font_bold,
            )
        )
    page.add(RectEl(sig_box.x, sig_box.y, sig_box.w, sig_box.h, stroke=st.border, line_width=0.8))
    page.add(TextEl(sig_box.x, sig_box.y + sig_box.h + 12, f"Signed by: {_or_na(rec.customer_name)}", font=st.font, size=9, color=st.text))
    y = sig_box.y + sig_box.h + 26

    declaration = wrap_text(disclaimer_text(rec, ctx.settings), st.font, 8.5, st.content_w - 12)
    declaration_h = 28 + 11.5 * len(declaration)

    y = section_heading(page, st, y, "NOTES")
    notes = wrap_text(rec.notes.strip() or "No additional notes.", st.font, 9.5, st.content_w - 12)
    room = max(1, int((st.content_bottom - y - 10 - declaration_h) // NOTES_LINE_H))
    if len(notes) > room:
        shown, rest = notes[: room - 1], notes[room - 1 :]
    else:
        shown, rest = notes, []
    y = _draw_note_lines(page, st, y, shown)
    if rest:
        page.add(TextEl(st.margin + 6, y + 10, "Notes continue on the following page.", font=st.font_bold, size=9.5, color=st.muted))
        y += NOTES_LINE_H
    y += 10

    y = section_heading(page, st, y, "DECLARATION")
    for ln in declaration:
        page.add(TextEl(st.margin + 6, y + 10, ln, font=st.font, size=8.5, color=st.muted))
        y += 11.5

    pages = [page]
    while rest:
        cont, top = _new_page(ctx, PageKind.NOTES, "CUSTOMER CONFIRMATION (CONT.)")
        top = section_heading(cont, st, top, "NOTES (CONT.)")
        room = max(1, int((st.content_bottom - top) // NOTES_LINE_H))
        _draw_note_lines(cont, st, top, rest[:room])
        rest = rest[room:]
        pages.append(cont)
    if len(pages) > 1:
        logger.info("notes: %d line(s) continued over %d extra page(s)", len(notes), len(pages) - 1)
    return pages


# ---------------------------------------------------------------------------
# bundle summary
# ---------------------------------------------------------------------------


def build_bundle_summary_pages(
    manifest: BundleManifest,
    style: PageStyle,
    s: Settings,
    logo: Asset | None = None,
    *,
    rows_per_page: int = SUMMARY_ROWS_PER_PAGE,
) -> list[PageSpec]:
    """Itemised summary of the bundled documents with the grand total on the last page."""

    items = list(manifest.items)
    chunks = [items[i : i + rows_per_page] for i in range(0, len(items), rows_per_page)] or [[]]
    right = [f"#{manifest.bundle_reference}" if manifest.bundle_reference else ""]
    if manifest.issued_on is not None:
        right.append(f"Bundle Date: {manifest.issued_on.strftime('%d %b %Y')}")
    if manifest.status:
        right.append(f"Status: {manifest.status.upper()}")
    right = [r for r in right if r]

    x = style.margin + 6
    col_ref, col_sec, col_amt = x, x + 170, style.page_w - style.margin - 10
    pages: list[PageSpec] = []
    for p, chunk in enumerate(chunks):
        title = "DOCUMENT BUNDLE" if p == 0 else "DOCUMENT BUNDLE (CONT.)"
        page = PageSpec(kind=PageKind.BUNDLE_SUMMARY, title=title)
        y = draw_page_header(page, style, s, logo, title, right)
        if p == 0:
            page.add(TextEl(x, y + 10, "Bundle For:", font=style.font_bold, size=10, color=style.text))
            page.add(TextEl(x + 70, y + 10, manifest.customer_name or "N/A", font=style.font, size=10, color=style.text))
            y += 26
        y = section_heading(page, style, y, "BUNDLE SUMMARY")
        page.add(TextEl(col_ref, y + 10, "Reference", font=style.font_bold, size=10, color=style.text))
        page.add(TextEl(col_sec, y + 10, "Job Reference", font=style.font_bold, size=10, color=style.text))
        page.add(TextEl(col_amt, y + 10, "Amount", font=style.font_bold, size=10, color=style.text, align="right"))
        y += 16
        page.add(LineEl(style.margin, y, style.page_w - style.margin, y, color=style.primary, line_width=0.8))
        y += 6
        for it in chunk:
            page.add(TextEl(col_ref, y + 10, it.reference, font=style.font, size=9.5, color=style.text))
            page.add(TextEl(col_sec, y + 10, it.secondary_reference or "N/A", font=style.font, size=9.5, color=style.text))
            page.add(TextEl(col_amt, y + 10, money(it.amount, s.currency_symbol), font=style.font, size=9.5, color=style.text, align="right"))
            y += 16

        if p == len(chunks) - 1:
            y += 6
            page.add(LineEl(style.margin, y, style.page_w - style.margin, y, color=style.primary, line_width=0.8))
            y += 18
            page.add(
                TextEl(col_amt - 90, y, "Total Bundle Amount:", font=style.font_bold, size=11, color=style.primary, align="right")
            )
            page.add(
                TextEl(col_amt, y, money(manifest.grand_total, s.currency_symbol), font=style.font_bold, size=11, color=style.primary, align="right")
            )
            y += 30
            n = len(items)
            page.add(TextEl(x, y, f"This bundle contains {n} document(s).", font=style.font, size=10, color=style.text))
            page.add(TextEl(x, y + 14, "Individual documents follow on subsequent pages.", font=style.font, size=10, color=style.text))
            if manifest.bundle_reference:
                page.add(
                    TextEl(
                        style.page_w / 2,
                        y + 44,
                        f"Payment Reference: Please use {manifest.bundle_reference} as your payment reference",
                        font=style.font_bold,
                        size=9,
                        color=style.text,
                        align="center",
                    )
                )
            payment = [
                (label, value)
                for label, value in (
                    ("Name", s.payment_name),
                    ("Sort Code", s.payment_sort_code),
                    ("Account Number", s.payment_account_number),
                )
                if value
            ]
            if payment:
                py = y + 70
                page.add(TextEl(x, py, "Payment Details:", font=style.font_bold, size=10, color=style.text))
                for label, value in payment:
                    py += 13
                    page.add(TextEl(x, py, f"{label}: {value}", font=style.font, size=10, color=style.text))
        pages.append(page)

    add_footers(pages, style, s, prefix="Summary page")
    return pages
