from __future__ import annotations

import logging
from dataclasses import replace

from pod_gen.config import Settings, settings as default_settings
from pod_gen.models.inspection import InspectionRecord
from pod_gen.services.assets import AssetSet, load_asset_set
from pod_gen.services.images.pipeline import (
    CompressionProfile,
    ImageCache,
    flatten_record_images,
    preprocess_images,
)
from pod_gen.services.layout.elements import PageSpec
from pod_gen.services.layout.fonts import register_fonts
from pod_gen.services.layout.pages import (
    PageContext,
    add_footers,
    build_confirmation_pages,
    build_cover_page,
    build_damage_evidence_pages,
    build_damage_overlay_page,
    build_documentation_page,
    build_exterior_page,
    build_interior_page,
    build_wheels_page,
)
from pod_gen.services.layout.style import PageStyle, load_page_style
from pod_gen.services.overlay.geometry import number_markers
from pod_gen.services.pdf.render import render_pages

logger = logging.getLogger(__name__)


def resolve_style(s: Settings) -> PageStyle:
    """Style tokens from yaml plus the page fonts registered from settings."""
    fonts = register_fonts(s)
    style = PageStyle.from_dict(load_page_style(s.style_path))
    return replace(style, font=fonts.regular, font_bold=fonts.bold)


def plan_document(
    record: InspectionRecord,
    cache: ImageCache,
    assets: AssetSet,
    s: Settings,
    *,
    style: PageStyle | None = None,
) -> list[PageSpec]:
    """Ordered page list for one record.

    Cover, Documentation, Exterior, Interior, Wheels, then (only when markers exist)
    the damage overlay and its evidence pages, and finally the Confirmation page (plus
    continuation pages when the notes do not fit).
    """

    ctx = PageContext(
        record=record,
        cache=cache,
        assets=assets,
        style=style or PageStyle(),
        settings=s,
        numbered=tuple(number_markers(record.damage_markers)),
    )
    pages = [
        build_cover_page(ctx),
        build_documentation_page(ctx),
        build_exterior_page(ctx),
        build_interior_page(ctx),
        build_wheels_page(ctx),
    ]
    if ctx.numbered:
        pages.append(build_damage_overlay_page(ctx))
        pages.extend(build_damage_evidence_pages(ctx))
    pages.extend(build_confirmation_pages(ctx))
    add_footers(pages, ctx.style, s)
    return pages


def generate_inspection_pdf(
    record: InspectionRecord,
    s: Settings | None = None,
    *,
    style: PageStyle | None = None,
    assets: AssetSet | None = None,
) -> bytes:
    """Preprocess photos, lay out every page and serialize the inspection PDF."""

    s = s or default_settings
    style = style or resolve_style(s)
    assets = assets or load_asset_set(s)

    batch = flatten_record_images(record)
    cache = preprocess_images(
        batch,
        CompressionProfile.from_settings(s),
        max_workers=s.image_max_workers,
    )
    pages = plan_document(record, cache, assets, s, style=style)
    data = render_pages(
        pages,
        title=f"{record.kind.document_title} - {record.job_number}",
        author=s.company_name,
        page_size=(style.page_w, style.page_h),
    )
    logger.info(
        "job %s: %d page(s), %d marker(s), %d image(s) embedded, %d unavailable, %dKB",
        record.job_number,
        len(pages),
        len(record.damage_markers),
        len(cache.entries),
        len(cache.failures),
        len(data) // 1024,
    )
    return data
