from __future__ import annotations

import logging
from typing import Any

from pod_gen.config import Settings, settings as default_settings
from pod_gen.errors import BundleDocumentError, EmptyBundleError
from pod_gen.models.bundle import BundleManifest
from pod_gen.services.assets import load_logo
from pod_gen.services.layout.pages import build_bundle_summary_pages
from pod_gen.services.layout.style import PageStyle
from pod_gen.services.pdf.assembler import resolve_style
from pod_gen.services.pdf.render import render_pages

logger = logging.getLogger(__name__)


def _open_pdf(data: bytes, label: str) -> Any:
    import fitz  # PyMuPDF

    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise BundleDocumentError(f"{label}: not a readable PDF ({type(e).__name__}: {e})") from e
    if not doc.is_pdf or doc.page_count == 0:
        doc.close()
        raise BundleDocumentError(f"{label}: PDF has no pages")
    return doc


def bundle_page_counts(documents: list[bytes]) -> list[int]:
    counts: list[int] = []
    for i, data in enumerate(documents):
        with _open_pdf(data, f"document[{i}]") as doc:
            counts.append(doc.page_count)
    return counts


def combine_bundle(
    manifest: BundleManifest,
    s: Settings | None = None,
    *,
    style: PageStyle | None = None,
) -> bytes:
    """Summary page(s) followed by every input document, in manifest order, unchanged."""

    if not manifest.items:
        raise EmptyBundleError("cannot combine a bundle with zero documents")

    s = s or default_settings
    style = style or resolve_style(s)

    # Open every input first; one unreadable document fails the whole bundle.
    inputs: list[Any] = []
    try:
        for i, it in enumerate(manifest.items):
            inputs.append(_open_pdf(it.document, f"document[{i}] ({it.reference})"))
        summary_pages = build_bundle_summary_pages(manifest, style, s, load_logo(s))
        summary = render_pages(
            summary_pages,
            title=f"Document Bundle {manifest.bundle_reference}".strip(),
            author=s.company_name,
            page_size=(style.page_w, style.page_h),
        )

        import fitz  # PyMuPDF

        with fitz.open(stream=summary, filetype="pdf") as out:
            for doc in inputs:
                out.insert_pdf(doc)
            total = out.page_count
            # no_new_id keeps the trailer /ID stable, so identical inputs give identical bytes
            data = out.tobytes(deflate=True, no_new_id=True)
    finally:
        for doc in inputs:
            doc.close()

    logger.info(
        "bundle %s: %d document(s), %d summary page(s), %d page(s) total, total %s",
        manifest.bundle_reference or "-",
        len(manifest.items),
        len(summary_pages),
        total,
        manifest.grand_total,
    )
    return data
