from __future__ import annotations

from decimal import Decimal

import fitz
import pytest

from pod_gen.errors import BundleDocumentError, EmptyBundleError
from pod_gen.models.bundle import BundleItem, BundleManifest
from pod_gen.services.layout.style import PageStyle
from pod_gen.services.pdf.bundle import bundle_page_counts, combine_bundle


def _pdf(pages: int, label: str) -> bytes:
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page()
        page.insert_text((72, 72), f"{label} page {i + 1}")
    data = doc.tobytes()
    doc.close()
    return data


def test_combine_appends_documents_after_summary(test_settings):
    docs = [_pdf(2, "alpha"), _pdf(3, "beta"), _pdf(1, "gamma")]
    manifest = BundleManifest(
        bundle_reference="B-1001",
        customer_name="Fleet Co",
        items=[
            BundleItem(document=docs[0], reference="INV-1", secondary_reference="JOB-1", amount="10"),
            BundleItem(document=docs[1], reference="INV-2", secondary_reference="JOB-2", amount="20"),
            BundleItem(document=docs[2], reference="INV-3", amount="5"),
        ],
    )
    assert manifest.grand_total == Decimal("35.00")
    assert bundle_page_counts(docs) == [2, 3, 1]

    data = combine_bundle(manifest, test_settings, style=PageStyle())
    with fitz.open(stream=data, filetype="pdf") as out:
        assert out.page_count == 7
        summary = out.load_page(0).get_text()
        assert "B-1001" in summary
        assert "INV-2" in summary
        assert "35.00" in summary
        assert "This bundle contains 3 document(s)." in summary
        # inputs follow in manifest order, unchanged
        assert "alpha page 1" in out.load_page(1).get_text()
        assert "beta page 1" in out.load_page(3).get_text()
        assert "gamma page 1" in out.load_page(6).get_text()


def test_empty_bundle_rejected(test_settings):
    with pytest.raises(EmptyBundleError):
        combine_bundle(BundleManifest(items=[]), test_settings)


def test_unreadable_document_rejected(test_settings):
    manifest = BundleManifest(
        items=[
            BundleItem(document=_pdf(1, "ok"), reference="A", amount=1),
            BundleItem(document=b"this is not a pdf", reference="B", amount=1),
        ]
    )
    with pytest.raises(BundleDocumentError):
        combine_bundle(manifest, test_settings, style=PageStyle())


def test_combine_is_byte_identical_across_runs(test_settings):
    manifest = BundleManifest(
        bundle_reference="B-2002",
        status="open",
        items=[
            BundleItem(document=_pdf(2, "alpha"), reference="INV-1", amount="12.34"),
            BundleItem(document=_pdf(1, "beta"), reference="INV-2", amount="0.66"),
        ],
    )
    first = combine_bundle(manifest, test_settings, style=PageStyle())
    second = combine_bundle(manifest, test_settings, style=PageStyle())
    assert first == second
