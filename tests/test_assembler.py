from __future__ import annotations

import fitz
import pytest

from conftest import jpeg, marker
from pod_gen.errors import RenderError
from pod_gen.services.layout.style import PageStyle
from pod_gen.services.pdf.assembler import generate_inspection_pdf
from pod_gen.services.pdf.render import render_pages


@pytest.fixture
def full_record(make_record):
    return make_record(
        kind="collection",
        photos={
            "exterior": {"front": [jpeg((30, 60, 200), (1800, 1200))], "rear": [jpeg((90, 90, 90))]},
            "documents": {"keys": [jpeg((200, 200, 0))]},
        },
        documentPresence={"v5": False},
        customerSignature=jpeg((255, 255, 255), (300, 100)),
        notes="Light scratch on rear bumper noted with customer.",
        damageMarkers=[
            marker("m1", "rear", 25, 40, damageType="scratch", photos=[jpeg((120, 0, 0))]),
            marker("m2", "front", 70, 30, damageType="dent"),
            marker("m3", "driverSide", 50, 50, photos=[b"broken"]),
            marker("m4", "rear", 80, 80),
            marker("m5", "front", 10, 90),
        ],
    )


def test_generates_expected_page_count(full_record, outline_assets, test_settings):
    data = generate_inspection_pdf(full_record, test_settings, style=PageStyle(), assets=outline_assets)
    assert data.startswith(b"%PDF")
    with fitz.open(stream=data, filetype="pdf") as doc:
        assert doc.page_count == 8
        first = doc.load_page(0).get_text()
        assert "PROOF OF COLLECTION" in first
        assert "Page 1 of 8" in first
        assert "Page 8 of 8" in doc.load_page(7).get_text()


def test_output_is_byte_identical_across_runs(full_record, outline_assets, test_settings):
    a = generate_inspection_pdf(full_record, test_settings, style=PageStyle(), assets=outline_assets)
    b = generate_inspection_pdf(full_record, test_settings, style=PageStyle(), assets=outline_assets)
    assert a == b


def test_zero_markers_six_pages(make_record, no_assets, test_settings):
    data = generate_inspection_pdf(make_record(), test_settings, style=PageStyle(), assets=no_assets)
    with fitz.open(stream=data, filetype="pdf") as doc:
        assert doc.page_count == 6


def test_render_requires_pages():
    with pytest.raises(RenderError):
        render_pages([])
