from __future__ import annotations

import json
from decimal import Decimal

import fitz
import pytest
import yaml

from conftest import marker
from pod_gen.errors import BundleDocumentError, InvalidInspectionError, MalformedMarkerError
from pod_gen.models.inspection import View
from pod_gen.services.loaders import load_bundle_manifest, load_inspection, parse_inspection

BASE = {"jobNumber": "JOB-9", "completedAt": "2026-10-01T09:15:00"}


def test_parse_valid_record():
    rec = parse_inspection({**BASE, "damageMarkers": [marker("a", "nearside", 12.5, 40)]})
    assert rec.job_number == "JOB-9"
    assert rec.damage_markers[0].view is View.PASSENGER_SIDE


def test_marker_missing_coordinate_is_malformed():
    raw = {**BASE, "damageMarkers": [marker("a", "front"), {"id": "b", "view": "rear", "x": 10}]}
    with pytest.raises(MalformedMarkerError) as ei:
        parse_inspection(raw)
    assert ei.value.index == 1
    assert "damage_markers[1]" in str(ei.value)


def test_marker_out_of_range_is_malformed():
    with pytest.raises(MalformedMarkerError) as ei:
        parse_inspection({**BASE, "damageMarkers": [marker("a", "front", x=150)]})
    assert ei.value.index == 0


def test_duplicate_marker_ids_are_malformed():
    with pytest.raises(MalformedMarkerError):
        parse_inspection({**BASE, "damageMarkers": [marker("a", "front"), marker("a", "rear")]})


def test_other_errors_are_invalid_inspection():
    with pytest.raises(InvalidInspectionError) as ei:
        parse_inspection({"completedAt": "2026-10-01T09:15:00"})
    assert not isinstance(ei.value, MalformedMarkerError)
    with pytest.raises(InvalidInspectionError):
        parse_inspection(["not", "a", "mapping"])


def test_load_inspection_yaml_and_json(tmp_path):
    y = tmp_path / "rec.yaml"
    y.write_text(yaml.safe_dump(BASE), encoding="utf-8")
    j = tmp_path / "rec.json"
    j.write_text(json.dumps(BASE), encoding="utf-8")
    assert load_inspection(y).job_number == "JOB-9"
    assert load_inspection(j).job_number == "JOB-9"


def test_load_inspection_unparseable(tmp_path):
    j = tmp_path / "rec.json"
    j.write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidInspectionError):
        load_inspection(j)


def test_load_bundle_manifest_resolves_relative_files(tmp_path):
    doc = fitz.open()
    doc.new_page()
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "inv1.pdf").write_bytes(doc.tobytes())
    doc.close()
    manifest = tmp_path / "bundle.yaml"
    manifest.write_text(
        yaml.safe_dump(
            {
                "bundle_reference": "B-5",
                "customer_name": "Fleet Co",
                "items": [{"file": "docs/inv1.pdf", "secondary_reference": "JOB-5", "amount": "12.50"}],
            }
        ),
        encoding="utf-8",
    )
    bundle = load_bundle_manifest(manifest)
    assert bundle.items[0].reference == "inv1"
    assert bundle.items[0].document.startswith(b"%PDF")
    assert bundle.grand_total == Decimal("12.50")


def test_load_bundle_manifest_missing_file(tmp_path):
    manifest = tmp_path / "bundle.yaml"
    manifest.write_text(yaml.safe_dump({"items": [{"file": "nope.pdf", "amount": 1}]}), encoding="utf-8")
    with pytest.raises(BundleDocumentError):
        load_bundle_manifest(manifest)
