from __future__ import annotations

import base64

import fitz
import yaml
from typer.testing import CliRunner

from conftest import jpeg, marker
from pod_gen.cli import app

runner = CliRunner()


def _write_record(path, **extra):
    data = {
        "jobNumber": "JOB-42",
        "completedAt": "2026-10-01T09:15:00",
        "vehicle": {"registration": "XY70 ZZZ"},
        "photos": {"exterior": {"front": [base64.b64encode(jpeg()).decode("ascii")]}},
        **extra,
    }
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_make_outlines(tmp_path):
    result = runner.invoke(app, ["make-outlines", "--assets-dir", str(tmp_path)])
    assert result.exit_code == 0, result.output
    names = sorted(p.name for p in (tmp_path / "outlines").iterdir())
    assert names == ["driverSide.png", "front.png", "passengerSide.png", "rear.png"]

    again = runner.invoke(app, ["make-outlines", "--assets-dir", str(tmp_path)])
    assert again.exit_code == 0
    assert "WARN" in again.output


def test_validate_ok(tmp_path):
    rec = _write_record(tmp_path / "rec.yaml", damageMarkers=[marker("m1", "front"), marker("m2", "roof")])
    result = runner.invoke(app, ["validate", "--inspection", str(rec)])
    assert result.exit_code == 0, result.output
    assert "OK" in result.output
    assert "2 marker(s)" in result.output


def test_validate_malformed_marker(tmp_path):
    rec = _write_record(tmp_path / "rec.yaml", damageMarkers=[{"id": "m1", "view": "front", "x": 10}])
    result = runner.invoke(app, ["validate", "--inspection", str(rec)])
    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_generate_writes_pdf(tmp_path):
    assets = tmp_path / "assets"
    assert runner.invoke(app, ["make-outlines", "--assets-dir", str(assets)]).exit_code == 0
    rec = _write_record(tmp_path / "rec.yaml", damageMarkers=[marker("m1", "front", 30, 30)])
    out = tmp_path / "out" / "pod.pdf"
    result = runner.invoke(
        app,
        ["generate", "--inspection", str(rec), "--out", str(out), "--assets-dir", str(assets), "--log-level", "WARNING"],
    )
    assert result.exit_code == 0, result.output
    with fitz.open(out) as doc:
        assert doc.page_count == 8


def test_combine_from_manifest(tmp_path):
    doc = fitz.open()
    doc.new_page()
    doc.new_page()
    (tmp_path / "inv.pdf").write_bytes(doc.tobytes())
    doc.close()
    manifest = tmp_path / "bundle.yaml"
    manifest.write_text(
        yaml.safe_dump({"bundle_reference": "B-9", "items": [{"file": "inv.pdf", "amount": "99.99"}]}),
        encoding="utf-8",
    )
    out = tmp_path / "bundle.pdf"
    result = runner.invoke(app, ["combine", "--manifest", str(manifest), "--out", str(out)])
    assert result.exit_code == 0, result.output
    with fitz.open(out) as combined:
        assert combined.page_count == 3
    assert "pages" in result.output


def test_combine_empty_manifest_fails(tmp_path):
    manifest = tmp_path / "bundle.yaml"
    manifest.write_text(yaml.safe_dump({"items": []}), encoding="utf-8")
    result = runner.invoke(app, ["combine", "--manifest", str(manifest), "--out", str(tmp_path / "x.pdf")])
    assert result.exit_code == 1
    assert "ERROR" in result.output
