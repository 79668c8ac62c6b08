from __future__ import annotations

import io
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import pytest
from PIL import Image

from pod_gen.config import Settings
from pod_gen.models.inspection import InspectionRecord
from pod_gen.services.assets import AssetSet, load_asset_set
from pod_gen.services.images.pipeline import ImageCache, flatten_record_images, preprocess_images
from pod_gen.services.overlay.geometry import CANONICAL_VIEWS
from pod_gen.services.overlay.outlines import make_default_outlines


def jpeg(color: tuple[int, int, int] = (200, 40, 40), size: tuple[int, int] = (320, 240)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="JPEG", quality=90)
    return buf.getvalue()


def marker(mid: str, view: str, x: float = 50, y: float = 50, **extra: Any) -> dict[str, Any]:
    return {"id": mid, "view": view, "x": x, "y": y, **extra}


@pytest.fixture
def make_record() -> Callable[..., InspectionRecord]:
    def _make(**overrides: Any) -> InspectionRecord:
        data: dict[str, Any] = {
            "kind": "delivery",
            "jobNumber": "JOB-1",
            "vehicle": {"registration": "AB12 CDE", "make": "Ford", "model": "Focus"},
            "customerName": "Alex Customer",
            "driverName": "Sam Driver",
            "completedAt": datetime(2026, 10, 1, 14, 30),
        }
        data.update(overrides)
        return InspectionRecord.model_validate(data)

    return _make


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(assets_dir=tmp_path / "assets", _env_file=None)


@pytest.fixture
def outline_assets(test_settings: Settings) -> AssetSet:
    make_default_outlines(test_settings.assets_dir)
    return load_asset_set(test_settings)


@pytest.fixture
def no_assets() -> AssetSet:
    return AssetSet(outlines={v: None for v in CANONICAL_VIEWS})


@pytest.fixture
def cache_for() -> Callable[[InspectionRecord], ImageCache]:
    def _cache(record: InspectionRecord) -> ImageCache:
        return preprocess_images(flatten_record_images(record), max_workers=2)

    return _cache

