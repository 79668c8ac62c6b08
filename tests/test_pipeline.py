from __future__ import annotations

import io

import pytest
from PIL import Image

from conftest import jpeg, marker
from pod_gen.errors import ImageDecodeError
from pod_gen.services.images.pipeline import (
    PHOTO_ARRAY_KEYS,
    SIGNATURE_KEY,
    CompressionProfile,
    compress_image,
    flatten_record_images,
    marker_key,
    preprocess_images,
)


def _open(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def test_flatten_assigns_array_and_photo_ids(make_record):
    a, b, c = jpeg((255, 0, 0)), jpeg((0, 255, 0)), jpeg((0, 0, 255))
    rec = make_record(
        photos={"exterior": {"front": [a, b], "rear": [c]}},
        damageMarkers=[marker("m1", "front", photos=[a]), marker("m2", "rear")],
        customerSignature=c,
    )
    batch = flatten_record_images(rec)
    assert batch.ids_for("exterior.front") == ["0-0", "0-1"]
    assert batch.ids_for("exterior.rear") == ["1-0"]
    assert batch.ids_for("exterior.roof") == []
    n = len(PHOTO_ARRAY_KEYS)
    assert batch.ids_for(marker_key(0)) == [f"{n}-0"]
    assert batch.ids_for(marker_key(1)) == []
    assert batch.ids_for(SIGNATURE_KEY) == [f"{n + 2}-0"]
    assert len(batch) == 5


def test_identical_payloads_compressed_once(make_record):
    same = jpeg((10, 120, 200))
    rec = make_record(
        photos={"exterior": {"front": [same], "rear": [same]}, "wheels": {"frontLeft": [same, jpeg((1, 2, 3))]}},
    )
    cache = preprocess_images(flatten_record_images(rec), max_workers=4)
    assert cache.compress_calls == 2
    ids = cache.ids_for("exterior.front") + cache.ids_for("exterior.rear") + cache.ids_for("wheels.front_left")[:1]
    assert len({cache.get(i) for i in ids}) == 1
    assert cache.is_complete()


def test_bad_image_recorded_not_fatal(make_record):
    rec = make_record(photos={"exterior": {"front": [b"definitely not an image", jpeg()]}})
    cache = preprocess_images(flatten_record_images(rec))
    bad, good = cache.ids_for("exterior.front")
    assert bad in cache.failures
    assert cache.get(bad) is None
    assert cache.get(good) is not None
    assert cache.is_complete()
    assert cache.images_for("exterior.front") == [(bad, None), (good, cache.get(good))]


def test_empty_batch(make_record):
    cache = preprocess_images(flatten_record_images(make_record()))
    assert cache.entries == {}
    assert cache.compress_calls == 0
    assert cache.is_complete()


def test_compress_bounds_longest_edge_and_never_enlarges():
    profile = CompressionProfile(max_edge_px=1600, quality=82)
    big = _open(compress_image(jpeg(size=(3200, 1000)), profile))
    assert big.format == "JPEG"
    assert big.size == (1600, 500)
    small = _open(compress_image(jpeg(size=(200, 100)), profile))
    assert small.size == (200, 100)


def test_compress_flattens_alpha():
    buf = io.BytesIO()
    Image.new("RGBA", (64, 64), (0, 0, 0, 0)).save(buf, format="PNG")
    out = _open(compress_image(buf.getvalue(), CompressionProfile()))
    assert out.mode == "RGB"
    r, g, b = out.getpixel((32, 32))
    assert min(r, g, b) > 240


def test_compress_is_deterministic():
    data = jpeg((123, 45, 67), size=(2000, 1500))
    profile = CompressionProfile()
    assert compress_image(data, profile) == compress_image(data, profile)


def test_compress_rejects_garbage():
    with pytest.raises(ImageDecodeError) as ei:
        compress_image(b"\x00\x01garbage", CompressionProfile(), image_id="3-1")
    assert ei.value.image_id == "3-1"
