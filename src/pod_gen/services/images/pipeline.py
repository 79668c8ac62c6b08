from __future__ import annotations

import hashlib
import io
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterator

from PIL import Image, ImageOps, UnidentifiedImageError

from pod_gen.config import Settings
from pod_gen.errors import ImageDecodeError
from pod_gen.models.inspection import InspectionRecord

logger = logging.getLogger(__name__)


# Fixed traversal order of the photo arrays of a record; array index == position here,
# followed by one array per damage marker and the signature.
PHOTO_ARRAY_KEYS: tuple[str, ...] = (
    "exterior.front",
    "exterior.rear",
    "exterior.driver_side",
    "exterior.passenger_side",
    "exterior.roof",
    "interior.dashboard",
    "interior.front_seats",
    "interior.back_seats",
    "interior.boot",
    "wheels.front_left",
    "wheels.front_right",
    "wheels.rear_left",
    "wheels.rear_right",
    "documents.keys",
    "documents.v5",
    "documents.locking_wheel_nut",
    "documents.service_book",
    "documents.fuel",
    "documents.odometer",
)

SIGNATURE_KEY = "signature"


def marker_key(marker_index: int) -> str:
    return f"marker.{marker_index}"


@dataclass(frozen=True)
class CompressionProfile:
    max_edge_px: int = 1600
    quality: int = 82

    @classmethod
    def from_settings(cls, s: Settings) -> "CompressionProfile":
        return cls(max_edge_px=int(s.image_max_edge_px), quality=int(s.image_jpeg_quality))


@dataclass(frozen=True)
class PhotoArray:
    key: str
    images: tuple[bytes, ...]


@dataclass(frozen=True)
class PhotoBatch:
    """All image payloads of one record, flattened with stable `<arrayIndex>-<photoIndex>` ids."""

    arrays: tuple[PhotoArray, ...]

    def _array_index(self, key: str) -> int | None:
        for i, arr in enumerate(self.arrays):
            if arr.key == key:
                return i
        return None

    def ids_for(self, key: str) -> list[str]:
        idx = self._array_index(key)
        if idx is None:
            return []
        return [f"{idx}-{j}" for j in range(len(self.arrays[idx].images))]

    def items(self) -> Iterator[tuple[str, bytes]]:
        for i, arr in enumerate(self.arrays):
            for j, data in enumerate(arr.images):
                yield f"{i}-{j}", data

    def __len__(self) -> int:
        return sum(len(arr.images) for arr in self.arrays)


def _resolve(record: InspectionRecord, dotted: str) -> list[bytes]:
    cur: object = record.photos
    for part in dotted.split("."):
        cur = getattr(cur, part)
    return list(cur)  # type: ignore[call-overload]


def flatten_record_images(record: InspectionRecord) -> PhotoBatch:
    arrays: list[PhotoArray] = [PhotoArray(key=k, images=tuple(_resolve(record, k))) for k in PHOTO_ARRAY_KEYS]
    for i, marker in enumerate(record.damage_markers):
        arrays.append(PhotoArray(key=marker_key(i), images=tuple(marker.photos)))
    sig = record.customer_signature
    arrays.append(PhotoArray(key=SIGNATURE_KEY, images=(sig,) if sig else ()))
    return PhotoBatch(arrays=tuple(arrays))


@dataclass
class ImageCache:
    """Compressed images for one generation call; never shared between calls."""

    batch: PhotoBatch
    entries: dict[str, bytes] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)
    compress_calls: int = 0

    def get(self, image_id: str) -> bytes | None:
        return self.entries.get(image_id)

    def ids_for(self, key: str) -> list[str]:
        return self.batch.ids_for(key)

    def images_for(self, key: str) -> list[tuple[str, bytes | None]]:
        return [(i, self.entries.get(i)) for i in self.batch.ids_for(key)]

    def is_complete(self) -> bool:
        ids = {i for i, _ in self.batch.items()}
        return ids == set(self.entries) | set(self.failures) and not (set(self.entries) & set(self.failures))


def _flatten_alpha(img: Image.Image) -> Image.Image:
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        img = img.convert("RGBA")
        bg = Image.new("RGBA", img.size, (255, 255, 255, 255))
        return Image.alpha_composite(bg, img).convert("RGB")
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def compress_image(data: bytes, profile: CompressionProfile, *, image_id: str = "?") -> bytes:
    """Re-encode one photo to the print profile (JPEG, longest edge bounded, no metadata)."""
    try:
        with Image.open(io.BytesIO(data)) as src:
            src.load()
            img = ImageOps.exif_transpose(src)
            img = _flatten_alpha(img)
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(image_id, f"{type(e).__name__}: {e}") from e

    w, h = img.size
    if w <= 0 or h <= 0:
        raise ImageDecodeError(image_id, "invalid image size")
    longest = max(w, h)
    if longest > profile.max_edge_px:
        scale = profile.max_edge_px / longest
        new_size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
        img = img.resize(new_size, resample=Image.Resampling.LANCZOS)

    out = io.BytesIO()
    img.save(out, format="JPEG", quality=profile.quality, optimize=True)
    return out.getvalue()


def preprocess_images(
    batch: PhotoBatch,
    profile: CompressionProfile | None = None,
    *,
    max_workers: int | None = None,
) -> ImageCache:
    """Compress every image of `batch` concurrently and return the populated cache.

    Identical payloads are compressed once. Undecodable images are logged and recorded in
    `cache.failures`; the batch never aborts because of a single bad image.
    """

    profile = profile or CompressionProfile()
    cache = ImageCache(batch=batch)

    groups: dict[str, list[str]] = {}
    first: dict[str, tuple[str, bytes]] = {}
    for image_id, data in batch.items():
        digest = hashlib.sha256(data).hexdigest()
        groups.setdefault(digest, []).append(image_id)
        first.setdefault(digest, (image_id, data))

    if not first:
        return cache

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pod-img") as pool:
        futures: dict[str, Future[bytes]] = {
            digest: pool.submit(compress_image, data, profile, image_id=image_id)
            for digest, (image_id, data) in first.items()
        }
        cache.compress_calls = len(futures)
        for digest, fut in futures.items():
            ids = groups[digest]
            try:
                compressed = fut.result()
            except ImageDecodeError as e:
                logger.warning("image %s unavailable: %s", ",".join(ids), e.reason)
                for image_id in ids:
                    cache.failures[image_id] = e.reason
                continue
            for image_id in ids:
                cache.entries[image_id] = compressed

    in_bytes = sum(len(d) for _, d in first.values())
    out_bytes = sum(len(cache.entries[ids[0]]) for ids in groups.values() if ids[0] in cache.entries)
    logger.info(
        "compressed %d image(s) (%d distinct, %d failed): %dKB -> %dKB",
        len(batch),
        len(first),
        len(cache.failures),
        in_bytes // 1024,
        out_bytes // 1024,
    )
    return cache
