from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from pod_gen.config import Settings
from pod_gen.errors import AssetMissingError
from pod_gen.models.inspection import View
from pod_gen.services.overlay.geometry import CANONICAL_VIEWS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Asset:
    name: str
    path: Path
    data: bytes = field(repr=False)
    size: tuple[int, int] = (0, 0)

    @property
    def aspect(self) -> float | None:
        w, h = self.size
        return (w / h) if w > 0 and h > 0 else None


@dataclass(frozen=True)
class AssetSet:
    outlines: dict[View, Asset | None]
    logo: Asset | None = None

    def outline(self, view: View) -> Asset | None:
        return self.outlines.get(view)


def outline_path(assets_dir: Path, view: View) -> Path:
    return Path(assets_dir) / "outlines" / f"{view.value}.png"


def load_asset(name: str, path: Path) -> Asset:
    p = Path(path).expanduser()
    if not p.is_file():
        raise AssetMissingError(name, p)
    data = p.read_bytes()
    try:
        with Image.open(io.BytesIO(data)) as img:
            size = img.size
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise AssetMissingError(name, f"{p} (unreadable: {type(e).__name__})") from e
    return Asset(name=name, path=p, data=data, size=size)


def load_asset_set(s: Settings) -> AssetSet:
    """Load outline templates and the logo; absent assets become `None` (text fallback)."""
    outlines: dict[View, Asset | None] = {}
    for view in CANONICAL_VIEWS:
        try:
            outlines[view] = load_asset(f"outline:{view.value}", outline_path(s.assets_dir, view))
        except AssetMissingError as e:
            logger.warning("%s; drawing text fallback (run `pod-gen make-outlines` to create defaults)", e)
            outlines[view] = None

    return AssetSet(outlines=outlines, logo=load_logo(s))


def load_logo(s: Settings) -> Asset | None:
    logo_path = s.logo_path or (Path(s.assets_dir) / "logo.png")
    try:
        return load_asset("logo", logo_path)
    except AssetMissingError as e:
        logger.info("%s; using text logo", e)
        return None
