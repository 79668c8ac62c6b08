from __future__ import annotations


class PodGenError(Exception):
    """Base class for every error raised by pod-gen."""


class ImageDecodeError(PodGenError):
    """A single photo payload could not be decoded (recovered as a placeholder)."""

    def __init__(self, image_id: str, reason: str) -> None:
        super().__init__(f"cannot decode image {image_id}: {reason}")
        self.image_id = image_id
        self.reason = reason


class AssetMissingError(PodGenError):
    """An outline template or logo asset is absent (recovered as a text fallback)."""

    def __init__(self, name: str, path: object) -> None:
        super().__init__(f"asset missing: {name} ({path})")
        self.name = name
        self.path = path


class InvalidInspectionError(PodGenError):
    """The inspection record failed boundary validation."""


class MalformedMarkerError(InvalidInspectionError):
    """A damage marker failed boundary validation (missing/out of range coordinate, bad id)."""

    def __init__(self, index: int | None, message: str) -> None:
        where = f"damage_markers[{index}]" if index is not None else "damage_markers"
        super().__init__(f"{where}: {message}")
        self.index = index


class EmptyBundleError(PodGenError):
    """The bundle combiner was given zero documents."""


class BundleDocumentError(PodGenError):
    """An input document of a bundle is not a readable PDF."""


class RenderError(PodGenError):
    """The output stream could not be produced."""
