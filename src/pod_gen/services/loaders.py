from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pod_gen.errors import BundleDocumentError, InvalidInspectionError, MalformedMarkerError
from pod_gen.models.bundle import BundleManifest
from pod_gen.models.inspection import InspectionRecord

_MARKER_LOCS = {"damage_markers", "damageMarkers"}


def load_yaml(path: str | Path) -> Any:
    p = Path(path)
    raw = p.read_text(encoding="utf-8")
    return yaml.safe_load(raw)


def _load_data(path: str | Path) -> Any:
    p = Path(path)
    try:
        if p.suffix.lower() == ".json":
            return json.loads(p.read_text(encoding="utf-8"))
        return load_yaml(p)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidInspectionError(f"cannot parse {p}: {e}") from e


def _format_error(err: dict[str, Any], skip: int) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ())[skip:])
    msg = str(err.get("msg", "invalid value"))
    return f"{loc}: {msg}" if loc else msg


def parse_inspection(raw: Any) -> InspectionRecord:
    """Validate a raw mapping into an `InspectionRecord`.

    Marker problems raise `MalformedMarkerError` (first offending marker); everything else
    raises `InvalidInspectionError`.
    """

    if not isinstance(raw, dict):
        raise InvalidInspectionError(f"inspection must be a mapping, got {type(raw).__name__}")
    try:
        return InspectionRecord.model_validate(raw)
    except ValidationError as e:
        errors = e.errors()
        for err in errors:
            loc = err.get("loc", ())
            if loc and loc[0] in _MARKER_LOCS:
                index = loc[1] if len(loc) > 1 and isinstance(loc[1], int) else None
                raise MalformedMarkerError(index, _format_error(err, 2 if index is not None else 1)) from e
        detail = "; ".join(_format_error(err, 0) for err in errors[:5])
        raise InvalidInspectionError(f"invalid inspection ({len(errors)} error(s)): {detail}") from e


def load_inspection(path: str | Path) -> InspectionRecord:
    return parse_inspection(_load_data(path) or {})


def load_bundle_manifest(path: str | Path) -> BundleManifest:
    """Read a bundle manifest; each item's `file` is resolved relative to the manifest."""

    p = Path(path)
    data = load_yaml(p) or {}
    if not isinstance(data, dict):
        raise BundleDocumentError(f"bundle manifest must be a mapping: {p}")

    items: list[dict[str, Any]] = []
    for i, raw in enumerate(data.get("items") or []):
        item = dict(raw or {})
        f = item.pop("file", None)
        if f is None:
            raise BundleDocumentError(f"items[{i}]: missing 'file'")
        doc_path = Path(str(f)).expanduser()
        if not doc_path.is_absolute():
            doc_path = (p.parent / doc_path).resolve()
        if not doc_path.is_file():
            raise BundleDocumentError(f"items[{i}]: file not found: {doc_path}")
        item["document"] = doc_path.read_bytes()
        item.setdefault("reference", doc_path.stem)
        items.append(item)

    try:
        return BundleManifest.model_validate({**data, "items": items})
    except ValidationError as e:
        detail = "; ".join(_format_error(err, 0) for err in e.errors()[:5])
        raise BundleDocumentError(f"invalid bundle manifest {p}: {detail}") from e
