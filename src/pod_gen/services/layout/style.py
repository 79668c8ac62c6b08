from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from pod_gen.config import repo_root
from pod_gen.models.inspection import DamageType

A4_W = 595.28
A4_H = 841.89

# Marker colours per damage type.
DEFAULT_DAMAGE_COLORS: dict[str, str] = {
    DamageType.SCRATCH.value: "#FFA500",
    DamageType.DENT.value: "#FF6347",
    DamageType.CHIP.value: "#4169E1",
    DamageType.CRACK.value: "#8B0000",
    DamageType.SCUFF.value: "#32CD32",
    DamageType.RUST.value: "#8B4513",
    DamageType.MISSING.value: "#FF0000",
    DamageType.BROKEN.value: "#800080",
    DamageType.BAD_REPAIR.value: "#B8860B",
    DamageType.PAINTWORK.value: "#C71585",
    DamageType.OTHER.value: "#696969",
}


def _style_get(style: dict[str, Any], path: list[str], default: Any) -> Any:
    cur: Any = style
    for key in path:
        if not isinstance(cur, dict) or key not in cur:
            return default
        cur = cur[key]
    return cur


def _default_style_path() -> Path:
    return repo_root() / "config" / "page_style.yaml"


def load_page_style(style_path: Path | None = None) -> dict[str, Any]:
    """Load style tokens; an explicit path must exist, the repo default is optional."""
    if style_path is not None:
        p = Path(style_path).expanduser()
        if not p.exists():
            raise FileNotFoundError(f"style yaml not found: {p}")
        return yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    p = _default_style_path()
    if not p.exists():
        return {}
    return yaml.safe_load(p.read_text(encoding="utf-8")) or {}


@dataclass(frozen=True)
class PageStyle:
    page_w: float = A4_W
    page_h: float = A4_H
    margin: float = 30.0
    header_h: float = 62.0
    footer_h: float = 30.0
    gap: float = 12.0

    primary: str = "#1e293b"
    text: str = "#374151"
    muted: str = "#6b7280"
    border: str = "#d1d5db"
    section_bg: str = "#f0f0f0"

    font: str = "Helvetica"
    font_bold: str = "Helvetica-Bold"

    card_border_w: float = 0.8
    caption_bar_h: float = 30.0
    caption_size: float = 9.0
    badge_w: float = 24.0
    badge_h: float = 16.0
    badge_margin: float = 5.0
    badge_fill: str = "#000000"

    not_present_fill: str = "#d1d5db"
    not_present_text: str = "#374151"
    unavailable_fill: str = "#f9fafb"
    unavailable_text: str = "#9ca3af"

    damage_colors: tuple[tuple[str, str], ...] = tuple(DEFAULT_DAMAGE_COLORS.items())

    @property
    def content_w(self) -> float:
        return self.page_w - 2 * self.margin

    @property
    def content_top(self) -> float:
        return self.margin + self.header_h

    @property
    def content_bottom(self) -> float:
        return self.page_h - self.margin - self.footer_h

    def damage_color(self, damage_type: DamageType) -> str:
        return dict(self.damage_colors).get(damage_type.value, DEFAULT_DAMAGE_COLORS[DamageType.OTHER.value])

    @classmethod
    def from_dict(cls, style: dict[str, Any] | None) -> "PageStyle":
        s = style or {}
        d = cls()
        colors = dict(DEFAULT_DAMAGE_COLORS)
        colors.update({str(k): str(v) for k, v in (_style_get(s, ["damage_colors"], {}) or {}).items()})
        return cls(
            page_w=float(_style_get(s, ["page", "width_pt"], d.page_w)),
            page_h=float(_style_get(s, ["page", "height_pt"], d.page_h)),
            margin=float(_style_get(s, ["page", "margin_pt"], d.margin)),
            header_h=float(_style_get(s, ["page", "header_h_pt"], d.header_h)),
            footer_h=float(_style_get(s, ["page", "footer_h_pt"], d.footer_h)),
            gap=float(_style_get(s, ["page", "gap_pt"], d.gap)),
            primary=str(_style_get(s, ["colors", "primary"], d.primary)),
            text=str(_style_get(s, ["colors", "text"], d.text)),
            muted=str(_style_get(s, ["colors", "muted"], d.muted)),
            border=str(_style_get(s, ["colors", "border"], d.border)),
            section_bg=str(_style_get(s, ["colors", "section_bg"], d.section_bg)),
            card_border_w=float(_style_get(s, ["card", "border_pt"], d.card_border_w)),
            caption_bar_h=float(_style_get(s, ["card", "caption_bar_h_pt"], d.caption_bar_h)),
            caption_size=float(_style_get(s, ["card", "caption_size_pt"], d.caption_size)),
            badge_w=float(_style_get(s, ["badge", "w_pt"], d.badge_w)),
            badge_h=float(_style_get(s, ["badge", "h_pt"], d.badge_h)),
            badge_margin=float(_style_get(s, ["badge", "margin_pt"], d.badge_margin)),
            badge_fill=str(_style_get(s, ["badge", "fill"], d.badge_fill)),
            not_present_fill=str(_style_get(s, ["placeholder", "not_present_fill"], d.not_present_fill)),
            not_present_text=str(_style_get(s, ["placeholder", "not_present_text"], d.not_present_text)),
            unavailable_fill=str(_style_get(s, ["placeholder", "unavailable_fill"], d.unavailable_fill)),
            unavailable_text=str(_style_get(s, ["placeholder", "unavailable_text"], d.unavailable_text)),
            damage_colors=tuple(colors.items()),
        )
