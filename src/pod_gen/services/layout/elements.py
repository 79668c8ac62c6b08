from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, TypeVar, Union

# All coordinates are PDF points measured from the top-left corner of the page.

Align = Literal["left", "center", "right"]


class SlotState(str, Enum):
    PRESENT = "present"
    NOT_PRESENT = "not_present"
    UNAVAILABLE = "unavailable"


class PageKind(str, Enum):
    COVER = "cover"
    DOCUMENTATION = "documentation"
    EXTERIOR = "exterior"
    INTERIOR = "interior"
    WHEELS = "wheels"
    DAMAGE_OVERLAY = "damage_overlay"
    DAMAGE_EVIDENCE = "damage_evidence"
    CONFIRMATION = "confirmation"
    NOTES = "notes"
    BUNDLE_SUMMARY = "bundle_summary"


@dataclass(frozen=True)
class TextEl:
    x: float
    y: float  # baseline
    text: str
    font: str = "Helvetica"
    size: float = 10.0
    color: str = "#000000"
    align: Align = "left"


@dataclass(frozen=True)
class RectEl:
    x: float
    y: float
    w: float
    h: float
    stroke: str | None = "#000000"
    fill: str | None = None
    line_width: float = 1.0
    dashed: bool = False


@dataclass(frozen=True)
class LineEl:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = "#000000"
    line_width: float = 1.0


@dataclass(frozen=True)
class CircleEl:
    cx: float
    cy: float
    r: float
    fill: str | None = None
    stroke: str | None = "#000000"
    line_width: float = 1.0


@dataclass(frozen=True)
class ImageEl:
    """Image drawn inside the box with its aspect ratio preserved (centred)."""

    x: float
    y: float
    w: float
    h: float
    ref: str
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class MarkerEl:
    """Numbered damage marker circle placed on a vehicle outline."""

    cx: float
    cy: float
    r: float
    number: int
    marker_id: str
    fill: str
    border: str = "#ffffff"
    text_color: str = "#ffffff"


@dataclass(frozen=True)
class BadgeEl:
    x: float
    y: float
    w: float
    h: float
    label: str
    number: int | None = None
    marker_id: str | None = None
    fill: str = "#000000"
    text_color: str = "#ffffff"


@dataclass(frozen=True)
class PlaceholderEl:
    x: float
    y: float
    w: float
    h: float
    state: SlotState
    title: str
    subtitle: str = ""
    fill: str = "#f5f5f5"
    text_color: str = "#6b7280"
    font: str = "Helvetica"
    font_bold: str = "Helvetica-Bold"


Element = Union[TextEl, RectEl, LineEl, CircleEl, ImageEl, MarkerEl, BadgeEl, PlaceholderEl]

E = TypeVar("E")


@dataclass
class PageSpec:
    kind: PageKind
    title: str
    elements: list[Element] = field(default_factory=list)

    def add(self, *elements: Element) -> None:
        self.elements.extend(elements)

    def of_type(self, cls: type[E]) -> list[E]:
        return [el for el in self.elements if isinstance(el, cls)]

    def texts(self) -> list[str]:
        return [el.text for el in self.elements if isinstance(el, TextEl)]
