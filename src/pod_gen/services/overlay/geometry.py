from __future__ import annotations

from dataclasses import dataclass

from pod_gen.models.inspection import DamageMarker, View

# Traversal order shared by the overlay page and the evidence page.
CANONICAL_VIEWS: tuple[View, ...] = (View.FRONT, View.REAR, View.DRIVER_SIDE, View.PASSENGER_SIDE)
# Roof has no outline slot; its markers are numbered after the canonical views.
NUMBERING_ORDER: tuple[View, ...] = CANONICAL_VIEWS + (View.ROOF,)

DEFAULT_CENTERING_CORRECTION = 0.15


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    w: float
    h: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.w / 2.0, self.y + self.h / 2.0)

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.w and self.y <= py <= self.y + self.h

    def inset(self, d: float) -> "Box":
        return Box(self.x + d, self.y + d, max(0.0, self.w - 2 * d), max(0.0, self.h - 2 * d))


@dataclass(frozen=True)
class NumberedMarker:
    number: int
    marker: DamageMarker
    # Position of the marker in the record's list (links it to its photo array).
    index: int

    @property
    def view(self) -> View:
        return self.marker.view


def view_start_numbers(markers: list[DamageMarker]) -> dict[View, int]:
    """First number of each view: 1 + count of markers in earlier views."""
    starts: dict[View, int] = {}
    running = 0
    for view in NUMBERING_ORDER:
        starts[view] = running + 1
        running += sum(1 for m in markers if m.view == view)
    return starts


def number_markers(markers: list[DamageMarker]) -> list[NumberedMarker]:
    """Sequential numbering in view order; markers keep their list order within a view."""
    starts = view_start_numbers(markers)
    out: list[NumberedMarker] = []
    for view in NUMBERING_ORDER:
        n = starts[view]
        for idx, m in enumerate(markers):
            if m.view != view:
                continue
            out.append(NumberedMarker(number=n, marker=m, index=idx))
            n += 1
    return out


def project_point(
    x_pct: float,
    y_pct: float,
    box: Box,
    *,
    pad: float = 0.0,
    correction: float = DEFAULT_CENTERING_CORRECTION,
) -> tuple[float, float]:
    """Map a percent position onto `box`, then pull it `correction` of the way to the centre.

    The pull is a visual calibration for the outline drawings, not a geometric law.
    Inputs are not validated here; out-of-range values yield out-of-range points.
    """

    pad = max(0.0, min(pad, box.w / 2.0, box.h / 2.0))
    px = box.x + pad + (x_pct / 100.0) * (box.w - 2 * pad)
    py = box.y + pad + (y_pct / 100.0) * (box.h - 2 * pad)
    cx, cy = box.center
    return (px - correction * (px - cx), py - correction * (py - cy))
