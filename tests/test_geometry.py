from __future__ import annotations

import pytest

from conftest import marker
from pod_gen.config import Settings
from pod_gen.models.inspection import DamageMarker, View
from pod_gen.services.overlay.geometry import (
    DEFAULT_CENTERING_CORRECTION,
    Box,
    number_markers,
    project_point,
    view_start_numbers,
)


def _markers(*specs: tuple[str, str]) -> list[DamageMarker]:
    return [DamageMarker.model_validate(marker(mid, view)) for mid, view in specs]


def test_centering_correction_constant_is_pinned():
    assert DEFAULT_CENTERING_CORRECTION == 0.15
    assert Settings(_env_file=None).centering_correction == 0.15


def test_project_point_corners_and_centre():
    box = Box(0, 0, 100, 100)
    assert project_point(0, 0, box) == pytest.approx((7.5, 7.5))
    assert project_point(100, 100, box) == pytest.approx((92.5, 92.5))
    assert project_point(50, 50, box) == pytest.approx((50, 50))


def test_project_point_with_pad_and_no_correction():
    box = Box(10, 20, 200, 100)
    assert project_point(0, 0, box, pad=10, correction=0.0) == pytest.approx((20, 30))
    assert project_point(100, 100, box, pad=10, correction=0.0) == pytest.approx((200, 110))


def test_project_point_pad_is_clamped_to_box():
    box = Box(0, 0, 20, 20)
    assert project_point(0, 100, box, pad=50, correction=0.0) == pytest.approx((10, 10))


def test_projected_points_stay_inside_box():
    box = Box(37.5, 120.0, 231.0, 160.0)
    for x in range(0, 101, 5):
        for y in range(0, 101, 5):
            px, py = project_point(x, y, box, pad=10.0)
            assert box.contains(px, py), (x, y, px, py)


def test_view_start_numbers():
    markers = _markers(("a", "rear"), ("b", "front"), ("c", "passengerSide"), ("d", "front"), ("e", "rear"), ("f", "rear"))
    starts = view_start_numbers(markers)
    assert starts[View.FRONT] == 1
    assert starts[View.REAR] == 3
    assert starts[View.DRIVER_SIDE] == 6
    assert starts[View.PASSENGER_SIDE] == 6
    assert starts[View.ROOF] == 7


def test_numbering_follows_view_order_then_list_order():
    markers = _markers(("r1", "rear"), ("f1", "front"), ("roof1", "roof"), ("d1", "driver"), ("f2", "front"))
    numbered = number_markers(markers)
    assert [(nm.number, nm.marker.id) for nm in numbered] == [
        (1, "f1"),
        (2, "f2"),
        (3, "r1"),
        (4, "d1"),
        (5, "roof1"),
    ]
    # index links back to the marker's position in the record
    assert [nm.index for nm in numbered] == [1, 4, 0, 3, 2]


def test_numbering_empty():
    assert number_markers([]) == []
    assert set(view_start_numbers([]).values()) == {1}
