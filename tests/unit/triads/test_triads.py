"""Unit tests for the barycentric triad transform."""

from __future__ import annotations

import math

import pytest

from pulse.triads import (
    DEFAULT_GEOMETRY,
    TriangleGeometry,
    build_analysis,
    is_inside,
    point_coords,
    preview,
    raw_weights,
    round_percent,
    to_percentages,
    triad_percentages,
    weights,
)

V1, V2, V3 = DEFAULT_GEOMETRY.vertices


def test_default_geometry_vertices() -> None:
    """Apex at top, base corners 30 degrees below horizontal from center."""
    assert V1 == (250, 100)
    assert V2[0] == pytest.approx(250 - 150 * math.cos(math.pi / 6))
    assert V2[1] == pytest.approx(325)
    assert V3[0] == pytest.approx(250 + 150 * math.cos(math.pi / 6))
    assert V3[1] == pytest.approx(325)


def test_centroid_weights_are_equal_thirds() -> None:
    assert weights({"x": 250, "y": 250}) == pytest.approx((1 / 3, 1 / 3, 1 / 3))


@pytest.mark.parametrize(
    "vertex, expected",
    [(V1, (1, 0, 0)), (V2, (0, 1, 0)), (V3, (0, 0, 1))],
)
def test_vertices_map_to_unit_weights(vertex, expected) -> None:
    assert weights(vertex) == pytest.approx(expected, abs=1e-12)


@pytest.mark.parametrize(
    "point",
    [(250, 200), (200, 300), (300, 310), (250, 320), (180, 310), (251, 110)],
)
def test_inside_points_are_bounded_and_sum_to_one(point) -> None:
    ws = weights(point)

    assert all(0 <= w <= 1 for w in ws)
    assert sum(ws) == pytest.approx(1)
    assert is_inside(point)


def test_point_above_apex_clamps_negative_components_only() -> None:
    raw = raw_weights({"x": 250, "y": 50})
    clamped = weights({"x": 250, "y": 50})

    assert raw[1] < 0 and raw[2] < 0
    assert clamped[0] == raw[0]
    assert clamped[0] > 1
    assert clamped[1:] == (0.0, 0.0)
    assert not is_inside({"x": 250, "y": 50})


def test_point_below_base_is_not_renormalized() -> None:
    raw = raw_weights({"x": 250, "y": 400})
    clamped = weights({"x": 250, "y": 400})

    assert raw[0] < 0
    assert clamped[0] == 0.0
    assert clamped[1:] == raw[1:]
    assert sum(clamped) > 1


def test_percentages_round_each_weight_independently() -> None:
    assert to_percentages((1 / 3, 1 / 3, 1 / 3)) == (33, 33, 33)


def test_round_percent_rounds_halves_up() -> None:
    assert round_percent(0.125) == 13
    assert round_percent(0.0) == 0
    assert round_percent(1.0) == 100


def test_triad_percentages_labels_follow_vertex_order() -> None:
    pcts = triad_percentages(V2, ("container", "network", "launchpad"))

    assert pcts == {"container": 0, "network": 100, "launchpad": 0}


def test_custom_geometry_is_respected() -> None:
    geometry = TriangleGeometry(size=1000, margin=200)

    assert weights((500, 500), geometry) == pytest.approx((1 / 3, 1 / 3, 1 / 3))
    assert geometry.vertices[0] == (500, 200)


def test_point_coords_accepts_mapping_and_pair() -> None:
    assert point_coords({"x": 1, "y": 2.5}) == (1.0, 2.5)
    assert point_coords([3, 4]) == (3.0, 4.0)


@pytest.mark.parametrize("bad", [None, {"x": 1}, {"x": "1", "y": 2}, (True, 2), "xy", 5])
def test_point_coords_rejects_non_points(bad) -> None:
    with pytest.raises(TypeError):
        point_coords(bad)


def test_build_analysis_matches_direct_transform(payload) -> None:
    analysis = build_analysis(payload)

    assert analysis == {
        "values": {"container": 33, "network": 33, "launchpad": 33},
        "identity": {"sanctuary": 100, "laboratory": 0, "guild": 0},
        "academicVentureBalance": 40,
    }


def test_preview_matches_ingestion_numbers(payload) -> None:
    result = preview(payload["valueTriad"], "values")

    assert result["percentages"] == build_analysis(payload)["values"]
    assert result["inside"] is True
    assert result["weights"]["container"] == weights(payload["valueTriad"])[0]


def test_preview_rejects_unknown_triad() -> None:
    with pytest.raises(KeyError):
        preview({"x": 250, "y": 250}, "mood")
