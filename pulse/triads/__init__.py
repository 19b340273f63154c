"""
Residency Pulse — Triad Transform

Maps a 2-D pointer position inside the equilateral-triangle widget to three
barycentric weights, one per labelled vertex:

  V1 (top)           → first label   (container / sanctuary)
  V2 (bottom-left)   → second label  (network / laboratory)
  V3 (bottom-right)  → third label   (launchpad / guild)

Clamping policy:
  Each weight is clamped to >= 0 independently, never clamped above and never
  renormalized. A point far outside the triangle can therefore carry one weight
  above 1 while the others read 0. Percentages are rounded one by one, so the
  three displayed numbers need not sum to exactly 100.

Every caller (capture preview, ingestion, CSV export, summary views) goes
through this module so all of them see identical numbers for the same point.
"""
import math
from dataclasses import dataclass
from numbers import Real

from pulse.config import CANVAS_SIZE, CANVAS_MARGIN, TRIADS


# ============================================================
# GEOMETRY
# ============================================================
@dataclass(frozen=True)
class TriangleGeometry:
    """Fixed equilateral triangle pointing up inside a square canvas."""
    size: float = CANVAS_SIZE
    margin: float = CANVAS_MARGIN

    @property
    def center(self):
        return (self.size / 2, self.size / 2)

    @property
    def radius(self):
        return self.size / 2 - self.margin

    @property
    def vertices(self):
        cx, cy = self.center
        r = self.radius
        return (
            (cx, cy - r),
            (cx - r * math.cos(math.pi / 6), cy + r * math.sin(math.pi / 6)),
            (cx + r * math.cos(math.pi / 6), cy + r * math.sin(math.pi / 6)),
        )


DEFAULT_GEOMETRY = TriangleGeometry()


# ============================================================
# POINTS
# ============================================================
def point_coords(point):
    """Return (x, y) floats from an {"x", "y"} mapping or an (x, y) pair."""
    if isinstance(point, dict):
        x, y = point.get("x"), point.get("y")
    else:
        try:
            x, y = point
        except (TypeError, ValueError):
            raise TypeError(f"Not a point: {point!r}")
    if not _is_number(x) or not _is_number(y):
        raise TypeError(f"Point coordinates must be numbers: {point!r}")
    return float(x), float(y)


def _is_number(v):
    return isinstance(v, Real) and not isinstance(v, bool)


# ============================================================
# WEIGHTS
# ============================================================
def raw_weights(point, geometry=DEFAULT_GEOMETRY):
    """Unclamped barycentric weights (a, b, c) of point; a+b+c == 1."""
    x, y = point_coords(point)
    (x1, y1), (x2, y2), (x3, y3) = geometry.vertices
    denom = (y2 - y3) * (x1 - x3) + (x3 - x2) * (y1 - y3)
    a = ((y2 - y3) * (x - x3) + (x3 - x2) * (y - y3)) / denom
    b = ((y3 - y1) * (x - x3) + (x1 - x3) * (y - y3)) / denom
    c = 1 - a - b
    return a, b, c


def weights(point, geometry=DEFAULT_GEOMETRY):
    """Barycentric weights with each component clamped to a minimum of 0."""
    return tuple(max(0.0, w) for w in raw_weights(point, geometry))


def is_inside(point, geometry=DEFAULT_GEOMETRY):
    """True when the point lies inside the triangle or on its edges."""
    return all(w >= 0 for w in raw_weights(point, geometry))


def round_percent(weight):
    # Half-up like the browser's Math.round, not Python's banker's rounding
    return int(math.floor(weight * 100 + 0.5))


def to_percentages(ws):
    """Scale each weight to an integer percentage, independently."""
    return tuple(round_percent(w) for w in ws)


def triad_percentages(point, labels, geometry=DEFAULT_GEOMETRY):
    """{label: percent} for an ordered (top, bottom-left, bottom-right) label triple."""
    return dict(zip(labels, to_percentages(weights(point, geometry))))


# ============================================================
# ANALYSIS BLOCK
# ============================================================
def build_analysis(record, geometry=DEFAULT_GEOMETRY):
    """Derive the stored "analysis" block from a submission's raw fields."""
    analysis = {}
    for key, triad in TRIADS.items():
        analysis[key] = triad_percentages(record[triad["field"]], triad["labels"], geometry)
    analysis["academicVentureBalance"] = record["universityStartupSlider"]
    return analysis


def preview(point, triad="values", geometry=DEFAULT_GEOMETRY):
    """Capture-time feedback for the triad widget while the pointer moves."""
    if triad not in TRIADS:
        raise KeyError(triad)
    ws = weights(point, geometry)
    labels = TRIADS[triad]["labels"]
    return {"triad": triad,
            "weights": dict(zip(labels, ws)),
            "percentages": dict(zip(labels, to_percentages(ws))),
            "inside": is_inside(point, geometry)}
