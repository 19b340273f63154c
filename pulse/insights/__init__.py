"""
Residency Pulse — Aggregate Review

Data behind the admin dashboard (rendering lives in the frontend):
  1. Contributor table — per-person averages of all six triad percentages + slider
  2. Triad heatmaps   — 2-D histogram of raw pointer positions on the canvas
  3. Slider trend     — daily mean of the academic/venture slider

Percentages are recomputed from coordinates via pulse.triads, the same way
the CSV export does it.
"""
from collections import defaultdict
from datetime import datetime, timezone

import numpy as np

from pulse.config import TRIADS
from pulse.triads import DEFAULT_GEOMETRY, point_coords, triad_percentages

HEATMAP_BINS = 10


def _record_vector(record):
    """[6 triad percentages..., slider] or None when the record is unusable."""
    vec = []
    try:
        for triad in TRIADS.values():
            pcts = triad_percentages(record[triad["field"]], triad["labels"])
            vec.extend(pcts[label] for label in triad["labels"])
        vec.append(float(record["universityStartupSlider"]))
    except (KeyError, TypeError, ValueError):
        return None
    return vec


# ============================================================
# CONTRIBUTOR TABLE
# ============================================================
def contributor_summary(records: list) -> list:
    rows = defaultdict(list)
    for r in records:
        vec = _record_vector(r)
        if vec is not None:
            rows[str(r.get("name", "?"))].append(vec)

    summary = []
    for name in sorted(rows):
        means = np.array(rows[name], dtype=float).mean(axis=0)
        entry = {"name": name, "count": len(rows[name])}
        i = 0
        for key, triad in TRIADS.items():
            entry[key] = {label: round(float(means[i + j]), 1) for j, label in enumerate(triad["labels"])}
            i += len(triad["labels"])
        entry["academicVentureBalance"] = round(float(means[i]), 1)
        summary.append(entry)
    return summary


# ============================================================
# HEATMAPS
# ============================================================
def triad_heatmap(records: list, triad: str = "values", bins: int = HEATMAP_BINS,
                  geometry=DEFAULT_GEOMETRY) -> dict:
    """Count pointer positions per canvas cell. counts[row][col], row = y."""
    field = TRIADS[triad]["field"]
    xs, ys = [], []
    for r in records:
        try:
            x, y = point_coords(r.get(field))
        except TypeError:
            continue
        xs.append(x)
        ys.append(y)
    size = geometry.size
    counts, _, _ = np.histogram2d(np.array(ys, dtype=float), np.array(xs, dtype=float),
                                  bins=bins, range=[[0, size], [0, size]])
    return {"triad": triad, "bins": bins, "size": size, "counts": counts.astype(int).tolist()}


# ============================================================
# TREND
# ============================================================
def _utc_day(timestamp):
    if not isinstance(timestamp, str):
        return None
    try:
        dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).date().isoformat()


def slider_trend(records: list) -> list:
    by_day = defaultdict(list)
    for r in records:
        day = _utc_day(r.get("timestamp"))
        slider = r.get("universityStartupSlider")
        if day is None or isinstance(slider, bool) or not isinstance(slider, (int, float)):
            continue
        by_day[day].append(slider)
    return [{"day": day, "count": len(vals), "meanSlider": round(float(np.mean(vals)), 1)}
            for day, vals in sorted(by_day.items())]


def summarize(records: list) -> dict:
    return {
        "total": len(records),
        "contributors": contributor_summary(records),
        "heatmaps": {key: triad_heatmap(records, key) for key in TRIADS},
        "trend": slider_trend(records),
    }
