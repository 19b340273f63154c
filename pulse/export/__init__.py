"""
Residency Pulse — CSV Export

One row per submission, oldest first. Triad percentages are recomputed from
the stored raw coordinates through pulse.triads rather than read from the
stored "analysis" block, so an export always reflects the current transform.
"""
from datetime import date as _date

from pulse.config import TRIADS
from pulse.triads import triad_percentages

HEADERS = [
    "Timestamp", "Name", "Narrative",
    "Value X", "Value Y", "Container %", "Network %", "Launchpad %",
    "Identity X", "Identity Y", "Sanctuary %", "Laboratory %", "Guild %",
    "Academic-Venture Balance %",
]


def quote(text) -> str:
    """Always-quoted CSV cell with internal quotes doubled."""
    return '"' + str(text).replace('"', '""') + '"'


def cell(value) -> str:
    """Plain CSV cell, quoted only when it would otherwise break the row."""
    if value is None:
        return ""
    text = str(value)
    if any(ch in text for ch in (",", '"', "\n", "\r")):
        return quote(text)
    return text


def _triad_cells(record, key) -> list:
    triad = TRIADS[key]
    point = record.get(triad["field"])
    if not isinstance(point, dict):
        point = {}
    try:
        pcts = triad_percentages(point, triad["labels"])
    except TypeError:
        return [cell(point.get("x")), cell(point.get("y")), "", "", ""]
    return [cell(point["x"]), cell(point["y"])] + [str(pcts[label]) for label in triad["labels"]]


def export_row(record: dict) -> str:
    cells = [cell(record.get("timestamp")), cell(record.get("name")), quote(record.get("narrative") or "")]
    cells += _triad_cells(record, "values")
    cells += _triad_cells(record, "identity")
    cells.append(cell(record.get("universityStartupSlider")))
    return ",".join(cells)


def export_csv(records: list) -> str:
    return "\n".join([",".join(HEADERS)] + [export_row(r) for r in records])


def export_filename(today=None) -> str:
    today = today or _date.today()
    return f"residency-pulse-data-{today.isoformat()}.csv"
