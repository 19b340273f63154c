"""
Residency Pulse — Ingestion Pipeline

Raw pulse payload → validated, enriched Submission → exactly one store append.

Required fields:
  name, date, narrative          — non-empty strings (name must be on the roster)
  valueTriad, identityTriad      — {"x": number, "y": number} on the 500×500 canvas
  universityStartupSlider        — integer 0-100; 0 is a real answer, not "missing"

Enrichment:
  id         — always server-assigned (millisecond clock, creation ordered);
               a client-sent id is ignored
  timestamp  — server time when absent
  analysis   — recomputed here from both triads; a client-sent block is ignored
"""
import math
import logging
from numbers import Real

from pulse.config import ROSTER, SLIDER_MIN, SLIDER_MAX
from pulse.errors import MissingFieldError, InvalidFieldError
from pulse.store import new_submission_id, utc_timestamp
from pulse.triads import build_analysis, point_coords

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("name", "date", "narrative")
TRIAD_FIELDS = ("valueTriad", "identityTriad")
SLIDER_FIELD = "universityStartupSlider"
REQUIRED_FIELDS = TEXT_FIELDS + TRIAD_FIELDS + (SLIDER_FIELD,)


# ============================================================
# VALIDATION
# ============================================================
def missing_fields(raw: dict) -> list:
    """Names of required fields that are absent or empty, in declaration order."""
    missing = []
    for f in TEXT_FIELDS + TRIAD_FIELDS:
        if raw.get(f) is None or raw.get(f) == "":
            missing.append(f)
    if raw.get(SLIDER_FIELD) is None:
        missing.append(SLIDER_FIELD)
    return missing


def _text(raw, field):
    value = raw[field]
    if not isinstance(value, str):
        raise InvalidFieldError(field, "must be a string")
    return value


def _point(raw, field):
    value = raw[field]
    if not isinstance(value, dict):
        raise InvalidFieldError(field, "must be an object with x and y")
    try:
        x, y = point_coords(value)
    except TypeError:
        raise InvalidFieldError(field, "x and y must be numbers")
    if not (math.isfinite(x) and math.isfinite(y)):
        raise InvalidFieldError(field, "x and y must be finite")
    return {"x": value["x"], "y": value["y"]}


def _slider(raw):
    value = raw[SLIDER_FIELD]
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidFieldError(SLIDER_FIELD, "must be a number")
    if not math.isfinite(value):
        raise InvalidFieldError(SLIDER_FIELD, "must be finite")
    if value != int(value):
        raise InvalidFieldError(SLIDER_FIELD, "must be a whole number")
    value = int(value)
    if not SLIDER_MIN <= value <= SLIDER_MAX:
        raise InvalidFieldError(SLIDER_FIELD, f"must be between {SLIDER_MIN} and {SLIDER_MAX}")
    return value


def validate(raw, roster=None) -> dict:
    """Check a raw payload and return the normalized Submission fields (no id/analysis)."""
    if not isinstance(raw, dict):
        raise InvalidFieldError("body", "must be a JSON object")
    missing = missing_fields(raw)
    if missing:
        raise MissingFieldError(missing)

    roster = ROSTER if roster is None else roster
    name = _text(raw, "name")
    if name not in roster:
        raise InvalidFieldError("name", "not on the roster")
    narrative = _text(raw, "narrative")
    if not narrative.strip():
        raise InvalidFieldError("narrative", "must not be blank")

    fields = {
        "name": name,
        "date": _text(raw, "date"),
        "narrative": narrative,
        "valueTriad": _point(raw, "valueTriad"),
        "identityTriad": _point(raw, "identityTriad"),
        SLIDER_FIELD: _slider(raw),
    }
    timestamp = raw.get("timestamp")
    if timestamp is not None and not isinstance(timestamp, str):
        raise InvalidFieldError("timestamp", "must be an ISO-8601 string")
    fields["timestamp"] = timestamp
    return fields


# ============================================================
# PIPELINE
# ============================================================
def build_submission(raw, roster=None) -> dict:
    """Validate and enrich a payload into the record that gets stored."""
    fields = validate(raw, roster)
    record = {"id": new_submission_id()}
    record.update(fields)
    if not record["timestamp"]:
        record["timestamp"] = utc_timestamp()
    record["analysis"] = build_analysis(record)
    return record


def ingest(raw, store, roster=None) -> dict:
    """Validate, enrich and append one submission. Returns {"message", "id"}."""
    record = build_submission(raw, roster)
    submission_id = store.append(record)
    logger.info("Stored submission %s from %s", submission_id, record["name"])
    return {"message": "Submission saved successfully", "id": submission_id}
