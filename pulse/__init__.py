"""
Residency Pulse — Modular Backend Package

Architecture:
  pulse/
  ├── config/    — Environment constants, roster, triad labels, logging setup
  ├── triads/    — Barycentric transform: triad point → three weights
  ├── store/     — Submission store: file, remote KV list, in-memory
  ├── ingest/    — Validation + analysis enrichment of incoming pulses
  ├── auth/      — Shared-secret admin gate
  ├── export/    — CSV export (percentages recomputed from coordinates)
  ├── insights/  — Aggregate review data: contributor table, heatmaps, trend
  ├── errors.py  — Exception hierarchy
  └── server.py  — FastAPI routing layer

Each module is self-contained with clear imports and no circular dependencies.
"""

__version__ = "1.0.0"
