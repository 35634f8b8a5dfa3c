"""Prometheus metrics for Quick Notes.

All metric objects are defined here so they can be imported from any module.
"""

from prometheus_client import Counter, Gauge

# ---------------------------------------------------------------------------
# Note lifecycle
# ---------------------------------------------------------------------------

NOTES_ADDED = Counter(
    "quicknotes_notes_added_total",
    "Total number of notes created",
)

NOTES_DELETED = Counter(
    "quicknotes_notes_deleted_total",
    "Total number of notes removed",
)

NOTES_STORED = Gauge(
    "quicknotes_notes_stored",
    "Number of notes currently held in memory",
)

# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

PERSISTENCE_OPERATIONS = Counter(
    "quicknotes_persistence_operations_total",
    "Load/save calls against the key-value backend",
    ["operation", "status"],  # load|save, ok|error
)
