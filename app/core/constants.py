from typing import Dict, FrozenSet, List

from app.schemas.common import (
    ItemSource,
    ProductType,
    Severity,
    SyncStatus,
    ThresholdType,
)

SYNC_STATUSES: FrozenSet[str] = frozenset(s.value for s in SyncStatus)

# Terminal states: the log is immutable audit history from here on
TERMINAL_SYNC_STATUSES: FrozenSet[str] = frozenset({"applied", "rejected"})

ACTIVE_SYNC_STATUSES: FrozenSet[str] = SYNC_STATUSES - TERMINAL_SYNC_STATUSES

ALLOWED_SYNC_TRANSITIONS: Dict[str, List[str]] = {
    "pending": ["analyzing"],
    "analyzing": ["pending_approval", "rejected"],
    "pending_approval": ["applied", "rejected"],
    "applied": [],  # terminal
    "rejected": [],  # terminal
}

SEVERITIES: FrozenSet[str] = frozenset(s.value for s in Severity)
THRESHOLD_TYPES: FrozenSet[str] = frozenset(t.value for t in ThresholdType)
ITEM_SOURCES: FrozenSet[str] = frozenset(s.value for s in ItemSource)
PRODUCT_TYPES: FrozenSet[str] = frozenset(p.value for p in ProductType)

PRODUCT_TYPE_LABELS: Dict[str, str] = {
    "aca": "ACA (Affordable Care Act)",
    "limited_medical": "Limited Medical",
    "life_insurance": "Life Insurance",
}


def _in_clause(column: str, values: FrozenSet[str]) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in sorted(values))})"


SYNC_STATUS_CHECK_CLAUSE: str = _in_clause("status", SYNC_STATUSES)
SEVERITY_CHECK_CLAUSE: str = _in_clause("severity", SEVERITIES)
THRESHOLD_TYPE_CHECK_CLAUSE: str = _in_clause("threshold_type", THRESHOLD_TYPES)
PRODUCT_TYPE_CHECK_CLAUSE: str = _in_clause("product_type", PRODUCT_TYPES)
ITEM_SOURCE_CHECK_CLAUSE: str = _in_clause("source_type", ITEM_SOURCES)

# Rubric weighting
TOTAL_WEIGHT: float = 100.0
WEIGHT_TOLERANCE: float = 0.01
MIN_SCORE: int = 1
MAX_SCORE: int = 5

# Proposed-change handling
HIGH_CONFIDENCE_THRESHOLD: float = 0.8
DEFAULT_ADDED_CATEGORY_WEIGHT: float = 10.0
DEFAULT_ADDED_FLAG_SEVERITY: str = "medium"

ACTIVE_RUBRIC_CACHE_KEY: str = "rubric:active"
