"""Sequential progress tracking.

Provides:
- Chapter completion in strict chapter order
- Progress snapshots and per-chapter details
- Mentor completion and overview
"""

from .models import (
    PROGRESS_TABLES_CQL,
    CompletionRecord,
    ProgressSnapshot,
    compute_completion_percentage,
)


__all__ = [
    "PROGRESS_TABLES_CQL",
    "CompletionRecord",
    "ProgressSnapshot",
    "compute_completion_percentage",
]
