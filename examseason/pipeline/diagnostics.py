"""
Diagnostics collector for recoverable pipeline errors.

Every stage records the rows it drops here instead of losing them silently.
Errors are kept as ``AnalysisError`` instances together with the number of
rows they cover; plain filter exclusions (drugs or boards outside the
allow-lists, unclassified months) are tracked as named counters.
"""

import logging
from collections import OrderedDict
from typing import Dict, List

import pandas as pd

from ..utils.error_handlers import AnalysisError

logger = logging.getLogger(__name__)


class DiagnosticEntry:
    """One recorded recoverable error."""

    __slots__ = ('error', 'rows', 'stage')

    def __init__(self, error: AnalysisError, rows: int, stage: str):
        self.error = error
        self.rows = rows
        self.stage = stage

    @property
    def kind(self) -> str:
        return self.error.error_code

    def to_dict(self) -> Dict:
        return {
            'kind': self.kind,
            'stage': self.stage,
            'rows': self.rows,
            'message': self.error.message,
            'details': dict(self.error.details),
        }


class Diagnostics:
    """Accumulates recoverable errors and filter counts for one run."""

    def __init__(self):
        self.entries: List[DiagnosticEntry] = []
        self.exclusions: Dict[str, int] = OrderedDict()

    def record(self, error: AnalysisError, rows: int = 1, stage: str = '') -> DiagnosticEntry:
        """
        Record a recoverable error.

        Args:
            error: The error describing what was dropped or left undefined
            rows: Number of input rows affected
            stage: Pipeline stage name

        Returns:
            The stored entry
        """
        entry = DiagnosticEntry(error, int(rows), stage)
        self.entries.append(entry)
        logger.warning(f"[{stage or 'pipeline'}] {error.error_code}: {error.message} ({rows} rows)")
        return entry

    def exclude(self, reason: str, rows: int) -> None:
        """Count rows removed by a filter (not an error)."""
        if rows <= 0:
            return
        self.exclusions[reason] = self.exclusions.get(reason, 0) + int(rows)
        logger.info(f"Excluded {rows} rows: {reason}")

    def of_kind(self, kind: str) -> List[DiagnosticEntry]:
        return [entry for entry in self.entries if entry.kind == kind]

    def rows_dropped(self, kind: str = None) -> int:
        entries = self.of_kind(kind) if kind else self.entries
        return sum(entry.rows for entry in entries)

    def __len__(self):
        return len(self.entries)

    def summary(self) -> pd.DataFrame:
        """Counts per error kind followed by filter exclusions."""
        rows = []
        if self.entries:
            frame = pd.DataFrame([entry.to_dict() for entry in self.entries])
            grouped = frame.groupby('kind', sort=True).agg(
                occurrences=('kind', 'size'), rows=('rows', 'sum')).reset_index()
            for _, row in grouped.iterrows():
                rows.append({
                    'category': 'error',
                    'name': row['kind'],
                    'occurrences': int(row['occurrences']),
                    'rows': int(row['rows']),
                })
        for reason, count in self.exclusions.items():
            rows.append({'category': 'filter', 'name': reason, 'occurrences': 1, 'rows': count})
        return pd.DataFrame(rows, columns=['category', 'name', 'occurrences', 'rows'])

    def to_dict(self) -> Dict:
        return {
            'errors': [entry.to_dict() for entry in self.entries],
            'exclusions': dict(self.exclusions),
            'total_error_rows': self.rows_dropped(),
        }
