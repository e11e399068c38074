"""
Core analysis service for exam season prescribing
=================================================

This module runs the full pipeline (reference data, ingestion, aggregation,
comparison) for a configuration and keeps the latest result for the report
API and the command-line report.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

import pandas as pd

from ..config import AnalysisSettings, Config
from ..pipeline.aggregate import build_period_table, build_season_table
from ..pipeline.compare import compare_drugs, compare_seasons, summarize_comparison
from ..pipeline.diagnostics import Diagnostics
from ..pipeline.ingest import discover_files, ingest_files
from ..pipeline.periods import Season
from ..pipeline.reference import ReferenceData, load_reference_data

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Every table produced by one pipeline run."""

    reference: ReferenceData
    events: pd.DataFrame
    exam_table: pd.DataFrame
    non_exam_table: pd.DataFrame
    period_table: pd.DataFrame
    comparison: pd.DataFrame
    drug_comparison: pd.DataFrame
    summary: Dict[str, Any]
    diagnostics: Diagnostics
    completed_at: datetime = field(default_factory=datetime.now)
    duration_seconds: float = 0.0

    def season_table(self, season: Season) -> pd.DataFrame:
        return self.exam_table if season is Season.EXAM else self.non_exam_table


class AnalysisService:
    """
    Service class running the exam season prescribing analysis.

    This class encapsulates:
    - Building run parameters from configuration
    - Loading reference data and ingesting both seasons
    - Season, period and drug aggregation
    - Comparison and summary statistics
    """

    def __init__(self, config=None, settings: Optional[AnalysisSettings] = None):
        self.config = config if config is not None else Config
        self.settings = settings or AnalysisSettings.from_config(self.config)
        self.result: Optional[AnalysisResult] = None
        self.last_error: Optional[str] = None
        self._lock = threading.RLock()
        logger.info("AnalysisService initialized for %d drugs and %d health boards",
                    len(self.settings.drugs), len(self.settings.health_board_allowlist))

    def is_ready(self) -> bool:
        return self.result is not None

    def run(self) -> AnalysisResult:
        """
        Run the full pipeline and keep the result.

        Fatal errors (MalformedReferenceData, ConfigurationError) propagate
        before any result is stored.
        """
        with self._lock:
            start = time.perf_counter()
            settings = self.settings
            diagnostics = Diagnostics()
            try:
                reference = load_reference_data(settings, diagnostics)

                exam_files = discover_files(settings.exam_dir, settings.file_pattern)
                non_exam_files = discover_files(settings.non_exam_dir, settings.file_pattern)

                exam_events = ingest_files(exam_files, reference, settings, diagnostics, Season.EXAM)
                non_exam_events = ingest_files(non_exam_files, reference, settings, diagnostics, Season.NON_EXAM)
                events = pd.concat([exam_events, non_exam_events], ignore_index=True)

                exam_table = build_season_table(events, Season.EXAM, reference, settings, diagnostics)
                non_exam_table = build_season_table(events, Season.NON_EXAM, reference, settings, diagnostics)
                # Population problems were already recorded by the season tables
                period_table = build_period_table(events, reference)

                comparison = compare_seasons(exam_table, non_exam_table, diagnostics)
                drug_comparison = compare_drugs(exam_table, non_exam_table)
                summary = summarize_comparison(comparison)
            except Exception as e:
                self.last_error = str(e)
                logger.error(f"Analysis failed: {e}")
                raise

            self.result = AnalysisResult(
                reference=reference,
                events=events,
                exam_table=exam_table,
                non_exam_table=non_exam_table,
                period_table=period_table,
                comparison=comparison,
                drug_comparison=drug_comparison,
                summary=summary,
                diagnostics=diagnostics,
                duration_seconds=time.perf_counter() - start,
            )
            self.last_error = None
            logger.info("Analysis completed in %.2fs: %d boards compared, %d diagnostics",
                        self.result.duration_seconds, len(comparison), len(diagnostics))
            return self.result

    def get_result(self) -> AnalysisResult:
        """Latest result, running the pipeline on first use."""
        with self._lock:
            if self.result is None:
                return self.run()
            return self.result

    def status(self) -> Dict[str, Any]:
        result = self.result
        return {
            'ready': result is not None,
            'completed_at': result.completed_at.isoformat() if result else None,
            'duration_seconds': round(result.duration_seconds, 4) if result else None,
            'boards_compared': int(len(result.comparison)) if result else 0,
            'events': int(len(result.events)) if result else 0,
            'diagnostics': len(result.diagnostics) if result else 0,
            'last_error': self.last_error,
            'drugs': list(self.settings.drugs),
            'health_boards': list(self.settings.health_board_allowlist),
            'young_adult_ages': list(self.settings.young_adult_ages),
            'calendar': {label: list(months) for label, months in self.settings.calendar.items()},
        }
