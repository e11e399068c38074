"""
Exam vs non-exam season comparison.
"""

import logging
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from scipy import stats

from ..utils.error_handlers import DivisionUndefined
from .aggregate import BOARD, TOTAL, drug_columns
from .diagnostics import Diagnostics

logger = logging.getLogger(__name__)

COMPARISON_COLUMNS = [
    BOARD, 'per_capita_exam', 'per_capita_non_exam',
    'young_adult_percentage', 'change_percent',
]


def change_percent(exam: float, non_exam: float) -> float:
    """Percentage change from the non-exam baseline to the exam rate."""
    if non_exam == 0:
        raise DivisionUndefined("Non-exam per-capita baseline is zero", {"per_capita_exam": exam})
    return (exam - non_exam) / non_exam * 100


def compare_seasons(exam_table: pd.DataFrame, non_exam_table: pd.DataFrame,
                    diagnostics: Optional[Diagnostics] = None) -> pd.DataFrame:
    """
    Left-join the season tables on health board and compute the change.

    Rows are ordered by exam per-capita rate, highest first, with ties broken
    by board name; boards without an exam rate sort last.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    exam = exam_table[[BOARD, 'per_capita_rate', 'young_adult_percentage']].rename(
        columns={'per_capita_rate': 'per_capita_exam'})
    non_exam = non_exam_table[[BOARD, 'per_capita_rate']].rename(
        columns={'per_capita_rate': 'per_capita_non_exam'})
    merged = exam.merge(non_exam, on=BOARD, how='left')

    changes = []
    for name, exam_rate, baseline in zip(merged[BOARD], merged['per_capita_exam'],
                                         merged['per_capita_non_exam']):
        if pd.isna(exam_rate) or pd.isna(baseline):
            changes.append(np.nan)
            continue
        try:
            changes.append(change_percent(exam_rate, baseline))
        except DivisionUndefined as exc:
            exc.details[BOARD] = name
            diagnostics.record(exc, rows=1, stage='compare')
            changes.append(np.nan)
    merged['change_percent'] = pd.Series(changes, index=merged.index, dtype=float)

    merged = merged.sort_values(BOARD, kind='mergesort')
    merged = merged.sort_values('per_capita_exam', ascending=False, kind='mergesort', na_position='last')
    return merged[COMPARISON_COLUMNS].reset_index(drop=True)


def compare_drugs(exam_table: pd.DataFrame, non_exam_table: pd.DataFrame) -> pd.DataFrame:
    """
    Per-drug comparison over all boards present in both seasons.

    Per-capita rates use the summed population of those boards.
    """
    shared = sorted(set(exam_table[BOARD]) & set(non_exam_table[BOARD]))
    exam = exam_table[exam_table[BOARD].isin(shared)]
    non_exam = non_exam_table[non_exam_table[BOARD].isin(shared)]
    population = float(exam['population'].sum()) if shared else 0.0

    drugs = drug_columns(exam_table) + [d for d in drug_columns(non_exam_table)
                                        if d not in drug_columns(exam_table)]
    rows = []
    for drug in drugs + [TOTAL]:
        exam_total = float(exam[drug].sum()) if drug in exam else 0.0
        non_exam_total = float(non_exam[drug].sum()) if drug in non_exam else 0.0
        exam_rate = exam_total / population if population else np.nan
        non_exam_rate = non_exam_total / population if population else np.nan
        change = np.nan
        if population and non_exam_rate:
            change = change_percent(exam_rate, non_exam_rate)
        rows.append({
            'drug_name': 'ALL' if drug == TOTAL else drug,
            'exam_prescriptions': exam_total,
            'non_exam_prescriptions': non_exam_total,
            'per_capita_exam': exam_rate,
            'per_capita_non_exam': non_exam_rate,
            'change_percent': change,
        })
    return pd.DataFrame(rows)


def _finite(value) -> Optional[float]:
    value = float(value)
    return value if np.isfinite(value) else None


def summarize_comparison(comparison: pd.DataFrame) -> Dict[str, Any]:
    """
    Summary statistics over the board-level comparison.

    Includes a paired t-test of exam vs non-exam per-capita rates and the
    Pearson correlation between young-adult share and change percent.
    Statistics that cannot be computed, or come out infinite, are None.
    """
    paired = comparison.dropna(subset=['per_capita_exam', 'per_capita_non_exam'])
    changes = comparison['change_percent'].dropna()
    summary: Dict[str, Any] = {
        'boards': int(len(comparison)),
        'boards_with_change': int(len(changes)),
        'mean_change_percent': float(changes.mean()) if len(changes) else None,
        'median_change_percent': float(changes.median()) if len(changes) else None,
        'boards_increased': int((changes > 0).sum()),
        'paired_t_statistic': None,
        'paired_p_value': None,
        'young_adult_correlation': None,
        'young_adult_p_value': None,
    }

    if len(paired) >= 2 and not np.allclose(paired['per_capita_exam'], paired['per_capita_non_exam']):
        result = stats.ttest_rel(paired['per_capita_exam'], paired['per_capita_non_exam'])
        summary['paired_t_statistic'] = _finite(result.statistic)
        summary['paired_p_value'] = _finite(result.pvalue)

    corr = comparison.dropna(subset=['young_adult_percentage', 'change_percent'])
    if (len(corr) >= 3 and corr['young_adult_percentage'].nunique() > 1
            and corr['change_percent'].nunique() > 1):
        r, p = stats.pearsonr(corr['young_adult_percentage'], corr['change_percent'])
        summary['young_adult_correlation'] = _finite(r)
        summary['young_adult_p_value'] = _finite(p)

    logger.info("Comparison summary: %s", summary)
    return summary
