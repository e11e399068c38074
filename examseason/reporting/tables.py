"""
Text tables and report files for a completed analysis.
"""

import logging
from pathlib import Path
from typing import Dict

import pandas as pd
from tabulate import tabulate

from ..pipeline.diagnostics import Diagnostics
from ..utils.helpers import ensure_directory_exists, save_json_file, timing_decorator

logger = logging.getLogger(__name__)

COMPARISON_HEADERS = [
    'Health Board', 'Exam per capita', 'Non-exam per capita', 'Young adult %', 'Change %',
]


def _fmt(value, spec: str) -> str:
    if value is None or pd.isna(value):
        return 'n/a'
    return format(value, spec)


def format_comparison_table(comparison: pd.DataFrame, tablefmt: str = 'grid') -> str:
    """Board-level exam vs non-exam table; undefined values print as n/a."""
    rows = []
    for _, row in comparison.iterrows():
        rows.append([
            row['health_board_name'],
            _fmt(row['per_capita_exam'], '.7f'),
            _fmt(row['per_capita_non_exam'], '.7f'),
            _fmt(row['young_adult_percentage'], '.2f'),
            _fmt(row['change_percent'], '+.2f'),
        ])
    return tabulate(rows, headers=COMPARISON_HEADERS, tablefmt=tablefmt, disable_numparse=True)


def format_drug_table(drug_comparison: pd.DataFrame, tablefmt: str = 'grid') -> str:
    rows = []
    for _, row in drug_comparison.iterrows():
        rows.append([
            row['drug_name'],
            f"{row['exam_prescriptions']:,.0f}",
            f"{row['non_exam_prescriptions']:,.0f}",
            _fmt(row['change_percent'], '+.2f'),
        ])
    return tabulate(rows, headers=['Drug', 'Exam quantity', 'Non-exam quantity', 'Change %'],
                    tablefmt=tablefmt, disable_numparse=True)


def format_diagnostics_table(diagnostics: Diagnostics, tablefmt: str = 'grid') -> str:
    summary = diagnostics.summary()
    if summary.empty:
        return "No rows were dropped."
    rows = [
        [row['category'], row['name'], int(row['occurrences']), f"{int(row['rows']):,}"]
        for _, row in summary.iterrows()
    ]
    return tabulate(rows, headers=['Category', 'Name', 'Occurrences', 'Rows'], tablefmt=tablefmt,
                    disable_numparse=True)


@timing_decorator
def write_reports(result, reports_dir) -> Dict[str, Path]:
    """
    Write CSV tables, an HTML comparison report and a JSON summary.

    Args:
        result: AnalysisResult
        reports_dir: Output directory

    Returns:
        Mapping of report name to written path
    """
    reports_dir = Path(reports_dir)
    ensure_directory_exists(str(reports_dir))

    outputs = {
        'comparison': reports_dir / 'season_comparison.csv',
        'exam_season': reports_dir / 'exam_season_by_board.csv',
        'non_exam_season': reports_dir / 'non_exam_season_by_board.csv',
        'periods': reports_dir / 'academic_periods_by_board.csv',
        'drugs': reports_dir / 'drug_comparison.csv',
        'diagnostics': reports_dir / 'diagnostics.csv',
        'html': reports_dir / 'season_comparison.html',
        'summary': reports_dir / 'summary.json',
    }

    result.comparison.to_csv(outputs['comparison'], index=False)
    result.exam_table.to_csv(outputs['exam_season'], index=False)
    result.non_exam_table.to_csv(outputs['non_exam_season'], index=False)
    result.period_table.to_csv(outputs['periods'], index=False)
    result.drug_comparison.to_csv(outputs['drugs'], index=False)
    result.diagnostics.summary().to_csv(outputs['diagnostics'], index=False)

    html = [
        "<html><head><title>Exam Season Prescribing</title></head><body>",
        "<h1>Antidepressant prescribing: exam vs non-exam season</h1>",
        format_comparison_table(result.comparison, tablefmt='html'),
        "<h2>By drug</h2>",
        format_drug_table(result.drug_comparison, tablefmt='html'),
        "<h2>Dropped data</h2>",
        format_diagnostics_table(result.diagnostics, tablefmt='html'),
        "</body></html>",
    ]
    outputs['html'].write_text("\n".join(html), encoding='utf-8')

    save_json_file({
        'summary': result.summary,
        'diagnostics': result.diagnostics.to_dict(),
        'completed_at': result.completed_at.isoformat(),
    }, str(outputs['summary']))

    logger.info("Wrote %d report files to %s", len(outputs), reports_dir)
    return outputs
