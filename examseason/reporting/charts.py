"""
Chart figures for a completed analysis.
"""

import logging
from pathlib import Path
from typing import Dict

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from ..pipeline.aggregate import drug_columns
from ..pipeline.periods import ACADEMIC_PERIODS
from ..utils.helpers import ensure_directory_exists, timing_decorator

logger = logging.getLogger(__name__)


def plot_per_capita_comparison(comparison: pd.DataFrame, path: Path) -> Path:
    """Grouped bars of exam and non-exam per-capita rates per board."""
    plot_data = comparison.melt(
        id_vars='health_board_name',
        value_vars=['per_capita_exam', 'per_capita_non_exam'],
        var_name='Season', value_name='Per capita')
    plot_data['Season'] = plot_data['Season'].map(
        {'per_capita_exam': 'Exam', 'per_capita_non_exam': 'Non-exam'})

    plt.figure(figsize=(12, 6))
    sns.barplot(x='health_board_name', y='Per capita', hue='Season', data=plot_data)
    plt.title('Antidepressant Quantity per Capita by Health Board')
    plt.xlabel('Health Board')
    plt.xticks(rotation=45, ha='right')
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def plot_change_vs_young_adult(comparison: pd.DataFrame, path: Path) -> Path:
    """Scatter of change percent against young-adult population share."""
    plot_data = comparison.dropna(subset=['young_adult_percentage', 'change_percent'])

    plt.figure(figsize=(10, 6))
    if len(plot_data) >= 3:
        sns.regplot(x='young_adult_percentage', y='change_percent', data=plot_data,
                    ci=None, scatter_kws={'s': 60})
    else:
        sns.scatterplot(x='young_adult_percentage', y='change_percent', data=plot_data, s=60)
    for _, row in plot_data.iterrows():
        plt.annotate(row['health_board_name'],
                     (row['young_adult_percentage'], row['change_percent']),
                     textcoords='offset points', xytext=(5, 5), fontsize=8)
    plt.axhline(y=0, color='gray', linestyle='--')
    plt.title('Exam Season Change vs Young Adult Population Share')
    plt.xlabel('Population aged 17-25 (%)')
    plt.ylabel('Change in per-capita rate (%)')
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def plot_drug_heatmap(exam_table: pd.DataFrame, path: Path) -> Path:
    """Heatmap of exam-season quantity per board and drug."""
    drugs = drug_columns(exam_table)
    pivot = exam_table.set_index('health_board_name')[drugs].astype(float)

    plt.figure(figsize=(12, 8))
    sns.heatmap(pivot, annot=True, fmt='.0f', cmap='YlGnBu')
    plt.title('Exam Season Quantity by Health Board and Drug')
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


def plot_period_trend(period_table: pd.DataFrame, path: Path) -> Path:
    """Per-capita rate across the four academic periods, one line per board."""
    plot_data = period_table.copy()
    plot_data['period'] = pd.Categorical(
        plot_data['period'], categories=[p.value for p in ACADEMIC_PERIODS], ordered=True)

    plt.figure(figsize=(12, 6))
    sns.pointplot(data=plot_data, x='period', y='per_capita_rate',
                  hue='health_board_name', order=[p.value for p in ACADEMIC_PERIODS])
    plt.title('Per-capita Rate by Academic Period')
    plt.xlabel('Academic Period')
    plt.ylabel('Quantity per capita')
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return path


@timing_decorator
def save_all_charts(result, figures_dir) -> Dict[str, Path]:
    """Render every chart for ``result`` into ``figures_dir``."""
    figures_dir = Path(figures_dir)
    ensure_directory_exists(str(figures_dir))

    charts = {}
    if result.comparison.empty:
        logger.warning("No boards to plot; charts skipped")
        return charts

    charts['per_capita'] = plot_per_capita_comparison(
        result.comparison, figures_dir / 'per_capita_by_board.png')
    charts['young_adult'] = plot_change_vs_young_adult(
        result.comparison, figures_dir / 'change_vs_young_adult.png')
    if not result.exam_table.empty:
        charts['drug_heatmap'] = plot_drug_heatmap(
            result.exam_table, figures_dir / 'exam_drug_heatmap.png')
    if not result.period_table.empty:
        charts['periods'] = plot_period_trend(
            result.period_table, figures_dir / 'per_capita_by_period.png')

    for name, path in charts.items():
        logger.info("Saved %s chart to %s", name, path)
    return charts
