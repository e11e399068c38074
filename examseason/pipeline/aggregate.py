"""
Aggregation of prescription events into per-health-board tables.

Quantities are summed per (health board, drug) within a season, widened to
one row per board with one column per drug, totalled, and divided by the
board's population.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..config import AnalysisSettings
from ..utils.error_handlers import DivisionUndefined, UnresolvedJoin
from .diagnostics import Diagnostics
from .periods import ACADEMIC_PERIODS, Period, Season, season_of
from .reference import ReferenceData

logger = logging.getLogger(__name__)

BOARD = 'health_board_name'
TOTAL = 'total_prescriptions'
SUMMARY_COLUMNS = [TOTAL, 'population', 'per_capita_rate', 'young_adult_percentage']


def per_capita(total: float, population: int) -> float:
    """Prescriptions per head of population."""
    if population == 0:
        raise DivisionUndefined("Population is zero", {"total_prescriptions": float(total)})
    return float(total) / float(population)


def aggregate_long(events: pd.DataFrame, by: Sequence[str] = (BOARD, 'drug_name')) -> pd.DataFrame:
    """Sum paid quantity per group; rows sharing every key are added together."""
    by = list(by)
    if events.empty:
        return pd.DataFrame(columns=by + [TOTAL])
    long = events.groupby(by, as_index=False, sort=True)['paid_quantity'].sum()
    return long.rename(columns={'paid_quantity': TOTAL})


def drug_columns(table: pd.DataFrame) -> List[str]:
    """Drug columns of a wide table, in table order."""
    return [c for c in table.columns if c != BOARD and c not in SUMMARY_COLUMNS]


def pivot_wide(long: pd.DataFrame, drugs: Iterable[str] = ()) -> pd.DataFrame:
    """
    One row per board, one column per drug, plus a row total.

    Configured drugs come first (zero-filled when absent), followed by any
    other drug found in the data, sorted.
    """
    drugs = list(drugs)
    if long.empty:
        return pd.DataFrame(columns=[BOARD] + drugs + [TOTAL])

    wide = long.pivot_table(index=BOARD, columns='drug_name', values=TOTAL,
                            aggfunc='sum', fill_value=0)
    columns = drugs + sorted(c for c in wide.columns if c not in drugs)
    wide = wide.reindex(columns=columns, fill_value=0)
    wide.columns.name = None
    wide[TOTAL] = wide[columns].sum(axis=1)
    return wide.reset_index()


def attach_per_capita(table: pd.DataFrame, reference: ReferenceData,
                      diagnostics: Optional[Diagnostics] = None, stage: str = 'aggregate') -> pd.DataFrame:
    """
    Add population, per-capita rate and young-adult percentage columns.

    Boards without a population are excluded and recorded; a zero population
    leaves the rate undefined (NaN) and is recorded too.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    result = table.copy()
    result['population'] = result[BOARD].map(dict(reference.populations))

    unresolved = result['population'].isna()
    for name, rows in result.loc[unresolved].groupby(BOARD).size().items():
        diagnostics.record(
            UnresolvedJoin(f"No population for health board {name}", {BOARD: name}),
            rows=rows, stage=stage)
    result = result[~unresolved].copy()

    rates = []
    for name, total, population in zip(result[BOARD], result[TOTAL], result['population']):
        try:
            rates.append(per_capita(total, population))
        except DivisionUndefined as exc:
            exc.details[BOARD] = name
            diagnostics.record(exc, rows=1, stage=stage)
            rates.append(np.nan)

    result['population'] = result['population'].astype('int64')
    result[TOTAL] = result[TOTAL].astype(float)
    result['per_capita_rate'] = pd.Series(rates, index=result.index, dtype=float)
    result['young_adult_percentage'] = result[BOARD].map(reference.percentage_for).astype(float)
    return result.reset_index(drop=True)


def build_season_table(events: pd.DataFrame, season: Season, reference: ReferenceData,
                       settings: AnalysisSettings, diagnostics: Optional[Diagnostics] = None) -> pd.DataFrame:
    """
    Per-board table for one season.

    Columns: health_board_name, one column per drug, total_prescriptions,
    population, per_capita_rate, young_adult_percentage.
    """
    scoped = events[events['season'] == season.value]
    long = aggregate_long(scoped)
    wide = pivot_wide(long, settings.drugs)
    table = attach_per_capita(wide, reference, diagnostics, stage=f'aggregate:{season.value}')
    logger.info("Built %s season table: %d boards, %.0f total prescriptions",
                season.value, len(table), table[TOTAL].sum() if not table.empty else 0)
    return table.sort_values(BOARD, kind='mergesort').reset_index(drop=True)


def build_period_table(events: pd.DataFrame, reference: ReferenceData,
                       diagnostics: Optional[Diagnostics] = None) -> pd.DataFrame:
    """Long table of per-capita rate by (health board, academic period)."""
    scoped = events[events['period'] != Period.UNCLASSIFIED.value]
    long = aggregate_long(scoped, by=(BOARD, 'period'))
    table = attach_per_capita(long, reference, diagnostics, stage='aggregate:period')
    table['season'] = table['period'].map(lambda p: season_of(Period(p)).value)

    order = {p.value: i for i, p in enumerate(ACADEMIC_PERIODS)}
    table['_order'] = table['period'].map(order)
    table = table.sort_values([BOARD, '_order'], kind='mergesort').drop(columns='_order')
    return table[[BOARD, 'period', 'season', TOTAL, 'population', 'per_capita_rate']].reset_index(drop=True)


def drug_mapping(table: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    """The wide table as ``{board: {drug: quantity}}``."""
    drugs = drug_columns(table)
    return {
        row[BOARD]: {drug: float(row[drug]) for drug in drugs}
        for _, row in table.iterrows()
    }
