"""
Reference data loading: health boards, census populations and the
young-adult share of each board's population.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple

import pandas as pd

from ..config import AnalysisSettings
from ..utils.error_handlers import DivisionUndefined, MalformedReferenceData
from .diagnostics import Diagnostics

logger = logging.getLogger(__name__)

_RANGE_RE = re.compile(r'(\d+)\s*(?:-|to)\s*(\d+)')
_OPEN_RE = re.compile(r'(\d+)\s*(?:\+|and over|or over|and older)', re.I)
_UNDER_RE = re.compile(r'under\s*(\d+)', re.I)
_SINGLE_RE = re.compile(r'^\D*(\d+)\D*$')


class YoungAdultShare(NamedTuple):
    health_board_name: str
    young_adult_count: int
    total_population: int
    percentage: float


class ReferenceData(NamedTuple):
    """Read-only lookups shared by the ingestor and the aggregator."""

    health_boards: Mapping[str, str]
    populations: Mapping[str, int]
    young_adult_shares: Mapping[str, YoungAdultShare]

    def percentage_for(self, name: str) -> Optional[float]:
        share = self.young_adult_shares.get(name)
        return share.percentage if share else None


# ------------------------------------------------------------
# Utilities
# ------------------------------------------------------------
def _read_csv(path: Path, skiprows: int = 0) -> pd.DataFrame:
    """Read CSV with trimmed column names and string values."""
    path = Path(path)
    if not path.exists():
        logger.error("Missing reference file: %s", path)
        raise MalformedReferenceData(f"Missing reference file: {path}", {"path": str(path)})
    try:
        df = pd.read_csv(path, dtype=str, skiprows=skiprows, low_memory=False, encoding='utf-8-sig')
    except pd.errors.EmptyDataError:
        raise MalformedReferenceData(f"No header row in {path.name} after {skiprows} skipped rows",
                                     {"path": str(path)})
    df = df.rename(columns=lambda c: c.strip() if isinstance(c, str) else c)
    # Every column is read as str
    for c in df.columns:
        df[c] = df[c].str.strip()
    return df


def _require_columns(df: pd.DataFrame, columns: List[str], path: Path) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise MalformedReferenceData(
            f"{Path(path).name} is missing columns: {missing}",
            {"path": str(path), "missing": missing, "found": list(df.columns)},
        )


def normalize_board_name(name: str, prefix: str = 'NHS ') -> str:
    """Strip whitespace and the organizational prefix, e.g. 'NHS Fife' -> 'Fife'."""
    text = str(name).strip()
    if prefix and text.upper().startswith(prefix.upper()):
        text = text[len(prefix):].strip()
    return text


def young_adult_percentage(count: int, total: int) -> float:
    """Young-adult share of a population, in percent."""
    if total == 0:
        raise DivisionUndefined("Total population is zero", {"young_adult_count": count})
    return count * 100.0 / total


def parse_age_bucket(label: str) -> Optional[Tuple[float, float]]:
    """
    Parse a census age label into inclusive (low, high) bounds.

    Handles single ages ('17', 'Age 17'), ranges ('17-18', '17 to 18'),
    'Under 1' and open-ended buckets ('90 and over', '90+'). Returns None for
    labels that are not age buckets, such as totals.
    """
    text = str(label).strip()
    match = _UNDER_RE.search(text)
    if match:
        return 0, int(match.group(1)) - 1
    match = _OPEN_RE.search(text)
    if match:
        return int(match.group(1)), float('inf')
    match = _RANGE_RE.search(text)
    if match:
        return int(match.group(1)), int(match.group(2))
    match = _SINGLE_RE.match(text)
    if match:
        age = int(match.group(1))
        return age, age
    return None


# ------------------------------------------------------------
# Loaders
# ------------------------------------------------------------
def load_health_boards(path: Path, settings: AnalysisSettings) -> Dict[str, str]:
    """
    Load the health board code -> display name mapping.

    Raises:
        MalformedReferenceData: Missing columns or duplicate codes
    """
    df = _read_csv(path)
    code_col, name_col = settings.board_code_column, settings.board_name_column
    _require_columns(df, [code_col, name_col], path)

    df = df.dropna(subset=[code_col, name_col])
    duplicated = df[code_col][df[code_col].duplicated()].unique().tolist()
    if duplicated:
        raise MalformedReferenceData(
            f"Duplicate health board codes in {Path(path).name}: {duplicated}",
            {"path": str(path), "codes": duplicated},
        )

    boards = {
        code: normalize_board_name(name, settings.board_prefix)
        for code, name in zip(df[code_col], df[name_col])
    }
    logger.info("Loaded %d health boards from %s", len(boards), Path(path).name)
    return boards


def load_census(path: Path, settings: AnalysisSettings) -> pd.DataFrame:
    """
    Load the census age/sex extract into columns
    ``health_board_name, age, sex, count``.
    """
    df = _read_csv(path, skiprows=settings.census_skip_rows)
    columns = [
        settings.census_area_column, settings.census_age_column,
        settings.census_sex_column, settings.census_count_column,
    ]
    _require_columns(df, columns, path)

    df = df[columns].dropna(subset=[settings.census_area_column, settings.census_age_column])
    df.columns = ['health_board_name', 'age', 'sex', 'count']
    df['health_board_name'] = df['health_board_name'].map(
        lambda n: normalize_board_name(n, settings.board_prefix))

    counts = pd.to_numeric(df['count'].str.replace(',', '', regex=False), errors='coerce')
    bad = df[counts.isna() | (counts < 0)]
    if not bad.empty:
        raise MalformedReferenceData(
            f"Non-numeric or negative counts in {Path(path).name}",
            {"path": str(path), "rows": int(len(bad)),
             "example": bad.head(3).to_dict(orient='records')},
        )
    df['count'] = counts.astype('int64')
    return df.reset_index(drop=True)


def population_by_board(census: pd.DataFrame, settings: AnalysisSettings) -> Dict[str, int]:
    """
    Total population per board from the all-ages, all-sexes census row.

    Raises:
        MalformedReferenceData: A board has no all-ages/all-sexes row
    """
    totals = census[
        (census['age'] == settings.all_ages_label) & (census['sex'] == settings.all_sexes_label)
    ]
    boards = census['health_board_name'].unique().tolist()
    missing = sorted(set(boards) - set(totals['health_board_name']))
    if missing:
        raise MalformedReferenceData(
            f"No '{settings.all_ages_label}'/'{settings.all_sexes_label}' population row for: {missing}",
            {"boards": missing},
        )
    populations = totals.groupby('health_board_name')['count'].first()
    return {name: int(value) for name, value in populations.items()}


def young_adult_shares(census: pd.DataFrame, populations: Mapping[str, int],
                       settings: AnalysisSettings,
                       diagnostics: Optional[Diagnostics] = None) -> Dict[str, YoungAdultShare]:
    """
    Young-adult counts and percentages per board.

    Only buckets lying entirely inside the configured age range are summed,
    using the all-sexes rows. Boards missing from either the age data or the
    population data are dropped. A zero population leaves the percentage
    undefined (NaN) and is recorded in ``diagnostics``.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    low, high = settings.young_adult_ages
    rows = census[census['sex'] == settings.all_sexes_label]

    bounds = rows['age'].map(parse_age_bucket)
    inside = bounds.map(lambda b: b is not None and b[0] >= low and b[1] <= high)
    straddling = bounds.map(
        lambda b: b is not None and not (b[0] >= low and b[1] <= high) and b[0] <= high and b[1] >= low)
    for label in sorted(rows.loc[straddling, 'age'].unique()):
        logger.warning("Age bucket '%s' straddles the %d-%d range and is excluded", label, low, high)

    counts = rows[inside].groupby('health_board_name')['count'].sum()
    dropped = sorted(set(counts.index) ^ set(populations))
    if dropped:
        logger.info("Boards without both age and population data dropped: %s", dropped)

    shares = {}
    for name, count in counts.items():
        if name not in populations:
            continue
        total = populations[name]
        try:
            percentage = young_adult_percentage(int(count), total)
        except DivisionUndefined as exc:
            exc.details['health_board_name'] = name
            diagnostics.record(exc, rows=1, stage='reference')
            percentage = float('nan')
        shares[name] = YoungAdultShare(name, int(count), total, percentage)
    return shares


def load_reference_data(settings: AnalysisSettings,
                        diagnostics: Optional[Diagnostics] = None) -> ReferenceData:
    """Load every reference dataset and expose it read-only."""
    logger.info("--- Loading reference data ---")
    boards = load_health_boards(settings.health_boards_path, settings)
    census = load_census(settings.census_path, settings)
    populations = population_by_board(census, settings)
    shares = young_adult_shares(census, populations, settings, diagnostics)
    logger.info("Populations for %d boards, young-adult shares for %d boards",
                len(populations), len(shares))
    return ReferenceData(
        health_boards=MappingProxyType(boards),
        populations=MappingProxyType(populations),
        young_adult_shares=MappingProxyType(shares),
    )
