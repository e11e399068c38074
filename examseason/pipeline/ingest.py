"""
Prescription ingestion.

Reads monthly community prescribing extracts, normalizes drug names to their
active ingredient, keeps the configured drugs and health boards, and enriches
each row with the board name, its academic period and the board's young-adult
population share.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional

import pandas as pd

from ..config import AnalysisSettings
from ..utils.error_handlers import ConfigurationError, MalformedPrescriptionRow, UnresolvedJoin
from .diagnostics import Diagnostics
from .periods import Period, Season, tag_periods
from .reference import ReferenceData, normalize_board_name

logger = logging.getLogger(__name__)

# Accepted source headers for each field, first match wins
COLUMN_ALIASES = {
    'health_board_code': ('HBT', 'HBT2014', 'HB'),
    'drug_description': ('BNFItemDescription', 'BNF Item Description'),
    'paid_quantity': ('PaidQuantity', 'Paid Quantity'),
    'period_month': ('PaidDateMonth', 'Paid Date Month'),
}

EVENT_COLUMNS = [
    'health_board_code', 'health_board_name', 'drug_name', 'paid_quantity',
    'period_month', 'period', 'season', 'young_adult_percentage',
]

_PARSED_COLUMNS = ['health_board_code', 'drug_name', 'paid_quantity', 'period_month']
_DRUG_SPLIT = re.compile(r'[_\s]')
_STAMP_PATTERN = r'\d{4}(?:0[1-9]|1[0-2])'


class FileReadResult(NamedTuple):
    path: Path
    frame: pd.DataFrame
    total_rows: int
    malformed_rows: int
    excluded_drug_rows: int
    missing_columns: List[str]


class JoinResult(NamedTuple):
    """Rows that found a health board, and rows that did not."""

    matched: pd.DataFrame
    unmatched: pd.DataFrame


def normalize_drug_name(text) -> str:
    """'SERTRALINE_TAB 50MG' -> 'SERTRALINE'."""
    if text is None or pd.isna(text):
        return ''
    return _DRUG_SPLIT.split(str(text).strip(), maxsplit=1)[0].upper()


def discover_files(directory: Path, pattern: str = '*.csv') -> List[Path]:
    """Sorted list of prescription files in ``directory``."""
    directory = Path(directory)
    if not directory.is_dir():
        raise ConfigurationError(f"Prescription directory not found: {directory}",
                                 {"directory": str(directory)})
    files = sorted(p for p in directory.glob(pattern) if p.is_file())
    if not files:
        logger.warning("No files matching %s in %s", pattern, directory)
    return files


def _resolve_columns(columns: Iterable[str]) -> dict:
    lookup = {c.strip().upper(): c for c in columns}
    resolved = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias.upper() in lookup:
                resolved[field] = lookup[alias.upper()]
                break
    return resolved


def read_prescription_file(path: Path, settings: AnalysisSettings) -> FileReadResult:
    """
    Read and parse one monthly extract, keeping allow-listed drugs only.

    Rows with an unparseable or negative quantity, or an invalid ``YYYYMM``
    stamp, are counted as malformed and dropped.
    """
    path = Path(path)
    empty = pd.DataFrame(columns=_PARSED_COLUMNS)
    try:
        df = pd.read_csv(path, dtype=str, low_memory=False, encoding='utf-8-sig')
    except pd.errors.EmptyDataError:
        logger.warning("Empty prescription file: %s", path.name)
        return FileReadResult(path, empty, 0, 0, 0, list(COLUMN_ALIASES))

    resolved = _resolve_columns(df.columns)
    missing = [field for field in COLUMN_ALIASES if field not in resolved]
    if missing:
        logger.error("File %s is missing columns for %s. Skipping.", path.name, missing)
        return FileReadResult(path, empty, len(df), 0, 0, missing)

    parsed = pd.DataFrame({
        'health_board_code': df[resolved['health_board_code']].str.strip(),
        'drug_name': df[resolved['drug_description']].map(normalize_drug_name),
        'paid_quantity': pd.to_numeric(
            df[resolved['paid_quantity']].str.replace(',', '', regex=False), errors='coerce'),
        'period_month': df[resolved['period_month']].str.strip().str.replace(r'\.0$', '', regex=True),
    })

    valid_stamp = parsed['period_month'].str.fullmatch(_STAMP_PATTERN).fillna(False).astype(bool)
    valid = parsed['paid_quantity'].notna() & (parsed['paid_quantity'] >= 0) & valid_stamp
    malformed = int((~valid).sum())
    parsed = parsed[valid]

    allowed = parsed['drug_name'].isin(settings.drugs)
    excluded = int((~allowed).sum())
    parsed = parsed[allowed].reset_index(drop=True)

    logger.info("Read %s: %d rows, %d kept, %d malformed", path.name, len(df), len(parsed), malformed)
    return FileReadResult(path, parsed, len(df), malformed, excluded, [])


def read_all(paths: List[Path], settings: AnalysisSettings) -> List[FileReadResult]:
    """Read files, in parallel when configured; results keep input order."""
    if settings.ingest_workers > 1 and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=settings.ingest_workers) as pool:
            return list(pool.map(lambda p: read_prescription_file(p, settings), paths))
    return [read_prescription_file(p, settings) for p in paths]


def join_health_boards(events: pd.DataFrame, health_boards) -> JoinResult:
    """Attach board names; rows with unknown codes come back as unmatched."""
    boards = pd.DataFrame(
        list(health_boards.items()), columns=['health_board_code', 'health_board_name'])
    merged = events.merge(boards, on='health_board_code', how='left', indicator=True)
    matched = merged[merged['_merge'] == 'both'].drop(columns='_merge')
    unmatched = merged[merged['_merge'] == 'left_only'].drop(columns=['_merge', 'health_board_name'])
    return JoinResult(matched.reset_index(drop=True), unmatched.reset_index(drop=True))


def ingest_files(paths: Iterable[Path], reference: ReferenceData, settings: AnalysisSettings,
                 diagnostics: Optional[Diagnostics] = None,
                 season: Optional[Season] = None) -> pd.DataFrame:
    """
    Turn prescription files into enriched events.

    Args:
        paths: Monthly extract files
        reference: Loaded reference data
        settings: Run parameters
        diagnostics: Collector for dropped rows
        season: When given, rows whose month belongs to the other season are dropped

    Returns:
        DataFrame with EVENT_COLUMNS
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    paths = [Path(p) for p in paths]
    logger.info("Ingesting %d prescription files%s", len(paths),
                f" for {season.value} season" if season else "")

    frames = []
    for result in read_all(paths, settings):
        if result.missing_columns:
            diagnostics.record(
                MalformedPrescriptionRow(
                    f"{result.path.name} is missing required columns",
                    {"path": str(result.path), "missing": result.missing_columns}),
                rows=result.total_rows, stage='ingest')
            continue
        if result.malformed_rows:
            diagnostics.record(
                MalformedPrescriptionRow(
                    f"{result.malformed_rows} rows in {result.path.name} have an unparseable quantity or month",
                    {"path": str(result.path)}),
                rows=result.malformed_rows, stage='ingest')
        diagnostics.exclude('drug not in allow-list', result.excluded_drug_rows)
        frames.append(result.frame)

    if not frames:
        return pd.DataFrame(columns=EVENT_COLUMNS)
    events = pd.concat(frames, ignore_index=True)

    joined = join_health_boards(events, reference.health_boards)
    for code, rows in joined.unmatched.groupby('health_board_code', dropna=False).size().items():
        if pd.isna(code):
            error = UnresolvedJoin("Missing health board code", {"health_board_code": None})
        else:
            error = UnresolvedJoin(f"Unknown health board code {code}", {"health_board_code": code})
        diagnostics.record(error, rows=rows, stage='ingest')
    events = joined.matched

    if settings.health_board_allowlist:
        allowlist = {normalize_board_name(b, settings.board_prefix) for b in settings.health_board_allowlist}
        allowed = events['health_board_name'].isin(allowlist)
        diagnostics.exclude('health board not in allow-list', int((~allowed).sum()))
        events = events[allowed]

    events = tag_periods(events, 'period_month', settings.calendar)
    unclassified = events['period'] == Period.UNCLASSIFIED.value
    diagnostics.exclude('month outside academic periods', int(unclassified.sum()))
    events = events[~unclassified]

    if season is not None:
        mismatched = events['season'] != season.value
        diagnostics.exclude(f'month outside {season.value} season', int(mismatched.sum()))
        events = events[~mismatched]

    events = events.copy()
    events['young_adult_percentage'] = events['health_board_name'].map(reference.percentage_for)
    logger.info("Ingested %d prescription events", len(events))
    return events[EVENT_COLUMNS].reset_index(drop=True)
