"""
Configuration module for the exam season prescriptions analysis
================================================================

This module contains all configuration settings for the analysis pipeline,
the report API and the command-line report. Every run parameter can be
overridden through an ``EXAMSEASON_*`` environment variable.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

# Base directory
BASE_DIR = Path(__file__).parent.parent

# Period labels, in academic-year order
SEMESTER_1_START = 'Semester 1 Start'
SEMESTER_1_FINALS = 'Semester 1 Finals'
SEMESTER_2_START = 'Semester 2 Start'
SEMESTER_2_FINALS = 'Semester 2 Finals'

DEFAULT_ACADEMIC_CALENDAR = {
    SEMESTER_1_START: (9, 10),
    SEMESTER_1_FINALS: (4, 5),
    SEMESTER_2_START: (1, 2),
    SEMESTER_2_FINALS: (11, 12),
}


def _env_path(name: str, default: Path) -> Path:
    value = os.environ.get(name)
    return Path(value) if value else default


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.environ.get(name)
    if not value:
        return default
    return tuple(item.strip() for item in value.split(',') if item.strip())


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


def _env_age_range(name: str, default: Tuple[int, int]) -> Tuple[int, int]:
    """Parse an inclusive age range written as ``17-25``."""
    value = os.environ.get(name)
    if not value:
        return default
    low, _, high = value.partition('-')
    return int(low), int(high)


class Config:
    """Base configuration class"""

    # Flask settings
    DEBUG = False
    TESTING = False

    # API settings
    API_TITLE = "Exam Season Prescriptions Report API"
    API_VERSION = "1.0.0"
    API_DESCRIPTION = "Per-capita antidepressant prescribing in exam and non-exam periods"

    # Base paths
    DATA_DIR = _env_path('EXAMSEASON_DATA_DIR', BASE_DIR / 'data')
    LOG_DIR = _env_path('EXAMSEASON_LOG_DIR', BASE_DIR / 'logs')
    REPORTS_DIR = _env_path('EXAMSEASON_REPORTS_DIR', BASE_DIR / 'reports')
    FIGURES_DIR = _env_path('EXAMSEASON_FIGURES_DIR', BASE_DIR / 'figures')

    # Input files
    HEALTH_BOARDS_PATH = _env_path('EXAMSEASON_HEALTH_BOARDS_PATH', DATA_DIR / 'health_boards.csv')
    CENSUS_PATH = _env_path('EXAMSEASON_CENSUS_PATH', DATA_DIR / 'census_age_sex.csv')
    EXAM_PRESCRIPTIONS_DIR = _env_path('EXAMSEASON_EXAM_DIR', DATA_DIR / 'prescriptions' / 'exam')
    NON_EXAM_PRESCRIPTIONS_DIR = _env_path('EXAMSEASON_NON_EXAM_DIR', DATA_DIR / 'prescriptions' / 'non_exam')
    PRESCRIPTION_FILE_PATTERN = os.environ.get('EXAMSEASON_FILE_PATTERN', '*.csv')

    # Analysis scope
    DRUG_ALLOWLIST = _env_list('EXAMSEASON_DRUGS', (
        'ESCITALOPRAM', 'SERTRALINE', 'FLUOXETINE',
        'VENLAFAXINE', 'PAROXETINE', 'CITALOPRAM',
    ))
    HEALTH_BOARD_ALLOWLIST = _env_list('EXAMSEASON_HEALTH_BOARDS', (
        'Lothian', 'Greater Glasgow and Clyde', 'Grampian', 'Tayside',
        'Fife', 'Forth Valley', 'Lanarkshire',
    ))
    YOUNG_ADULT_AGE_RANGE = _env_age_range('EXAMSEASON_YOUNG_ADULT_AGES', (17, 25))
    ACADEMIC_CALENDAR = DEFAULT_ACADEMIC_CALENDAR
    HEALTH_BOARD_PREFIX = os.environ.get('EXAMSEASON_BOARD_PREFIX', 'NHS ')

    # Reference file layout
    HEALTH_BOARD_CODE_COLUMN = 'HB'
    HEALTH_BOARD_NAME_COLUMN = 'HBName'
    CENSUS_SKIP_ROWS = _env_int('EXAMSEASON_CENSUS_SKIP_ROWS', 10)
    CENSUS_AREA_COLUMN = 'Health Board Area 2019'
    CENSUS_AGE_COLUMN = 'Age'
    CENSUS_SEX_COLUMN = 'Sex'
    CENSUS_COUNT_COLUMN = 'Count'
    CENSUS_ALL_AGES_LABEL = 'Total'
    CENSUS_ALL_SEXES_LABEL = 'All people'

    # Ingestion
    INGEST_WORKERS = _env_int('EXAMSEASON_INGEST_WORKERS', 1)

    # Logging settings
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    @classmethod
    def analysis_settings(cls) -> 'AnalysisSettings':
        """Build the immutable settings consumed by the pipeline."""
        return AnalysisSettings.from_config(cls)

    @classmethod
    def ensure_directories(cls):
        """Ensure all output directories exist."""
        for directory in [cls.LOG_DIR, cls.REPORTS_DIR, cls.FIGURES_DIR]:
            Path(directory).mkdir(parents=True, exist_ok=True)


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False
    INGEST_WORKERS = _env_int('EXAMSEASON_INGEST_WORKERS', 4)


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


@dataclass(frozen=True)
class AnalysisSettings:
    """Run parameters passed explicitly into each pipeline component."""

    health_boards_path: Path
    census_path: Path
    exam_dir: Path
    non_exam_dir: Path
    file_pattern: str = '*.csv'
    drugs: Tuple[str, ...] = ()
    health_board_allowlist: Tuple[str, ...] = ()
    young_adult_ages: Tuple[int, int] = (17, 25)
    calendar: Mapping[str, Tuple[int, ...]] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_ACADEMIC_CALENDAR)))
    board_prefix: str = 'NHS '
    board_code_column: str = 'HB'
    board_name_column: str = 'HBName'
    census_skip_rows: int = 10
    census_area_column: str = 'Health Board Area 2019'
    census_age_column: str = 'Age'
    census_sex_column: str = 'Sex'
    census_count_column: str = 'Count'
    all_ages_label: str = 'Total'
    all_sexes_label: str = 'All people'
    ingest_workers: int = 1

    @classmethod
    def from_config(cls, cfg: Any, overrides: Optional[Dict[str, Any]] = None) -> 'AnalysisSettings':
        """
        Build settings from a Config class or a Flask config mapping.

        Args:
            cfg: Config class (attribute access) or mapping (key access)
            overrides: Optional field values taking precedence

        Returns:
            Frozen AnalysisSettings
        """
        def get(key, default=None):
            if isinstance(cfg, Mapping):
                return cfg.get(key, default)
            return getattr(cfg, key, default)

        values = dict(
            health_boards_path=Path(get('HEALTH_BOARDS_PATH')),
            census_path=Path(get('CENSUS_PATH')),
            exam_dir=Path(get('EXAM_PRESCRIPTIONS_DIR')),
            non_exam_dir=Path(get('NON_EXAM_PRESCRIPTIONS_DIR')),
            file_pattern=get('PRESCRIPTION_FILE_PATTERN', '*.csv'),
            drugs=tuple(d.strip().upper() for d in get('DRUG_ALLOWLIST', ())),
            health_board_allowlist=tuple(get('HEALTH_BOARD_ALLOWLIST', ())),
            young_adult_ages=tuple(get('YOUNG_ADULT_AGE_RANGE', (17, 25))),
            calendar=MappingProxyType({
                label: tuple(months)
                for label, months in get('ACADEMIC_CALENDAR', DEFAULT_ACADEMIC_CALENDAR).items()
            }),
            board_prefix=get('HEALTH_BOARD_PREFIX', 'NHS '),
            board_code_column=get('HEALTH_BOARD_CODE_COLUMN', 'HB'),
            board_name_column=get('HEALTH_BOARD_NAME_COLUMN', 'HBName'),
            census_skip_rows=int(get('CENSUS_SKIP_ROWS', 10)),
            census_area_column=get('CENSUS_AREA_COLUMN', 'Health Board Area 2019'),
            census_age_column=get('CENSUS_AGE_COLUMN', 'Age'),
            census_sex_column=get('CENSUS_SEX_COLUMN', 'Sex'),
            census_count_column=get('CENSUS_COUNT_COLUMN', 'Count'),
            all_ages_label=get('CENSUS_ALL_AGES_LABEL', 'Total'),
            all_sexes_label=get('CENSUS_ALL_SEXES_LABEL', 'All people'),
            ingest_workers=max(1, int(get('INGEST_WORKERS', 1))),
        )
        if overrides:
            values.update(overrides)

        low, high = values['young_adult_ages']
        if low > high:
            raise ValueError(f"Invalid young adult age range: {low}-{high}")
        return cls(**values)
