"""
Small on-disk datasets shaped like the real extracts, for tests.
"""

import csv
import tempfile
from pathlib import Path

from examseason.config import AnalysisSettings, Config

DRUGS = Config.DRUG_ALLOWLIST

HEALTH_BOARDS = [
    ('S08000024', 'NHS Lothian'),
    ('S08000031', 'NHS Greater Glasgow and Clyde'),
    ('S08000030', 'NHS Tayside'),
    ('S08000022', 'NHS Highland'),
]

# (board, total population, young adult buckets)
POPULATIONS = [
    ('Lothian', 900000, [('17 to 19', 80000), ('20 to 24', 120000), ('25', 30000)]),
    ('Greater Glasgow and Clyde', 1200000, [('17 to 19', 60000), ('20 to 24', 110000), ('25', 25000)]),
    ('Tayside', 400000, [('17 to 19', 20000), ('20 to 24', 30000), ('25', 6000)]),
    ('Highland', 300000, [('17 to 19', 9000), ('20 to 24', 12000), ('25', 3000)]),
]

PRESCRIPTION_HEADER = [
    'HBT', 'BNFItemCode', 'BNFItemDescription', 'PrescriberType', 'GPPractice',
    'NumberOfPaidItems', 'PaidQuantity', 'GrossIngredientCost', 'PaidDateMonth',
]

PREAMBLE_ROWS = 10


def write_health_boards(path, rows=HEALTH_BOARDS):
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['HB', 'HBName', 'Country'])
        for code, name in rows:
            writer.writerow([code, name, 'S92000003'])
    return path


def census_rows(populations=POPULATIONS):
    rows = []
    for board, total, buckets in populations:
        rows.append((board, 'Total', 'All people', f"{total:,}"))
        rows.append((board, 'Total', 'Female', str(total // 2)))
        rows.append((board, 'Under 1', 'All people', '9000'))
        rows.append((board, '16', 'All people', '10000'))
        for label, count in buckets:
            rows.append((board, label, 'All people', str(count)))
            rows.append((board, label, 'Female', str(count // 2)))
        rows.append((board, '26 to 29', 'All people', '40000'))
        rows.append((board, '90 and over', 'All people', '5000'))
    return rows


def write_census(path, rows=None, preamble=PREAMBLE_ROWS):
    rows = census_rows() if rows is None else rows
    with open(path, 'w', newline='', encoding='utf-8') as f:
        for i in range(preamble):
            f.write(f'"Census extract preamble line {i + 1}"\n')
        writer = csv.writer(f)
        writer.writerow(['Health Board Area 2019', 'Age', 'Sex', 'Count'])
        for row in rows:
            writer.writerow(row)
    return path


def prescription_row(code, description, quantity, month, items=1):
    return {
        'HBT': code,
        'BNFItemCode': '0403030Q0AAAAAA',
        'BNFItemDescription': description,
        'PrescriberType': '1',
        'GPPractice': '70011',
        'NumberOfPaidItems': str(items),
        'PaidQuantity': str(quantity),
        'GrossIngredientCost': '12.34',
        'PaidDateMonth': str(month),
    }


def write_prescriptions(path, rows, header=PRESCRIPTION_HEADER):
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=header, extrasaction='ignore')
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return path


class Workspace:
    """A temporary directory holding a complete set of input files."""

    def __init__(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.exam_dir = self.root / 'prescriptions' / 'exam'
        self.non_exam_dir = self.root / 'prescriptions' / 'non_exam'
        self.exam_dir.mkdir(parents=True)
        self.non_exam_dir.mkdir(parents=True)
        self.health_boards_path = write_health_boards(self.root / 'health_boards.csv')
        self.census_path = write_census(self.root / 'census_age_sex.csv')
        self.reports_dir = self.root / 'reports'
        self.figures_dir = self.root / 'figures'
        self.log_dir = self.root / 'logs'

    def cleanup(self):
        self._tmp.cleanup()

    def add_exam_file(self, name, rows):
        return write_prescriptions(self.exam_dir / name, rows)

    def add_non_exam_file(self, name, rows):
        return write_prescriptions(self.non_exam_dir / name, rows)

    def settings(self, **overrides) -> AnalysisSettings:
        return AnalysisSettings.from_config(self.config_overrides(), overrides)

    def config_overrides(self) -> dict:
        return {
            'HEALTH_BOARDS_PATH': self.health_boards_path,
            'CENSUS_PATH': self.census_path,
            'EXAM_PRESCRIPTIONS_DIR': self.exam_dir,
            'NON_EXAM_PRESCRIPTIONS_DIR': self.non_exam_dir,
            'REPORTS_DIR': self.reports_dir,
            'FIGURES_DIR': self.figures_dir,
            'LOG_DIR': self.log_dir,
            'DRUG_ALLOWLIST': DRUGS,
            'HEALTH_BOARD_ALLOWLIST': ('Lothian', 'Greater Glasgow and Clyde', 'Tayside'),
            'YOUNG_ADULT_AGE_RANGE': (17, 25),
            'CENSUS_SKIP_ROWS': PREAMBLE_ROWS,
            'INGEST_WORKERS': 1,
        }

    def populate_standard(self):
        """Exam and non-exam files for three allow-listed boards."""
        self.add_exam_file('pitc202304.csv', [
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 100, 202304),
            prescription_row('S08000024', 'SERTRALINE_TAB 100MG', 50, 202304),
            prescription_row('S08000031', 'FLUOXETINE_CAP 20MG', 240, 202304),
            prescription_row('S08000030', 'CITALOPRAM_TAB 20MG', 80, 202304),
            prescription_row('S08000024', 'PARACETAMOL_500MG', 1000, 202304),
        ])
        self.add_exam_file('pitc202311.csv', [
            prescription_row('S08000031', 'SERTRALINE_TAB 50MG', 120, 202311),
            prescription_row('S08000030', 'VENLAFAXINE_TAB 75MG', 40, 202311),
        ])
        self.add_non_exam_file('pitc202301.csv', [
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 135, 202301),
            prescription_row('S08000031', 'FLUOXETINE_CAP 20MG', 300, 202301),
            prescription_row('S08000030', 'CITALOPRAM_TAB 20MG', 60, 202301),
        ])
        self.add_non_exam_file('pitc202309.csv', [
            prescription_row('S08000031', 'ESCITALOPRAM_TAB 10MG', 60, 202309),
            prescription_row('S08000030', 'PAROXETINE_TAB 20MG', 20, 202309),
        ])
