import unittest

from examseason.pipeline.diagnostics import Diagnostics
from examseason.pipeline.ingest import (
    EVENT_COLUMNS,
    discover_files,
    ingest_files,
    normalize_drug_name,
    read_prescription_file,
)
from examseason.pipeline.periods import Season
from examseason.pipeline.reference import load_reference_data
from examseason.utils.error_handlers import ConfigurationError
from tests.fixtures import Workspace, prescription_row, write_prescriptions


class TestNormalizeDrugName(unittest.TestCase):

    def test_first_token_upper_case(self):
        self.assertEqual(normalize_drug_name('SERTRALINE_TAB 50MG'), 'SERTRALINE')
        self.assertEqual(normalize_drug_name('fluoxetine cap 20mg'), 'FLUOXETINE')
        self.assertEqual(normalize_drug_name('Citalopram'), 'CITALOPRAM')
        self.assertEqual(normalize_drug_name(None), '')
        self.assertEqual(normalize_drug_name(float('nan')), '')


class TestIngest(unittest.TestCase):

    def setUp(self):
        self.workspace = Workspace()
        self.settings = self.workspace.settings()
        self.reference = load_reference_data(self.settings)

    def tearDown(self):
        self.workspace.cleanup()

    def _ingest(self, rows, season=None, settings=None):
        path = self.workspace.add_exam_file('pitc_test.csv', rows)
        diagnostics = Diagnostics()
        events = ingest_files([path], self.reference, settings or self.settings, diagnostics, season)
        return events, diagnostics

    def test_allow_listed_drug_kept_and_others_excluded(self):
        events, diagnostics = self._ingest([
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 100, 202304),
            prescription_row('S08000024', 'PARACETAMOL_500MG', 1000, 202304),
        ])
        self.assertEqual(list(events.columns), EVENT_COLUMNS)
        self.assertEqual(events['drug_name'].tolist(), ['SERTRALINE'])
        self.assertEqual(events['health_board_name'].tolist(), ['Lothian'])
        self.assertEqual(events['period'].tolist(), ['Semester 1 Finals'])
        self.assertEqual(events['season'].tolist(), ['exam'])
        self.assertAlmostEqual(events['young_adult_percentage'].iloc[0], 25.5556, places=4)
        self.assertEqual(diagnostics.exclusions['drug not in allow-list'], 1)
        self.assertEqual(len(diagnostics), 0)

    def test_unknown_board_code_recorded_once(self):
        events, diagnostics = self._ingest([
            prescription_row('S99999999', 'SERTRALINE_TAB 50MG', 10, 202304),
            prescription_row('S99999999', 'FLUOXETINE_CAP 20MG', 20, 202305),
        ])
        self.assertEqual(len(events), 0)
        unresolved = diagnostics.of_kind('UNRESOLVED_JOIN')
        self.assertEqual(len(unresolved), 1)
        self.assertEqual(unresolved[0].rows, 2)
        self.assertEqual(unresolved[0].error.details['health_board_code'], 'S99999999')

    def test_blank_board_code_is_recorded(self):
        events, diagnostics = self._ingest([
            prescription_row('', 'SERTRALINE_TAB 50MG', 10, 202304),
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 20, 202304),
        ])
        self.assertEqual(len(events), 1)
        unresolved = diagnostics.of_kind('UNRESOLVED_JOIN')
        self.assertEqual(len(unresolved), 1)
        self.assertEqual(unresolved[0].rows, 1)
        self.assertIsNone(unresolved[0].error.details['health_board_code'])
        self.assertEqual(diagnostics.to_dict()['total_error_rows'], 1)

    def test_malformed_rows_counted_and_dropped(self):
        events, diagnostics = self._ingest([
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 'lots', 202304),
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', -5, 202304),
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 10, '2023-04'),
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', '1,200', 202304),
        ])
        self.assertEqual(events['paid_quantity'].tolist(), [1200])
        self.assertEqual(diagnostics.rows_dropped('MALFORMED_PRESCRIPTION_ROW'), 3)

    def test_file_missing_columns_is_skipped(self):
        path = write_prescriptions(
            self.workspace.exam_dir / 'broken.csv',
            [prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 10, 202304)],
            header=['HBT', 'BNFItemDescription', 'PaidDateMonth'])
        result = read_prescription_file(path, self.settings)
        self.assertEqual(result.missing_columns, ['paid_quantity'])

        diagnostics = Diagnostics()
        events = ingest_files([path], self.reference, self.settings, diagnostics)
        self.assertTrue(events.empty)
        self.assertEqual(diagnostics.rows_dropped('MALFORMED_PRESCRIPTION_ROW'), 1)

    def test_board_allow_list(self):
        events, diagnostics = self._ingest([
            prescription_row('S08000022', 'SERTRALINE_TAB 50MG', 10, 202304),
            prescription_row('S08000030', 'SERTRALINE_TAB 50MG', 10, 202304),
        ])
        self.assertEqual(events['health_board_name'].tolist(), ['Tayside'])
        self.assertEqual(diagnostics.exclusions['health board not in allow-list'], 1)

        open_settings = self.workspace.settings(health_board_allowlist=())
        events, _ = self._ingest([
            prescription_row('S08000022', 'SERTRALINE_TAB 50MG', 10, 202304),
        ], settings=open_settings)
        self.assertEqual(events['health_board_name'].tolist(), ['Highland'])

    def test_board_allow_list_accepts_prefixed_names(self):
        prefixed = self.workspace.settings(health_board_allowlist=('NHS Tayside', ' Lothian '))
        events, diagnostics = self._ingest([
            prescription_row('S08000030', 'SERTRALINE_TAB 50MG', 10, 202304),
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 10, 202304),
            prescription_row('S08000031', 'SERTRALINE_TAB 50MG', 10, 202304),
        ], settings=prefixed)
        self.assertEqual(sorted(events['health_board_name']), ['Lothian', 'Tayside'])
        self.assertEqual(diagnostics.exclusions['health board not in allow-list'], 1)

    def test_unclassified_month_excluded(self):
        events, diagnostics = self._ingest([
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 10, 202307),
        ])
        self.assertTrue(events.empty)
        self.assertEqual(diagnostics.exclusions['month outside academic periods'], 1)

    def test_season_tag_drops_other_season(self):
        events, diagnostics = self._ingest([
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 10, 202304),
            prescription_row('S08000024', 'SERTRALINE_TAB 50MG', 10, 202301),
        ], season=Season.EXAM)
        self.assertEqual(events['period_month'].tolist(), ['202304'])
        self.assertEqual(diagnostics.exclusions['month outside exam season'], 1)

    def test_parallel_read_matches_serial(self):
        self.workspace.populate_standard()
        paths = discover_files(self.workspace.exam_dir)
        serial = ingest_files(paths, self.reference, self.settings)
        parallel = ingest_files(paths, self.reference, self.workspace.settings(ingest_workers=4))
        self.assertEqual(serial.to_dict(orient='records'), parallel.to_dict(orient='records'))
        self.assertEqual(len(serial), 6)

    def test_discover_files_missing_directory(self):
        with self.assertRaises(ConfigurationError):
            discover_files(self.workspace.root / 'nowhere')

    def test_discover_files_sorted(self):
        self.workspace.populate_standard()
        names = [p.name for p in discover_files(self.workspace.non_exam_dir)]
        self.assertEqual(names, ['pitc202301.csv', 'pitc202309.csv'])


if __name__ == '__main__':
    unittest.main()
