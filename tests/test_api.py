import unittest

from examseason.app_factory import create_app
from tests.fixtures import Workspace, prescription_row


class TestReportAPI(unittest.TestCase):

    def setUp(self):
        self.workspace = Workspace()
        self.workspace.populate_standard()
        self.app = create_app('testing', overrides=self.workspace.config_overrides())
        self.client = self.app.test_client()

    def tearDown(self):
        self.workspace.cleanup()

    def test_health(self):
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['status'], 'healthy')
        self.assertEqual(response.headers['X-Content-Type-Options'], 'nosniff')

    def test_status_before_first_run(self):
        data = self.client.get('/status').get_json()['data']
        self.assertFalse(data['ready'])
        self.assertEqual(data['young_adult_ages'], [17, 25])

    def test_comparison(self):
        response = self.client.get('/api/report/comparison')
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body['success'])
        rows = body['data']['rows']
        self.assertEqual([r['health_board_name'] for r in rows],
                         ['Greater Glasgow and Clyde', 'Tayside', 'Lothian'])
        self.assertAlmostEqual(rows[1]['change_percent'], 50.0)

    def test_missing_baseline_serializes_as_null(self):
        self.workspace.add_exam_file('pitc202305.csv', [
            prescription_row('S08000022', 'SERTRALINE_TAB 50MG', 10, 202305),
        ])
        overrides = self.workspace.config_overrides()
        overrides['HEALTH_BOARD_ALLOWLIST'] = ()
        client = create_app('testing', overrides=overrides).test_client()
        # Highland only has exam-season prescriptions
        rows = client.get('/api/report/comparison').get_json()['data']['rows']
        highland = [r for r in rows if r['health_board_name'] == 'Highland'][0]
        self.assertIsNone(highland['per_capita_non_exam'])
        self.assertIsNone(highland['change_percent'])

    def test_season_tables(self):
        body = self.client.get('/api/report/seasons/exam').get_json()
        self.assertEqual(body['data']['row_count'], 3)
        self.assertIn('SERTRALINE', body['data']['columns'])
        self.assertEqual(self.client.get('/api/report/seasons/non_exam').status_code, 200)

    def test_unknown_season_is_rejected(self):
        response = self.client.get('/api/report/seasons/summer')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error']['code'], 'VALIDATION_ERROR')

    def test_periods_drugs_summary_diagnostics(self):
        periods = self.client.get('/api/report/periods').get_json()['data']
        self.assertEqual(periods['row_count'], 10)

        drugs = self.client.get('/api/report/drugs').get_json()['data']
        self.assertEqual(drugs['rows'][-1]['drug_name'], 'ALL')

        summary = self.client.get('/api/report/summary').get_json()['data']
        self.assertEqual(summary['boards'], 3)

        diagnostics = self.client.get('/api/report/diagnostics').get_json()['data']
        self.assertEqual(diagnostics['exclusions']['drug not in allow-list'], 1)

    def test_refresh(self):
        response = self.client.post('/api/report/refresh', json={'write_reports': True})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()['data']
        self.assertTrue(data['status']['ready'])
        self.assertIn('summary', data['reports'])
        self.assertTrue((self.workspace.reports_dir / 'season_comparison.csv').exists())

    def test_refresh_rejects_unknown_fields(self):
        response = self.client.post('/api/report/refresh', json={'rebuild': True})
        self.assertEqual(response.status_code, 400)

    def test_refresh_requires_json_body(self):
        response = self.client.post('/api/report/refresh', data='write_reports', content_type='text/plain')
        self.assertEqual(response.status_code, 400)

    def test_classify_period(self):
        data = self.client.get('/api/periods/202311').get_json()['data']
        self.assertEqual(data['period'], 'Semester 2 Finals')
        self.assertEqual(data['season'], 'exam')

        data = self.client.get('/api/periods/202307').get_json()['data']
        self.assertEqual(data['period'], 'Unclassified')
        self.assertIsNone(data['season'])

        self.assertEqual(self.client.get('/api/periods/2023-11').status_code, 400)

    def test_not_found(self):
        response = self.client.get('/api/report/nothing')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error']['code'], 'NOT_FOUND')

    def test_cli_classify_month(self):
        runner = self.app.test_cli_runner()
        result = runner.invoke(args=['classify-month', '202304'])
        self.assertIn('Semester 1 Finals (exam)', result.output)


if __name__ == '__main__':
    unittest.main()
