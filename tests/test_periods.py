import unittest

import pandas as pd

from examseason.pipeline.periods import (
    ACADEMIC_PERIODS,
    Period,
    Season,
    classify,
    classify_stamp,
    parse_period_month,
    season_of,
    tag_periods,
)


class TestClassify(unittest.TestCase):

    def test_every_month_has_exactly_one_tag(self):
        """All twelve months classify to one of the five tags, deterministically."""
        expected = {
            1: Period.SEMESTER_2_START, 2: Period.SEMESTER_2_START,
            3: Period.UNCLASSIFIED,
            4: Period.SEMESTER_1_FINALS, 5: Period.SEMESTER_1_FINALS,
            6: Period.UNCLASSIFIED, 7: Period.UNCLASSIFIED, 8: Period.UNCLASSIFIED,
            9: Period.SEMESTER_1_START, 10: Period.SEMESTER_1_START,
            11: Period.SEMESTER_2_FINALS, 12: Period.SEMESTER_2_FINALS,
        }
        for month in range(1, 13):
            first = classify(month)
            self.assertIn(first, list(Period))
            self.assertEqual(first, expected[month])
            self.assertEqual(classify(month), first)

    def test_invalid_month_raises(self):
        for month in (0, 13, -1):
            with self.assertRaises(ValueError):
                classify(month)

    def test_custom_calendar(self):
        calendar = {'Semester 1 Finals': (12, 1), 'Semester 1 Start': (9,)}
        self.assertEqual(classify(1, calendar), Period.SEMESTER_1_FINALS)
        self.assertEqual(classify(4, calendar), Period.UNCLASSIFIED)

    def test_season_of(self):
        self.assertEqual(season_of(Period.SEMESTER_1_FINALS), Season.EXAM)
        self.assertEqual(season_of(Period.SEMESTER_2_FINALS), Season.EXAM)
        self.assertEqual(season_of(Period.SEMESTER_1_START), Season.NON_EXAM)
        self.assertEqual(season_of(Period.SEMESTER_2_START), Season.NON_EXAM)
        self.assertIsNone(season_of(Period.UNCLASSIFIED))
        self.assertEqual(len(ACADEMIC_PERIODS), 4)


class TestStamps(unittest.TestCase):

    def test_parse_period_month(self):
        self.assertEqual(parse_period_month('202304'), (2023, 4))
        self.assertEqual(parse_period_month(202312), (2023, 12))
        self.assertEqual(parse_period_month('202301.0'), (2023, 1))

    def test_parse_rejects_bad_stamps(self):
        for stamp in ('2023-04', '20234', '202313', '202300', 'abc', ''):
            with self.assertRaises(ValueError):
                parse_period_month(stamp)

    def test_classify_stamp(self):
        self.assertEqual(classify_stamp('202305'), Period.SEMESTER_1_FINALS)
        self.assertEqual(classify_stamp('202407'), Period.UNCLASSIFIED)

    def test_tag_periods_adds_labels_without_mutating(self):
        frame = pd.DataFrame({'period_month': ['202304', '202301', '202307']})
        tagged = tag_periods(frame)
        self.assertNotIn('period', frame.columns)
        self.assertEqual(tagged['period'].tolist(),
                         ['Semester 1 Finals', 'Semester 2 Start', 'Unclassified'])
        self.assertEqual(tagged['season'].tolist()[:2], ['exam', 'non-exam'])
        self.assertIsNone(tagged['season'].tolist()[2])
        self.assertEqual(tagged['season'].dtype, object)

    def test_tag_periods_all_unclassified(self):
        tagged = tag_periods(pd.DataFrame({'period_month': ['202306', '202307']}))
        self.assertEqual(tagged['season'].tolist(), [None, None])


if __name__ == '__main__':
    unittest.main()
