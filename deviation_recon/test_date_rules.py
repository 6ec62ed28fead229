import unittest
from datetime import date, datetime, timedelta

from deviation_recon.date_rules import Completion, Remark, classify_completion, classify_deadline, days_late

NOW = date(2025, 6, 15)


class TestClassifyDeadline(unittest.TestCase):
    def test_boundaries(self) -> None:
        self.assertEqual(classify_deadline(NOW - timedelta(days=1), NOW), Remark.OVERDUE)
        self.assertEqual(classify_deadline(NOW, datetime(2025, 6, 15, 9, 30)), Remark.OVERDUE)
        self.assertEqual(classify_deadline(NOW + timedelta(days=31), NOW), Remark.DUE_SOON)
        self.assertEqual(classify_deadline(NOW + timedelta(days=32), NOW), Remark.NO_ACTION_NEEDED)

    def test_deadline_is_start_of_planned_day(self) -> None:
        self.assertEqual(classify_deadline(date(2025, 6, 15), datetime(2025, 6, 15, 0, 0, 1)), Remark.OVERDUE)
        self.assertEqual(classify_deadline(date(2025, 6, 16), datetime(2025, 6, 15, 23, 59)), Remark.DUE_SOON)
        self.assertEqual(classify_deadline(date(2025, 7, 16), datetime(2025, 6, 15, 9, 30)), Remark.DUE_SOON)
        self.assertEqual(classify_deadline(date(2025, 7, 17), datetime(2025, 6, 15, 9, 30)), Remark.NO_ACTION_NEEDED)

    def test_no_date(self) -> None:
        self.assertEqual(classify_deadline(None, NOW), Remark.NO_DATE)

    def test_now_with_time_of_day(self) -> None:
        now = datetime(2025, 6, 15, 16, 45)
        self.assertEqual(classify_deadline(date(2025, 6, 14), now), Remark.OVERDUE)
        self.assertEqual(classify_deadline(date(2025, 7, 16), now), Remark.DUE_SOON)

    def test_total_over_a_range(self) -> None:
        for offset in range(-400, 400, 7):
            self.assertIn(classify_deadline(NOW + timedelta(days=offset), NOW), list(Remark))


class TestClassifyCompletion(unittest.TestCase):
    def test_same_day_is_on_time(self) -> None:
        self.assertEqual(classify_completion(NOW, NOW), Completion.ON_TIME)

    def test_early_and_late(self) -> None:
        self.assertEqual(classify_completion(NOW, NOW - timedelta(days=3)), Completion.ON_TIME)
        self.assertEqual(classify_completion(NOW, NOW + timedelta(days=1)), Completion.LATE)

    def test_missing_dates(self) -> None:
        self.assertEqual(classify_completion(None, NOW), Completion.MISSING_DATES)
        self.assertEqual(classify_completion(NOW, None), Completion.MISSING_DATES)
        self.assertEqual(classify_completion(None, None), Completion.MISSING_DATES)

    def test_days_late(self) -> None:
        self.assertEqual(days_late(date(2025, 1, 1), date(2025, 1, 11)), 10)


if __name__ == "__main__":
    unittest.main()
