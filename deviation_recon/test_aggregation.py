import unittest
from datetime import date

from deviation_recon.aggregation import (
    TrafficLight,
    aggregate,
    discipline_summary,
    percent,
    summarize,
    traffic_light,
)
from deviation_recon.date_rules import Completion
from deviation_recon.ingestion import StatisticsRecord


def record(completion, discipline="", days_late=None) -> StatisticsRecord:
    return StatisticsRecord(
        code="X", title="", measure="", action_holder="",
        planned_date=date(2025, 1, 1), done_date=date(2025, 1, 1),
        completion=completion, discipline=discipline, days_late=days_late,
    )


class TestTrafficLight(unittest.TestCase):
    def test_boundaries(self) -> None:
        self.assertEqual(traffic_light(0), TrafficLight.RED)
        self.assertEqual(traffic_light(35), TrafficLight.RED)
        self.assertEqual(traffic_light(35.0001), TrafficLight.ORANGE)
        self.assertEqual(traffic_light(74.999), TrafficLight.ORANGE)
        self.assertEqual(traffic_light(75), TrafficLight.GREEN)
        self.assertEqual(traffic_light(100), TrafficLight.GREEN)

    def test_labels(self) -> None:
        self.assertEqual(TrafficLight.ORANGE.label, "Oranje")

    def test_percent_without_total(self) -> None:
        self.assertEqual(percent(0, 0), 0.0)


class TestSummary(unittest.TestCase):
    def test_counts(self) -> None:
        records = (
            [record(Completion.ON_TIME)] * 3
            + [record(Completion.LATE, "Civiel", 4)]
            + [record(Completion.MISSING_DATES)] * 2
        )
        s = summarize(records)
        self.assertEqual(s.total_filtered, 6)
        self.assertEqual(s.valid_dates, 4)
        self.assertEqual(s.overdue_count, 1)
        self.assertEqual(s.missing_dates, 2)
        self.assertEqual(s.on_time_count, 3)
        self.assertAlmostEqual(s.on_time_percent, 75.0)
        self.assertAlmostEqual(s.overdue_percent, 25.0)
        self.assertEqual(s.traffic, TrafficLight.GREEN)

    def test_no_valid_dates_is_red(self) -> None:
        s = summarize([record(Completion.MISSING_DATES)])
        self.assertEqual(s.valid_dates, 0)
        self.assertEqual(s.on_time_percent, 0.0)
        self.assertEqual(s.traffic, TrafficLight.RED)

    def test_empty(self) -> None:
        s = summarize([])
        self.assertEqual(s.total_filtered, 0)
        self.assertEqual(s.traffic, TrafficLight.RED)

    def test_display_rounding(self) -> None:
        records = [record(Completion.ON_TIME)] * 2 + [record(Completion.LATE, "A", 1)]
        s = summarize(records)
        self.assertEqual(s.on_time_percent_display, 67)
        self.assertEqual(s.overdue_percent_display, 33)


class TestDisciplines(unittest.TestCase):
    def test_sorted_by_average_descending(self) -> None:
        records = [
            record(Completion.LATE, "Civiel", 2),
            record(Completion.LATE, "Elektro", 10),
            record(Completion.LATE, "Civiel", 4),
            record(Completion.LATE, "", 50),
            record(Completion.ON_TIME, "Elektro"),
        ]
        stats = discipline_summary(records)
        self.assertEqual([d.discipline for d in stats], ["Elektro", "Civiel"])
        self.assertEqual((stats[1].total_days, stats[1].count), (6, 2))
        self.assertAlmostEqual(stats[1].average_days, 3.0)

    def test_ties_keep_first_appearance(self) -> None:
        records = [
            record(Completion.LATE, "Werktuig", 5),
            record(Completion.LATE, "Bouw", 5),
        ]
        self.assertEqual([d.discipline for d in discipline_summary(records)], ["Werktuig", "Bouw"])

    def test_no_late_records(self) -> None:
        self.assertEqual(discipline_summary([record(Completion.ON_TIME, "Civiel")]), [])

    def test_recomputation_is_identical(self) -> None:
        records = [record(Completion.ON_TIME), record(Completion.LATE, "A", 3), record(Completion.LATE, "B", 7)]
        self.assertEqual(summarize(records), summarize(records))
        self.assertEqual(discipline_summary(records), discipline_summary(records))

    def test_aggregate_partitions_records(self) -> None:
        records = [record(Completion.ON_TIME), record(Completion.LATE, "A", 3), record(Completion.MISSING_DATES)]
        result = aggregate(records)
        self.assertEqual((len(result.on_time), len(result.late), len(result.missing)), (1, 1, 1))
        self.assertEqual(result.disciplines[0].discipline, "A")


if __name__ == "__main__":
    unittest.main()
