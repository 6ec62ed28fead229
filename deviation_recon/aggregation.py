"""
Aggregation Engine
Purpose: Summary counters, on-time percentages, traffic light and
per-discipline lateness from classified statistics records
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

import pandas as pd
from loguru import logger

from deviation_recon.date_rules import Completion
from deviation_recon.ingestion import StatisticsRecord

RED_MAX_PERCENT = 35
GREEN_MIN_PERCENT = 75


class TrafficLight(Enum):
    RED = "red"
    ORANGE = "orange"
    GREEN = "green"

    @property
    def label(self) -> str:
        return {"red": "Rood", "orange": "Oranje", "green": "Groen"}[self.value]


def traffic_light(on_time_percent: float) -> TrafficLight:
    if on_time_percent <= RED_MAX_PERCENT:
        return TrafficLight.RED
    if on_time_percent < GREEN_MIN_PERCENT:
        return TrafficLight.ORANGE
    return TrafficLight.GREEN


def percent(count: int, total: int) -> float:
    return count / total * 100 if total else 0.0


@dataclass(frozen=True)
class SummaryStatistics:
    total_filtered: int
    valid_dates: int
    overdue_count: int
    missing_dates: int
    on_time_percent: float
    overdue_percent: float
    traffic: TrafficLight

    @property
    def on_time_count(self) -> int:
        return self.valid_dates - self.overdue_count

    @property
    def on_time_percent_display(self) -> int:
        return int(round(self.on_time_percent))

    @property
    def overdue_percent_display(self) -> int:
        return int(round(self.overdue_percent))


@dataclass(frozen=True)
class DisciplineStat:
    discipline: str
    total_days: int
    count: int

    @property
    def average_days(self) -> float:
        return self.total_days / self.count if self.count else 0.0


@dataclass
class StatisticsResult:
    summary: SummaryStatistics
    disciplines: List[DisciplineStat] = field(default_factory=list)
    on_time: List[StatisticsRecord] = field(default_factory=list)
    late: List[StatisticsRecord] = field(default_factory=list)
    missing: List[StatisticsRecord] = field(default_factory=list)


def summarize(records: List[StatisticsRecord]) -> SummaryStatistics:
    total = len(records)
    missing = sum(1 for r in records if r.completion == Completion.MISSING_DATES)
    overdue = sum(1 for r in records if r.completion == Completion.LATE)
    valid = total - missing
    on_time_pct = percent(valid - overdue, valid)
    return SummaryStatistics(
        total_filtered=total,
        valid_dates=valid,
        overdue_count=overdue,
        missing_dates=missing,
        on_time_percent=on_time_pct,
        overdue_percent=percent(overdue, valid),
        traffic=traffic_light(on_time_pct),
    )


def discipline_summary(records: List[StatisticsRecord]) -> List[DisciplineStat]:
    """Late records grouped by causing discipline, highest average delay first"""
    late = [
        {"discipline": r.discipline, "days_late": max(r.days_late or 0, 0)}
        for r in records
        if r.completion == Completion.LATE and r.discipline
    ]
    if not late:
        return []
    df = pd.DataFrame(late)
    grouped = df.groupby("discipline", sort=False).agg(
        total_days=pd.NamedAgg(column="days_late", aggfunc="sum"),
        occurrences=pd.NamedAgg(column="days_late", aggfunc="count"),
    ).reset_index()
    grouped["average_days"] = grouped["total_days"] / grouped["occurrences"]
    grouped = grouped.sort_values("average_days", ascending=False, kind="stable")
    return [
        DisciplineStat(str(row.discipline), int(row.total_days), int(row.occurrences))
        for row in grouped.itertuples(index=False)
    ]


def aggregate(records: List[StatisticsRecord]) -> StatisticsResult:
    summary = summarize(records)
    result = StatisticsResult(
        summary=summary,
        disciplines=discipline_summary(records),
        on_time=[r for r in records if r.completion == Completion.ON_TIME],
        late=[r for r in records if r.completion == Completion.LATE],
        missing=[r for r in records if r.completion == Completion.MISSING_DATES],
    )
    logger.info(
        f"📊 {summary.total_filtered:,} handled | {summary.valid_dates:,} with dates | "
        f"{summary.on_time_percent:.1f}% on time | traffic light {summary.traffic.label}"
    )
    return result
