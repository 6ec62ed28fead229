"""
Table Ingestion
Purpose: Turn the overview grid into classified records
- Overdue-track deviation records, concept records and the action holder set
- Statistics records for handled measures (on time / late / missing dates)
Every call builds its outputs from scratch; nothing is shared between calls.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from loguru import logger

from deviation_recon.cell_values import collation_key, coerce_date
from deviation_recon.date_rules import Completion, Remark, classify_completion, classify_deadline, days_late
from deviation_recon.header_index import HeaderIndex, normalize_label
from deviation_recon.errors import EmptyInput
from deviation_recon.load_files import Sheet

COL_CODE = "Code"
COL_TITLE = "Titel"
COL_MEASURE_CODE = "Code (2)"
COL_MEASURE = "Maatregel"
COL_MEASURE_STATUS = "Status (2)"
COL_STATUS = "Status"
COL_ACTION_HOLDER = "Actiehouder"
COL_AUTHOR = "Opsteller"
COL_PLANNED = "Geplande datum klaar"
COL_ASSESSMENT = "Maatregelen beoordeling"
COL_DONE = "Datum klaar"
COL_DISCIPLINE = "Veroorzakende Discipline"

OVERVIEW_COLUMNS = [
    COL_CODE, COL_TITLE, COL_MEASURE_CODE, COL_MEASURE, COL_MEASURE_STATUS,
    COL_STATUS, COL_ACTION_HOLDER, COL_AUTHOR, COL_PLANNED,
]
STATISTICS_COLUMNS = [COL_ASSESSMENT, COL_MEASURE_STATUS, COL_PLANNED, COL_DONE]
STATISTICS_OPTIONAL_COLUMNS = [COL_CODE, COL_TITLE, COL_MEASURE, COL_ACTION_HOLDER, COL_DISCIPLINE]

STATUS_ACTIVE = "Vigerend"
STATUS_CONCEPT = "Concept"
ASSESSMENT_MEASURES_NEEDED = "Maatregelen nodig"
STATUS_HANDLED = "Afgehandeld"

OVERVIEW_PASS = "overview"
STATISTICS_PASS = "statistics"


@dataclass(frozen=True)
class DeviationRecord:
    code: str
    title: str
    measure_code: str
    measure: str
    status: str
    action_holder: str
    planned_date: Optional[date]
    remark: Remark


@dataclass(frozen=True)
class ConceptRecord:
    code: str
    title: str
    author: str
    planned_date: Optional[date]
    status: str = STATUS_CONCEPT


@dataclass(frozen=True)
class StatisticsRecord:
    code: str
    title: str
    measure: str
    action_holder: str
    planned_date: Optional[date]
    done_date: Optional[date]
    completion: Completion
    discipline: str = ""
    days_late: Optional[int] = None


@dataclass
class OverviewResult:
    deviations: List[DeviationRecord] = field(default_factory=list)
    concepts: List[ConceptRecord] = field(default_factory=list)
    action_holders: List[str] = field(default_factory=list)


def _data_rows(sheet: Sheet, pass_name: str) -> List[int]:
    """Indexes of non-blank rows below the header (row 0)"""
    if not sheet.rows:
        raise EmptyInput(pass_name)
    return [i for i in range(1, len(sheet.rows)) if any(not c.is_blank for c in sheet.rows[i])]


def sort_by_code(records: list) -> list:
    # stable sort on the code rendered as text ("A10" < "A2")
    return sorted(records, key=lambda r: collation_key(str(r.code)))


def ingest_overview(sheet: Sheet, now: Union[date, datetime], require_action_holder: bool = True) -> OverviewResult:
    """
    Overdue-track deviations, concept records and the set of action holders.

    A measure counts as overdue-track when its status is active and its deadline
    needs attention; with `require_action_holder` (the later behaviour) it must
    also name an action holder.
    """
    logger.info(f"Ingesting overview sheet '{sheet.name}'...")
    if not sheet.rows:
        raise EmptyInput(OVERVIEW_PASS)
    index = HeaderIndex(sheet.rows[0])
    cols = index.require(OVERVIEW_COLUMNS, OVERVIEW_PASS)
    rows = _data_rows(sheet, OVERVIEW_PASS)
    if not rows:
        raise EmptyInput(OVERVIEW_PASS)

    def text(r: int, label: str) -> str:
        return sheet.cell(r, cols[label]).as_text().strip()

    deviations = []
    concepts = []
    holders = set()
    for r in rows:
        status = text(r, COL_MEASURE_STATUS)
        status_single = text(r, COL_STATUS)
        planned = coerce_date(sheet.cell(r, cols[COL_PLANNED]))
        remark = classify_deadline(planned, now)
        holder = text(r, COL_ACTION_HOLDER)

        if status == STATUS_ACTIVE and remark != Remark.NO_ACTION_NEEDED and (holder or not require_action_holder):
            deviations.append(DeviationRecord(
                code=text(r, COL_CODE),
                title=text(r, COL_TITLE),
                measure_code=text(r, COL_MEASURE_CODE),
                measure=text(r, COL_MEASURE),
                status=status,
                action_holder=holder,
                planned_date=planned,
                remark=remark,
            ))
            if holder:
                holders.add(holder)

        if status_single == STATUS_CONCEPT:
            concepts.append(ConceptRecord(
                code=text(r, COL_CODE),
                title=text(r, COL_TITLE),
                author=text(r, COL_AUTHOR),
                planned_date=planned,
            ))

    result = OverviewResult(
        deviations=sort_by_code(deviations),
        concepts=sort_by_code(concepts),
        action_holders=sorted(holders, key=collation_key),
    )
    logger.info(
        f"✅ Overview: {len(rows):,} rows -> {len(result.deviations):,} overdue-track, "
        f"{len(result.concepts):,} concept, {len(result.action_holders):,} action holders"
    )
    return result


def ingest_statistics(sheet: Sheet) -> List[StatisticsRecord]:
    """Handled measures that needed action, each bucketed by completion"""
    logger.info(f"Ingesting statistics from sheet '{sheet.name}'...")
    if not sheet.rows:
        raise EmptyInput(STATISTICS_PASS)
    index = HeaderIndex(sheet.rows[0])
    cols: Dict[str, Optional[int]] = index.require(STATISTICS_COLUMNS, STATISTICS_PASS)
    for label in STATISTICS_OPTIONAL_COLUMNS:
        cols[label] = index.lookup(label)
    rows = _data_rows(sheet, STATISTICS_PASS)
    if not rows:
        raise EmptyInput(STATISTICS_PASS)

    def text(r: int, label: str) -> str:
        return sheet.cell(r, cols[label]).as_text().strip()

    wanted_assessment = normalize_label(ASSESSMENT_MEASURES_NEEDED)
    wanted_status = normalize_label(STATUS_HANDLED)
    records = []
    for r in rows:
        if normalize_label(text(r, COL_ASSESSMENT)) != wanted_assessment:
            continue
        if normalize_label(text(r, COL_MEASURE_STATUS)) != wanted_status:
            continue
        planned = coerce_date(sheet.cell(r, cols[COL_PLANNED]))
        done = coerce_date(sheet.cell(r, cols[COL_DONE]))
        completion = classify_completion(planned, done)
        late_by = days_late(planned, done) if completion == Completion.LATE else None
        records.append(StatisticsRecord(
            code=text(r, COL_CODE),
            title=text(r, COL_TITLE),
            measure=text(r, COL_MEASURE),
            action_holder=text(r, COL_ACTION_HOLDER),
            planned_date=planned,
            done_date=done,
            completion=completion,
            discipline=text(r, COL_DISCIPLINE),
            days_late=late_by,
        ))

    logger.info(f"✅ Statistics: {len(rows):,} rows -> {len(records):,} handled measures")
    return records
