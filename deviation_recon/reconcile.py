"""
Reconciliation Orchestrator
Purpose: One idempotent run over the three source workbooks

Flow:
1. Station label (session, else dashboard cell)
2. Overview ingestion (deviations, concepts, action holders)
3. Statistics ingestion + aggregation
4. Database transcription (when a database workbook is supplied)

All run state lives in the ReconcileSession passed in by the caller.
"""

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, Dict, List, Optional

from loguru import logger

from deviation_recon.aggregation import StatisticsResult, aggregate
from deviation_recon.config import get_default_config
from deviation_recon.errors import ReconciliationError
from deviation_recon.ingestion import OverviewResult, ingest_overview, ingest_statistics
from deviation_recon.load_files import SourceWorkbook, read_station_label
from deviation_recon.transcription import TranscriptionResult, transcribe

MAX_LOG_ENTRIES = 200


@dataclass(frozen=True)
class LogEntry:
    timestamp: str
    message: str
    level: str = "info"


class ReconcileSession:
    """Per-request context: station label, reference time, behaviour flags
    and a bounded log of what happened"""

    def __init__(self, station: str = "", now: Optional[datetime] = None, require_action_holder: bool = True):
        self.station = station or ""
        self.now = now or datetime.now()
        self.require_action_holder = require_action_holder
        self.entries: Deque[LogEntry] = deque(maxlen=MAX_LOG_ENTRIES)

    @classmethod
    def from_config(cls, config: Dict, station: Optional[str] = None,
                    now: Optional[datetime] = None) -> "ReconcileSession":
        return cls(
            station=station if station is not None else config["project"].get("station", ""),
            now=now,
            require_action_holder=bool(config["overview"].get("require_action_holder", True)),
        )

    def log(self, message: str, level: str = "info") -> LogEntry:
        entry = LogEntry(datetime.now().strftime("%Y-%m-%d %H:%M:%S"), message, level)
        self.entries.append(entry)
        if level == "error":
            logger.error(message)
        else:
            logger.info(message)
        return entry

    @property
    def log_entries(self) -> List[LogEntry]:
        return list(self.entries)


@dataclass(frozen=True)
class ReconcileInputs:
    overview: SourceWorkbook
    database: Optional[SourceWorkbook] = None
    dashboard: Optional[SourceWorkbook] = None


@dataclass
class ReconcileResult:
    station: str
    overview: OverviewResult
    statistics: Optional[StatisticsResult] = None
    statistics_error: Optional[ReconciliationError] = None
    transcription: Optional[TranscriptionResult] = None

    @property
    def deviations(self):
        return self.overview.deviations

    @property
    def concepts(self):
        return self.overview.concepts

    @property
    def action_holders(self):
        return self.overview.action_holders


def build_timestamp(now: datetime) -> str:
    return now.strftime("%Y-%m-%d_%H-%M-%S")


def reconcile(inputs: ReconcileInputs, session: ReconcileSession, config: Optional[Dict] = None) -> ReconcileResult:
    """
    Run every step against the given inputs and return a fresh result.

    Overview and database failures propagate; a statistics failure is logged
    and kept on the result so the overview output is still usable.
    """
    config = config or get_default_config()

    logger.info("[STEP 1/4] Resolving station label...")
    station = session.station
    if not station.strip() and inputs.dashboard is not None:
        station = read_station_label(
            inputs.dashboard,
            config["dashboard"]["sheet_name"],
            config["dashboard"]["station_cell"],
        )
        if station:
            session.station = station
            session.log("Station filled from dashboard.")

    logger.info("[STEP 2/4] Ingesting overview...")
    overview_sheet = inputs.overview.sheet(config["overview"].get("sheet_name"))

    session.log("Data retrieval started.")
    try:
        overview = ingest_overview(overview_sheet, session.now, session.require_action_holder)
    except ReconciliationError as e:
        session.log(str(e), "error")
        raise
    session.log("Data retrieval finished.")

    result = ReconcileResult(station=station, overview=overview)

    logger.info("[STEP 3/4] Computing statistics...")
    session.log("Statistics started.")
    try:
        result.statistics = aggregate(ingest_statistics(overview_sheet))
    except ReconciliationError as e:
        result.statistics_error = e
        session.log(str(e), "error")
    else:
        session.log("Statistics ready.")
        missing = result.statistics.summary.missing_dates
        if missing > 0:
            session.log(f"{missing} rows are missing Geplande datum klaar or Datum klaar.", "error")

    if inputs.database is not None:
        logger.info("[STEP 4/4] Transcribing into database...")
        target = inputs.database.sheet(config["database"].get("sheet_name"))
        try:
            result.transcription = transcribe(
                overview_sheet,
                target,
                station,
                session.now,
                header_row=int(config["database"].get("header_row", 2)),
            )
        except ReconciliationError as e:
            session.log(str(e), "error")
            raise
        session.log(f"Database sheet '{target.name}' updated.")

    return result
