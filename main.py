#!/usr/bin/env python3
"""
main.py - Deviation Reconciliation Engine
Usage:
  python main.py --overview OVERZICHT.xlsx [--database DATABASE.xlsx]
                 [--dashboard DASHBOARD.xlsx] [--station LABEL]
                 [--config config_deviations.yaml] [--output-folder DIR]
                 [--legacy-action-holder]

Outputs (in the output folder):
  - Afwijkingen_dashboard_export_<timestamp>.xlsx
  - <database name> with the overview transcribed (when --database is given)
  - logs/deviation_recon.log

This version:
 - Classifies active measures by deadline (overdue / due within 31 days)
 - Lists concept deviations and action holders
 - Computes on-time completion statistics with a traffic light and
   per-discipline lateness
 - Copies the overview into the database sheet by column label
"""
from __future__ import annotations

import argparse
import sys
import warnings
from pathlib import Path

from loguru import logger

from deviation_recon.config import DEFAULT_CONFIG, load_config
from deviation_recon.errors import ReconciliationError
from deviation_recon.generate_report import ReportGenerator
from deviation_recon.load_files import read_workbook, require_workbook_database, write_transcribed_sheet
from deviation_recon.logging_setup import setup_logger
from deviation_recon.reconcile import ReconcileInputs, ReconcileSession, build_timestamp, reconcile

warnings.filterwarnings("ignore")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Deviation reconciliation and dashboard export")
    parser.add_argument("--overview", required=True, help="overview export (xlsx or csv)")
    parser.add_argument("--database", help="database workbook to update")
    parser.add_argument("--dashboard", help="previous dashboard export (station label source)")
    parser.add_argument("--station", help="station / project label")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="path to YAML config")
    parser.add_argument("--output-folder", help="folder for generated files")
    parser.add_argument("--legacy-action-holder", action="store_true",
                        help="do not require an action holder for overdue-track measures")
    return parser.parse_args(argv)


def log_statistics(result) -> None:
    if result.statistics is None:
        logger.warning(f"⚠️ No statistics: {result.statistics_error}")
        return
    s = result.statistics.summary
    logger.info(f"  Handled measures:  {s.total_filtered:,}")
    logger.info(f"  With both dates:   {s.valid_dates:,}")
    logger.info(f"  On time:           {s.on_time_count:,} ({s.on_time_percent_display}%)")
    logger.info(f"  Late:              {s.overdue_count:,} ({s.overdue_percent_display}%)")
    logger.info(f"  Missing dates:     {s.missing_dates:,}")
    logger.info(f"  Traffic light:     {s.traffic.label}")
    for d in result.statistics.disciplines:
        logger.info(f"    {d.discipline}: {d.average_days:.1f} days late on average ({d.count}x)")


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = load_config(args.config)
    if args.legacy_action_holder:
        cfg["overview"]["require_action_holder"] = False
    if args.output_folder:
        cfg["output"]["folder"] = args.output_folder
    setup_logger(cfg["logging"].get("file"), cfg["logging"].get("level", "INFO"))

    session = ReconcileSession.from_config(cfg, station=args.station)
    logger.info("=" * 70)
    logger.info(f"🚀 DEVIATION RECONCILIATION - {session.now.strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("=" * 70)

    try:
        if args.database:
            require_workbook_database(args.database)
        database_bytes = Path(args.database).read_bytes() if args.database else None
        inputs = ReconcileInputs(
            overview=read_workbook(args.overview),
            database=read_workbook(database_bytes, Path(args.database).name) if args.database else None,
            dashboard=read_workbook(args.dashboard) if args.dashboard else None,
        )
        result = reconcile(inputs, session, cfg)

        output_folder = Path(cfg["output"]["folder"])
        timestamp = build_timestamp(session.now)
        updated = None
        if result.transcription is not None:
            # built before anything is written so a failure leaves no partial output
            updated = write_transcribed_sheet(
                database_bytes,
                result.transcription.sheet.name,
                result.transcription.changes,
                result.transcription.sheet.extent,
                keep_vba=Path(args.database).suffix.lower() == ".xlsm",
            )

        if result.deviations or result.concepts or result.action_holders:
            generator = ReportGenerator(str(output_folder), cfg["output"]["report_prefix"])
            generator.generate_report(result.overview, result.station, session.now, timestamp)
        else:
            session.log("No data to export.", "error")

        if updated is not None:
            output_folder.mkdir(parents=True, exist_ok=True)
            db_path = output_folder / Path(args.database).name
            db_path.write_bytes(updated)
            logger.info(f"📊 Database written: {db_path}")
    except ReconciliationError as e:
        logger.error(f"❌ {e.reason}: {e}")
        return 2
    except OSError as e:
        logger.error(f"❌ {e}")
        return 2

    logger.info(f"  Overdue-track: {len(result.deviations):,} | Concept: {len(result.concepts):,} "
                f"| Action holders: {len(result.action_holders):,}")
    log_statistics(result)
    logger.info("=" * 70)
    logger.info("✅ RECONCILIATION COMPLETE")
    logger.info("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
