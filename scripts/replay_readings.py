#!/usr/bin/env python3
"""Replay recorded battery readings through a fresh calibrator.

Reads a CSV with a header row and the columns ``timestamp`` (epoch ms),
``percent``, ``charge_uah`` and optionally ``charging``, feeds every row
through an in-memory :class:`~pybatmon.BatteryMonitor` using the recorded
timestamps as its clock, and prints the calibrated percent next to the
reported one.

Usage
-----
::

    python scripts/replay_readings.py readings.csv
    python scripts/replay_readings.py readings.csv --precise --summary

Options::

    --precise        Record the precise series as well
    --summary        Print the usage summary after the replay
    --verbose, -v    Enable debug logging
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pybatmon import BatteryMonitor, MonitorConfig, SensorReading  # noqa: E402
from pybatmon.ingestion.normalize import safe_int  # noqa: E402
from pybatmon.store.document import MemoryBackend  # noqa: E402


class _ReplayClock:
    """Clock that returns the timestamp of the row being replayed."""

    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay battery readings through the calibrator")
    parser.add_argument("csv_file", help="CSV with timestamp, percent, charge_uah[, charging] columns")
    parser.add_argument("--precise", action="store_true", help="Record the precise series as well")
    parser.add_argument("--summary", action="store_true", help="Print the usage summary after the replay")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    clock = _ReplayClock()
    monitor = BatteryMonitor(MonitorConfig(precise_enabled=args.precise), backend=MemoryBackend(), clock=clock)

    print(f"{'timestamp':>14}  {'system':>6}  {'calibrated':>10}  {'capacity':>9}")
    with open(args.csv_file, newline="", encoding="utf-8") as handle:
        for line_no, row in enumerate(csv.DictReader(handle), start=2):
            timestamp = safe_int(row.get("timestamp"))
            if timestamp is None:
                print(f"line {line_no}: skipping row without timestamp", file=sys.stderr)
                continue
            clock.now = timestamp
            reading = SensorReading.model_validate(
                {
                    "system_percent": row.get("percent"),
                    "charge_counter_uah": row.get("charge_uah"),
                    "charging": row.get("charging"),
                }
            )
            result = monitor.poll(reading)
            capacity = "-" if result.estimated_capacity_mah is None else f"{result.estimated_capacity_mah:.1f}"
            print(f"{timestamp:>14}  {result.system_percent:>5}%  {result.calibrated_percent:>9.2f}%  {capacity:>9}")

    if args.summary:
        summary = monitor.summary()
        print()
        print(f"Level:   {summary.current_percent_text}")
        print(f"Rate:    {'-' if summary.usage_rate is None else f'{summary.usage_rate:.2f} %/h'}")
        print(f"To go:   {summary.hours_to_text or '-'}")

    monitor.close()


if __name__ == "__main__":
    main()
