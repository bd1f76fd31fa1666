#!/usr/bin/env python3
"""Dump everything a pybatmon storage directory holds.

Prints the calibration state, the merged battery series, the status
intervals and the event log of one storage directory, so you can check
what the monitor has learned and recorded.

Usage
-----
::

    python scripts/dump_store.py ~/.local/share/pybatmon

Options::

    --hours N        History window in hours (default: 48)
    --precise        Prefer the precise series in the merged history
    --json           Output as machine-readable JSON
    --output FILE    Write output to FILE instead of stdout
    --verbose, -v    Enable debug logging
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pybatmon import BatteryMonitor  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _ts(ms: int) -> str:
    if ms <= 0:
        return "-"
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def _section(title: str) -> str:
    bar = "=" * 60
    return f"\n{bar}\n  {title}\n{bar}"


def collect(monitor: BatteryMonitor, hours: float) -> dict[str, Any]:
    """Gather the monitor state as plain JSON-friendly data."""
    state = monitor.calibrator.state
    summary = monitor.summary(hours)
    return {
        "calibration": {
            "estimated_capacity_mah": state.smoothed_capacity_mah,
            "last_calibrated_system_percent": state.last_calibrated_system_percent,
            "samples": [s.model_dump(by_alias=True) for s in monitor.calibrator.samples()],
        },
        "summary": summary.model_dump(),
        "history": [point._asdict() for point in monitor.history(hours, include_boundary_point=True)],
        "statuses": [interval.model_dump() for interval in monitor.statuses(hours)],
        "events": monitor.events.entries(),
    }


def render_text(data: dict[str, Any]) -> str:
    out: list[str] = []

    calibration = data["calibration"]
    out.append(_section("CALIBRATION"))
    out.append(f"  capacity:      {calibration['estimated_capacity_mah'] or '-'} mAh")
    out.append(f"  last percent:  {calibration['last_calibrated_system_percent']}")
    out.append(f"  samples:       {len(calibration['samples'])}")
    for sample in calibration["samples"]:
        out.append(f"    {_ts(sample['timestamp'])}  {sample['percent']:>3}%  {sample['mah']:.1f} mAh")

    summary = data["summary"]
    out.append(_section("SUMMARY"))
    out.append(f"  level:   {summary['current_level']}")
    out.append(f"  rate:    {summary['usage_rate']}")
    out.append(f"  to go:   {summary['hours_to_text'] or '-'}")
    out.append(f"  ends at: {summary['end_time_text'] or '-'}")

    out.append(_section(f"HISTORY ({len(data['history'])} points)"))
    for point in data["history"]:
        marker = "P" if point["is_precise"] else "C"
        charging = "+" if point["charging"] else " "
        out.append(f"  {_ts(point['timestamp'])}  {marker} {charging} {point['level']:7.2f}")

    out.append(_section(f"STATUSES ({len(data['statuses'])})"))
    for interval in data["statuses"]:
        out.append(f"  {interval['name']:<16} {_ts(interval['start'])} -> {_ts(interval['end'])}")

    out.append(_section("EVENT LOG"))
    out.extend(f"  {entry}" for entry in data["events"])
    return "\n".join(out)


def main() -> None:
    parser = argparse.ArgumentParser(description="Dump a pybatmon storage directory")
    parser.add_argument("path", help="Storage directory")
    parser.add_argument("--hours", type=float, default=48.0, help="History window in hours (default: 48)")
    parser.add_argument("--precise", action="store_true", help="Prefer the precise series in the history")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    path = Path(args.path).expanduser()
    if not path.is_dir():
        print(f"ERROR: {path} is not a directory", file=sys.stderr)
        sys.exit(1)

    with BatteryMonitor.open(path, precise_enabled=args.precise) as monitor:
        data = collect(monitor, args.hours)

    if args.json_mode:
        payload = json.dumps(data, indent=2, default=str, ensure_ascii=False)
    else:
        payload = render_text(data)

    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        print(f"Output written to {args.output}", file=sys.stderr)
    else:
        print(payload)


if __name__ == "__main__":
    main()
