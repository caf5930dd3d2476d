"""Command-line host for the data manager."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from .config import APP_NAME, SETTINGS_FILE, Settings, user_data_dir
from .manager import DataManager
from .models import TimeEntry, format_duration, pretty_duration, to_datetime
from .notify import StreamNotifier
from .storage import FileStorage


def parse_month(value: str):
    try:
        d = datetime.strptime(value, "%Y-%m")
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}")
    return d.year, d.month


def parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="punchclock", description="Track time in monthly CSV files.")
    ap.add_argument("--home", type=Path, help="Data folder (default: per-user data dir or $PUNCHCLOCK_HOME)")
    ap.add_argument("--log-level", default="WARNING", help="DEBUG, INFO, WARNING or ERROR")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("start", help="Start a timer (stops the running one)")
    p.add_argument("--category")
    p.add_argument("--memo", default="")
    sub.add_parser("stop", help="Stop the running timer")
    sub.add_parser("cancel", help="Discard the running timer")
    sub.add_parser("status", help="Show the running timer")

    p = sub.add_parser("continue", help="Start a new timer like an earlier entry")
    p.add_argument("id")

    p = sub.add_parser("edit", help="Change an entry")
    p.add_argument("id")
    p.add_argument("--category")
    p.add_argument("--memo")

    p = sub.add_parser("delete", help="Delete an entry")
    p.add_argument("id")

    p = sub.add_parser("list", help="List entries of a month")
    p.add_argument("--month", type=parse_month)

    p = sub.add_parser("day", help="Daily report")
    p.add_argument("day", nargs="?", type=parse_day)
    p = sub.add_parser("week", help="Weekly report for the week holding DAY")
    p.add_argument("day", nargs="?", type=parse_day)
    p = sub.add_parser("month", help="Monthly report")
    p.add_argument("month", nargs="?", type=parse_month)

    p = sub.add_parser("categories", help="Show or change categories")
    p.add_argument("--add", metavar="NAME")
    p.add_argument("--remove", metavar="NAME")
    p.add_argument("--color", nargs=2, metavar=("NAME", "HEX"))
    p.add_argument("--default", metavar="NAME")

    p = sub.add_parser("export", help="Export a date range as CSV")
    p.add_argument("start", type=parse_day)
    p.add_argument("end", type=parse_day)
    p.add_argument("dest", type=Path)
    return ap


def format_entry(entry: TimeEntry, now: int) -> str:
    start = to_datetime(entry.start_time).strftime("%Y-%m-%d %H:%M:%S")
    if entry.is_running:
        state = f"running {pretty_duration(entry.live_duration(now))}"
    else:
        state = pretty_duration(entry.duration)
    memo = f" - {entry.memo}" if entry.memo else ""
    return f"{entry.id}  {start}  {state:>18}  {entry.category}{memo}"


def print_breakdown(title: str, total: int, breakdown) -> None:
    print(f"{title}: {format_duration(total)}")
    for category, seconds in sorted(breakdown.items(), key=lambda kv: kv[1], reverse=True):
        share = round(seconds / total * 100) if total else 0
        print(f"  {category or '(none)'}: {format_duration(seconds)} ({share}%)")


def run(args: argparse.Namespace, manager: DataManager) -> int:
    now = manager.clock()
    today = to_datetime(now).date()
    cmd = args.command

    if cmd == "start":
        entry = manager.start_timer(args.category, args.memo)
        print(entry.id)
    elif cmd == "stop":
        return 0 if manager.stop_timer() else 1
    elif cmd == "cancel":
        return 0 if manager.cancel_timer() else 1
    elif cmd == "status":
        running = manager.get_running_entry()
        if running is None:
            print("Not running")
            return 1
        print(format_entry(running, now))
    elif cmd == "continue":
        return 0 if manager.continue_entry(args.id) else 1
    elif cmd == "edit":
        changes = {k: v for k, v in (("category", args.category), ("memo", args.memo)) if v is not None}
        return 0 if manager.update_entry(args.id, **changes) else 1
    elif cmd == "delete":
        return 0 if manager.delete_entry(args.id) else 1
    elif cmd == "list":
        year, month = args.month or (today.year, today.month)
        for entry in sorted(manager.get_entries_for_month(year, month), key=lambda e: e.start_time):
            print(format_entry(entry, now))
    elif cmd == "day":
        report = manager.get_daily_report(args.day or today, live=True)
        print_breakdown(report.date, report.total_duration, report.category_breakdown)
    elif cmd == "week":
        report = manager.get_weekly_report(args.day or today, live=True)
        print_breakdown(f"{report.start} .. {report.end}", report.total_duration, report.category_breakdown)
        for day, seconds in report.daily_totals.items():
            print(f"  {day}: {format_duration(seconds)}")
    elif cmd == "month":
        year, month = args.month or (today.year, today.month)
        report = manager.get_monthly_report(year, month, live=True)
        print_breakdown(report.month, report.total_duration, report.category_breakdown)
    elif cmd == "categories":
        if args.add:
            manager.add_category(args.add)
        if args.remove:
            manager.remove_category(args.remove)
        if args.color:
            manager.set_category_color(*args.color)
        if args.default:
            manager.set_default_category(args.default)
        for name in manager.categories.categories:
            mark = "*" if name == manager.categories.default_category else " "
            print(f"{mark} {name}  {manager.color_for(name)}")
    elif cmd == "export":
        if args.end < args.start:
            print("error: end date is before start date", file=sys.stderr)
            return 2
        return 0 if manager.export_csv(args.start, args.end, args.dest) else 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    home = args.home or user_data_dir()
    settings = Settings.load(home / SETTINGS_FILE)
    manager = DataManager(settings, FileStorage(home), notifier=StreamNotifier())
    manager.load()
    try:
        return run(args, manager)
    except ValueError as exc:
        print(f"{APP_NAME}: {exc}", file=sys.stderr)
        return 2
