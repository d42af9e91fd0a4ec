"""wifilog CLI — run the sampler, take a single sample, and read the log."""

import argparse
import json
import os
import sys
import time
from datetime import date

import wifilog.config as config
from wifilog.db import Database
from wifilog.query import format_connection, get_connections


def _is_running() -> bool:
    pid = _pid()
    if pid is None:
        return False
    try:
        os.kill(pid, 0)
    except (ProcessLookupError, PermissionError):
        return False
    return True


def _pid() -> int | None:
    if config.PID_PATH.exists():
        try:
            return int(config.PID_PATH.read_text().strip())
        except ValueError:
            pass
    return None


# ── Subcommands ──────────────────────────────────────────────────────────


def cmd_run(args: argparse.Namespace) -> int:
    from wifilog.daemon import Daemon

    try:
        daemon = Daemon(target_ssid=args.ssid)
    except ValueError as e:
        print(f"wifilog: {e}", file=sys.stderr)
        return 2
    daemon.start()
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    from wifilog.sampler import Sampler
    from wifilog.ssid import provider_for_platform

    with Database(path=config.DB_PATH) as db:
        try:
            sampler = Sampler(db, provider_for_platform(), target_ssid=args.ssid)
        except ValueError as e:
            print(f"wifilog: {e}", file=sys.stderr)
            return 2

        recorded = sampler.tick()
        if sampler.last_error is not None:
            print(f"SSID query failed ({sampler.provider.name}): {sampler.last_error}")
            return 1

        print(f"Current Wi-Fi   {sampler.last_ssid or 'not connected'}")
        print(f"Target          {sampler.target_ssid}")
        if recorded:
            day, _ = sampler.last_recorded
            print("Recorded        " + format_connection(db.get_connection(day)))
        else:
            print("Recorded        nothing")
    return 0


def _print_log(db: Database, as_json: bool) -> None:
    entries = db.list_connections()
    if as_json:
        print(json.dumps(get_connections(db), indent=2))
        return
    if not entries:
        print(f"No connections to {config.TARGET_SSID} logged yet")
        return
    print(f"\n  {config.TARGET_SSID} connection log\n")
    for entry in entries:
        print(f"  {format_connection(entry)}")
    print()


def cmd_list(args: argparse.Namespace) -> int:
    with Database(path=config.DB_PATH) as db:
        _print_log(db, args.json)
        try:
            while args.watch:
                time.sleep(config.LIST_REFRESH_INTERVAL)
                _print_log(db, args.json)
        except KeyboardInterrupt:
            pass
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    running = _is_running()
    pid = _pid()

    print("\n  wifilog status")
    print("  ──────────────────\n")
    print(f"  Daemon       {'running' if running else 'stopped'}" +
          (f" (pid {pid})" if running and pid else ""))
    print(f"  Target       {config.TARGET_SSID}")
    print(f"  Data dir     {config.DATA_DIR}")

    if config.DB_PATH.exists():
        size_kb = config.DB_PATH.stat().st_size / 1024
        with Database(path=config.DB_PATH) as db:
            days = db.count("connections")
            today = db.get_connection(date.today().isoformat())
        print(f"  Database     {size_kb:.1f} KB, {days} days logged")
        print(f"  Today        {format_connection(today) if today else 'not seen yet'}")
    else:
        print("  Database     not created yet")

    print()
    return 0


def cmd_logs(args: argparse.Namespace) -> int:
    if not config.LOG_PATH.exists():
        print(f"No log files found at {config.DATA_DIR}")
        return 1

    lines = config.LOG_PATH.read_text().splitlines()
    for line in lines[-args.lines:]:
        print(line)
    return 0


# ── Main ─────────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wifilog",
        description="log the first and last daily connection to a Wi-Fi network",
    )
    sub = parser.add_subparsers(dest="command")

    p_run = sub.add_parser("run", help="run the daemon in the foreground")
    p_run.add_argument("--ssid", help="target network (default: WIFILOG_TARGET_SSID)")

    p_check = sub.add_parser("check", help="sample once and report")
    p_check.add_argument("--ssid", help="target network (default: WIFILOG_TARGET_SSID)")

    p_list = sub.add_parser("list", help="print the connection log")
    p_list.add_argument("--json", action="store_true", help="emit JSON")
    p_list.add_argument("--watch", action="store_true",
                        help=f"refresh every {config.LIST_REFRESH_INTERVAL}s until interrupted")

    sub.add_parser("status", help="show daemon status and today's entry")

    p_logs = sub.add_parser("logs", help="show recent log output")
    p_logs.add_argument("-n", "--lines", type=int, default=30,
                        help="number of lines to show (default: 30)")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    commands = {
        "run": cmd_run,
        "check": cmd_check,
        "list": cmd_list,
        "status": cmd_status,
        "logs": cmd_logs,
    }

    if args.command in commands:
        return commands[args.command](args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
