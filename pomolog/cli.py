from __future__ import annotations

import argparse
from datetime import date, datetime, time as dtime, tzinfo
import logging
from pathlib import Path
import sys

from .charting import render_bar_chart
from .clock import Clock, RealClock
from .config import load_settings
from .db import PomologDB
from .errors import PomologError
from .log import configure_logging
from .models import STATUS_RUNNING, SessionRow
from .notifier import NotificationConfig, Notifier
from .service import PomodoroService
from .session_clock import format_countdown
from .stats import STATS_RANGES, resolve_timezone
from .watcher import SessionWatcher

logger = logging.getLogger(__name__)


def parse_anchor(value: str, zone: tzinfo) -> datetime:
    """Read ``YYYY-MM-DD`` as local noon in ``zone``, or a full ISO datetime."""
    text = value.strip()
    try:
        if len(text) == 10:
            day = date.fromisoformat(text)
            return datetime.combine(day, dtime(12, 0)).replace(tzinfo=zone)

        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=zone)
        return dt
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"invalid --anchor: {value}, expected YYYY-MM-DD or an ISO datetime"
        ) from exc


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    parser = argparse.ArgumentParser(
        prog="pomolog",
        description="pomolog: pomodoro sessions and completion statistics",
    )
    parser.add_argument(
        "--db",
        default=str(settings.db_path),
        help="SQLite database path (POMOLOG_DB, default pomolog/data/pomolog.sqlite)",
    )
    parser.add_argument(
        "--user",
        default=settings.user_id,
        help="signed-in user id (POMOLOG_USER)",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="logging level (POMOLOG_LOG_LEVEL, default WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    start_parser = subparsers.add_parser("start", help="start a new session or resume the active one")
    start_parser.add_argument("--title", default="", help="session title")

    subparsers.add_parser("pause", help="pause the running session")
    subparsers.add_parser("complete", help="mark the active session completed")
    subparsers.add_parser("cancel", help="cancel the active session")
    subparsers.add_parser("status", help="show the active session")

    watch_parser = subparsers.add_parser("watch", help="count down the running session")
    watch_parser.add_argument(
        "--tick-seconds",
        type=float,
        default=1.0,
        help="refresh interval in seconds (>=0)",
    )
    watch_parser.add_argument("--notify", action="store_true", help="desktop notification on completion")

    stats_parser = subparsers.add_parser("stats", help="completed sessions per calendar bucket")
    stats_parser.add_argument("--range", dest="stats_range", choices=STATS_RANGES, default="week")
    stats_parser.add_argument("--anchor", default=None, help="YYYY-MM-DD or ISO datetime, default now")
    stats_parser.add_argument("--tz", default=None, help="IANA timezone, default profile/POMOLOG_TIMEZONE/system")
    stats_parser.add_argument("--width", type=int, default=30, help="bar width in characters")

    tz_parser = subparsers.add_parser("timezone", help="show or set the profile timezone")
    tz_parser.add_argument("name", nargs="?", default=None, help="IANA timezone name")

    delete_parser = subparsers.add_parser("delete-account", help="delete every session and the profile")
    delete_parser.add_argument("--yes", action="store_true", help="confirm the deletion")

    serve_parser = subparsers.add_parser("serve", help="run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None, clock: Clock | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "serve":
        return _handle_serve(args)

    settings = load_settings()
    service = PomodoroService(
        db=PomologDB(Path(args.db), journal_mode=settings.journal_mode),
        clock=clock or RealClock(),
        user_id=args.user,
        default_timezone=settings.timezone,
    )

    try:
        if args.command == "start":
            return _handle_start(args, service)
        if args.command == "pause":
            return _handle_pause(service)
        if args.command == "complete":
            return _handle_complete(service)
        if args.command == "cancel":
            return _handle_cancel(service)
        if args.command == "status":
            return _handle_status(service)
        if args.command == "watch":
            return _handle_watch(args, service, parser)
        if args.command == "stats":
            return _handle_stats(args, service, parser)
        if args.command == "timezone":
            return _handle_timezone(args, service)
        if args.command == "delete-account":
            return _handle_delete_account(args, service)
    except PomologError as exc:
        logger.warning("%s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    parser.print_help()
    return 2


def _describe(service: PomodoroService, session: SessionRow) -> str:
    remaining = format_countdown(service.remaining_seconds(session))
    return f"{session.title} [{session.status}] {remaining} left (id {session.id})"


def _require_active(service: PomodoroService) -> SessionRow | None:
    session = service.get_active_session()
    if session is None:
        print("No active session.")
    return session


def _handle_start(args: argparse.Namespace, service: PomodoroService) -> int:
    session = service.get_active_session()
    if session is not None and session.status == STATUS_RUNNING:
        print(f"Already running: {_describe(service, session)}")
        return 0
    if session is None:
        session = service.create_session(args.title)

    session = service.start_session(session)
    print(f"Started: {_describe(service, session)}")
    return 0


def _handle_pause(service: PomodoroService) -> int:
    session = _require_active(service)
    if session is None:
        return 1
    if session.status != STATUS_RUNNING:
        print(f"Not running: {_describe(service, session)}")
        return 1

    session = service.pause_session(session)
    print(f"Paused: {_describe(service, session)}")
    return 0


def _handle_complete(service: PomodoroService) -> int:
    session = _require_active(service)
    if session is None:
        return 1
    session = service.complete_session(session)
    print(f"Completed: {session.title}")
    return 0


def _handle_cancel(service: PomodoroService) -> int:
    session = _require_active(service)
    if session is None:
        return 1
    session = service.cancel_session(session)
    print(f"Canceled: {session.title}")
    return 0


def _handle_status(service: PomodoroService) -> int:
    session = service.get_active_session()
    if session is None:
        print("No active session.")
        return 0
    print(_describe(service, session))
    return 0


def _handle_watch(args: argparse.Namespace, service: PomodoroService, parser: argparse.ArgumentParser) -> int:
    if args.tick_seconds < 0:
        parser.error("--tick-seconds must not be negative")

    session = _require_active(service)
    if session is None:
        return 1
    if session.status != STATUS_RUNNING:
        print(f"Not running: {_describe(service, session)}")
        return 1

    notifier = Notifier(config=NotificationConfig(enabled=bool(args.notify)), stream=sys.stdout)
    watcher = SessionWatcher(service=service, clock=service.clock, notifier=notifier)
    result = watcher.run(session, tick_seconds=float(args.tick_seconds))
    return 130 if result.interrupted else 0


def _handle_stats(args: argparse.Namespace, service: PomodoroService, parser: argparse.ArgumentParser) -> int:
    if args.width < 1:
        parser.error("--width must be at least 1")

    zone = resolve_timezone(service.resolve_timezone_name(args.tz))
    try:
        anchor = parse_anchor(args.anchor, zone) if args.anchor else service.clock.now()
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    result = service.get_stats(args.stats_range, anchor=anchor, tz=zone)

    print(f"Completed in this {args.stats_range} ({zone}): {result.total}")
    print(render_bar_chart(result.buckets, width=args.width))
    return 0


def _handle_timezone(args: argparse.Namespace, service: PomodoroService) -> int:
    if args.name is None:
        print(service.get_profile().timezone)
        return 0
    profile = service.update_timezone(args.name)
    print(f"Timezone set to {profile.timezone}")
    return 0


def _handle_delete_account(args: argparse.Namespace, service: PomodoroService) -> int:
    if not args.yes:
        print("Confirm delete account by passing --yes.")
        return 1
    removed = service.delete_account()
    print(f"Account deleted ({removed} sessions removed).")
    return 0


def _handle_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .api.app import create_app

    app = create_app(db_path=Path(args.db))
    uvicorn.run(app, host=args.host, port=int(args.port), log_level=args.log_level.lower())
    return 0
