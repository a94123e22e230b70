"""
Qcheck Command-Line Entry Point.

Bootstraps the dependency graph via constructor injection, signs the
user in, and runs one command against their FMEA records.  Every
subsystem is wired here; there are no module-level globals.

Usage::

    python main.py summary --email you@example.com --password ...
    python main.py export  --email you@example.com --password ...
"""

from __future__ import annotations

import argparse
import getpass
import sys
import traceback
from pathlib import Path
from typing import Optional, Sequence

from qcheck.auth import SessionManager
from qcheck.config import get_config
from qcheck.controllers import DashboardController, HistoryController
from qcheck.database import DatabaseManager
from qcheck.logger import StructuredLogger, get_logger
from qcheck.services import create_services


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qcheck",
        description="FMEA records: risk summary and CSV export.",
    )
    parser.add_argument("command", choices=("summary", "export"))
    parser.add_argument("--email", required=True)
    parser.add_argument(
        "--password",
        help="Prompted for when omitted.",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Export directory (defaults to EXPORT_DIR).",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Wire dependencies, sign in and run the requested command."""
    args = _build_parser().parse_args(argv)

    logger: StructuredLogger = get_logger("main")
    logger.info("Starting Qcheck (%s)...", args.command)

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()
    if not config.is_backend_configured:
        sys.stderr.write("Backend not configured: set SUPABASE_URL and SUPABASE_ANON_KEY.\n")
        return 2

    # ------------------------------------------------------------------
    # 2. Backend client
    # ------------------------------------------------------------------
    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )
    if not db.is_online:
        sys.stderr.write("Could not create the Supabase client; see the log for details.\n")
        return 2

    # ------------------------------------------------------------------
    # 3. Session + services (single composition root)
    # ------------------------------------------------------------------
    session = SessionManager()
    services = create_services(db=db, config=config, session=session)
    auth_service = services["auth_service"]
    unsubscribe = auth_service.on_auth_state_changed(
        lambda user: logger.debug("Session user: %s", user.id if user else None)
    )

    # ------------------------------------------------------------------
    # 4. Controllers
    # ------------------------------------------------------------------
    export_dir = args.out or Path(config.EXPORT_DIR)
    dashboard = DashboardController(
        session=session,
        record_service=services["fmea_record_service"],
        kpi_service=services["kpi_service"],
        logger=get_logger("dashboard"),
    )
    history = HistoryController(
        session=session,
        record_service=services["fmea_record_service"],
        csv_service=services["csv_export_service"],
        logger=get_logger("history"),
        export_dir=export_dir,
    )

    # ------------------------------------------------------------------
    # 5. Sign in, run the command, sign out
    # ------------------------------------------------------------------
    password = args.password or getpass.getpass("Password: ")
    result = auth_service.authenticate(args.email, password)
    if not result.success or result.user is None:
        sys.stderr.write(f"Sign-in failed: {result.error_message}\n")
        unsubscribe()
        return 1

    # Usually already applied by the provider's SIGNED_IN notification.
    session.apply_provider_user(result.user)

    try:
        if args.command == "summary":
            _print_summary(dashboard)
        else:
            filename, content = history.export_all()
            path = history.save_export(filename, content)
            if path is None:
                return 1
            print(f"Wrote {len(history.records)} records to {path}")
    finally:
        auth_service.sign_out()
        unsubscribe()
        dashboard.close()
        history.close()
        logger.info("Qcheck shut down.")
    return 0


def _print_summary(dashboard: DashboardController) -> None:
    summary = dashboard.summary
    print(f"Welcome back, {dashboard.greeting_name}")
    print(f"Total FMEAs:      {summary.total}")
    print(f"High Risk Items:  {summary.high}")
    print(f"Medium Risk:      {summary.medium}")
    print(f"Low Risk:         {summary.low}")
    print(f"Average RPN:      {dashboard.average_rpn}")


def _show_fatal_error(exc: BaseException) -> None:
    """Write the error and its traceback to stderr."""
    detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    sys.stderr.write(f"FATAL: {type(exc).__name__}: {exc}\n{detail}")


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        _show_fatal_error(exc)
        sys.exit(1)
