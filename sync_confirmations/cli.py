"""Top-level sync-confirmations command line interface."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date as Date
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

from sync_confirmations.config import SyncConfig
from sync_confirmations.domain.errors import ProviderFetchError
from sync_confirmations.orchestration.sync import run_sync
from sync_confirmations.reporting.summary import compute_summary
from sync_confirmations.utils.dates import parse_date, tomorrow

MODE_CHOICES = ("dry-run", "confirm-send")


def _parse_date(value: str) -> Date:
    try:
        return parse_date(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--date must be YYYY-MM-DD or DD/MM/YYYY") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sync-confirmations", description="Appointment confirmation sync CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Sync one day of appointments")
    run_parser.add_argument(
        "--mode",
        choices=MODE_CHOICES,
        help="dry-run (lookups only) or confirm-send (triggers flows); defaults to DRY_RUN",
    )
    run_parser.add_argument("--date", type=_parse_date, help="Target date, YYYY-MM-DD or DD/MM/YYYY (default: tomorrow)")
    run_parser.add_argument("--summary-out", type=Path, help="Optional path for a JSON run summary")
    run_parser.set_defaults(handler=_handle_run)

    serve_parser = subparsers.add_parser("serve", help="Serve the HTTP trigger")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(handler=_handle_serve)

    return parser


def _handle_run(args: argparse.Namespace) -> int:
    config = SyncConfig.from_env()
    target_date = args.date or tomorrow(config.timezone)
    dry_run = None if args.mode is None else args.mode == "dry-run"

    try:
        result = asyncio.run(run_sync(config, target_date, dry_run=dry_run))
    except ProviderFetchError as exc:
        print(json.dumps({"error": exc.to_dict()}, indent=2, ensure_ascii=False))
        return 1

    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))

    if args.summary_out:
        args.summary_out.parent.mkdir(parents=True, exist_ok=True)
        args.summary_out.write_text(json.dumps(compute_summary(result), indent=2) + "\n")
    return 0


def _handle_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from sync_confirmations.api.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )
    parser = _build_parser()
    args = parser.parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
