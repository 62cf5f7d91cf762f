from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import load_config
from .logging_config import configure_logging
from .models import NOT_FOUND_MESSAGE
from .portal.client import ResultPortalClient
from .server import PayloadError, parse_result_request, run_server
from .util.debug_bundle import create_debug_bundle, failure_artifacts


logger = logging.getLogger("ccsu_result_api")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ccsu_result_api")
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP service (GET /, POST /get-result)")
    serve.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml)")
    serve.add_argument("--host", default="", help="Bind address (default: server.host / HOST, 0.0.0.0)")
    serve.add_argument("--port", type=int, default=0, help="Listen port (default: server.port / PORT, 8080)")

    fetch = sub.add_parser("fetch", help="Look up one result from the command line and print it as JSON")
    fetch.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml)")
    fetch.add_argument("--course", required=True, help="Course value as it appears in the portal's course dropdown")
    fetch.add_argument("--year", required=True, help="Year value as it appears in the portal's year dropdown")
    fetch.add_argument("--roll-number", required=True, help="Roll number (1-9 digits)")
    fetch.add_argument("--headful", action="store_true", help="Run browser headful (debug)")
    fetch.add_argument("--log-steps", action="store_true", help="Log each portal step at INFO level.")
    fetch.add_argument(
        "--save-debug",
        action="store_true",
        help="On failure, save screenshot + HTML of the page under portal.debug_dir.",
    )
    fetch.add_argument("--out", default="", help="Optional output JSON path (otherwise prints to stdout)")

    bundle = sub.add_parser(
        "debug-bundle",
        help="Zip saved failure artifacts + the log file so they can be shared.",
    )
    bundle.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml)")
    bundle.add_argument("--out-dir", default="data", help="Directory to write the zip into (default: data).")
    return p


def _write_json(payload: dict, out: str) -> None:
    out_json = json.dumps(payload, indent=2, ensure_ascii=False)
    if out:
        Path(out).write_text(out_json, encoding="utf-8")
    else:
        print(out_json)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    cfg = load_config(args.config)
    configure_logging(level=cfg.logging.level, file_path=cfg.logging.file_path or None)

    if args.cmd == "serve":
        run_server(cfg, host=args.host or None, port=args.port or None)
        return 0

    if args.cmd == "fetch":
        try:
            lookup = parse_result_request(
                {"crsselect": args.course, "yrselect": args.year, "textrollnum": args.roll_number}
            )
        except PayloadError as e:
            print(str(e), file=sys.stderr)
            return 2

        updates: dict = {}
        if args.headful:
            updates["headless"] = False
        if args.log_steps:
            updates["log_steps"] = True
        if args.save_debug:
            updates["save_debug_on_failure"] = True
        portal_cfg = cfg.portal.model_copy(update=updates) if updates else cfg.portal

        record = ResultPortalClient(config=portal_cfg).fetch_result(lookup)
        if not record.found:
            _write_json({"error": NOT_FOUND_MESSAGE}, args.out)
            return 1
        _write_json(record.model_dump(), args.out)
        return 0

    if args.cmd == "debug-bundle":
        if not failure_artifacts(cfg.portal.debug_dir):
            logger.warning("No failed-lookup artifacts under %s (set PORTAL_SAVE_DEBUG_ON_FAILURE=1).", cfg.portal.debug_dir)
        out = create_debug_bundle(
            debug_dir=cfg.portal.debug_dir,
            log_file=cfg.logging.file_path,
            out_dir=args.out_dir,
        )
        logger.info("Wrote debug bundle: %s", out)
        print(str(out))
        return 0

    raise AssertionError("Unhandled command")
