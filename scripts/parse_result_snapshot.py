#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src = repo_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


def _read_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise SystemExit(f"File not found: {p}")
    return p.read_text(encoding="utf-8", errors="replace")


def main(argv: list[str] | None = None) -> int:
    _ensure_src_on_path()

    from playwright.sync_api import sync_playwright

    from ccsu_result_api.config import DEFAULT_BROWSER_ARGS
    from ccsu_result_api.portal.extract import extract_result, get_value

    p = argparse.ArgumentParser(
        prog="parse_result_snapshot",
        description=(
            "Run the result-page extractor against a saved HTML snapshot (e.g. data/debug/*.html).\n"
            "The page is loaded with set_content, so nothing is fetched from the portal."
        ),
    )
    p.add_argument("--file", required=True, help="Path to a saved result-page .html file")
    p.add_argument(
        "--label",
        action="append",
        default=[],
        help="Only print the value found for this label (repeatable), instead of the whole record.",
    )
    p.add_argument("--out", default="", help="Optional output JSON path (otherwise prints to stdout)")
    args = p.parse_args(argv)

    html = _read_text(args.file)

    with sync_playwright() as pw:
        browser = pw.chromium.launch(headless=True, args=list(DEFAULT_BROWSER_ARGS))
        try:
            page = browser.new_page()
            page.set_content(html, wait_until="domcontentloaded")
            if args.label:
                payload = {label: get_value(page, label) for label in args.label}
            else:
                payload = extract_result(page).model_dump()
        finally:
            browser.close()

    out_json = json.dumps(payload, indent=2, ensure_ascii=False)
    if args.out:
        Path(args.out).write_text(out_json, encoding="utf-8")
    else:
        print(out_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
