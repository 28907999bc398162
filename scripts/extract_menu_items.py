#!/usr/bin/env python3
"""
Extract menu items from a live menu URL or a saved HTML snapshot.

Writes the records as a JSON array (and optionally as a spreadsheet) so the
output can be inspected without running the server.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.scraper.config import get_config
from src.scraper.dom import SoupDocument
from src.scraper.export import write_records
from src.scraper.extract import ExtractionRules, extract_menu
from src.scraper.service import fetch_menu


def main() -> int:
    parser = argparse.ArgumentParser()
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", dest="url", help="Menu page to render")
    source.add_argument("--in", dest="input_path", help="Saved HTML snapshot of a menu page")
    parser.add_argument(
        "--out",
        dest="output_path",
        default="menu_items.json",
        help="Output JSON path (default: menu_items.json)",
    )
    parser.add_argument("--xlsx", dest="xlsx_path", default=None, help="Optional spreadsheet path")
    args = parser.parse_args()

    config = get_config()

    if args.url:
        records = asyncio.run(fetch_menu(args.url, config=config))
        source_label = args.url
    else:
        html_path = Path(args.input_path)
        if not html_path.exists():
            print(f"[ERR] HTML file not found: {html_path}")
            return 1
        html = html_path.read_bytes().decode("utf-8", errors="replace")
        records = extract_menu(SoupDocument.from_html(html), ExtractionRules.from_config(config))
        source_label = str(html_path)

    if not records:
        print(f"[WARN] No menu items found in {source_label}")

    out_path = Path(args.output_path)
    out_path.write_text(
        json.dumps([record.to_dict() for record in records], ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    num_categories = len({record.category for record in records})
    print(f"[OK] Wrote {out_path} ({len(records)} items, {num_categories} categories)")

    if args.xlsx_path:
        xlsx_path = write_records(records, args.xlsx_path, sheet_title=config.sheet_title)
        print(f"[OK] Wrote {xlsx_path}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
