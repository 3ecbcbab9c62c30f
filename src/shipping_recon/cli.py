from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ConfigError, get_config, load_env
from .io import InputRow
from .pipeline import reconcile_file, reconcile_one, write_output
from .reconcile import ReportRecord


log = logging.getLogger(__name__)


def fail(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)
    sys.exit(1)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Reconcile EOM and GIV shipping options for item/locality/date rows")
    p.add_argument("input", nargs="?", help="Input CSV/XLSX with itemID, comunaCode, locality, date columns")
    p.add_argument("-o", "--output", default="output_results.csv", help="Report CSV path (default: output_results.csv)")
    p.add_argument(
        "--row",
        nargs=4,
        metavar=("ITEM_ID", "COMUNA", "LOCALITY", "DATE"),
        help="Reconcile a single row and print its record as JSON; exits 2 when the row ends in an error record",
    )
    p.add_argument("--eom-url", help="PDP shipping-dates endpoint (or EOM_URL)")
    p.add_argument("--eom-api-key", help="PDP shipping-dates API key (or EOM_API_KEY)")
    p.add_argument("--giv-base-url", help="Serviceability API base URL (or GIV_BASE_URL)")
    p.add_argument("--giv-cookie", help="Serviceability API session cookie (or GIV_COOKIE)")
    p.add_argument("--timeout", type=float, help="Per-request timeout in seconds (default: 30)")
    p.add_argument("--group-size", type=int, help="Rows reconciled concurrently per group (default: 100)")
    p.add_argument("--group-delay", type=float, help="Seconds to wait between groups (default: 5)")
    p.add_argument(
        "--strict",
        action="store_true",
        help="Compare option lists as multisets instead of treating equal counts as identical",
    )
    p.add_argument("--dotenv", help="Path to .env file (optional)")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v for INFO, -vv for DEBUG)")
    return p.parse_args(argv)


def log_group(index: int, start: int, end: int, records: List[ReportRecord]) -> None:
    for r in records:
        log.info(
            f"[group {index + 1}] {r.item_id} {r.comuna_code} {r.locality} {r.start_date} "
            f"status={r.status} eom={r.eom_count} giv={r.giv_count} serviceable={r.serviceable}"
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    # Setup logging
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")
    load_env(args.dotenv)
    try:
        cfg = get_config(args).validate()
    except ConfigError as e:
        fail(str(e))
    log.info(f"Using eom_url={cfg.eom_url} giv_base_url={cfg.giv_base_url} strict={cfg.strict}")

    if args.row:
        record = asyncio.run(reconcile_one(InputRow(*args.row), cfg))
        print(json.dumps(record.to_row(), ensure_ascii=False, indent=2))
        return 0 if record.status != "error" else 2

    if not args.input:
        fail("Missing input file: pass INPUT or --row")
    input_path = Path(args.input)
    if not input_path.exists():
        fail(f"Input file not found: {input_path}")

    records = asyncio.run(reconcile_file(input_path, cfg, on_group=log_group))
    log.info("All rows processed. Writing results to output file...")
    count = write_output(Path(args.output), records)
    print(f"Wrote {count} records to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
