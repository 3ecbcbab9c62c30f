from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Sequence

import httpx

from .batch import GroupCallback, run_batches
from .clients import EomClient, GivClient, build_http_client
from .config import ReconConfig
from .io import InputRow, read_input_rows, write_report_csv
from .reconcile import Reconciler, ReportRecord


async def reconcile_rows(
    rows: Sequence[InputRow],
    cfg: ReconConfig,
    on_group: Optional[GroupCallback] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[ReportRecord]:
    async with build_http_client(cfg, transport=transport) as http:
        reconciler = Reconciler(EomClient(cfg, http), GivClient(cfg, http), strict=cfg.strict)
        return await run_batches(
            rows,
            reconciler.reconcile,
            group_size=cfg.group_size,
            delay=cfg.group_delay,
            on_group=on_group,
        )


async def reconcile_one(
    row: InputRow,
    cfg: ReconConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ReportRecord:
    async with build_http_client(cfg, transport=transport) as http:
        reconciler = Reconciler(EomClient(cfg, http), GivClient(cfg, http), strict=cfg.strict)
        return await reconciler.reconcile(*row)


async def reconcile_file(
    input_path: Path,
    cfg: ReconConfig,
    on_group: Optional[GroupCallback] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[ReportRecord]:
    rows = read_input_rows(input_path)
    return await reconcile_rows(rows, cfg, on_group=on_group, transport=transport)


def write_output(output_path: Path, records: Sequence[ReportRecord]) -> int:
    return write_report_csv(output_path, records)
