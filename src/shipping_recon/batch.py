"""Group-sequenced driver: rows run concurrently inside a group, groups run one
after another with a fixed pause between them."""

from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Iterator, List, Optional, Sequence, Tuple

from .io import InputRow
from .reconcile import ReportRecord


log = logging.getLogger(__name__)

DEFAULT_GROUP_SIZE = 100
DEFAULT_GROUP_DELAY = 5.0

ReconcileFn = Callable[[str, str, str, str], Awaitable[ReportRecord]]
GroupCallback = Callable[[int, int, int, List[ReportRecord]], None]


def iter_groups(rows: Sequence[InputRow], size: int) -> Iterator[Tuple[int, Sequence[InputRow]]]:
    """Yield ``(start_index, rows)`` chunks of at most ``size`` rows in input order."""
    if size <= 0:
        raise ValueError("group size must be positive")
    for start in range(0, len(rows), size):
        yield start, rows[start:start + size]


async def run_batches(
    rows: Sequence[InputRow],
    reconcile: ReconcileFn,
    group_size: int = DEFAULT_GROUP_SIZE,
    delay: float = DEFAULT_GROUP_DELAY,
    on_group: Optional[GroupCallback] = None,
) -> List[ReportRecord]:
    results: List[ReportRecord] = []
    total = len(rows)
    for index, (start, chunk) in enumerate(iter_groups(rows, group_size)):
        end = min(start + group_size, total)
        log.info(f"Processing rows {start + 1} to {end}...")

        records = await asyncio.gather(*(reconcile(*row) for row in chunk))
        results.extend(records)
        if on_group is not None:
            on_group(index, start, end, list(records))

        if end < total:
            log.info(f"Waiting {delay:g} seconds before processing the next group...")
            await asyncio.sleep(delay)

    log.info(f"All rows processed: {len(results)} records")
    return results
