from __future__ import annotations

import asyncio

import pytest

from shipping_recon import batch
from shipping_recon.batch import iter_groups, run_batches
from shipping_recon.io import InputRow
from shipping_recon.reconcile import ReportRecord

_real_sleep = asyncio.sleep


def _rows(n):
    return [InputRow(f"SKU{i}", "13101", "SANTIAGO", "19/10/2026") for i in range(n)]


class _FakeReconcile:
    def __init__(self):
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls = []

    async def __call__(self, item_id, comuna_code, locality, start_date):
        self.calls.append(item_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await _real_sleep(0)
        self.in_flight -= 1
        return ReportRecord(item_id, comuna_code, locality, start_date, status="identical")


def test_iter_groups_chunks_in_order():
    groups = list(iter_groups(_rows(5), 2))
    assert [start for start, _ in groups] == [0, 2, 4]
    assert [len(chunk) for _, chunk in groups] == [2, 2, 1]


def test_iter_groups_rejects_non_positive_size():
    with pytest.raises(ValueError, match="positive"):
        list(iter_groups(_rows(1), 0))


def test_250_rows_run_in_three_groups_with_two_pauses(monkeypatch):
    sleeps = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    monkeypatch.setattr("shipping_recon.batch.asyncio.sleep", fake_sleep)

    groups = []
    reconcile = _FakeReconcile()
    records = asyncio.run(
        run_batches(
            _rows(250),
            reconcile,
            group_size=100,
            delay=5.0,
            on_group=lambda index, start, end, recs: groups.append((index, start, end, len(recs))),
        )
    )

    assert groups == [(0, 0, 100, 100), (1, 100, 200, 100), (2, 200, 250, 50)]
    assert sleeps == [5.0, 5.0]
    assert [r.item_id for r in records] == [f"SKU{i}" for i in range(250)]


def test_rows_within_a_group_run_concurrently(monkeypatch):
    async def fake_sleep(delay):
        return None

    reconcile = _FakeReconcile()
    monkeypatch.setattr(batch.asyncio, "sleep", fake_sleep)
    asyncio.run(run_batches(_rows(30), reconcile, group_size=10, delay=1.0))
    assert reconcile.max_in_flight == 10


def test_no_pause_for_a_single_group(monkeypatch):
    sleeps = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    monkeypatch.setattr("shipping_recon.batch.asyncio.sleep", fake_sleep)
    records = asyncio.run(run_batches(_rows(100), _FakeReconcile(), group_size=100, delay=5.0))
    assert len(records) == 100
    assert sleeps == []


def test_empty_input_produces_no_records():
    assert asyncio.run(run_batches([], _FakeReconcile())) == []
