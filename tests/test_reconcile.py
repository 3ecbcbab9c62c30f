from __future__ import annotations

import asyncio

from shipping_recon.reconcile import Reconciler, ReportRecord, error_record, reconcile_row
from shipping_recon.io import REPORT_HEADERS


EOM_SCHEDULED = {
    "type": "scheduled",
    "status": {"code": 2000, "description": "OK"},
    "facility": "F1",
    "deliveryType": "DELIVERY-HOME-SCHEDULED",
}
GIV_SCHEDULED = {
    "shippingType": "delivery",
    "shippingSubType": "home",
    "shippingMethod": "scheduled",
    "serviceableStockLevel": "IN_STOCK",
    "serviceNodeCode": "F1",
}


class _FakeFetcher:
    def __init__(self, result=None, error=None, delay=0.0):
        self.result = result or []
        self.error = error
        self.delay = delay
        self.calls = []

    async def __call__(self, *args):
        self.calls.append(args)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def _run(eom, giv, strict=False):
    return asyncio.run(
        reconcile_row("SKU1", "13101", "SANTIAGO", "19/10/2026", fetch_eom=eom, fetch_giv=giv, strict=strict)
    )


def test_scenario_one_matching_option_each_side():
    eom = _FakeFetcher([EOM_SCHEDULED])
    giv = _FakeFetcher([GIV_SCHEDULED])
    record = _run(eom, giv)

    assert record.eom_count == 1
    assert record.giv_count == 1
    assert record.status == "identical"
    assert record.serviceable == "SERVICEABLE IN BOTH"
    assert record.facility == "F1"
    assert record.delivery_type == "DELIVERY-HOME-SCHEDULED"
    assert record.available_eom_options == "DELIVERY-HOME-SCHEDULED"
    assert record.available_giv_options == "DELIVERY-HOME-SCHEDULED"
    assert record.present_in_eom_not_giv == "0"
    assert record.present_in_giv_not_eom == "0"
    assert eom.calls == [("SKU1", "13101", "19/10/2026")]
    assert giv.calls == [("SKU1", "SANTIAGO")]


def test_scenario_only_giv_serviceable():
    record = _run(_FakeFetcher([]), _FakeFetcher([GIV_SCHEDULED]))
    assert record.serviceable == "SERVICEABLE IN GIV but NOT in EOM"
    assert record.facility == "N/A"
    assert record.delivery_type == "N/A"
    assert record.status == "differ"
    assert record.available_eom_options == ""
    assert record.present_in_giv_not_eom == "DELIVERY-HOME-SCHEDULED"


def test_scenario_only_eom_serviceable():
    record = _run(_FakeFetcher([EOM_SCHEDULED]), _FakeFetcher([{**GIV_SCHEDULED, "serviceableStockLevel": "NONE"}]))
    assert record.serviceable == "SERVICEABLE IN EOM but NOT in GIV"
    assert record.giv_count == 0
    assert record.present_in_eom_not_giv == "DELIVERY-HOME-SCHEDULED"


def test_neither_side_serviceable():
    record = _run(_FakeFetcher([]), _FakeFetcher([]))
    assert record.serviceable == "N/A"
    assert record.status == "identical"
    assert record.eom_count == record.giv_count == 0


def test_scenario_both_fetchers_raise_yields_error_record():
    record = _run(_FakeFetcher(error=RuntimeError("eom down")), _FakeFetcher(error=RuntimeError("giv down")))
    assert record == error_record("SKU1", "13101", "SANTIAGO", "19/10/2026")
    assert record.status == "error"
    assert record.eom_count == 0 and record.giv_count == 0
    assert record.serviceable == "N/A"
    assert record.facility == "N/A" and record.delivery_type == "N/A"
    assert record.available_eom_options == "N/A" and record.available_giv_options == "N/A"
    assert record.present_in_eom_not_giv == "0" and record.present_in_giv_not_eom == "0"


def test_one_failing_fetch_still_waits_for_the_other():
    giv = _FakeFetcher([GIV_SCHEDULED], delay=0.01)
    record = _run(_FakeFetcher(error=ValueError("bad payload")), giv)
    assert record.status == "error"
    assert giv.calls == [("SKU1", "SANTIAGO")]


def test_fetches_overlap():
    events = []

    async def fetch_eom(item_id, comuna_code, start_date):
        events.append("eom-start")
        await asyncio.sleep(0.01)
        events.append("eom-end")
        return []

    async def fetch_giv(item_id, locality):
        events.append("giv-start")
        await asyncio.sleep(0.01)
        events.append("giv-end")
        return []

    _run(fetch_eom, fetch_giv)
    assert events[:2] == ["eom-start", "giv-start"]


def test_differences_are_pipe_joined_and_asymmetric():
    eom = _FakeFetcher([
        EOM_SCHEDULED,
        {"type": "sameday", "status": {"code": 2000, "description": "LOW"}, "facility": "F2"},
    ])
    giv = _FakeFetcher([
        GIV_SCHEDULED,
        {**GIV_SCHEDULED, "shippingMethod": "24hours"},
        {**GIV_SCHEDULED, "shippingType": "pickup", "shippingSubType": "store", "shippingMethod": "pickup"},
    ])
    record = _run(eom, giv)

    assert record.eom_count == 2
    assert record.giv_count == 3
    assert record.status == "differ"
    assert record.available_eom_options == "DELIVERY-HOME-SCHEDULED | DELIVERY-HOME-SAME_DAY"
    assert record.available_giv_options == (
        "DELIVERY-HOME-SCHEDULED | DELIVERY-HOME-NEXT_DAY | COLLECT-IN_STORE-SCHEDULED"
    )
    assert record.present_in_eom_not_giv == "DELIVERY-HOME-SAME_DAY"
    assert record.present_in_giv_not_eom == "DELIVERY-HOME-NEXT_DAY | COLLECT-IN_STORE-SCHEDULED"


def test_strict_flag_reaches_comparator():
    eom = _FakeFetcher([EOM_SCHEDULED])
    giv = _FakeFetcher([{**GIV_SCHEDULED, "serviceNodeCode": "OTHER"}])
    assert _run(eom, giv).status == "identical"
    assert _run(eom, giv, strict=True).status == "differ"


def test_report_row_follows_output_column_order():
    record = ReportRecord("SKU1", "13101", "SANTIAGO", "19/10/2026", status="identical")
    assert list(record.to_row()) == REPORT_HEADERS


def test_reconciler_binds_clients():
    class _Client:
        def __init__(self, result):
            self.fetch_options = _FakeFetcher(result)

    reconciler = Reconciler(_Client([EOM_SCHEDULED]), _Client([GIV_SCHEDULED]))
    record = asyncio.run(reconciler.reconcile("SKU9", "13101", "SANTIAGO", "01/01/2027"))
    assert record.item_id == "SKU9"
    assert record.serviceable == "SERVICEABLE IN BOTH"
