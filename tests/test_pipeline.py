from __future__ import annotations

import asyncio
import csv
import json

import httpx

from shipping_recon.config import ReconConfig
from shipping_recon.io import InputRow
from shipping_recon.pipeline import reconcile_file, reconcile_one, reconcile_rows, write_output


CFG = ReconConfig(
    eom_url="https://eom.test/shipping-dates",
    eom_api_key="k",
    giv_base_url="https://giv.test",
    giv_cookie="c",
    group_size=2,
    group_delay=0.0,
)

EOM_BY_ITEM = {
    "SKU1": [{"type": "scheduled", "status": {"code": 2000, "description": "OK"}, "facility": "F1",
              "deliveryType": "DELIVERY-HOME-SCHEDULED"}],
    "SKU2": [],
}
GIV_BY_ITEM = {
    "SKU1": [{"shippingType": "delivery", "shippingSubType": "home", "shippingMethod": "scheduled",
              "serviceableStockLevel": "IN_STOCK", "serviceNodeCode": "F1"}],
    "SKU2": [{"shippingType": "collect", "shippingSubType": "store", "shippingMethod": "pickup",
              "serviceableStockLevel": "LIMITED_STOCK"}],
}


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "eom.test":
        item = json.loads(request.content)["items"][0]["itemName"]
        if item not in EOM_BY_ITEM:
            return httpx.Response(502)
        return httpx.Response(200, json=[{"shippingOptions": EOM_BY_ITEM[item]}])
    item = request.url.path.split("/")[2]
    if item not in GIV_BY_ITEM:
        return httpx.Response(404)
    return httpx.Response(200, json={"shippingOptions": GIV_BY_ITEM[item]})


def test_reconcile_rows_end_to_end():
    rows = [
        InputRow("SKU1", "13101", "SANTIAGO", "19/10/2026"),
        InputRow("SKU2", "13101", "SANTIAGO", "19/10/2026"),
        InputRow("SKU3", "13101", "SANTIAGO", "19/10/2026"),
    ]
    records = asyncio.run(reconcile_rows(rows, CFG, transport=httpx.MockTransport(_handler)))

    assert [r.item_id for r in records] == ["SKU1", "SKU2", "SKU3"]
    first, second, third = records
    assert first.status == "identical"
    assert first.serviceable == "SERVICEABLE IN BOTH"
    assert first.facility == "F1"

    assert second.serviceable == "SERVICEABLE IN GIV but NOT in EOM"
    assert second.available_giv_options == "COLLECT-IN_STORE-SCHEDULED"
    assert second.status == "differ"

    # Failed fetches look like zero options, not like an error row
    assert third.status == "identical"
    assert third.serviceable == "N/A"
    assert third.eom_count == 0 and third.giv_count == 0


def test_reconcile_one_uses_single_row():
    record = asyncio.run(
        reconcile_one(InputRow("SKU1", "13101", "SANTIAGO", "19/10/2026"), CFG, transport=httpx.MockTransport(_handler))
    )
    assert record.delivery_type == "DELIVERY-HOME-SCHEDULED"


def test_reconcile_file_and_write_output(tmp_path):
    src = tmp_path / "input_data.csv"
    src.write_text(
        "itemID,comunaCode,locality,date\nSKU1,13101,SANTIAGO,19/10/2026\nSKU2,,SANTIAGO,19/10/2026\n",
        encoding="utf-8",
    )
    records = asyncio.run(reconcile_file(src, CFG, transport=httpx.MockTransport(_handler)))
    assert len(records) == 1

    out = tmp_path / "output_results.csv"
    assert write_output(out, records) == 1
    with out.open(newline="", encoding="utf-8") as f:
        row = next(csv.DictReader(f))
    assert row["serviceable"] == "SERVICEABLE IN BOTH"
    assert row["PresentinEomnotGiv"] == "0"
