from __future__ import annotations
import logging
from typing import Dict, List, Optional

import httpx

from .config import ReconConfig


log = logging.getLogger(__name__)

USER_AGENT = "shipping-recon/1.0"

EOM_SHIPPING_METHODS = ["sameday", "scheduled", "pickup", "pickupCopec", "daterange", "24hours"]
EOM_LOCATION = {
    "latitude": -33.4513,
    "longitude": -70.6653,
    "address": "Grajales 2121-2149, Santiago, Región Metropolitana",
}
EOM_EXTERNAL_ID = "4321fcc2e1cd2f70ad2234f61a"
EOM_NUMBER_OF_DATES = 5


def build_http_client(cfg: ReconConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=cfg.timeout,
        headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        transport=transport,
    )


def format_start_date(start_date: str) -> str:
    """'19/10/2026' -> '2026-10-19'."""
    return "-".join(reversed((start_date or "").split("/")))


def build_eom_payload(item_id: str, comuna_code: str, start_date: str, source: str) -> Dict:
    return {
        "source": source,
        "comunaCode": comuna_code,
        "startDate": start_date,
        "numberOfDates": EOM_NUMBER_OF_DATES,
        "grouping": True,
        "filters": {
            "shippingMethod": list(EOM_SHIPPING_METHODS),
            "onlySmallInStoresNotParis": True,
        },
        "location": dict(EOM_LOCATION),
        "items": [
            {
                "itemName": item_id,
                "externalId": EOM_EXTERNAL_ID,
                "quantity": 1,
                "marketPlace": False,
                "size": "small",
                "filters": {"sameDay": True, "marketPlace": False, "originType": 0},
            }
        ],
        "jornadas": ["TH"],
    }


class EomClient:
    """PDP shipping-dates API. ``fetch_options`` never raises."""

    def __init__(self, cfg: ReconConfig, http: httpx.AsyncClient) -> None:
        self.cfg = cfg
        self.http = http

    async def fetch_options(self, item_id: str, comuna_code: str, start_date: str) -> List[Dict]:
        try:
            formatted = format_start_date(start_date)
            if not formatted:
                log.error("Invalid startDate, cannot proceed with request.")
                return []
            resp = await self.http.post(
                self.cfg.eom_url,
                json=build_eom_payload(item_id, comuna_code, formatted, self.cfg.eom_source),
                headers={"Content-Type": "application/json", "apikey": self.cfg.eom_api_key},
            )
            resp.raise_for_status()
            data = resp.json()
            if not data:
                return []
            return list(data[0].get("shippingOptions") or [])
        except Exception as e:
            log.error(f"Error fetching PDP shipping options for item={item_id}: {e}")
            return []


class GivClient:
    """Serviceability API. ``fetch_options`` never raises."""

    def __init__(self, cfg: ReconConfig, http: httpx.AsyncClient) -> None:
        self.cfg = cfg
        self.http = http

    def url_for(self, item_id: str) -> str:
        return f"{self.cfg.giv_base_url}/products/{item_id}/serviceability"

    async def fetch_options(self, item_id: str, locality: str) -> List[Dict]:
        try:
            resp = await self.http.get(
                self.url_for(item_id),
                params={"locality": locality},
                headers={"Cookie": self.cfg.giv_cookie},
            )
            resp.raise_for_status()
            data = resp.json() or {}
            return list(data.get("shippingOptions") or [])
        except Exception as e:
            log.error(f"Error fetching serviceability shipping options for item={item_id}: {e}")
            return []
