from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List

from .compare import compare, present_in_not
from .options import NOT_AVAILABLE, project_eom, project_giv


log = logging.getLogger(__name__)

FetchEom = Callable[[str, str, str], Awaitable[List[Dict]]]
FetchGiv = Callable[[str, str], Awaitable[List[Dict]]]

STATUS_IDENTICAL = "identical"
STATUS_DIFFER = "differ"
STATUS_ERROR = "error"

SERVICEABLE_NONE = "N/A"
SERVICEABLE_EOM_ONLY = "SERVICEABLE IN EOM but NOT in GIV"
SERVICEABLE_GIV_ONLY = "SERVICEABLE IN GIV but NOT in EOM"
SERVICEABLE_BOTH = "SERVICEABLE IN BOTH"

LIST_SEPARATOR = " | "
NO_DIFFERENCE = "0"


@dataclass(frozen=True)
class ReportRecord:
    item_id: str
    comuna_code: str
    locality: str
    start_date: str
    status: str
    eom_count: int = 0
    giv_count: int = 0
    serviceable: str = SERVICEABLE_NONE
    facility: str = NOT_AVAILABLE
    delivery_type: str = NOT_AVAILABLE
    available_eom_options: str = NOT_AVAILABLE
    available_giv_options: str = NOT_AVAILABLE
    present_in_eom_not_giv: str = NO_DIFFERENCE
    present_in_giv_not_eom: str = NO_DIFFERENCE

    def to_row(self) -> Dict[str, object]:
        # Keys and order are the report's column headers
        return {
            "itemID": self.item_id,
            "comunaCode": self.comuna_code,
            "locality": self.locality,
            "startDate": self.start_date,
            "status": self.status,
            "eomCount": self.eom_count,
            "givCount": self.giv_count,
            "serviceable": self.serviceable,
            "facility": self.facility,
            "deliveryType": self.delivery_type,
            "availableEomOptions": self.available_eom_options,
            "availableGivOptions": self.available_giv_options,
            "PresentinEomnotGiv": self.present_in_eom_not_giv,
            "PresentinGivnotEom": self.present_in_giv_not_eom,
        }


def error_record(item_id: str, comuna_code: str, locality: str, start_date: str) -> ReportRecord:
    return ReportRecord(
        item_id=item_id,
        comuna_code=comuna_code,
        locality=locality,
        start_date=start_date,
        status=STATUS_ERROR,
    )


def classify_serviceable(eom_keys: List[str], giv_keys: List[str]) -> str:
    if eom_keys and not giv_keys:
        return SERVICEABLE_EOM_ONLY
    if giv_keys and not eom_keys:
        return SERVICEABLE_GIV_ONLY
    if eom_keys and giv_keys:
        return SERVICEABLE_BOTH
    return SERVICEABLE_NONE


def _render_difference(tokens: List[str]) -> str:
    return LIST_SEPARATOR.join(tokens) if tokens else NO_DIFFERENCE


async def _fetch_both(fetch_eom: FetchEom, fetch_giv: FetchGiv, item_id, comuna_code, locality, start_date):
    # Both fetches run to completion before any failure is surfaced
    raw_eom, raw_giv = await asyncio.gather(
        fetch_eom(item_id, comuna_code, start_date),
        fetch_giv(item_id, locality),
        return_exceptions=True,
    )
    for result in (raw_eom, raw_giv):
        if isinstance(result, BaseException):
            raise result
    return raw_eom or [], raw_giv or []


async def reconcile_row(
    item_id: str,
    comuna_code: str,
    locality: str,
    start_date: str,
    *,
    fetch_eom: FetchEom,
    fetch_giv: FetchGiv,
    strict: bool = False,
) -> ReportRecord:
    """Fetch both sources for one input row and build its report record.

    Never raises: any failure yields an ``error`` record for the row.
    """
    try:
        raw_eom, raw_giv = await _fetch_both(fetch_eom, fetch_giv, item_id, comuna_code, locality, start_date)

        eom = project_eom(raw_eom)
        giv = project_giv(raw_giv, len(raw_giv))

        # EOM contributes its canonical type, GIV its delivery triple
        eom_keys = [o.type for o in eom]
        giv_keys = [o.delivery_type for o in giv]

        log.info(f"item={item_id} comuna={comuna_code} EOM options: {len(eom_keys)}, GIV options: {len(giv_keys)}")
        identical = compare(eom, giv, strict=strict)

        first = eom[0] if eom else None
        return ReportRecord(
            item_id=item_id,
            comuna_code=comuna_code,
            locality=locality,
            start_date=start_date,
            status=STATUS_IDENTICAL if identical else STATUS_DIFFER,
            eom_count=len(eom_keys),
            giv_count=len(giv_keys),
            serviceable=classify_serviceable(eom_keys, giv_keys),
            facility=first.facility if first else NOT_AVAILABLE,
            delivery_type=first.delivery_type if first else NOT_AVAILABLE,
            available_eom_options=LIST_SEPARATOR.join(eom_keys),
            available_giv_options=LIST_SEPARATOR.join(giv_keys),
            present_in_eom_not_giv=_render_difference(present_in_not(eom_keys, giv_keys)),
            present_in_giv_not_eom=_render_difference(present_in_not(giv_keys, eom_keys)),
        )
    except Exception as e:
        log.error(f"Error processing row item={item_id} comuna={comuna_code}: {e}")
        return error_record(item_id, comuna_code, locality, start_date)


class Reconciler:
    """Binds the EOM/GIV clients so rows can be reconciled by their four keys."""

    def __init__(self, eom_client, giv_client, strict: bool = False) -> None:
        self.eom_client = eom_client
        self.giv_client = giv_client
        self.strict = strict

    async def reconcile(self, item_id: str, comuna_code: str, locality: str, start_date: str) -> ReportRecord:
        return await reconcile_row(
            item_id,
            comuna_code,
            locality,
            start_date,
            fetch_eom=self.eom_client.fetch_options,
            fetch_giv=self.giv_client.fetch_options,
            strict=self.strict,
        )
