from __future__ import annotations
import logging
from types import MappingProxyType
from typing import Mapping, Optional


log = logging.getLogger(__name__)

UNKNOWN = "UNKNOWN"

COMPONENTS = ("type", "subtype", "method")

TYPE_MAP: Mapping[str, str] = MappingProxyType({
    "delivery": "DELIVERY",
    "collect": "COLLECT",
    "pickup": "COLLECT",
    "pickupcopec": "COLLECT",
})

SUBTYPE_MAP: Mapping[str, str] = MappingProxyType({
    "home": "HOME",
    "in_store": "IN_STORE",
    "store": "IN_STORE",
    "copec": "COPEC",
})

METHOD_MAP: Mapping[str, str] = MappingProxyType({
    "scheduled": "SCHEDULED",
    "daterange": "DATE_RANGE",
    "sameday": "SAME_DAY",
    "24hours": "NEXT_DAY",
    "nextday": "NEXT_DAY",
    # Pickup codes only carry a method when scoped; unscoped they map via COMBINED_MAP
    "pickup": "SCHEDULED",
    "pickupcopec": "SCHEDULED",
})

COMBINED_MAP: Mapping[str, str] = MappingProxyType({
    "pickup": "COLLECT-IN_STORE-SCHEDULED",
    "pickupcopec": "COLLECT-COPEC-SCHEDULED",
    "scheduled": "DELIVERY-HOME-SCHEDULED",
    "sameday": "DELIVERY-HOME-SAME_DAY",
    "24hours": "DELIVERY-HOME-NEXT_DAY",
    "daterange": "DELIVERY-HOME-DATE_RANGE",
})

COMPONENT_MAPS: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "type": TYPE_MAP,
    "subtype": SUBTYPE_MAP,
    "method": METHOD_MAP,
})

# Lookup order when no component is given
FALLBACK_CHAIN = (COMBINED_MAP, TYPE_MAP, SUBTYPE_MAP, METHOD_MAP)


def canonicalize(raw: object, component: Optional[str] = None) -> str:
    """Map a raw vendor shipping code to its canonical token.

    With ``component`` the lookup is scoped to that part of the taxonomy.
    Without it the combined ``TYPE-SUBTYPE-METHOD`` table is tried first,
    then type, subtype and method. Unmapped codes come back uppercased.
    Invalid input never raises: it is logged and mapped to ``UNKNOWN``.
    """
    if not raw or not isinstance(raw, str):
        log.error(f"Invalid shipping code: {raw!r}")
        return UNKNOWN

    key = raw.lower().strip()

    table = COMPONENT_MAPS.get(component) if component else None
    if table is not None:
        return table.get(key) or raw.upper()

    for table in FALLBACK_CHAIN:
        hit = table.get(key)
        if hit:
            return hit
    return raw.upper()

