from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List

from .canonical import canonicalize


EOM_SERVICEABLE_CODE = 2000
GIV_SERVICEABLE_LEVELS = ("IN_STOCK", "LIMITED_STOCK")
NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class NormalizedOption:
    """One serviceable shipping option expressed in the canonical taxonomy."""

    type: str
    stock_level: str
    facility: str = NOT_AVAILABLE
    delivery_type: str = NOT_AVAILABLE

    def key(self) -> tuple:
        return (self.type, self.stock_level, self.facility, self.delivery_type)

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type,
            "stockLevel": self.stock_level,
            "facility": self.facility,
            "deliveryType": self.delivery_type,
        }


def project_eom(options: Iterable[Dict]) -> List[NormalizedOption]:
    """Keep EOM options answered with status 2000 and project them.

    ``type`` goes through the unscoped canonical chain; ``deliveryType`` is
    passed through untouched.
    """
    out: List[NormalizedOption] = []
    for option in options or []:
        if not isinstance(option, dict):
            continue
        status = option.get("status")
        if not isinstance(status, dict) or status.get("code") != EOM_SERVICEABLE_CODE:
            continue
        out.append(
            NormalizedOption(
                type=canonicalize(option.get("type")),
                stock_level="IN_STOCK" if status.get("description") == "OK" else "LIMITED_STOCK",
                facility=option.get("facility") or NOT_AVAILABLE,
                delivery_type=option.get("deliveryType") or NOT_AVAILABLE,
            )
        )
    return out


def project_giv(options: Iterable[Dict], limit: int) -> List[NormalizedOption]:
    """Keep GIV options with a serviceable stock level and project them.

    The filtered list is cut to its first ``limit`` entries. Each of
    shippingType/SubType/Method is canonicalized in its own component.
    The output ``type`` holds the method token and ``delivery_type`` the
    ``TYPE-SUBTYPE-METHOD`` triple.
    """
    serviceable = [
        o for o in (options or [])
        if isinstance(o, dict) and o.get("serviceableStockLevel") in GIV_SERVICEABLE_LEVELS
    ]
    out: List[NormalizedOption] = []
    for option in serviceable[:max(0, limit)]:
        shipping_type = canonicalize(option.get("shippingType"), "type")
        shipping_subtype = canonicalize(option.get("shippingSubType"), "subtype")
        shipping_method = canonicalize(option.get("shippingMethod"), "method")

        # Only an unmapped method already spelled TYPE-SUBTYPE-... passes this check
        is_full_method = shipping_method.startswith(f"{shipping_type}-{shipping_subtype}")

        out.append(
            NormalizedOption(
                type=shipping_method,
                stock_level=option.get("serviceableStockLevel"),
                facility=option.get("serviceNodeCode") or NOT_AVAILABLE,
                delivery_type=(
                    shipping_method
                    if is_full_method
                    else f"{shipping_type}-{shipping_subtype}-{shipping_method}"
                ),
            )
        )
    return out
