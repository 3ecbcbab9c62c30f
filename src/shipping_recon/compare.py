from __future__ import annotations
import logging
from collections import Counter
from dataclasses import replace
from typing import List, Sequence

from .canonical import canonicalize
from .options import NormalizedOption


log = logging.getLogger(__name__)


def _recanonicalize(options: Sequence[NormalizedOption]) -> List[NormalizedOption]:
    return [replace(o, type=canonicalize(o.type)) for o in options]


def options_match(a: NormalizedOption, b: NormalizedOption) -> bool:
    return a.key() == b.key()


def compare(
    eom_options: Sequence[NormalizedOption],
    giv_options: Sequence[NormalizedOption],
    strict: bool = False,
) -> bool:
    """Return True when the two normalized option lists are considered equivalent.

    By default lists of equal length are reported equivalent without looking
    at their contents; only unequal lengths fall through to the bidirectional
    membership check. Pass ``strict=True`` to compare the lists as multisets
    instead.
    """
    eom = _recanonicalize(eom_options)
    giv = _recanonicalize(giv_options)

    if strict:
        same = Counter(o.key() for o in eom) == Counter(o.key() for o in giv)
        if not same:
            log.debug(f"Strict comparison failed: eom={len(eom)} giv={len(giv)}")
        return same

    if len(eom) == len(giv):
        log.debug(f"EOM and GIV counts are equal ({len(eom)}); treating as identical")
        return True

    matched = True
    for option in eom:
        if not any(options_match(option, other) for other in giv):
            log.debug(f"Unmatched EOM option: {option.to_dict()}")
            matched = False
    for option in giv:
        if not any(options_match(other, option) for other in eom):
            log.debug(f"Unmatched GIV option: {option.to_dict()}")
            matched = False
    return matched


def present_in_not(keys: Sequence[str], others: Sequence[str]) -> List[str]:
    """Entries of ``keys`` absent from ``others``, order and duplicates kept."""
    pool = set(others)
    return [k for k in keys if k not in pool]
