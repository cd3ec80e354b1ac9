"""Static class fee table and the status rule derived from it."""

from __future__ import annotations

import re
from typing import Dict

from ..core.enums import FeeStatus

CLASS_FEES: Dict[str, int] = {
    "Pre-Kg": 35000,
    "Nursery 1": 40000,
    "Nursery 2": 42000,
    "Nursery 3": 42000,
    "Basic 1": 45000,
    "Basic 2": 45000,
    "Basic 3": 46000,
    "Basic 4": 47000,
    "Basic 5": 47000,
    "JSS1 A": 50000,
    "JSS1 B": 50000,
    "JSS2 A": 52000,
    "JSS2 B": 51000,
    "JSS3 A": 53000,
    "JSS3 B": 51000,
    "SS1 A": 50000,
    "SS1 B": 50000,
    "SS2 A (Science)": 52000,
    "SS2 B (Arts and Social Sciences)": 51000,
    "SS3 A (Science)": 53000,
    "SS3 B (Arts and Social Sciences)": 51000,
}

_ARM_SUFFIX = re.compile(r"\s+[AB]$")
_JS_PREFIX = re.compile(r"^JS(?!S)")


def class_fee(class_name: str) -> int:
    """Fee for a class; 0 when neither the name nor a normalized form is listed.

    Tried in order: exact, without the trailing arm, with ``JS`` spelled
    ``JSS``, and both.
    """
    name = (class_name or "").strip()
    if not name:
        return 0

    no_arm = _ARM_SUFFIX.sub("", name)
    jss = _JS_PREFIX.sub("JSS", name)
    for candidate in (name, no_arm, jss, _ARM_SUFFIX.sub("", jss)):
        if candidate in CLASS_FEES:
            return CLASS_FEES[candidate]
    return 0


def status_from_totals(total: int, fee: int) -> FeeStatus:
    if fee <= 0:
        return FeeStatus.NOT_APPLICABLE
    if total >= fee:
        return FeeStatus.PAID
    if total > 0:
        return FeeStatus.OWING
    return FeeStatus.NOT_PAID


def remaining_for(total: int, fee: int) -> int:
    return max(fee - total, 0)
