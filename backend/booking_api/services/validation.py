"""
Per-type validation of booking service items.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from booking_api.core.config import settings
from booking_api.core.errors import (
    BookingError,
    E_END_BEFORE_START,
    E_INVALID_DATE,
    E_OCCUPANCY_REQUIRED,
    E_SERVICE_IDENTIFIER_REQUIRED,
    E_SERVICE_PERIOD_REQUIRED,
    E_SUPPLIER_REQUIRED,
)
from booking_api.services.coercion import parse_float, safe_date


@dataclass(frozen=True)
class ServiceRules:
    """Which checks apply to an item; each flag toggles one check."""
    require_identifier: bool = True
    require_period: bool = True
    require_supplier: bool = False
    require_pax: bool = False


_DEFAULT_RULES = ServiceRules()
_RULES = {
    "room": _DEFAULT_RULES,
    "transfer": _DEFAULT_RULES,
    "tour": _DEFAULT_RULES,
    "ticket": _DEFAULT_RULES,
    "insurance": _DEFAULT_RULES,
    "flight": _DEFAULT_RULES,
    "rental": _DEFAULT_RULES,
    "note": ServiceRules(require_period=False),
    "meeting": ServiceRules(require_period=False),
}

# Modification payloads carry the row id; identifier and period are optional
UPDATE_RULES = ServiceRules(require_identifier=False, require_period=False)


def rules_for(service_type: str) -> ServiceRules:
    rules = _RULES.get(service_type, _DEFAULT_RULES)
    if service_type == "meeting" and settings.meeting_requires_period:
        rules = replace(rules, require_period=True)
    if service_type == "room":
        rules = replace(
            rules,
            require_supplier=settings.room_requires_supplier,
            require_pax=settings.room_requires_occupancy,
        )
    return rules


def service_period(item: Dict[str, Any]) -> Tuple[Any, Any]:
    """Raw (start, end) from ``period`` or, failing that, ``checkin``/``checkout``."""
    period = item.get("period")
    if isinstance(period, dict) and (period.get("start") or period.get("end")):
        return period.get("start"), period.get("end")
    return item.get("checkin"), item.get("checkout")


def parse_period(item: Dict[str, Any]) -> Tuple[Optional[datetime], Optional[datetime]]:
    start, end = service_period(item)
    return safe_date(start), safe_date(end)


def validate_service(item: Dict[str, Any], rules: Optional[ServiceRules] = None) -> None:
    """Raise BookingError with the first failing check's code."""
    rules = rules or rules_for(item.get("type", ""))

    if rules.require_identifier and not item.get("identifier"):
        raise BookingError(E_SERVICE_IDENTIFIER_REQUIRED)

    raw_start, raw_end = service_period(item)
    if rules.require_period and (not raw_start or not raw_end):
        raise BookingError(E_SERVICE_PERIOD_REQUIRED)

    # Dates are checked whenever both are supplied, required or not
    if raw_start and raw_end:
        start, end = safe_date(raw_start), safe_date(raw_end)
        if start is None or end is None:
            raise BookingError(E_INVALID_DATE, detail="service period")
        if end <= start:
            raise BookingError(E_END_BEFORE_START)

    if rules.require_supplier:
        supplier = item.get("supplier")
        if not isinstance(supplier, dict) or not supplier.get("id"):
            raise BookingError(E_SUPPLIER_REQUIRED)

    if rules.require_pax:
        pax = item.get("pax") if isinstance(item.get("pax"), dict) else {}
        if parse_float(pax.get("adult"), 0) <= 0 and parse_float(pax.get("child"), 0) <= 0:
            raise BookingError(E_OCCUPANCY_REQUIRED)
