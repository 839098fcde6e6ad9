"""
Transfer sub-writer: validates and persists the stopover legs of a transfer service.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional
import json
import logging

from sqlalchemy.orm import Session

from booking_api.core.errors import (
    BookingError,
    E_STOPOVER_INVALID,
    E_STOPOVER_REQUIRED,
    E_STOPOVER_WRITE,
)
from booking_api.db.repositories import TransferRepository
from booking_api.services.coercion import parse_int, safe_date, utcnow
from booking_api.services.pax import resolve_pax

logger = logging.getLogger(__name__)


def stopover_identifier(service_identifier: str, transfer_index: int, stopover_index: int) -> str:
    return f"{service_identifier}-T{transfer_index + 1}-S{stopover_index + 1}"


def _leg(transfer_index: int, stopover_index: int) -> str:
    return f"Transfer {transfer_index + 1}, Stopover {stopover_index + 1}"


def validate_stopover(stopover: Any, transfer_index: int, stopover_index: int) -> None:
    """Raise E143 naming the leg and the offending field."""
    leg = _leg(transfer_index, stopover_index)
    if not isinstance(stopover, dict):
        raise BookingError(E_STOPOVER_INVALID, detail=f"{leg}: not an object")
    for field in ("perimeter_id", "origin", "destination"):
        if not stopover.get(field):
            raise BookingError(E_STOPOVER_INVALID, detail=f"{leg}: {field} required")

    estimated = stopover.get("estimated") if isinstance(stopover.get("estimated"), dict) else {}
    if not estimated.get("departure") or not estimated.get("arrival"):
        raise BookingError(E_STOPOVER_INVALID, detail=f"{leg}: departure and arrival required")

    departure = safe_date(estimated["departure"])
    if departure is None:
        raise BookingError(E_STOPOVER_INVALID, detail=f"{leg}: invalid departure")
    arrival = safe_date(estimated["arrival"])
    if arrival is None:
        raise BookingError(E_STOPOVER_INVALID, detail=f"{leg}: invalid arrival")
    if arrival <= departure:
        raise BookingError(E_STOPOVER_INVALID, detail=f"{leg}: arrival must be after departure")


def validate_transfer(entry: Dict[str, Any], transfer_index: int) -> List[Dict[str, Any]]:
    """
    Check every leg of a transfer entry before anything is written.
    Returns the stopover list; raises E142 when it is missing or empty.
    """
    stopovers = entry.get("stopover")
    if not isinstance(stopovers, list) or not stopovers:
        raise BookingError(E_STOPOVER_REQUIRED, detail=f"Transfer {transfer_index + 1}")
    for stopover_index, stopover in enumerate(stopovers):
        validate_stopover(stopover, transfer_index, stopover_index)
    return stopovers


def _place(value: Any, with_iata: bool) -> Dict[str, Any]:
    place = value if isinstance(value, dict) else {"name": str(value)}
    coordinates = place.get("coordinates") if isinstance(place.get("coordinates"), dict) else {}
    data = {
        "name": place.get("name") or "",
        "city": place.get("city") or "",
        "state": place.get("state") or "",
        "type": place.get("type") or "",
        "country": place.get("country") or "",
    }
    if with_iata:
        data["iata"] = place.get("iata") or ""
    data["coordinates"] = {
        "lat": coordinates.get("lat"),
        "lng": coordinates.get("lng"),
    }
    return data


def prepare_stopover_row(
    stopover: Dict[str, Any],
    service_id: int,
    identifier: str,
    pax_list: List[Dict[str, Any]],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    estimated = stopover.get("estimated") or {}
    driver = stopover.get("driver") if isinstance(stopover.get("driver"), dict) else {}
    vehicle = stopover.get("vehicle") if isinstance(stopover.get("vehicle"), dict) else {}
    includes = stopover.get("includes")
    return {
        "service_id": service_id,
        "created": now or utcnow(),
        "perimeter_id": parse_int(stopover.get("perimeter_id"), 0),
        "identifier": identifier,
        "estimated": json.dumps({
            "departure": estimated.get("departure"),
            "arrival": estimated.get("arrival"),
        }),
        "driver": json.dumps({
            "name": driver.get("name") or "",
            "phone": driver.get("phone") or "",
        }),
        "number": str(stopover.get("number") or ""),
        "origin": json.dumps(_place(stopover.get("origin"), with_iata=True)),
        "destination": json.dumps(_place(stopover.get("destination"), with_iata=False)),
        "vehicle": json.dumps({
            "name": vehicle.get("name") or "",
            "classification": vehicle.get("classification") or "",
            "capacity": parse_int(vehicle.get("capacity"), 0),
            "plate": vehicle.get("plate") or "",
        }),
        "people": json.dumps({"pax": pax_list}),
        "mode": stopover.get("mode"),
        "includes": json.dumps(includes if isinstance(includes, list) else []),
    }


class StopoverWriter:
    """Inserts one transfers row per leg; any failed leg aborts the whole transfer."""

    def __init__(self, db: Session):
        self.transfers = TransferRepository(db)

    def write_all(
        self,
        service_id: int,
        service_identifier: str,
        entry: Dict[str, Any],
        transfer_index: int,
        directory: Any,
    ) -> Dict[str, Any]:
        stopovers = validate_transfer(entry, transfer_index)
        created = []
        for stopover_index, stopover in enumerate(stopovers):
            identifier = stopover_identifier(service_identifier, transfer_index, stopover_index)
            pax_list, _ = resolve_pax(stopover.get("assigned"), directory)
            row = prepare_stopover_row(stopover, service_id, identifier, pax_list)
            stopover_id = self.transfers.insert(row)
            if not stopover_id:
                removed = self.transfers.delete_for_service(service_id)
                logger.warning(f"Stopover {identifier} not written, removed {removed} legs of service {service_id}")
                raise BookingError(E_STOPOVER_WRITE, detail=_leg(transfer_index, stopover_index))
            created.append({
                "transfer_index": transfer_index,
                "stopover_index": stopover_index,
                "id": stopover_id,
                "identifier": identifier,
            })
        return {"total": len(created), "created": created}
