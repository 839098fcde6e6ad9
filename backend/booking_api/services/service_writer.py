"""
Service writer: maps one extracted service item onto a services row and persists it.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
import json
import logging

from sqlalchemy.orm import Session

from booking_api.core.config import settings
from booking_api.core.errors import (
    BookingError,
    E_DUPLICATE_SERVICE,
    E_SERVICE_ENTRY_NOT_FOUND,
    E_SERVICE_NOT_FOUND,
    E_SERVICE_NOT_UPDATED,
    E_SERVICE_NOTHING_TO_UPDATE,
    E_SERVICE_WRITE,
    S_SERVICE_CREATED,
    S_TRANSFER_CREATED,
)
from booking_api.db.models import Service
from booking_api.db.repositories import OrderRepository, ServiceRepository, compact
from booking_api.services.coercion import (
    normalize_source,
    parse_float,
    parse_int,
    safe_date,
    safe_day,
    utcnow,
)
from booking_api.services.extractor import get_by_type_and_index
from booking_api.services.pax import main_passenger, resolve_pax
from booking_api.services.reservation import ensure_active
from booking_api.services.transfer import StopoverWriter, validate_transfer
from booking_api.services.validation import UPDATE_RULES, service_period, validate_service

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "Descrição não disponível"
NO_CAPACITY = "capacidade não informada"


def _obj(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def describe(item: Dict[str, Any]) -> str:
    """Room category and capacity when known, else title, else description."""
    room = _obj(item.get("room"))
    category = _obj(room.get("category"))
    if category.get("value"):
        capacity = _obj(room.get("capacity")).get("value") or NO_CAPACITY
        return f"{category['value']} com {capacity}"
    return item.get("title") or item.get("description") or NO_DESCRIPTION


def unit(item: Dict[str, Any]) -> str:
    """'capacity - category - board' codes, empty unless all three are known."""
    room = _obj(item.get("room"))
    capacity = _obj(room.get("capacity")).get("code")
    category = _obj(room.get("category")).get("code")
    board = _obj(item.get("board")).get("code")
    if capacity and category and board:
        return f"{capacity} - {category} - {board}"
    return ""


def _occupancy(pax: Dict[str, Any]) -> Dict[str, int]:
    return {
        "infant": parse_int(pax.get("infant"), 0) or 0,
        "child": parse_int(pax.get("child"), 0) or 0,
        "adult": parse_int(pax.get("adult"), 0) or settings.default_pax_adult,
        "senior": parse_int(pax.get("senior"), 0) or 0,
    }


def _pricing(item: Dict[str, Any], default: Optional[float]) -> Dict[str, Any]:
    pricing = _obj(item.get("pricing"))
    brk = _obj(item.get("break"))
    price = parse_float(item.get("price"), default)
    return {
        "break_price": parse_float(brk.get("price"), default),
        "price": price,
        "taxes": parse_float(_obj(pricing.get("taxes")).get("total"), default),
        "discount": parse_float(item.get("discount"), default),
        "rebate": parse_float(item.get("rebate"), default),
        "cost": price,
        "bonification": parse_float(item.get("bonification"), default),
        "extra": parse_float(item.get("extra"), default),
        "total": parse_float(item.get("total") or item.get("price"), default),
        "price_source": parse_float(item.get("price_source"), default),
    }


def prepare_service_row(
    item: Dict[str, Any],
    header: Dict[str, Any],
    pax_list: List[Dict[str, Any]],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Full services row for a validated item; every pricing field defaults to 0."""
    now = now or utcnow()
    expiration = now + timedelta(days=settings.service_expiration_days)
    start, end = service_period(item)
    supplier = _obj(item.get("supplier"))
    connector = _obj(item.get("connector"))
    pricing = _obj(item.get("pricing"))
    destination = json.dumps(item.get("destination") or {})

    row: Dict[str, Any] = {
        "order_id": header["id"],
        "created": now,
        "updated": now,
        "expiration": safe_date(item.get("expiresAt"), expiration),
        "confirmation": safe_day(item.get("confirmation"), now.date()),
        "identifier": str(item.get("identifier") or ""),
        "status": parse_int(item.get("status"), 0),
        "type": item.get("type") or "room",
        "code": parse_int(_obj(item.get("board")).get("code"), 0),
        "description": describe(item),
        "source": normalize_source(item.get("source")),
        "attendant_id": header.get("attendant_id") or 0,
        "attendant": header.get("attendant") or "",
        "user_id": header.get("user_id") or 0,
        "user_name": header.get("user_name") or "",
        "supplier_id": parse_int(supplier.get("id"), 0),
        "supplier": supplier.get("name") or "",
        "connector": json.dumps(connector),
        "locator": connector.get("code") or "",
        "start_location": destination,
        "end_location": destination,
        "start_date": safe_day(start, now.date()),
        "end_date": safe_day(end, expiration.date()),
        "people": json.dumps({"pax": pax_list}),
        "information": item.get("information") or "",
        "room": unit(item),
        "break_type": _obj(item.get("break")).get("type") or "",
        "markup_info": json.dumps(pricing.get("markup") or {}),
        "taxes_info": json.dumps(pricing.get("taxes") or {}),
        "commission_info": json.dumps(pricing.get("commission") or {}),
        "currency": item.get("currency") or settings.default_currency,
        "exchange": json.dumps(item.get("exchange") or {}),
        "options": json.dumps(item.get("options") or {}),
    }
    row.update(_occupancy(_obj(item.get("pax"))))
    row.update(_pricing(item, 0.0))

    if row["type"] == "note":
        if item.get("rememberAt"):
            row["start_date"] = safe_day(item["rememberAt"], row["start_date"])
        row["end_date"] = row["start_date"]
        row["extra_data"] = json.dumps(item.get("extra_data") or {})
    elif row["type"] == "meeting":
        name = _obj(item.get("destination")).get("name")
        if name:
            row["start_location"] = name
            row["end_location"] = name
        row["extra_data"] = json.dumps(item.get("extra_data") or {})
    return row


def prepare_service_update_row(
    item: Dict[str, Any],
    pax_list: Optional[List[Dict[str, Any]]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Only the fields present in ``item``; {} when there is nothing to change."""
    start, end = service_period(item)
    supplier = item.get("supplier") if isinstance(item.get("supplier"), dict) else None
    pax = _obj(item.get("pax"))
    category = _obj(_obj(item.get("room")).get("category"))
    has_description = bool(item.get("title") or item.get("description") or category.get("value"))
    row: Dict[str, Any] = {
        "expiration": safe_date(item.get("expiresAt")),
        "confirmation": safe_day(item.get("confirmation")),
        "status": parse_int(item.get("status"), None),
        "description": describe(item) if has_description else None,
        "supplier_id": parse_int(supplier.get("id"), None) if supplier else None,
        "supplier": supplier.get("name") if supplier else None,
        "start_date": safe_day(start),
        "end_date": safe_day(end),
        "people": json.dumps({"pax": pax_list}) if pax_list is not None else None,
        "infant": parse_int(pax.get("infant"), None),
        "child": parse_int(pax.get("child"), None),
        "adult": parse_int(pax.get("adult"), None),
        "senior": parse_int(pax.get("senior"), None),
        "information": item.get("information"),
        "room": unit(item) or None,
        "currency": item.get("currency"),
        "source": normalize_source(item["source"]) if "source" in item else None,
    }
    row.update(_pricing(item, None))
    if item.get("price") is None:
        row["cost"] = None
    row = compact(row)
    if not row:
        return {}
    row["updated"] = now or utcnow()
    return row


def service_projection(service: Service) -> Dict[str, Any]:
    return {
        "id": service.id,
        "order_id": service.order_id,
        "identifier": service.identifier,
        "type": service.type,
        "status": service.status,
        "description": service.description,
        "supplier": service.supplier,
        "start_date": service.start_date.isoformat() if service.start_date else None,
        "end_date": service.end_date.isoformat() if service.end_date else None,
        "total": service.total,
        "currency": service.currency,
    }


class ServiceWriter:
    """Writes one service item (and its stopovers) within the caller's transaction."""

    def __init__(self, db: Session):
        self.orders = OrderRepository(db)
        self.services = ServiceRepository(db)
        self.stopovers = StopoverWriter(db)

    def read(self, service_id: int) -> Dict[str, Any]:
        service = self.services.get_by_id(service_id)
        if service is None:
            raise BookingError(E_SERVICE_NOT_FOUND)
        return service_projection(service)

    def create(self, header: Dict[str, Any], item: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate, persist and read back one extracted item.

        Returns the created entry; raises BookingError for any expected
        failure so the caller can record it and move on.
        """
        validate_service(item)
        order = ensure_active(self.orders.get_by_id(header["id"]))

        identifier = str(item.get("identifier") or "")
        if self.services.find_duplicate(identifier, order.id) is not None:
            raise BookingError(E_DUPLICATE_SERVICE, detail=identifier)

        directory = payload.get("pax")
        transfer_entry = None
        if item["type"] == "transfer":
            transfer_entry = get_by_type_and_index(payload, "transfer", item["originalIndex"])
            if transfer_entry is None:
                raise BookingError(E_SERVICE_ENTRY_NOT_FOUND, detail=f"transfer[{item['originalIndex']}]")
            # legs are checked up front so an invalid leg never leaves a parent row behind
            validate_transfer(transfer_entry, item["originalIndex"])

        pax_list, pax_info = resolve_pax(item.get("assigned"), directory)
        row = prepare_service_row(item, header, pax_list)
        service_id = self.services.insert(row)
        if not service_id:
            raise BookingError(E_SERVICE_WRITE, detail=identifier)
        service = self.read(service_id)

        entry: Dict[str, Any] = {
            "id": service_id,
            "identifier": identifier,
            "type": item["type"],
            "index": item["originalIndex"],
            "service": service,
            "pax": pax_info or None,
            "main_pax": main_passenger(pax_list),
            "code": S_SERVICE_CREATED,
        }
        if transfer_entry is not None:
            entry["code"] = S_TRANSFER_CREATED
            try:
                entry["stopovers"] = self.stopovers.write_all(
                    service_id, identifier, transfer_entry, item["originalIndex"], directory
                )
            except BookingError:
                self.services.delete(service_id)
                raise
        logger.debug(f"Service {identifier} ({item['type']}) written as {service_id}")
        return entry

    def update(self, order_id: int, item: Dict[str, Any], directory: Any = None) -> Dict[str, Any]:
        """Apply provided fields to an existing service of the order."""
        service_id = parse_int(item.get("id"), None)
        if service_id is None or self.services.get_for_order(service_id, order_id) is None:
            raise BookingError(E_SERVICE_NOT_FOUND, detail=str(item.get("id")))
        validate_service(item, UPDATE_RULES)

        pax_list = None
        if "assigned" in item:
            pax_list, _ = resolve_pax(item.get("assigned"), directory)
        row = prepare_service_update_row(item, pax_list)
        if not row:
            raise BookingError(E_SERVICE_NOTHING_TO_UPDATE)
        if self.services.update(service_id, order_id, row) == 0:
            raise BookingError(E_SERVICE_NOT_UPDATED)
        return {
            "id": service_id,
            "identifier": item.get("identifier"),
            "type": item["type"],
            "index": item["originalIndex"],
            "service": self.read(service_id),
        }
