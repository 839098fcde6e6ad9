"""
Reservation header: validation, row preparation and persistence.
"""

from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, Optional
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking_api.core.config import settings
from booking_api.core.errors import (
    BookingError,
    E_DUPLICATE_RESERVATION,
    E_END_BEFORE_START,
    E_IDENTIFIER_REQUIRED,
    E_INVALID_DATE,
    E_NOTHING_TO_UPDATE,
    E_PERIOD_REQUIRED,
    E_RESERVATION_CANCELLED,
    E_RESERVATION_NOT_FOUND,
    E_RESERVATION_NOT_UPDATED,
    E_RESERVATION_READ,
    E_RESERVATION_WRITE,
    E_START_IN_PAST,
)
from booking_api.db.models import Order
from booking_api.db.repositories import OrderRepository, compact
from booking_api.services.coercion import (
    calendar_day,
    normalize_source,
    parse_float,
    parse_int,
    safe_date,
    today_for,
    utcnow,
)

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"
# Header types that may not start in the past
SALE_TYPES = {"sale"}


def generate_hash() -> str:
    """32 hex chars, assigned once per header and never changed."""
    return uuid.uuid4().hex


def full_name(person: Any) -> str:
    if not isinstance(person, dict):
        return ""
    first = person.get("firstName") or ""
    last = person.get("lastName") or ""
    return f"{first} {last}".strip()


def _ref_id(entity: Any) -> Optional[int]:
    if not isinstance(entity, dict):
        return None
    return parse_int(entity.get("id", entity.get("reference")), None)


def validate_header(header: Dict[str, Any], today: Optional[date] = None) -> None:
    """
    Validate a reservation header; raises BookingError on the first failure.

    Required: identifier, period.start, period.end, both parseable, end after
    start. Sale headers additionally may not start before today, comparing
    calendar days in the start's own offset.
    """
    if not header.get("identifier"):
        raise BookingError(E_IDENTIFIER_REQUIRED)

    period = header.get("period") or {}
    if not isinstance(period, dict) or not period.get("start") or not period.get("end"):
        raise BookingError(E_PERIOD_REQUIRED)

    start = safe_date(period["start"])
    end = safe_date(period["end"])
    if start is None or end is None:
        raise BookingError(E_INVALID_DATE, detail="period")

    if header.get("type") in SALE_TYPES:
        today = today or today_for(period["start"])
        if calendar_day(period["start"]) < today:
            raise BookingError(E_START_IN_PAST)

    if end <= start:
        raise BookingError(E_END_BEFORE_START)


def _financials(header: Dict[str, Any]) -> Dict[str, Any]:
    total = header.get("total") if isinstance(header.get("total"), dict) else {}
    service = total.get("service") if isinstance(total.get("service"), dict) else {}
    price = service.get("price")
    return {
        "price": price,
        "discount": service.get("discount"),
        "taxes": service.get("tax"),
        "markup": service.get("markup"),
        "commission": service.get("commission"),
        "cost": price,
        "total": total.get("total"),
    }


def _identities(header: Dict[str, Any]) -> Dict[str, Any]:
    company = header.get("company")
    client = header.get("client")
    row = {
        "company_id": _ref_id(company),
        "company": company.get("name") if isinstance(company, dict) else None,
        "client_id": _ref_id(client),
        "client": client.get("name") if isinstance(client, dict) else None,
    }
    for key, column in (
        ("agent", "agent"),
        ("manager", "manager"),
        ("attendant", "attendant"),
        ("user", "user_name"),
        ("customer", "customer"),
    ):
        person = header.get(key)
        row[f"{key}_id"] = _ref_id(person)
        row[column] = full_name(person) if isinstance(person, dict) else None
    return row


def prepare_header_row(
    channel: str,
    header: Dict[str, Any],
    hash_: str,
    version: int = 1,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Map a validated create header onto orders columns (None columns are dropped)."""
    now = now or utcnow()
    period = header.get("period") or {}
    sales_channel = header.get("channel")
    row: Dict[str, Any] = {
        "created": now,
        "updated": now,
        "imported": now,
        "expiration": safe_date(header.get("expiresAt")),
        "confirmation": safe_date(header.get("confirmation")),
        "channel": channel,
        "version": version,
        "identifier": str(header["identifier"]),
        "hash": hash_,
        "language": header.get("language") or "pt-br",
        "status": header.get("status") or "pending",
        "type": header.get("type") or "standard",
        "start_date": safe_date(period.get("start")),
        "end_date": safe_date(period.get("end")),
        "sales_channel": (sales_channel.get("name") if isinstance(sales_channel, dict) else None) or "unknown",
        "locator": header.get("locator"),
        "currency": header.get("currency") or settings.default_currency,
        "source": normalize_source(header.get("source")),
        "information": header.get("information") or "",
        "notes": header.get("notes") or "",
        "rav": 0.0,
    }
    row.update(_identities(header))
    for column, value in _financials(header).items():
        row[column] = parse_float(value, 0.0)
    return compact(row)


def prepare_header_update_row(
    header: Dict[str, Any],
    version: int,
    now: Optional[datetime] = None,
    allow_empty: bool = False,
) -> Dict[str, Any]:
    """
    Map a modification header onto orders columns.
    Only fields present in the payload are returned; the hash is never touched.
    With ``allow_empty`` a payload without header fields still yields the
    version/updated pair.
    """
    period = header.get("period") if isinstance(header.get("period"), dict) else {}
    sales_channel = header.get("channel")
    row: Dict[str, Any] = {
        "expiration": safe_date(header.get("expiresAt")),
        "confirmation": safe_date(header.get("confirmation")),
        "language": header.get("language"),
        "status": header.get("status"),
        "type": header.get("type"),
        "start_date": safe_date(period.get("start")),
        "end_date": safe_date(period.get("end")),
        "sales_channel": sales_channel.get("name") if isinstance(sales_channel, dict) else None,
        "locator": header.get("locator"),
        "currency": header.get("currency"),
        "source": normalize_source(header["source"]) if "source" in header else None,
        "information": header.get("information"),
        "notes": header.get("notes"),
    }
    row.update(_identities(header))
    for column, value in _financials(header).items():
        row[column] = parse_float(value, None)
    row = compact(row)
    if not row and not allow_empty:
        return {}
    row["version"] = version
    row["updated"] = now or utcnow()
    return row


def header_projection(order: Order) -> Dict[str, Any]:
    """Canonical persisted view of a header, used for responses and service linkage."""
    return {
        "id": order.id,
        "channel": order.channel,
        "identifier": order.identifier,
        "hash": order.hash,
        "version": order.version,
        "created": order.created.isoformat() if order.created else None,
        "status": order.status,
        "attendant_id": order.attendant_id,
        "attendant": order.attendant,
        "user_id": order.user_id,
        "user_name": order.user_name,
    }


def _reference(order: Order) -> Dict[str, Any]:
    return {"id": order.id, "hash": order.hash, "version": order.version}


class ReservationWriter:
    """Header persistence within the caller's transaction."""

    def __init__(self, db: Session):
        self.db = db
        self.orders = OrderRepository(db)

    def check_duplicate(self, channel: str, identifier: str) -> Optional[Dict[str, Any]]:
        """Reference (id, hash, version) of an existing header with the same key, if any."""
        existing = self.orders.find_by_identifier(channel, str(identifier))
        return _reference(existing) if existing is not None else None

    def write(self, row: Dict[str, Any]) -> int:
        try:
            order_id = self.orders.insert(row)
        except IntegrityError:
            # Lost the race against a concurrent insert of the same (channel, identifier)
            self.db.rollback()
            existing = self.orders.find_by_identifier(row["channel"], row["identifier"])
            if existing is None:
                raise
            logger.warning(f"Reservation {row['identifier']} inserted concurrently as order {existing.id}",
                           extra={"channel": row["channel"], "order_id": existing.id})
            raise BookingError(E_DUPLICATE_RESERVATION, reference=_reference(existing))
        if not order_id:
            raise BookingError(E_RESERVATION_WRITE)
        return order_id

    def read(self, order_id: int) -> Dict[str, Any]:
        order = self.orders.get_by_id(order_id)
        if order is None:
            raise BookingError(E_RESERVATION_READ)
        return header_projection(order)

    def create(self, channel: str, header: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a validated header and return its persisted projection."""
        row = prepare_header_row(channel, header, generate_hash())
        order_id = self.write(row)
        logger.info(f"Reservation {row['identifier']} written as order {order_id}",
                    extra={"channel": channel, "order_id": order_id})
        return self.read(order_id)

    def load_for_update(self, order_id: int, channel: str) -> Order:
        order = self.orders.get_for_channel(order_id, channel)
        if order is None:
            raise BookingError(E_RESERVATION_NOT_FOUND)
        if order.status == CANCELLED:
            raise BookingError(E_RESERVATION_CANCELLED)
        return order

    def update(self, order: Order, header: Dict[str, Any], allow_empty: bool = False) -> Dict[str, Any]:
        """Apply provided header fields and bump the version by one."""
        row = prepare_header_update_row(header, (order.version or 0) + 1, allow_empty=allow_empty)
        if not row:
            raise BookingError(E_NOTHING_TO_UPDATE)
        if self.orders.update(order.id, order.channel, row) == 0:
            raise BookingError(E_RESERVATION_NOT_UPDATED)
        return self.read(order.id)


def ensure_active(order: Optional[Order]) -> Order:
    """Service rows may only reference an existing, non-cancelled header."""
    if order is None:
        raise BookingError(E_RESERVATION_WRITE)
    if order.status == CANCELLED:
        raise BookingError(E_RESERVATION_CANCELLED)
    return order
