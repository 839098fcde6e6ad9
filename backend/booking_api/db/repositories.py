"""
Repository pattern for data access.
Writes are parameterized INSERT/UPDATE statements built from a column mapping
with absent (None) columns skipped, so an update never overwrites stored data
with NULL. Database errors propagate to the caller's transaction.
"""

from typing import Any, Dict, List, Mapping, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func, insert, update, delete
import logging

from booking_api.db.models import Order, Service, Transfer

logger = logging.getLogger(__name__)


def compact(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop columns whose value is None."""
    return {k: v for k, v in values.items() if v is not None}


def _insert(db: Session, table, values: Mapping[str, Any]) -> Optional[int]:
    row = compact(values)
    result = db.execute(insert(table).values(**row))
    pk = result.inserted_primary_key
    return pk[0] if pk and pk[0] is not None else None


def _update(db: Session, table, values: Mapping[str, Any], where: Mapping[str, Any]) -> int:
    row = compact(values)
    conditions = compact(where)
    if not row:
        raise ValueError("No columns to update")
    if not conditions:
        raise ValueError("No WHERE conditions given")
    stmt = update(table).values(**row)
    for column, value in conditions.items():
        stmt = stmt.where(table.c[column] == value)
    return db.execute(stmt).rowcount


class OrderRepository:
    """Data access for reservation headers (orders table)."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_identifier(self, channel: str, identifier: str) -> Optional[Order]:
        """Existing header for (channel, identifier), used for duplicate detection."""
        return self.db.query(Order).filter(
            Order.channel == channel,
            Order.identifier == identifier,
        ).first()

    def get_by_id(self, order_id: int) -> Optional[Order]:
        return self.db.query(Order).populate_existing().filter(
            Order.id == order_id
        ).first()

    def get_for_channel(self, order_id: int, channel: str) -> Optional[Order]:
        return self.db.query(Order).populate_existing().filter(
            Order.id == order_id,
            Order.channel == channel,
        ).first()

    def insert(self, row: Mapping[str, Any]) -> Optional[int]:
        """Insert a header row; returns the generated id."""
        return _insert(self.db, Order.__table__, row)

    def update(self, order_id: int, channel: str, row: Mapping[str, Any]) -> int:
        """Update provided columns only; returns affected row count."""
        return _update(self.db, Order.__table__, row, {"id": order_id, "channel": channel})

    def count(self) -> int:
        return self.db.query(func.count(Order.id)).scalar() or 0


class ServiceRepository:
    """Data access for booking line items (services table)."""

    def __init__(self, db: Session):
        self.db = db

    def find_duplicate(self, identifier: str, order_id: int) -> Optional[Service]:
        return self.db.query(Service).filter(
            Service.identifier == identifier,
            Service.order_id == order_id,
        ).first()

    def get_by_id(self, service_id: int) -> Optional[Service]:
        return self.db.query(Service).populate_existing().filter(
            Service.id == service_id
        ).first()

    def get_for_order(self, service_id: int, order_id: int) -> Optional[Service]:
        return self.db.query(Service).populate_existing().filter(
            Service.id == service_id,
            Service.order_id == order_id,
        ).first()

    def list_for_order(self, order_id: int) -> List[Service]:
        return self.db.query(Service).filter(
            Service.order_id == order_id
        ).order_by(Service.id).all()

    def insert(self, row: Mapping[str, Any]) -> Optional[int]:
        return _insert(self.db, Service.__table__, row)

    def update(self, service_id: int, order_id: int, row: Mapping[str, Any]) -> int:
        return _update(self.db, Service.__table__, row, {"id": service_id, "order_id": order_id})

    def delete(self, service_id: int) -> int:
        return self.db.execute(
            delete(Service.__table__).where(Service.__table__.c.id == service_id)
        ).rowcount

    def count_for_order(self, order_id: int) -> int:
        return self.db.query(func.count(Service.id)).filter(
            Service.order_id == order_id
        ).scalar() or 0


class TransferRepository:
    """Data access for transfer legs (transfers table)."""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, row: Mapping[str, Any]) -> Optional[int]:
        return _insert(self.db, Transfer.__table__, row)

    def list_for_service(self, service_id: int) -> List[Transfer]:
        return self.db.query(Transfer).filter(
            Transfer.service_id == service_id
        ).order_by(Transfer.id).all()

    def delete_for_service(self, service_id: int) -> int:
        return self.db.execute(
            delete(Transfer.__table__).where(Transfer.__table__.c.service_id == service_id)
        ).rowcount
