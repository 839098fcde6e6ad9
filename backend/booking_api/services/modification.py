"""
Reservation modification: header update with version bump plus per-service updates.
"""

from __future__ import annotations
from typing import Any, Dict, List, Tuple
import logging

from sqlalchemy.orm import Session

from booking_api.core.errors import (
    BookingError,
    E_SERVICE_MODIFY,
    S_MODIFIED_ALL,
    S_MODIFIED_PARTIAL,
)
from booking_api.core.i18n import Messages
from booking_api.core.monitoring import track_performance
from booking_api.services.booking import (
    build_envelope,
    failed_entry,
    http_status_for,
    services_summary,
    unexpected_failure_code,
)
from booking_api.services.extractor import extract_all
from booking_api.services.reservation import ReservationWriter
from booking_api.services.service_writer import ServiceWriter

logger = logging.getLogger(__name__)


class ModificationService:
    """Applies a modification payload to an existing reservation in one transaction."""

    def __init__(self, db: Session, messages: Messages):
        self.db = db
        self.messages = messages
        self.reservations = ReservationWriter(db)
        self.services = ServiceWriter(db)

    @track_performance("booking.modify")
    def modify(self, order_id: int, channel: str, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """Returns (http status, envelope). Never raises."""
        try:
            return self._modify(order_id, channel, payload)
        except BookingError as e:
            self.db.rollback()
            logger.info(f"Modification of order {order_id} rejected with {e.code}",
                        extra={"channel": channel, "order_id": order_id})
            return http_status_for(e.code), build_envelope(self.messages, channel, e.code, detail=e.detail)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Modification of order {order_id} rolled back: {e}", exc_info=True,
                         extra={"channel": channel, "order_id": order_id})
            code = unexpected_failure_code(e)
            return http_status_for(code), build_envelope(self.messages, channel, code)

    def _modify(self, order_id: int, channel: str, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        order = self.reservations.load_for_update(order_id, channel)
        items = [item for item in extract_all(payload) if item.get("id") is not None]

        # a services-only modification still bumps the version
        header = self.reservations.update(order, payload, allow_empty=bool(items))

        updated: List[Dict[str, Any]] = []
        failed: List[Dict[str, Any]] = []
        for item in items:
            try:
                updated.append(self.services.update(order.id, item, payload.get("pax")))
            except BookingError as e:
                failed.append(failed_entry(item, e, self.messages))

        if items and not updated:
            raise BookingError(E_SERVICE_MODIFY, detail=f"{len(failed)} services failed")

        self.db.commit()
        code = S_MODIFIED_ALL if not failed else S_MODIFIED_PARTIAL
        logger.info(f"Order {order_id} modified to version {header['version']}",
                    extra={"channel": channel, "order_id": order_id})
        summary = services_summary(len(items), updated, failed) if items else None
        return 200, build_envelope(self.messages, channel, code, header=header, services=summary)
