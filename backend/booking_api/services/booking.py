"""
Create-booking transaction.

One session/transaction per request: header, every service row and every
stopover row are written inside it. Expected per-service failures are
collected and processing continues; booking-level failures and unexpected
exceptions roll everything back.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from booking_api.core.config import settings
from booking_api.core.errors import (
    BookingError,
    E_DUPLICATE_RESERVATION,
    E_INTERNAL,
    E_NO_SERVICES,
    E_RESERVATION_NOT_FOUND,
    E_SERVICE_CREATE,
    E_UNAVAILABLE,
    S_CREATED,
    S_CREATED_PARTIAL,
)
from booking_api.core.i18n import Messages
from booking_api.core.monitoring import track_performance
from booking_api.services.extractor import count, extract_all
from booking_api.services.pax import validate_main_passengers
from booking_api.services.reservation import ReservationWriter, validate_header
from booking_api.services.service_writer import ServiceWriter
from booking_api.services.storage import BackupStorage

logger = logging.getLogger(__name__)

_HTTP_STATUS = {
    E_DUPLICATE_RESERVATION: 409,
    E_RESERVATION_NOT_FOUND: 404,
    E_INTERNAL: 500,
    E_UNAVAILABLE: 503,
}


def http_status_for(code: str) -> int:
    return _HTTP_STATUS.get(code, 400)


def unexpected_failure_code(exc: Exception) -> str:
    """E007 when the database is unreachable, E107 for everything else."""
    return E_UNAVAILABLE if isinstance(exc, OperationalError) else E_INTERNAL


def build_envelope(
    messages: Messages,
    channel: Optional[str],
    code: str,
    header: Optional[Dict[str, Any]] = None,
    services: Optional[Dict[str, Any]] = None,
    detail: Optional[str] = None,
) -> Dict[str, Any]:
    """Response body shared by every booking outcome."""
    header = header or {}
    body: Dict[str, Any] = {
        "id": header.get("id"),
        "type": "reservation",
        "channel": channel,
        "hash": header.get("hash"),
        "version": header.get("version"),
        "status": code,
        "error": code if code.startswith("E") else None,
        "message": messages.get(code),
    }
    if detail:
        body["detail"] = detail
    if services is not None:
        body["services"] = services
    return body


def services_summary(total: int, created: List[Dict[str, Any]], failed: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "total": total,
        "created": created,
        "failed": failed,
        "details": {"created": len(created), "failed": len(failed)},
    }


def failed_entry(item: Dict[str, Any], error: BookingError, messages: Messages) -> Dict[str, Any]:
    return {
        "type": item.get("type"),
        "index": item.get("originalIndex"),
        "identifier": item.get("identifier"),
        "code": error.code,
        "message": messages.get(error.code),
        "detail": error.detail,
    }


class BookingService:
    """Runs the create-booking pipeline on a request-scoped session."""

    def __init__(self, db: Session, messages: Messages, storage: Optional[BackupStorage] = None):
        self.db = db
        self.messages = messages
        self.storage = storage
        self.reservations = ReservationWriter(db)
        self.services = ServiceWriter(db)

    @track_performance("booking.create")
    def create(self, channel: str, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """Returns (http status, envelope). Never raises."""
        try:
            return self._create(channel, payload)
        except BookingError as e:
            self.db.rollback()
            logger.info(f"Booking rejected with {e.code}: {e.detail or ''}", extra={"channel": channel})
            header = e.reference if e.code == E_DUPLICATE_RESERVATION else None
            return http_status_for(e.code), build_envelope(
                self.messages, channel, e.code, header=header, detail=e.detail
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Booking transaction rolled back: {e}", exc_info=True, extra={"channel": channel})
            code = unexpected_failure_code(e)
            return http_status_for(code), build_envelope(self.messages, channel, code)

    def _create(self, channel: str, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        total = count(payload)
        if total == 0:
            raise BookingError(E_NO_SERVICES)

        validate_header(payload)
        validate_main_passengers(payload.get("pax"))

        existing = self.reservations.check_duplicate(channel, payload["identifier"])
        if existing is not None:
            raise BookingError(E_DUPLICATE_RESERVATION, reference=existing)

        header = self.reservations.create(channel, payload)

        created: List[Dict[str, Any]] = []
        failed: List[Dict[str, Any]] = []
        for item in extract_all(payload):
            try:
                entry = self.services.create(header, item, payload)
                stopovers = entry.get("stopovers") or {}
                entry["message"] = self.messages.get(entry["code"], count=stopovers.get("total", 0))
                created.append(entry)
            except BookingError as e:
                logger.info(f"Service {item['type']}[{item['originalIndex']}] failed with {e.code}",
                            extra={"channel": channel, "order_id": header["id"]})
                failed.append(failed_entry(item, e, self.messages))

        summary = services_summary(total, created, failed)
        self._backup(channel, header, payload, summary)

        if not created:
            raise BookingError(E_SERVICE_CREATE, detail=f"{len(failed)} services failed")

        self.db.commit()
        code = S_CREATED if not failed else S_CREATED_PARTIAL
        logger.info(f"Booking {header['identifier']} committed: {len(created)} created, {len(failed)} failed",
                    extra={"channel": channel, "order_id": header["id"]})
        return 201, build_envelope(self.messages, channel, code, header=header, services=summary)

    def _backup(self, channel: str, header: Dict[str, Any], payload: Dict[str, Any], summary: Dict[str, Any]) -> None:
        if self.storage is None:
            return
        document = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "channel": channel,
            "payload": payload,
            "summary": {
                "header": header,
                "total": summary["total"],
                "created": summary["details"]["created"],
                "failed": summary["details"]["failed"],
            },
        }
        result = self.storage.save_json(document, str(header["id"]), f"{settings.backup_prefix}/{channel}")
        if not result.get("success") and result.get("error") != "disabled":
            logger.warning(f"Backup of order {header['id']} failed: {result.get('error')}")
