"""
Reservation routes: booking creation and modification.
Every outcome is answered with the reservation envelope; the HTTP status mirrors it.
"""

from fastapi import APIRouter, Depends, Path
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import logging

from booking_api.api.schemas import BookingRequest
from booking_api.core.i18n import Messages, get_messages
from booking_api.db.database import get_db
from booking_api.services.booking import BookingService
from booking_api.services.modification import ModificationService
from booking_api.services.storage import BackupStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reservation"])


def _reply(status_code: int, body: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


@router.post("/reservation")
def create_reservation(
    request: BookingRequest,
    db: Session = Depends(get_db),
    messages: Messages = Depends(get_messages),
    storage: BackupStorage = Depends(get_storage),
):
    """
    Create a reservation with all of its services in one transaction.

    201 with S121 when every service was written, 201 with S126 on partial
    success, 409 with the existing reference for a duplicate reservation,
    400 for validation failures or when no service could be written.
    """
    logger.info(f"Create reservation {request.create.get('identifier')} for channel {request.channel}")
    status_code, body = BookingService(db, messages, storage).create(request.channel, request.create)
    return _reply(status_code, body)


@router.post("/reservation/{order_id}/modification")
def modify_reservation(
    request: BookingRequest,
    order_id: int = Path(..., ge=1, description="Reservation id"),
    db: Session = Depends(get_db),
    messages: Messages = Depends(get_messages),
):
    """Update header fields and existing services; bumps the reservation version."""
    logger.info(f"Modify reservation {order_id} for channel {request.channel}")
    status_code, body = ModificationService(db, messages).modify(order_id, request.channel, request.create)
    return _reply(status_code, body)
