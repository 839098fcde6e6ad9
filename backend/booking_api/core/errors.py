"""
Response codes and the expected-failure exception used by the booking pipeline.
Codes are opaque strings resolved to localized text by core.i18n.
"""

from typing import Any, Dict, Optional


# Router level
E_METHOD_NOT_ALLOWED = "E001"
E_INVALID_REQUEST = "E004"
E_ROUTER = "E006"
E_UNAVAILABLE = "E007"

# Reservation (header)
E_INTERNAL = "E107"
E_START_IN_PAST = "E110"
E_END_BEFORE_START = "E111"
E_IDENTIFIER_REQUIRED = "E112"
E_PERIOD_REQUIRED = "E113"
E_INVALID_DATE = "E114"
E_DUPLICATE_RESERVATION = "E115"
E_RESERVATION_WRITE = "E116"
E_RESERVATION_NOT_FOUND = "E117"
E_RESERVATION_READ = "E118"
E_SERVICE_MODIFY = "E119"
E_NO_SERVICES = "E120"
E_MAIN_PAX_INCOMPLETE = "E121"

# Services
E_SERVICE_CREATE = "E122"
E_SERVICE_PERIOD_REQUIRED = "E123"
E_SUPPLIER_REQUIRED = "E124"
E_OCCUPANCY_REQUIRED = "E125"
E_RESERVATION_CANCELLED = "E126"
E_SERVICE_WRITE = "E127"
E_DUPLICATE_SERVICE = "E128"
E_SERVICE_IDENTIFIER_REQUIRED = "E129"
E_SERVICE_NOT_FOUND = "E131"
E_NOTHING_TO_UPDATE = "E133"
E_RESERVATION_NOT_UPDATED = "E134"
E_SERVICE_NOTHING_TO_UPDATE = "E138"
E_SERVICE_NOT_UPDATED = "E139"
E_SERVICE_ENTRY_NOT_FOUND = "E140"
E_STOPOVER_REQUIRED = "E142"
E_STOPOVER_INVALID = "E143"
E_STOPOVER_WRITE = "E144"

# Success
S_CREATED = "S121"
S_SERVICE_CREATED = "S122"
S_MODIFIED = "S123"
S_MODIFIED_PARTIAL = "S124"
S_MODIFIED_ALL = "S125"
S_CREATED_PARTIAL = "S126"
S_TRANSFER_CREATED = "S130"


class BookingError(Exception):
    """
    Expected, recoverable failure inside the booking pipeline.

    Carries a response code, an optional human detail (e.g. which stopover
    failed) and an optional reference to a pre-existing record, used for
    duplicates.
    """

    def __init__(
        self,
        code: str,
        detail: Optional[str] = None,
        reference: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(detail or code)
        self.code = code
        self.detail = detail
        self.reference = reference

    def __repr__(self) -> str:
        return f"BookingError(code={self.code!r}, detail={self.detail!r})"
