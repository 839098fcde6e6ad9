"""
Passenger (PAX) resolution.

Service items and transfer stopovers reference passengers by id; the details
live once in the booking's passenger directory (``create.pax``). Resolution
embeds a normalized copy of each referenced passenger in the written row.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from booking_api.core.config import settings
from booking_api.core.errors import BookingError, E_MAIN_PAX_INCOMPLETE

logger = logging.getLogger(__name__)

MAIN_REQUIRED_FIELDS = ("firstName", "lastName", "document", "birthdate", "gender")


def flatten_pax_ids(assigned: Any) -> List[str]:
    """Normalize a scalar, flat list or nested list of ids into a flat list of strings."""
    if assigned is None or assigned == "":
        return []
    if isinstance(assigned, (list, tuple, set)):
        ids: List[str] = []
        for entry in assigned:
            ids.extend(flatten_pax_ids(entry))
        return ids
    if isinstance(assigned, dict):
        # {"id": "PAX1"} style reference
        return flatten_pax_ids(assigned.get("id"))
    return [str(assigned)]


def normalize_directory(directory: Any) -> Dict[str, Dict[str, Any]]:
    """Accept the directory as {id: detail} or as a list of details carrying an id."""
    if not directory:
        return {}
    if isinstance(directory, dict):
        return {str(k): v for k, v in directory.items() if isinstance(v, dict)}
    if isinstance(directory, list):
        return {
            str(entry["id"]): entry
            for entry in directory
            if isinstance(entry, dict) and entry.get("id") is not None
        }
    return {}


def normalize_pax(pax_id: str, detail: Dict[str, Any]) -> Dict[str, Any]:
    document = detail.get("document") or {}
    if not isinstance(document, dict):
        document = {"type": "", "number": str(document)}
    return {
        "id": pax_id,
        "main": bool(detail.get("main", False)),
        "firstName": detail.get("firstName") or "",
        "lastName": detail.get("lastName") or "",
        "phone": detail.get("phone") or "",
        "email": detail.get("email") or "",
        "country": detail.get("country") or "",
        "document": {
            "type": document.get("type") or "",
            "number": document.get("number") or "",
        },
        "birthdate": detail.get("birthdate") or "",
        "gender": detail.get("gender") or "",
        "ageGroup": detail.get("ageGroup") or "",
        "assignment": detail.get("assignment") or {},
    }


def missing_main_fields(detail: Dict[str, Any]) -> List[str]:
    """Identity fields a main passenger lacks (empty list when complete or not main)."""
    if not detail.get("main"):
        return []
    missing = []
    for field in MAIN_REQUIRED_FIELDS:
        value = detail.get(field)
        if field == "document":
            number = value.get("number") if isinstance(value, dict) else value
            if not number:
                missing.append(field)
        elif not value:
            missing.append(field)
    return missing


def _directory_entries(directory: Any) -> List[Tuple[str, Dict[str, Any]]]:
    """Every passenger detail with a label; list entries without an id are kept."""
    if isinstance(directory, dict):
        return [(str(k), v) for k, v in directory.items() if isinstance(v, dict)]
    if isinstance(directory, list):
        return [
            (str(entry["id"]) if entry.get("id") is not None else f"#{index + 1}", entry)
            for index, entry in enumerate(directory)
            if isinstance(entry, dict)
        ]
    return []


def validate_main_passengers(directory: Any) -> None:
    """Raise E121 when any passenger flagged main lacks a required identity field."""
    for pax_id, detail in _directory_entries(directory):
        missing = missing_main_fields(detail)
        if missing:
            raise BookingError(
                E_MAIN_PAX_INCOMPLETE,
                detail=f"{pax_id}: missing {', '.join(missing)}",
            )


def resolve_pax(
    assigned: Any,
    directory: Any,
    drop_unnamed: Optional[bool] = None,
) -> Tuple[List[Dict[str, Any]], Dict[str, Dict[str, Any]]]:
    """
    Resolve assigned passenger ids against the directory.

    Returns (ordered list, mapping id -> record). Ids missing from the
    directory are skipped. With ``drop_unnamed`` (default from settings)
    passengers without first and last name are not forwarded.
    """
    if drop_unnamed is None:
        drop_unnamed = settings.pax_drop_unnamed
    known = normalize_directory(directory)
    pax_list: List[Dict[str, Any]] = []
    pax_info: Dict[str, Dict[str, Any]] = {}
    for pax_id in flatten_pax_ids(assigned):
        if pax_id in pax_info:
            continue
        detail = known.get(pax_id)
        if detail is None:
            logger.debug(f"Passenger {pax_id} not in directory, skipped")
            continue
        record = normalize_pax(pax_id, detail)
        if drop_unnamed and not record["firstName"] and not record["lastName"]:
            continue
        pax_list.append(record)
        pax_info[pax_id] = record
    return pax_list, pax_info


def main_passenger(pax_list: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for record in pax_list:
        if record.get("main"):
            return record
    return None
