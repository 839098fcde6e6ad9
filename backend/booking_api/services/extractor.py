"""
Flattens the ``service: {<type>: [items]}`` structure of a booking payload.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

SERVICE_TYPES = (
    "room",
    "transfer",
    "tour",
    "ticket",
    "insurance",
    "flight",
    "rental",
    "note",
    "meeting",
)


def _service_block(payload: Dict[str, Any]) -> Dict[str, Any]:
    block = payload.get("service") if isinstance(payload, dict) else None
    return block if isinstance(block, dict) else {}


def extract_all(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    One entry per service item, in payload key order then array order.

    Each entry is a shallow copy of the item with ``type``, ``originalIndex``
    and ``serviceGroup`` set. Groups whose value is not a list are skipped, as
    are list entries that are not objects (their index is still consumed).
    """
    items: List[Dict[str, Any]] = []
    for group, entries in _service_block(payload).items():
        if not isinstance(entries, list):
            continue
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                continue
            items.append({**entry, "type": group, "originalIndex": index, "serviceGroup": group})
    return items


def get_by_type_and_index(payload: Dict[str, Any], service_type: str, index: int) -> Optional[Dict[str, Any]]:
    """Direct lookup of the raw item at service[type][index], or None."""
    entries = _service_block(payload).get(service_type)
    if not isinstance(entries, list) or index < 0 or index >= len(entries):
        return None
    entry = entries[index]
    return entry if isinstance(entry, dict) else None


def count(payload: Dict[str, Any], service_type: Optional[str] = None) -> int:
    """Number of extractable items, optionally for one type."""
    if service_type is None:
        return len(extract_all(payload))
    return sum(1 for item in extract_all(payload) if item["type"] == service_type)
