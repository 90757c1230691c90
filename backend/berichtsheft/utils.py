from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple


def normalize_email(value: Any) -> Optional[str]:
    """Return a lower-cased, trimmed e-mail address or ``None`` when empty."""
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None


def _coerce_duration(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if parsed >= 0 else None
    return None


def decode_legacy_activities(raw: Optional[str]) -> List[Tuple[str, Optional[float]]]:
    """Decode the legacy JSON ``activity`` column into ``(description, duration)`` pairs.

    Anything that is not a JSON array of objects with a description decodes to
    an empty list.
    """
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(parsed, list):
        return []
    activities: List[Tuple[str, Optional[float]]] = []
    for item in parsed:
        if isinstance(item, str):
            description = item.strip()
            duration = None
        elif isinstance(item, dict):
            description = str(item.get("description") or "").strip()
            duration = _coerce_duration(item.get("duration"))
        else:
            continue
        if description:
            activities.append((description, duration))
    return activities
