from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# Wire key -> snapshot attribute. The first key present wins.
_READING_KEYS = {
    "soil_moisture": ("soilMoisture", "soil_moisture", "moisture"),
    "humidity": ("humidity",),
    "temperature": ("temperature", "temp"),
}

_PERCENT_FIELDS = ("soil_moisture", "humidity")


@dataclass(frozen=True)
class NormalizedPayload:
    payload: Dict[str, Any]
    errors: List[str]
    warnings: List[str]


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def normalize_sensor_payload(raw: Any) -> NormalizedPayload:
    """Normalize a device POST body into a partial snapshot update.

    Accepts the ESP32's camelCase keys and snake_case equivalents:
    - soilMoisture OR soil_moisture OR moisture
    - humidity
    - temperature OR temp
    - deviceId OR device_id

    Returns a NormalizedPayload with:
    - payload: only the fields present in the body, keyed by snapshot attribute
    - errors: problems that make the body unusable (nothing is applied)
    - warnings: readings accepted as-is but outside their usual range
    """

    errors: List[str] = []
    warnings: List[str] = []
    payload: Dict[str, Any] = {}

    if not isinstance(raw, dict):
        return NormalizedPayload(payload={}, errors=["body_not_object"], warnings=[])

    for attr, keys in _READING_KEYS.items():
        key = next((k for k in keys if k in raw), None)
        if key is None or raw[key] is None:
            continue
        value = _to_float(raw[key])
        if value is None:
            errors.append(f"invalid_{attr}")
            continue
        if attr in _PERCENT_FIELDS and not 0 <= value <= 100:
            warnings.append(f"{attr}_out_of_range")
        payload[attr] = value

    device_id = raw.get("deviceId", raw.get("device_id"))
    if device_id is not None:
        if isinstance(device_id, (str, int)) and not isinstance(device_id, bool):
            payload["device_id"] = str(device_id)
        else:
            errors.append("invalid_device_id")

    return NormalizedPayload(payload=payload, errors=errors, warnings=warnings)
