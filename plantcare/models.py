from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional


class Language(str, Enum):
    EN = "en"
    AR = "ar"

    @classmethod
    def resolve(cls, value: Any) -> "Language":
        """Map a loose language code ("ar", "AR", "ar-SA", None) to a Language.

        Anything unrecognised resolves to English.
        """
        if isinstance(value, Language):
            return value
        code = str(value or "").strip().lower()
        if code.startswith("ar"):
            return cls.AR
        return cls.EN


class Metric(str, Enum):
    MOISTURE = "moisture"
    HUMIDITY = "humidity"
    TEMPERATURE = "temperature"


# Wire (camelCase) name -> attribute name. Snake-case keys are accepted too.
FIELD_ALIASES = {
    "soilMoisture": "soil_moisture",
    "soil_moisture": "soil_moisture",
    "moisture": "soil_moisture",
    "humidity": "humidity",
    "temperature": "temperature",
    "temp": "temperature",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SensorSnapshot:
    soil_moisture: Optional[float] = None
    humidity: Optional[float] = None
    temperature: Optional[float] = None
    last_updated: datetime = field(default_factory=_utcnow)
    device_id: str = "simulation"

    @classmethod
    def demo(cls) -> "SensorSnapshot":
        """The reading the server reports before any device has posted."""
        return cls(soil_moisture=65.0, humidity=72.0, temperature=24.0, device_id="simulation")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "SensorSnapshot":
        """Build a snapshot from a camelCase or snake_case dict.

        Values that cannot be read as numbers are left as None.
        """
        snapshot = cls()
        if not data:
            return snapshot
        for key, attr in FIELD_ALIASES.items():
            if key in data and getattr(snapshot, attr) is None:
                setattr(snapshot, attr, _maybe_float(data[key]))
        device_id = data.get("deviceId", data.get("device_id"))
        if device_id:
            snapshot.device_id = str(device_id)
        last_updated = data.get("lastUpdated", data.get("last_updated"))
        parsed = _maybe_datetime(last_updated)
        if parsed is not None:
            snapshot.last_updated = parsed
        return snapshot

    def copy(self) -> "SensorSnapshot":
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "soilMoisture": self.soil_moisture,
            "humidity": self.humidity,
            "temperature": self.temperature,
            "lastUpdated": self.last_updated.isoformat(),
            "deviceId": self.device_id,
        }


def _maybe_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _maybe_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
