from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .models import SensorSnapshot


logger = logging.getLogger("plantcare.snapshot")


class SnapshotStore:
    """Owner of the single current sensor reading.

    Readers always get a copy, so a caller can never mutate the stored
    snapshot behind the lock. Writes are last-writer-wins.
    """

    def __init__(self, initial: Optional[SensorSnapshot] = None) -> None:
        self._snapshot = (initial or SensorSnapshot.demo()).copy()
        self._lock = threading.Lock()

    def get(self) -> SensorSnapshot:
        with self._lock:
            return self._snapshot.copy()

    def replace(self, snapshot: SensorSnapshot) -> SensorSnapshot:
        with self._lock:
            self._snapshot = snapshot.copy()
            return self._snapshot.copy()

    def update(self, fields: Dict[str, Any], *, default_device: str = "ESP32") -> SensorSnapshot:
        """Apply a partial update; readings not in ``fields`` keep their value.

        ``lastUpdated`` is always stamped to now, and the device id falls back
        to ``default_device`` when the update does not name one.
        """
        with self._lock:
            current = self._snapshot
            updated = SensorSnapshot(
                soil_moisture=fields.get("soil_moisture", current.soil_moisture),
                humidity=fields.get("humidity", current.humidity),
                temperature=fields.get("temperature", current.temperature),
                last_updated=datetime.now(timezone.utc),
                device_id=fields.get("device_id") or default_device,
            )
            self._snapshot = updated
            logger.debug("snapshot_updated device=%s", updated.device_id)
            return updated.copy()
