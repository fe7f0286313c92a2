"""
Sensor status classification.

Maps a raw reading to a qualitative label ("Dry", "Optimal", "Hot", ...)
through fixed per-metric bands. Comparisons are strict ``value < upper``,
so a reading sitting exactly on a threshold lands in the next band up.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from .i18n import t
from .models import Language, Metric


@dataclass(frozen=True)
class StatusBand:
    metric: Metric
    bounds: Tuple[Tuple[float, str], ...]  # (upper_bound, label_key), ascending
    top: str                               # label for values >= the last bound

    def key_for(self, value: float) -> str:
        for upper, key in self.bounds:
            if value < upper:
                return key
        return self.top


BANDS: Dict[Metric, StatusBand] = {
    Metric.MOISTURE: StatusBand(
        metric=Metric.MOISTURE,
        bounds=((30.0, "dry"), (50.0, "poor"), (80.0, "optimal")),
        top="wet",
    ),
    Metric.HUMIDITY: StatusBand(
        metric=Metric.HUMIDITY,
        bounds=((40.0, "poor"), (70.0, "good"), (85.0, "optimal")),
        top="wet",
    ),
    Metric.TEMPERATURE: StatusBand(
        metric=Metric.TEMPERATURE,
        bounds=((15.0, "cold"), (20.0, "good"), (28.0, "perfect"), (35.0, "good")),
        top="hot",
    ),
}


def band_key(metric: Metric | str, value: float) -> str:
    """Language-independent label key ("dry", "good", ...) for a reading."""
    return BANDS[Metric(metric)].key_for(float(value))


def classify(metric: Metric | str, value: float, language: Language | str = Language.EN) -> str:
    """
    Classify a reading and return its label in the requested language.

    Any float is accepted; out-of-range values fall into the lowest or
    highest band.
    """
    return t(f"status.{band_key(metric, value)}", language)
