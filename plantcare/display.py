"""
View-model helpers for the dashboard cards.

The rendering layer only consumes strings and percentages: a rounded value,
a status label, and a progress-bar width per metric. When there is no
connection every card shows placeholders instead.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .classifier import classify
from .fallback import format_number, round_half_up
from .i18n import t
from .models import Language, Metric, SensorSnapshot

# Temperature bar spans 10-40 °C.
TEMPERATURE_BAR_MIN = 10.0
TEMPERATURE_BAR_SPAN = 30.0


def _clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, value))


def format_age(last_updated: datetime, language: Language | str = Language.EN, now: Optional[datetime] = None) -> str:
    """"Just now" / "N min ago" / "N hours ago", else the calendar date."""
    now = now or datetime.now(timezone.utc)
    if last_updated.tzinfo is None:
        last_updated = last_updated.replace(tzinfo=timezone.utc)
    seconds = (now - last_updated).total_seconds()

    if seconds < 60:
        return t("time.justNow", language)
    if seconds < 3600:
        return t("time.minAgo", language, n=int(seconds // 60))
    if seconds < 86400:
        return t("time.hoursAgo", language, n=int(seconds // 3600))
    return last_updated.date().isoformat()


def _placeholder(unit: str, language: Language | str) -> Dict[str, Any]:
    return {"value": "--", "display": f"--{unit}", "status": t("status.noData", language), "progress": 0.0}


def _card(metric: Metric, value: Optional[float], language: Language | str) -> Dict[str, Any]:
    unit = "°C" if metric is Metric.TEMPERATURE else "%"
    if value is None:
        return _placeholder(unit, language)

    if metric is Metric.TEMPERATURE:
        shown = round_half_up(value, 1)
        progress = _clamp_pct((shown - TEMPERATURE_BAR_MIN) / TEMPERATURE_BAR_SPAN * 100)
    else:
        shown = round_half_up(value)
        progress = _clamp_pct(shown)
    return {
        "value": format_number(shown),
        "display": f"{format_number(shown)}{unit}",
        "status": classify(metric, shown, language),
        "progress": progress,
    }


def offline_view(language: Language | str = Language.EN) -> Dict[str, Any]:
    return {
        "connected": False,
        "soilMoisture": _placeholder("%", language),
        "humidity": _placeholder("%", language),
        "temperature": _placeholder("°C", language),
        "lastUpdated": t("time.noConnection", language),
    }


def render_view(
    snapshot: Optional[SensorSnapshot],
    connected: bool,
    language: Language | str = Language.EN,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build the card values for a snapshot.

    Offline (or no moisture reading at all) shows placeholders everywhere;
    otherwise only the individual readings that are missing do.
    """
    if not connected or snapshot is None or snapshot.soil_moisture is None:
        return offline_view(language)

    return {
        "connected": True,
        "soilMoisture": _card(Metric.MOISTURE, snapshot.soil_moisture, language),
        "humidity": _card(Metric.HUMIDITY, snapshot.humidity, language),
        "temperature": _card(Metric.TEMPERATURE, snapshot.temperature, language),
        "lastUpdated": format_age(snapshot.last_updated, language, now=now),
    }
