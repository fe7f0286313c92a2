"""
Stand-in for the ESP32: a random walk of plant readings that can be pushed
to the sensor service.

Moisture and humidity stay within 0-100 %, temperature within 10-40 °C.
Seed it for repeatable demos.
"""
from __future__ import annotations

import argparse
import logging
import random
import time
from typing import Optional

import requests

from .config import settings
from .logging_config import configure_logging
from .models import SensorSnapshot


logger = logging.getLogger("plantcare.simulator")

STEP = 4.0  # full width of one random step


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class DeviceSimulator:
    def __init__(self, seed: Optional[int] = None, start: Optional[SensorSnapshot] = None, device_id: str = "simulation") -> None:
        self._rng = random.Random(seed)
        base = start or SensorSnapshot.demo()
        self.soil_moisture = float(base.soil_moisture if base.soil_moisture is not None else 65.0)
        self.humidity = float(base.humidity if base.humidity is not None else 72.0)
        self.temperature = float(base.temperature if base.temperature is not None else 24.0)
        self.device_id = device_id

    def _variation(self) -> float:
        return (self._rng.random() - 0.5) * STEP

    def step(self) -> SensorSnapshot:
        self.soil_moisture = _clamp(self.soil_moisture + self._variation(), 0.0, 100.0)
        self.humidity = _clamp(self.humidity + self._variation(), 0.0, 100.0)
        self.temperature = _clamp(self.temperature + self._variation() * 0.5, 10.0, 40.0)
        return SensorSnapshot(
            soil_moisture=round(self.soil_moisture, 1),
            humidity=round(self.humidity, 1),
            temperature=round(self.temperature, 1),
            device_id=self.device_id,
        )

    def push(self, server_url: str, timeout: float = 5.0) -> bool:
        """Post one step to the service, like the device firmware does."""
        reading = self.step()
        body = {
            "soilMoisture": reading.soil_moisture,
            "humidity": reading.humidity,
            "temperature": reading.temperature,
            "deviceId": reading.device_id,
        }
        try:
            resp = requests.post(f"{server_url.rstrip('/')}/api/sensor-data", json=body, timeout=timeout)
        except requests.RequestException as e:
            logger.warning("simulator_push_failed error=%s", e)
            return False
        if not resp.ok:
            logger.warning("simulator_push_rejected status=%s body=%s", resp.status_code, resp.text)
            return False
        logger.info(
            "simulator_pushed moisture=%s humidity=%s temperature=%s",
            reading.soil_moisture,
            reading.humidity,
            reading.temperature,
        )
        return True


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Push simulated plant readings to the sensor service.")
    parser.add_argument("--url", default=settings.SERVER_URL)
    parser.add_argument("--interval", type=float, default=3.0)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--count", type=int, default=0, help="number of pushes, 0 = forever")
    args = parser.parse_args(argv)

    configure_logging()
    sim = DeviceSimulator(seed=args.seed)
    sent = 0
    try:
        while args.count == 0 or sent < args.count:
            sim.push(args.url)
            sent += 1
            time.sleep(args.interval)
    except KeyboardInterrupt:
        logger.info("simulator_stopped pushes=%s", sent)


if __name__ == "__main__":
    main()
