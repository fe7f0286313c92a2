from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests

from .config import settings
from .display import render_view
from .errors import NetworkFailure, UpstreamFailure
from .fallback import generate_fallback
from .models import Language, SensorSnapshot
from .snapshot import SnapshotStore
from .speech import Speaker, clean_for_speech, voice_settings


logger = logging.getLogger("plantcare.client")


class DashboardClient:
    """Polls the sensor service and talks to the chat endpoint.

    Mirrors what the browser dashboard does: a fixed-interval poll keeps a
    local snapshot fresh, and chat answers come from the server or, if the
    server can't be reached at all, from the local fallback engine.
    """

    def __init__(
        self,
        server_url: Optional[str] = None,
        language: Language | str | None = None,
        poll_interval: Optional[float] = None,
        speaker: Optional[Speaker] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.server_url = (server_url or settings.SERVER_URL).rstrip("/")
        self.language = Language.resolve(language or settings.DEFAULT_LANGUAGE)
        self.poll_interval = poll_interval if poll_interval is not None else settings.POLL_INTERVAL_SECONDS
        self.timeout = timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS
        self.speaker = speaker
        self.speech_enabled = False
        self.connected = False
        self.store = SnapshotStore()
        self.chat_history: List[Tuple[str, str]] = []

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # -- polling -----------------------------------------------------------

    def fetch_sensor_data(self) -> bool:
        """One poll. Returns True when a reading was applied."""
        try:
            resp = requests.get(f"{self.server_url}/api/sensor-data", timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("sensor_poll_failed error=%s", e)
            self.connected = False
            return False

        if not resp.ok:
            logger.warning("sensor_poll_failed status=%s", resp.status_code)
            self.connected = False
            return False

        try:
            data = resp.json()
        except ValueError as e:
            logger.warning("sensor_poll_unreadable error=%s", e)
            self.connected = False
            return False
        if not isinstance(data, dict):
            logger.warning("sensor_poll_unreadable body=%r", data)
            self.connected = False
            return False

        self._apply(data)
        self.connected = True
        return True

    def _apply(self, data: Dict[str, Any]) -> None:
        incoming = SensorSnapshot.from_mapping(data)
        current = self.store.get()
        merged = SensorSnapshot(
            soil_moisture=incoming.soil_moisture if incoming.soil_moisture is not None else current.soil_moisture,
            humidity=incoming.humidity if incoming.humidity is not None else current.humidity,
            temperature=incoming.temperature if incoming.temperature is not None else current.temperature,
            # Stamped on receipt, like the browser does.
            last_updated=datetime.now(timezone.utc),
            device_id=incoming.device_id if "deviceId" in data or "device_id" in data else current.device_id,
        )
        self.store.replace(merged)

    def _poll_loop(self) -> None:
        logger.info("sensor_poller_started interval=%s url=%s", self.poll_interval, self.server_url)
        while not self._stop_event.is_set():
            self.fetch_sensor_data()
            self._stop_event.wait(self.poll_interval)
        logger.info("sensor_poller_stopped")

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, name="sensor-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 3.0) -> None:
        # An in-flight request is not aborted; the loop just won't poll again.
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def view(self) -> Dict[str, Any]:
        return render_view(self.store.get(), self.connected, self.language)

    # -- chat --------------------------------------------------------------

    def set_language(self, language: Language | str) -> None:
        self.language = Language.resolve(language)

    def toggle_speech(self) -> bool:
        self.speech_enabled = not self.speech_enabled
        return self.speech_enabled

    def clear_chat(self) -> None:
        self.chat_history.clear()

    def get_ai_response(self, message: str) -> str:
        snapshot = self.store.get()
        body = {
            "message": message,
            "sensorData": snapshot.to_dict(),
            "language": self.language.value,
        }
        try:
            resp = requests.post(f"{self.server_url}/api/chat", json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkFailure(str(e)) from e
        if not resp.ok:
            raise UpstreamFailure(f"HTTP error! status: {resp.status_code}", status_code=resp.status_code)
        try:
            return str(resp.json()["response"])
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamFailure(f"unreadable chat response: {e}") from e

    def send_chat(self, message: str) -> Optional[str]:
        """Send a message (typed or from speech-to-text) and return the answer.

        Blank messages are ignored and return None.
        """
        message = (message or "").strip()
        if not message:
            return None

        self.chat_history.append(("user", message))
        try:
            answer = self.get_ai_response(message)
        except (NetworkFailure, UpstreamFailure) as e:
            logger.warning("chat_request_failed error=%s using=local_fallback", e)
            answer = generate_fallback(message, self.store.get(), self.language)

        self.chat_history.append(("bot", answer))
        self.speak(answer)
        return answer

    def speak(self, text: str) -> None:
        if not (self.speech_enabled and self.speaker):
            return
        cleaned = clean_for_speech(text)
        if not cleaned:
            return
        try:
            self.speaker(cleaned, voice_settings(self.language))
        except Exception as e:
            logger.error("speech_output_failed error=%s", e)
