import json

import pytest
import requests
from fastapi.testclient import TestClient

from plantcare import llm_engine
from plantcare.main import app
from plantcare.snapshot import SnapshotStore


@pytest.fixture
def client():
    app.state.store = SnapshotStore()
    return TestClient(app)


@pytest.fixture
def ollama_down(monkeypatch):
    def refused(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(llm_engine.requests, "post", refused)
    monkeypatch.setattr(llm_engine.requests, "get", refused)


def test_get_sensor_data_returns_demo_snapshot(client):
    body = client.get("/api/sensor-data").json()
    assert body["soilMoisture"] == 65
    assert body["humidity"] == 72
    assert body["temperature"] == 24
    assert body["deviceId"] == "simulation"
    assert "lastUpdated" in body


def test_post_sensor_data_partial_update(client):
    resp = client.post("/api/sensor-data", json={"soilMoisture": 0, "deviceId": "ESP32-kitchen"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["message"] == "Sensor data received"
    assert body["data"]["soilMoisture"] == 0
    assert body["data"]["humidity"] == 72

    latest = client.get("/api/sensor-data").json()
    assert latest["soilMoisture"] == 0
    assert latest["deviceId"] == "ESP32-kitchen"


def test_post_without_device_id_defaults_to_esp32(client):
    body = client.post("/api/sensor-data", json={"humidity": "55.5"}).json()
    assert body["data"]["deviceId"] == "ESP32"
    assert body["data"]["humidity"] == 55.5


def test_invalid_sensor_body_is_rejected_and_snapshot_untouched(client):
    before = client.get("/api/sensor-data").json()

    resp = client.post("/api/sensor-data", json={"soilMoisture": 10, "temperature": "hot"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["status"] == "error"
    assert "invalid_temperature" in body["errors"]

    resp = client.post("/api/sensor-data", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["errors"] == ["body_not_json"]

    assert client.get("/api/sensor-data").json() == before


def test_sensor_status_labels(client):
    client.post("/api/sensor-data", json={"soilMoisture": 30, "humidity": 90, "temperature": 28})
    body = client.get("/api/sensor-status", params={"language": "ar"}).json()
    assert body["language"] == "ar"
    assert body["status"]["moisture"] == {"key": "poor", "label": "ضعيف"}
    assert body["status"]["humidity"]["label"] == "رطب"
    assert body["status"]["temperature"]["key"] == "good"


def test_chat_falls_back_with_200_when_ollama_is_down(client, ollama_down):
    resp = client.post("/api/chat", json={"message": "What about my soil?", "sensorData": {"soilMoisture": 25}})
    assert resp.status_code == 200
    assert "25%" in resp.json()["response"]


def test_chat_uses_stored_snapshot_without_sensor_data(client, ollama_down):
    client.post("/api/sensor-data", json={"soilMoisture": 90})
    reply = client.post("/api/chat", json={"message": "soil", "language": "en"}).json()["response"]
    assert "quite high at 90%" in reply


def test_chat_returns_model_text(client, monkeypatch):
    class Answer:
        ok = True
        status_code = 200

        def json(self):
            return {"response": " Your basil is fine. "}

    monkeypatch.setattr(llm_engine.requests, "post", lambda *a, **k: Answer())
    resp = client.post("/api/chat", json={"message": "how is my basil", "language": "en"})
    assert resp.json() == {"response": "Your basil is fine."}


def test_chat_stream_sends_fallback_token(client, ollama_down):
    resp = client.post("/api/chat/stream", json={"message": "health", "sensorData": {"soilMoisture": 65, "humidity": 72, "temperature": 24}})
    assert resp.status_code == 200
    events = [block for block in resp.text.split("\n\n") if block]
    names = [block.split("\n")[0].removeprefix("event: ") for block in events]
    assert names == ["meta", "token", "done"]
    token = json.loads(events[1].split("data: ", 1)[1])
    assert "excellent health" in token["text"]
    done = json.loads(events[2].split("data: ", 1)[1])
    assert done["fallback"] is True


def test_translations(client):
    body = client.get("/api/translations/ar").json()
    assert body["language"] == "ar"
    assert body["strings"]["status"]["wet"] == "رطب"
    assert client.get("/api/translations/xx").json()["language"] == "en"


def test_health_and_ollama_status(client, ollama_down):
    health = client.get("/api/health").json()
    assert health["status"] == "running"
    assert health["ollama"] == "unchecked"
    assert client.get("/api/health", params={"include_llm": True}).json()["ollama"] == "disconnected"

    status = client.get("/api/ollama-status").json()
    assert status["status"] == "disconnected"
    assert "refused" in status["error"]


def test_index_page_is_served(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Project Gaia" in resp.text


def test_huge_float_reading_is_stored_and_chat_still_answers(client, ollama_down):
    resp = client.post("/api/sensor-data", json={"soilMoisture": 1e30})
    assert resp.status_code == 200
    resp = client.post("/api/chat", json={"message": "soil", "language": "en"})
    assert resp.status_code == 200
    assert "1e+30%" in resp.json()["response"]


def test_integer_too_large_for_float_is_rejected(client, ollama_down):
    resp = client.post("/api/sensor-data", json={"soilMoisture": 10**400})
    assert resp.status_code == 400
    assert "invalid_soil_moisture" in resp.json()["errors"]

    resp = client.post("/api/chat", json={"message": "soil", "sensorData": {"soilMoisture": 10**400}})
    assert resp.status_code == 200
    assert "65%" in resp.json()["response"]
