from datetime import timezone

from plantcare.models import SensorSnapshot


def test_from_mapping_reads_camel_and_snake_case():
    snap = SensorSnapshot.from_mapping(
        {"soilMoisture": "40", "humidity": 55, "temp": 21, "deviceId": "pot", "lastUpdated": "2024-06-01T12:00:00Z"}
    )
    assert snap.soil_moisture == 40.0
    assert snap.temperature == 21.0
    assert snap.device_id == "pot"
    assert snap.last_updated.tzinfo == timezone.utc
    assert snap.last_updated.hour == 12


def test_from_mapping_leaves_bad_values_empty():
    snap = SensorSnapshot.from_mapping({"soil_moisture": "dry", "humidity": True, "lastUpdated": "yesterday"})
    assert snap.soil_moisture is None
    assert snap.humidity is None


def test_to_dict_uses_wire_names():
    body = SensorSnapshot.demo().to_dict()
    assert set(body) == {"soilMoisture", "humidity", "temperature", "lastUpdated", "deviceId"}


def test_from_mapping_drops_integers_too_large_for_float():
    snap = SensorSnapshot.from_mapping({"soilMoisture": 10**400, "humidity": 55})
    assert snap.soil_moisture is None
    assert snap.humidity == 55.0
