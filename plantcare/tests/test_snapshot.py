import threading

from plantcare.models import SensorSnapshot
from plantcare.snapshot import SnapshotStore


def test_starts_with_demo_reading():
    snap = SnapshotStore().get()
    assert (snap.soil_moisture, snap.humidity, snap.temperature) == (65.0, 72.0, 24.0)
    assert snap.device_id == "simulation"


def test_partial_update_keeps_omitted_fields():
    store = SnapshotStore()
    before = store.get()
    after = store.update({"humidity": 0.0})
    assert after.humidity == 0.0
    assert after.soil_moisture == before.soil_moisture
    assert after.temperature == before.temperature
    assert after.device_id == "ESP32"
    assert after.last_updated >= before.last_updated


def test_readers_get_copies():
    store = SnapshotStore()
    snap = store.get()
    snap.soil_moisture = 1.0
    assert store.get().soil_moisture == 65.0


def test_replace_overwrites_wholesale():
    store = SnapshotStore()
    store.replace(SensorSnapshot(soil_moisture=10.0, device_id="pot-2"))
    snap = store.get()
    assert snap.soil_moisture == 10.0
    assert snap.humidity is None
    assert snap.device_id == "pot-2"


def test_concurrent_updates_leave_a_consistent_snapshot():
    store = SnapshotStore()

    def writer(n):
        for _ in range(200):
            store.update({"soil_moisture": float(n), "humidity": float(n), "device_id": f"d{n}"})

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    snap = store.get()
    assert snap.soil_moisture == snap.humidity
    assert snap.device_id == f"d{int(snap.soil_moisture)}"
