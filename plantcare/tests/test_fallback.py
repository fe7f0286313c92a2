import random

from plantcare.fallback import DEFAULT_RESPONSES, TIPS, generate_fallback, match_category
from plantcare.models import Language, SensorSnapshot


def test_low_soil_moisture_recommends_watering():
    reply = generate_fallback("What about my soil?", {"soilMoisture": 25}, "en")
    assert "25%" in reply
    assert "recommend watering" in reply


def test_wet_soil_warns_about_drainage():
    reply = generate_fallback("soil moisture?", {"soilMoisture": 80}, "en")
    assert "quite high at 80%" in reply
    assert "drainage" in reply


def test_healthy_readings_report_excellent_health():
    snapshot = {"soilMoisture": 65, "humidity": 72, "temperature": 24}
    reply = generate_fallback("health check please", snapshot, "en")
    assert "excellent health" in reply
    assert "65% soil moisture, 24°C temperature, 72% humidity" in reply


def test_health_lists_each_problem_metric():
    snapshot = SensorSnapshot(soil_moisture=20, humidity=90, temperature=24)
    reply = generate_fallback("status?", snapshot, "en")
    assert "need some attention" in reply
    assert "soil moisture, humidity" in reply
    assert "temperature," not in reply


def test_first_matching_category_wins():
    # "soil" outranks "water" and "temperature".
    assert match_category("Should I water the soil given the temperature?") == "soil"
    assert match_category("Water or not?") == "water"
    assert match_category("how HOT is the Temp") == "temperature"
    assert match_category("hello") is None


def test_watering_threshold():
    assert "could use some water" in generate_fallback("water?", {"soilMoisture": 39.4}, "en")
    assert "don't need to water" in generate_fallback("water?", {"soilMoisture": 40}, "en")


def test_temperature_and_humidity_templates():
    assert "a bit cool" in generate_fallback("temp?", {"temperature": 17.94}, "en")
    assert "perfect at 18°C" in generate_fallback("temp?", {"temperature": 17.96}, "en")
    assert "17.9°C" in generate_fallback("temp?", {"temperature": 17.94}, "en")
    assert "quite warm" in generate_fallback("temperature", {"temperature": 31}, "en")
    assert "perfect at 22.5°C" in generate_fallback("temperature", {"temperature": 22.45}, "en")
    assert "Humidity is 30%" in generate_fallback("humidity", {"humidity": 30}, "en")
    assert "quite high" in generate_fallback("humidity", {"humidity": 81}, "en")


def test_missing_readings_use_demo_values():
    reply = generate_fallback("soil", {}, "en")
    assert "65%" in reply
    assert "65%" in generate_fallback("soil", None, "en")


def test_zero_is_a_reading_not_a_missing_value():
    reply = generate_fallback("soil", {"soilMoisture": 0}, "en")
    assert "quite low at 0%" in reply


def test_tips_and_defaults_come_from_known_sets():
    rng = random.Random(7)
    for _ in range(20):
        assert generate_fallback("any tips?", {}, "en", rng=rng) in TIPS[Language.EN]
        assert generate_fallback("hello there", {}, "en", rng=rng) in DEFAULT_RESPONSES[Language.EN]
        assert generate_fallback("مرحبا", {}, "ar", rng=rng) in DEFAULT_RESPONSES[Language.AR]


def test_arabic_soil_answer():
    reply = generate_fallback("كيف حال التربة؟", {"soilMoisture": 25}, "ar")
    assert "25%" in reply
    assert "منخفضة" in reply


def test_arabic_humidity_is_not_mistaken_for_soil():
    reply = generate_fallback("ما هي الرطوبة؟", {"humidity": 50}, "ar")
    assert reply.startswith("الرطوبة ممتازة")


def test_snapshot_is_not_mutated():
    snapshot = SensorSnapshot(soil_moisture=25.4, humidity=None, temperature=24.0)
    before = snapshot.copy()
    generate_fallback("health", snapshot, "en")
    assert snapshot == before


def test_odd_inputs_still_produce_text():
    for message in (None, "", 42):
        assert generate_fallback(message, {"soilMoisture": "n/a"}, "xx")
    assert generate_fallback("health", {"soilMoisture": float("nan")}, "en")


def test_huge_readings_do_not_break_rounding():
    reply = generate_fallback("soil", {"soilMoisture": 1e30}, "en")
    assert "1e+30%" in reply
    assert generate_fallback("health", {"soilMoisture": 1e30, "humidity": 1e30, "temperature": 1e30}, "en")


def test_unconvertible_big_integer_uses_demo_value():
    assert "65%" in generate_fallback("soil", {"soilMoisture": 10**400}, "en")
