"""
Rule-based chat answers, used whenever the language model cannot be reached.

Keyword categories are tried in a fixed order and the first hit wins:
soil, watering, temperature, humidity, health, tips, then a generic prompt.
Each category picks a template from the live readings, so the answer is
still grounded in the sensors even without the model.
"""
from __future__ import annotations

import math
import random
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .classifier import band_key
from .i18n import t
from .models import FIELD_ALIASES, Language, Metric, SensorSnapshot

SnapshotLike = Union[SensorSnapshot, Mapping[str, Any], None]

# Used when a reading is missing, so an empty snapshot still gets an answer.
DEFAULT_READINGS = {"soil_moisture": 65.0, "humidity": 72.0, "temperature": 24.0}

WATERING_THRESHOLD = 40
TEMPERATURE_COOL = 18
TEMPERATURE_WARM = 30
HUMIDITY_LOW = 40
HUMIDITY_HIGH = 80

# Inclusive healthy ranges for the overall health check.
HEALTHY_RANGES = {
    "soil_moisture": (30, 85),
    "temperature": (16, 32),
    "humidity": (35, 85),
}

KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("soil", ("soil", "moisture", "تربة", "التربة")),
    ("water", ("water", "سقي", "الري", "ماء")),
    ("temperature", ("temperature", "temp", "حرارة", "الحرارة")),
    ("humidity", ("humidity", "رطوبة", "الرطوبة")),
    ("health", ("health", "status", "صحة", "حالة")),
    ("tips", ("tip", "care", "help", "نصيحة", "نصائح", "عناية", "مساعدة")),
]

TEMPLATES: Dict[Language, Dict[str, str]] = {
    Language.EN: {
        "soil_low": "Your soil moisture is quite low at {moisture}%. I recommend watering your plants soon. Most plants prefer soil moisture between 50-70%.",
        "soil_high": "Your soil moisture is quite high at {moisture}%. Make sure there's good drainage to prevent root rot. Consider reducing watering frequency.",
        "soil_ok": "Your soil moisture is excellent at {moisture}%! This is optimal for most plants. Keep up the good care routine.",
        "water_yes": "Yes, your plants could use some water. Current soil moisture is {moisture}%. Water slowly until you see slight runoff, then stop.",
        "water_no": "Your soil moisture looks good at {moisture}%. You don't need to water right now. Check again in a day or two.",
        "temp_cool": "Temperature is {temperature}°C, which is a bit cool for most plants. Consider moving them to a warmer location or using a heat mat.",
        "temp_warm": "Temperature is {temperature}°C, which is quite warm. Ensure good air circulation and consider moving plants away from direct heat sources.",
        "temp_ok": "Temperature is perfect at {temperature}°C! This is ideal for most houseplants. Your plants should be happy with this temperature.",
        "humidity_low": "Humidity is {humidity}%, which is low for most plants. Consider using a humidifier or placing a water tray near your plants.",
        "humidity_high": "Humidity is {humidity}%, which is quite high. Ensure good air circulation to prevent fungal issues.",
        "humidity_ok": "Humidity is great at {humidity}%! This level is perfect for most houseplants.",
        "health_ok": "Your plants are in excellent health! All readings are optimal: {moisture}% soil moisture, {temperature}°C temperature, {humidity}% humidity.",
        "health_issues": "Your plants need some attention. Current issues: {issues}. Check the readings above and adjust care accordingly.",
    },
    Language.AR: {
        "soil_low": "رطوبة التربة منخفضة عند {moisture}%. أنصح بسقي النباتات قريباً. معظم النباتات تفضل رطوبة التربة بين 50-70%.",
        "soil_high": "رطوبة التربة عالية عند {moisture}%. تأكد من وجود تصريف جيد لمنع تعفن الجذور.",
        "soil_ok": "رطوبة التربة ممتازة عند {moisture}%! هذا مثالي لمعظم النباتات.",
        "water_yes": "نعم، نباتاتك تحتاج إلى الماء. رطوبة التربة الحالية {moisture}%. اسقِ ببطء حتى ترى تصريف طفيف.",
        "water_no": "رطوبة التربة جيدة عند {moisture}%. لا تحتاج للسقي الآن.",
        "temp_cool": "درجة الحرارة {temperature}°م، وهي باردة قليلاً لمعظم النباتات. فكّر في نقلها إلى مكان أدفأ.",
        "temp_warm": "درجة الحرارة {temperature}°م، وهي مرتفعة. تأكد من تهوية جيدة وأبعد النباتات عن مصادر الحرارة المباشرة.",
        "temp_ok": "درجة الحرارة مثالية عند {temperature}°م! هذا مناسب لمعظم النباتات المنزلية.",
        "humidity_low": "الرطوبة {humidity}%، وهي منخفضة لمعظم النباتات. استخدم مرطب هواء أو ضع صينية ماء بالقرب من النباتات.",
        "humidity_high": "الرطوبة {humidity}%، وهي مرتفعة. تأكد من تهوية جيدة لمنع الأمراض الفطرية.",
        "humidity_ok": "الرطوبة ممتازة عند {humidity}%! هذا المستوى مثالي لمعظم النباتات المنزلية.",
        "health_ok": "نباتاتك بصحة ممتازة! جميع القراءات مثالية: رطوبة التربة {moisture}%، درجة الحرارة {temperature}°م، الرطوبة {humidity}%.",
        "health_issues": "نباتاتك تحتاج إلى بعض الاهتمام. المشاكل الحالية: {issues}. تحقق من القراءات وعدّل العناية وفقاً لذلك.",
    },
}

TIPS: Dict[Language, Tuple[str, ...]] = {
    Language.EN: (
        "💧 Water when soil moisture drops below 40% for most plants.",
        "🌡️ Keep temperature between 18-26°C for optimal growth.",
        "💨 Maintain humidity between 40-70% for healthy plants.",
        "☀️ Ensure adequate light but avoid direct harsh sunlight.",
        "🕒 Check your plants daily and water early morning when possible.",
        "🌱 Rotate plants weekly for even growth and light exposure.",
    ),
    Language.AR: (
        "💧 اسقِ معظم النباتات عندما تنخفض رطوبة التربة عن 40%.",
        "🌡️ حافظ على درجة الحرارة بين 18-26°م لنمو مثالي.",
        "💨 حافظ على الرطوبة بين 40-70% لنباتات صحية.",
        "☀️ وفّر إضاءة كافية وتجنب أشعة الشمس المباشرة القوية.",
        "🕒 افحص نباتاتك يومياً واسقِها في الصباح الباكر إن أمكن.",
        "🌱 أدر النباتات أسبوعياً لنمو متوازن وتعرض متساوٍ للضوء.",
    ),
}

DEFAULT_RESPONSES: Dict[Language, Tuple[str, ...]] = {
    Language.EN: (
        "I'm here to help with your plant care! Ask me about soil moisture, watering, temperature, or humidity.",
        "Your current readings show everything is looking good! Is there something specific you'd like to know?",
        "I can provide plant care advice based on your sensor data. What would you like to know?",
        "Feel free to ask about watering schedules, optimal growing conditions, or plant health!",
    ),
    Language.AR: (
        "أنا هنا لمساعدتك في العناية بالنباتات! اسألني عن رطوبة التربة أو السقي أو درجة الحرارة أو الرطوبة.",
        "قراءاتك الحالية تبدو جيدة! هل هناك شيء محدد تود معرفته؟",
        "يمكنني تقديم نصائح للعناية بالنباتات بناءً على بيانات المستشعرات. ماذا تود أن تعرف؟",
        "لا تتردد في السؤال عن مواعيد السقي أو ظروف النمو المثالية أو صحة النبات!",
    ),
}

_ISSUE_LABEL_KEYS = {
    "soil_moisture": "soilMoisture",
    "temperature": "temperature",
    "humidity": "humidity",
}


def round_half_up(value: float, places: int = 0) -> float:
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    try:
        return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # Too many integer digits for the decimal context; nothing left to round.
        return value


def format_number(value: float) -> str:
    """Render 25.0 as "25" and 24.5 as "24.5"."""
    if math.isfinite(value) and abs(value) < 1e15 and value == int(value):
        return str(int(value))
    return str(value)


def _reading(snapshot: SnapshotLike, attr: str) -> float:
    value: Any = None
    if isinstance(snapshot, SensorSnapshot):
        value = getattr(snapshot, attr)
    elif isinstance(snapshot, Mapping):
        for key, target in FIELD_ALIASES.items():
            if target == attr and snapshot.get(key) is not None:
                value = snapshot.get(key)
                break
    try:
        return float(value) if value is not None and not isinstance(value, bool) else DEFAULT_READINGS[attr]
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_READINGS[attr]


def match_category(message: Any) -> Optional[str]:
    """First keyword category contained in the message, or None."""
    text = str(message or "").lower()
    for category, words in KEYWORDS:
        if any(word in text for word in words):
            return category
    return None


def generate_fallback(
    message: Any,
    snapshot: SnapshotLike,
    language: Language | str = Language.EN,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Build a canned answer from keyword matching and the current readings.

    Args:
        message: The user's question, any case.
        snapshot: A SensorSnapshot or a camelCase/snake_case dict. Missing
            readings fall back to DEFAULT_READINGS.
        language: "en" or "ar"; anything else answers in English.
        rng: Optional random.Random for the tips / default pools.

    Returns:
        A non-empty answer string. The snapshot is only read.
    """
    lang = Language.resolve(language)
    choose = (rng or random).choice
    templates = TEMPLATES[lang]

    moisture = round_half_up(_reading(snapshot, "soil_moisture"))
    humidity = round_half_up(_reading(snapshot, "humidity"))
    temperature = round_half_up(_reading(snapshot, "temperature"), 1)
    values = {
        "moisture": format_number(moisture),
        "humidity": format_number(humidity),
        "temperature": format_number(temperature),
    }

    category = match_category(message)

    if category == "soil":
        band = band_key(Metric.MOISTURE, moisture)
        if band == "dry":
            return templates["soil_low"].format(**values)
        if band == "wet":
            return templates["soil_high"].format(**values)
        return templates["soil_ok"].format(**values)

    if category == "water":
        if moisture < WATERING_THRESHOLD:
            return templates["water_yes"].format(**values)
        return templates["water_no"].format(**values)

    if category == "temperature":
        if temperature < TEMPERATURE_COOL:
            return templates["temp_cool"].format(**values)
        if temperature > TEMPERATURE_WARM:
            return templates["temp_warm"].format(**values)
        return templates["temp_ok"].format(**values)

    if category == "humidity":
        if humidity < HUMIDITY_LOW:
            return templates["humidity_low"].format(**values)
        if humidity > HUMIDITY_HIGH:
            return templates["humidity_high"].format(**values)
        return templates["humidity_ok"].format(**values)

    if category == "health":
        issues = unhealthy_metrics(moisture, temperature, humidity)
        if not issues:
            return templates["health_ok"].format(**values)
        separator = "، " if lang is Language.AR else ", "
        names = [t(_ISSUE_LABEL_KEYS[name], lang).lower() for name in issues]
        return templates["health_issues"].format(issues=separator.join(names), **values)

    if category == "tips":
        return choose(TIPS[lang])

    return choose(DEFAULT_RESPONSES[lang])


def unhealthy_metrics(moisture: float, temperature: float, humidity: float) -> List[str]:
    """Names of readings outside HEALTHY_RANGES, in soil/temperature/humidity order."""
    readings = {"soil_moisture": moisture, "temperature": temperature, "humidity": humidity}
    issues = []
    for name, value in readings.items():
        low, high = HEALTHY_RANGES[name]
        # NaN compares false both ways; count it as out of range.
        if not (low <= value <= high):
            issues.append(name)
    return issues
