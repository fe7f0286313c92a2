from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urlparse

import requests

from .config import settings
from .errors import NetworkFailure, UpstreamFailure
from .fallback import format_number, generate_fallback
from .models import Language, SensorSnapshot


logger = logging.getLogger("plantcare.llm")

_NOT_AVAILABLE = {Language.EN: "N/A", Language.AR: "غير متوفر"}

_SYSTEM_PROMPTS = {
    Language.EN: (
        "You are a helpful plant care assistant with access to real-time sensor data. \n"
        "Current readings:\n"
        "- Soil Moisture: {moisture}%\n"
        "- Humidity: {humidity}%\n"
        "- Temperature: {temperature}°C\n\n"
        "Provide helpful, concise plant care advice based on these readings. Keep responses under "
        "100 words and be encouraging. If sensor data shows concerning values, prioritize "
        "addressing those issues."
    ),
    Language.AR: (
        "أنت مساعد ذكي للعناية بالنباتات لديك الوصول إلى بيانات المستشعرات في الوقت الفعلي.\n"
        "القراءات الحالية:\n"
        "- رطوبة التربة: {moisture}%\n"
        "- الرطوبة: {humidity}%\n"
        "- درجة الحرارة: {temperature}°م\n\n"
        "قدم نصائح مفيدة ومختصرة للعناية بالنباتات بناءً على هذه القراءات. اجعل الردود أقل من 100 "
        "كلمة وكن مشجعاً. إذا أظهرت بيانات المستشعرات قيماً مثيرة للقلق، أعط الأولوية لمعالجة هذه المشاكل."
    ),
}

_RESPONSE_LANGUAGE = {Language.EN: "English", Language.AR: "Arabic"}


def _normalize_ollama_url(url: str) -> str:
    # Accept either the full endpoint (..../api/generate) or the bare host
    # (http://localhost:11434) and normalize to /api/generate.
    parsed = urlparse(url)
    path = parsed.path or ""
    if path.rstrip("/") in ("", "/api"):
        return url.rstrip("/").removesuffix("/api") + "/api/generate"
    return url


def _ollama_base_url() -> str:
    parsed = urlparse(_normalize_ollama_url(settings.OLLAMA_URL))
    return f"{parsed.scheme}://{parsed.netloc}"


def build_system_prompt(snapshot: SensorSnapshot, language: Language | str = Language.EN) -> str:
    lang = Language.resolve(language)
    missing = _NOT_AVAILABLE[lang]

    def show(value: Optional[float]) -> str:
        return format_number(value) if value is not None else missing

    return _SYSTEM_PROMPTS[lang].format(
        moisture=show(snapshot.soil_moisture),
        humidity=show(snapshot.humidity),
        temperature=show(snapshot.temperature),
    )


def build_chat_prompt(message: str, snapshot: SensorSnapshot, language: Language | str = Language.EN) -> str:
    lang = Language.resolve(language)
    return (
        f"{build_system_prompt(snapshot, lang)}\n\n"
        f"User Question: {message}\n\n"
        f"Please respond in {_RESPONSE_LANGUAGE[lang]}:\n\n"
        "Assistant:"
    )


def _generate_body(prompt: str, stream: bool) -> Dict[str, Any]:
    return {
        "model": settings.OLLAMA_MODEL,
        "prompt": prompt,
        "stream": stream,
        "options": {
            "temperature": settings.OLLAMA_TEMPERATURE,
            "top_p": settings.OLLAMA_TOP_P,
            "num_predict": settings.OLLAMA_MAX_TOKENS,
        },
    }


def ollama_is_available(timeout_seconds: float | None = None) -> tuple[bool, str | None]:
    """Best-effort check that Ollama is reachable.

    Uses /api/tags which is cheap and doesn't require generating tokens.
    """
    try:
        list_models(timeout_seconds)
        return True, None
    except (NetworkFailure, UpstreamFailure) as e:
        return False, str(e)


def list_models(timeout_seconds: float | None = None) -> List[Dict[str, Any]]:
    timeout = float(timeout_seconds) if timeout_seconds is not None else settings.HEALTHCHECK_TIMEOUT_SECONDS
    url = _ollama_base_url() + "/api/tags"
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise NetworkFailure(str(e)) from e
    if not resp.ok:
        raise UpstreamFailure(f"HTTP {resp.status_code}: {resp.text}", status_code=resp.status_code)
    try:
        return list(resp.json().get("models") or [])
    except (ValueError, AttributeError) as e:
        raise UpstreamFailure(f"unreadable tags response: {e}") from e


def ollama_generate(prompt: str) -> str:
    """Run a non-streaming generation and return the trimmed text.

    Raises NetworkFailure when Ollama can't be reached and UpstreamFailure
    when it answers with an error status or an empty/unreadable body.
    """
    url = _normalize_ollama_url(settings.OLLAMA_URL)
    try:
        response = requests.post(
            url,
            json=_generate_body(prompt, stream=False),
            timeout=settings.OLLAMA_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise NetworkFailure(str(e)) from e

    if not response.ok:
        # Common case: model not pulled yet -> 404 with JSON error.
        raise UpstreamFailure(f"HTTP {response.status_code}: {response.text}", status_code=response.status_code)

    try:
        text = response.json().get("response")
    except (ValueError, AttributeError) as e:
        raise UpstreamFailure(f"unreadable generate response: {e}") from e
    if not isinstance(text, str) or not text.strip():
        raise UpstreamFailure("empty response from model")
    return text.strip()


def ollama_stream(prompt: str) -> Iterator[Tuple[str, Optional[Dict[str, Any]]]]:
    """Yield (chunk, final_stats) from Ollama's streaming generate API.

    - chunk: incremental text output (may be empty)
    - final_stats: dict once generation ends or fails (otherwise None);
      ``ok`` is False on failure and ``error`` says why
    """
    url = _normalize_ollama_url(settings.OLLAMA_URL)
    start = time.perf_counter()
    first_token_at: float | None = None

    def elapsed_ms() -> int:
        return int((time.perf_counter() - start) * 1000)

    try:
        with requests.post(
            url,
            json=_generate_body(prompt, stream=True),
            stream=True,
            timeout=settings.OLLAMA_TIMEOUT_SECONDS,
        ) as resp:
            if not resp.ok:
                yield "", {
                    "ok": False,
                    "error": f"HTTP {resp.status_code}: {resp.text}",
                    "model": settings.OLLAMA_MODEL,
                    "total_ms": elapsed_ms(),
                }
                return

            for line in resp.iter_lines(decode_unicode=True):
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    continue

                chunk = obj.get("response") or ""
                if chunk and first_token_at is None:
                    first_token_at = time.perf_counter()

                if obj.get("done"):
                    yield chunk, {
                        "ok": True,
                        "model": obj.get("model") or settings.OLLAMA_MODEL,
                        "total_ms": elapsed_ms(),
                        "first_token_ms": (
                            int((first_token_at - start) * 1000) if first_token_at is not None else None
                        ),
                        "eval_count": obj.get("eval_count"),
                        "total_duration_ns": obj.get("total_duration"),
                    }
                    return

                if chunk:
                    yield chunk, None

            yield "", {
                "ok": False,
                "error": "stream_ended_unexpectedly",
                "model": settings.OLLAMA_MODEL,
                "total_ms": elapsed_ms(),
            }

    except requests.RequestException as e:
        yield "", {
            "ok": False,
            "error": f"LLM unavailable: {e}",
            "model": settings.OLLAMA_MODEL,
            "total_ms": elapsed_ms(),
        }


def chat_reply(message: str, snapshot: SensorSnapshot, language: Language | str = Language.EN) -> Tuple[str, str]:
    """Answer a chat message, returning (text, source).

    source is "llm" when the model answered and "fallback" when the
    rule-based engine stood in for it.
    """
    prompt = build_chat_prompt(message, snapshot, language)
    try:
        return ollama_generate(prompt), "llm"
    except (NetworkFailure, UpstreamFailure) as e:
        logger.warning("llm_chat_failed error=%s using=fallback", e)
        return generate_fallback(message, snapshot, language), "fallback"
