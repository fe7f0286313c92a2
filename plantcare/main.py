from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
import json
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles

from .classifier import band_key, classify
from .config import settings
from .errors import InvalidInput, NetworkFailure, UpstreamFailure
from .fallback import generate_fallback
from .i18n import table
from .llm_engine import build_chat_prompt, chat_reply, list_models, ollama_is_available, ollama_stream
from .logging_config import configure_logging
from .models import Language, Metric, SensorSnapshot
from .schemas import ChatRequest
from .snapshot import SnapshotStore
from .validation import normalize_sensor_payload

logger = logging.getLogger("plantcare.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("app_starting port=%s model=%s", settings.PORT, settings.OLLAMA_MODEL)

    ok, error = ollama_is_available()
    if ok:
        logger.info("ollama_connected url=%s", settings.OLLAMA_URL)
    else:
        logger.warning("ollama_unreachable error=%s using=fallback_responses", error)

    try:
        yield
    finally:
        logger.info("app_stopped")


app = FastAPI(lifespan=lifespan)
app.state.store = SnapshotStore()


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=settings.STATIC_DIR, check_dir=False), name="static")


def get_store(request: Request) -> SnapshotStore:
    return request.app.state.store


@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(
        status_code=400,
        content={"status": "error", "message": str(exc), "errors": exc.errors},
    )


@app.get("/")
def index():
    return FileResponse(Path(settings.STATIC_DIR) / "index.html")


@app.post("/api/sensor-data")
async def post_sensor_data(request: Request, store: SnapshotStore = Depends(get_store)):
    try:
        raw = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidInput("Invalid sensor data", errors=["body_not_json"])

    normalized = normalize_sensor_payload(raw)
    if normalized.errors:
        logger.warning("sensor_data_rejected errors=%s raw=%s", normalized.errors, raw)
        raise InvalidInput("Invalid sensor data", errors=normalized.errors)

    for w in normalized.warnings:
        logger.warning("payload_warning=%s raw=%s", w, raw)

    snapshot = store.update(normalized.payload)
    logger.info(
        "sensor_data_received device=%s moisture=%s humidity=%s temperature=%s",
        snapshot.device_id,
        snapshot.soil_moisture,
        snapshot.humidity,
        snapshot.temperature,
    )
    return {
        "status": "success",
        "message": "Sensor data received",
        "data": snapshot.to_dict(),
    }


@app.get("/api/sensor-data")
def get_sensor_data(store: SnapshotStore = Depends(get_store)):
    return store.get().to_dict()


@app.get("/api/sensor-status")
def get_sensor_status(language: str = "en", store: SnapshotStore = Depends(get_store)):
    snapshot = store.get()
    readings = {
        Metric.MOISTURE: snapshot.soil_moisture,
        Metric.HUMIDITY: snapshot.humidity,
        Metric.TEMPERATURE: snapshot.temperature,
    }
    lang = Language.resolve(language)
    return {
        "language": lang.value,
        "data": snapshot.to_dict(),
        "status": {
            metric.value: (
                {"key": band_key(metric, value), "label": classify(metric, value, lang)}
                if value is not None
                else None
            )
            for metric, value in readings.items()
        },
    }


def _chat_snapshot(body: ChatRequest, store: SnapshotStore) -> SensorSnapshot:
    if body.sensorData:
        return SensorSnapshot.from_mapping(body.sensorData)
    return store.get()


@app.post("/api/chat")
def chat(body: ChatRequest, store: SnapshotStore = Depends(get_store)):
    snapshot = _chat_snapshot(body, store)
    response, source = chat_reply(body.message, snapshot, body.language)
    logger.info("chat_answered source=%s language=%s", source, Language.resolve(body.language).value)
    return {"response": response}


@app.post("/api/chat/stream")
def chat_stream(body: ChatRequest, store: SnapshotStore = Depends(get_store)):
    snapshot = _chat_snapshot(body, store)
    prompt = build_chat_prompt(body.message, snapshot, body.language)

    def sse(event: str, data_obj) -> str:
        return f"event: {event}\ndata: {json.dumps(data_obj, ensure_ascii=False)}\n\n"

    def gen():
        yield sse(
            "meta",
            {
                "model": settings.OLLAMA_MODEL,
                "language": Language.resolve(body.language).value,
                "sensor": snapshot.to_dict(),
            },
        )

        token_count = 0
        for chunk, final_stats in ollama_stream(prompt):
            if chunk:
                token_count += 1
                yield sse("token", {"text": chunk})
            if final_stats is None:
                continue

            final_stats["token_events"] = token_count
            final_stats["fallback"] = False
            if not final_stats.get("ok") and token_count == 0:
                # Nothing reached the user yet, so answer from the rules instead.
                logger.warning("llm_stream_failed error=%s using=fallback", final_stats.get("error"))
                yield sse("token", {"text": generate_fallback(body.message, snapshot, body.language)})
                final_stats["token_events"] = 1
                final_stats["fallback"] = True
            yield sse("done", final_stats)

    return StreamingResponse(
        gen(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        },
    )


@app.get("/api/translations/{language}")
def translations(language: str):
    lang = Language.resolve(language)
    return {"language": lang.value, "strings": table(lang)}


@app.get("/api/health")
def health(include_llm: bool = False):
    ollama = "unchecked"
    if include_llm:
        ok, _ = ollama_is_available()
        ollama = "connected" if ok else "disconnected"
    return {
        "status": "running",
        "ollama": ollama,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/api/ollama-status")
def ollama_status():
    try:
        models = list_models()
    except (NetworkFailure, UpstreamFailure) as e:
        return {"status": "disconnected", "error": str(e)}
    return {"status": "connected", "models": models}
