import os
from pathlib import Path

from dotenv import load_dotenv


_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


def _csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings:
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # HTTP server
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))
    CORS_ORIGINS = _csv(os.getenv("CORS_ORIGINS"))
    STATIC_DIR = os.getenv("STATIC_DIR", str(Path(__file__).resolve().parent / "static"))

    # Ollama
    # Either the full endpoint (http://localhost:11434/api/generate) or just the host.
    OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434")
    OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "mistral")
    OLLAMA_TIMEOUT_SECONDS = float(os.getenv("OLLAMA_TIMEOUT_SECONDS", "60"))
    OLLAMA_TEMPERATURE = float(os.getenv("OLLAMA_TEMPERATURE", "0.7"))
    OLLAMA_TOP_P = float(os.getenv("OLLAMA_TOP_P", "0.9"))
    OLLAMA_MAX_TOKENS = int(os.getenv("OLLAMA_MAX_TOKENS", "150"))
    HEALTHCHECK_TIMEOUT_SECONDS = float(os.getenv("HEALTHCHECK_TIMEOUT_SECONDS", "3"))

    # Dashboard client
    SERVER_URL = os.getenv("SERVER_URL", "http://localhost:3000")
    POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "2"))
    CLIENT_TIMEOUT_SECONDS = float(os.getenv("CLIENT_TIMEOUT_SECONDS", "10"))
    DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en")


settings = Settings()
