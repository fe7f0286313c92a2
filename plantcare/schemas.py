"""Pydantic request bodies for the HTTP API."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = ""
    # Readings the dashboard currently shows; the stored snapshot is used when absent.
    sensorData: Optional[Dict[str, Any]] = None
    language: str = Field(default="en", max_length=16)
