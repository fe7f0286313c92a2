from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from .models import Language

_MARKUP = re.compile(r"[*_~`]")
_NEWLINES = re.compile(r"\n+")


@dataclass(frozen=True)
class VoiceSettings:
    lang_tag: str
    rate: float
    pitch: float = 1.0


_VOICES = {
    Language.EN: VoiceSettings(lang_tag="en-US", rate=0.9),
    # Slower for Arabic.
    Language.AR: VoiceSettings(lang_tag="ar-SA", rate=0.8),
}

# (text, settings) -> None; the browser's speechSynthesis or any other engine.
Speaker = Callable[[str, VoiceSettings], None]


def clean_for_speech(text: str) -> str:
    """Drop markdown emphasis characters and fold newlines into spaces."""
    return _NEWLINES.sub(" ", _MARKUP.sub("", text or "")).strip()


def voice_settings(language: Language | str) -> VoiceSettings:
    return _VOICES[Language.resolve(language)]


def recognition_language(language: Language | str) -> str:
    """Speech-to-text locale; same tags as the synthesizer."""
    return voice_settings(language).lang_tag
