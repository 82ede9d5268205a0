from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence


# Voices that sound most natural, in order of preference.
PREFERRED_VOICES = (
    "Microsoft Zira Desktop - English (United States)",
    "Microsoft David Desktop - English (United States)",
    "Google US English",
    "Samantha",
    "Alex",
    "Victoria",
    "Daniel",
    "Karen",
    "Moira",
    "Tessa",
)

RECOGNITION_ERRORS = {
    "not-allowed": "Microphone permission denied. Please allow microphone access and refresh the page.",
    "no-speech": "No speech detected. Try speaking again.",
    "audio-capture": "Microphone not available. Please check your microphone connection.",
    "network": "Network error. Please check your internet connection.",
}

_PAUSE_AFTER = re.compile(r"([.,!?])")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Voice:
    name: str
    lang: str


@dataclass(frozen=True)
class VoiceOption:
    index: int
    name: str
    lang: str
    preferred: bool = False

    @property
    def label(self) -> str:
        prefix = "★ " if self.preferred else ""
        return f"{prefix}{self.name} ({self.lang})"


@dataclass(frozen=True)
class VoiceRanking:
    options: List[VoiceOption]
    default_index: Optional[int]


def prepare_speech_text(text: str) -> str:
    """Insert short pauses after punctuation so synthesized speech breathes."""
    spaced = _PAUSE_AFTER.sub(r"\1 ", text or "")
    return _WHITESPACE.sub(" ", spaced).strip()


def rank_voices(voices: Sequence[Voice]) -> VoiceRanking:
    """Order voices for a picker: preferred, then other English, then the rest.

    Indices refer to positions in the input list so the browser can map an
    option back to its own voice object.
    """
    options: List[VoiceOption] = []
    seen = set()

    for preferred in PREFERRED_VOICES:
        for index, voice in enumerate(voices):
            if preferred in voice.name and index not in seen:
                options.append(VoiceOption(index, voice.name, voice.lang, preferred=True))
                seen.add(index)
                break

    default_index = options[0].index if options else None

    def is_preferred(voice: Voice) -> bool:
        return any(p in voice.name for p in PREFERRED_VOICES)

    for index, voice in enumerate(voices):
        if voice.lang.startswith("en") and not is_preferred(voice):
            options.append(VoiceOption(index, voice.name, voice.lang))
            seen.add(index)

    for index, voice in enumerate(voices):
        if not voice.lang.startswith("en") and index not in seen:
            options.append(VoiceOption(index, voice.name, voice.lang))

    return VoiceRanking(options=options, default_index=default_index)


def describe_recognition_error(code: str) -> str:
    return RECOGNITION_ERRORS.get(code, f"Error: {code}")
