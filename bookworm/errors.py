from __future__ import annotations

from typing import Dict, Tuple


class LLMNotConfiguredError(RuntimeError):
    """Raised when no LLM API key is available."""


class InvalidImageError(ValueError):
    """Raised when an uploaded frame cannot be decoded."""


class OCRError(RuntimeError):
    """Raised when the OCR engine fails on a frame."""


# kind -> (http status, user-facing message)
_LLM_ERRORS: Dict[str, Tuple[int, str]] = {
    "quota": (402, "LLM API quota exceeded. Please check your billing."),
    "invalid_key": (401, "Invalid LLM API key. Please check your configuration."),
    "rate_limit": (429, "Rate limit exceeded. Please try again later."),
    "unavailable": (500, "AI service temporarily unavailable. Please try again later."),
}

# Checked in order. Gemini reports per-minute limits as ResourceExhausted with
# a "quota" message, so rate limits must match before quota.
_MARKERS = (
    ("rate_limit", ("rate_limit", "rate limit", "too many requests", "per minute", "perminute", "requests per")),
    ("quota", ("insufficient_quota", "quota", "resource_exhausted", "resourceexhausted", "billing")),
    ("invalid_key", ("api_key_invalid", "api key not valid", "invalid_api_key", "invalid api key", "unauthenticated", "permission_denied", "permissiondenied")),
)


class LLMError(RuntimeError):
    def __init__(self, kind: str, detail: str = "") -> None:
        if kind not in _LLM_ERRORS:
            kind = "unavailable"
        self.kind = kind
        self.detail = detail
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return _LLM_ERRORS[self.kind][0]

    @property
    def message(self) -> str:
        return _LLM_ERRORS[self.kind][1]

    @classmethod
    def from_exception(cls, exc: BaseException) -> "LLMError":
        if isinstance(exc, LLMError):
            return exc
        return cls(classify_llm_failure(exc), " ".join(str(exc).split())[:500])


def classify_llm_failure(exc: BaseException) -> str:
    """Map a provider exception onto one of the known failure kinds.

    Providers surface these conditions with different exception types, so the
    class name and message are both searched for well-known markers.
    """
    haystack = f"{type(exc).__name__} {exc}".lower()
    for kind, markers in _MARKERS:
        if any(marker in haystack for marker in markers):
            return kind
    return "unavailable"
