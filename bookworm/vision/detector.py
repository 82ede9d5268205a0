from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image

from bookworm.vision.classifier import PageClassifier
from bookworm.vision.confidence import book_confidence


logger = logging.getLogger("bookworm.vision")

HIGH_CONFIDENCE = 0.7
MEDIUM_CONFIDENCE = 0.4
TEST_MODE_CONFIDENCE = 0.3


@dataclass(frozen=True)
class DetectionResult:
    confidence: float
    label: str
    source: str  # "classifier" | "heuristic" | "fallback"
    book: Optional[float] = None
    no_book: Optional[float] = None

    @property
    def level(self) -> str:
        return confidence_level(self.confidence)

    @property
    def capture_enabled(self) -> bool:
        return self.level != "low"

    @property
    def percentage(self) -> int:
        return int(round(self.confidence * 100))

    def status_text(self) -> str:
        if self.book is not None and self.no_book is not None:
            return f"Book: {round(self.book * 100)}% | No Book: {round(self.no_book * 100)}%"
        return f"{self.label} detected! ({self.percentage}% confidence)"


def confidence_level(confidence: float) -> str:
    if confidence >= HIGH_CONFIDENCE:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


class BookDetector:
    def __init__(self, classifier: Optional[PageClassifier] = None) -> None:
        self.classifier = classifier

    @property
    def uses_classifier(self) -> bool:
        return self.classifier is not None

    def detect(self, image: Image.Image) -> DetectionResult:
        if self.classifier is not None:
            try:
                detection = self.classifier.detect(image)
            except Exception:
                logger.exception("Classifier prediction failed; using heuristic for this frame")
            else:
                logger.debug(
                    "Classifier prediction: %s (%.1f%%)", detection.label, detection.confidence * 100
                )
                return DetectionResult(
                    confidence=detection.confidence,
                    label=detection.label,
                    source="classifier",
                    book=detection.book,
                    no_book=detection.no_book,
                )

        try:
            confidence = book_confidence(image)
        except Exception:
            logger.exception("Heuristic book detection failed")
            return DetectionResult(
                confidence=TEST_MODE_CONFIDENCE, label="Book (Test Mode)", source="fallback"
            )
        return DetectionResult(confidence=confidence, label="Book", source="heuristic")
