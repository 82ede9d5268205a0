from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence

import httpx
import numpy as np
from PIL import Image, ImageOps

from config.settings import Settings, get_settings


logger = logging.getLogger("bookworm.vision")

NO_BOOK_MARKERS = ("no", "empty", "background")


@dataclass(frozen=True)
class Prediction:
    class_name: str
    probability: float


@dataclass(frozen=True)
class BookDetection:
    book: float
    no_book: float
    label: str
    confidence: float


def interpret_predictions(predictions: Sequence[Prediction]) -> BookDetection:
    book = 0.0
    no_book = 0.0
    for prediction in predictions:
        name = prediction.class_name.lower()
        if "book" in name and "no" not in name:
            book = prediction.probability
        elif any(marker in name for marker in NO_BOOK_MARKERS):
            no_book = prediction.probability

    label = "Book" if book > no_book else "No Book"
    return BookDetection(book=book, no_book=no_book, label=label, confidence=max(book, no_book))


def load_labels(path: str) -> List[str]:
    """Read a Teachable Machine labels.txt (lines like ``0 Book``)."""
    labels: List[str] = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line:
            continue
        index, _, name = line.partition(" ")
        labels.append(name.strip() if index.isdigit() and name else line)
    return labels


def fetch_metadata_labels(url: str, timeout: float = 10.0) -> List[str]:
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.get(url)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as exc:
        raise RuntimeError(f"Classifier metadata download failed: {exc}") from exc

    labels = data.get("labels") if isinstance(data, dict) else None
    if not isinstance(labels, list) or not labels:
        raise RuntimeError("Classifier metadata has no labels")
    return [str(label) for label in labels]


class PageClassifier:
    """Book / no-book classifier backed by a Teachable Machine image model.

    ``model`` only needs a Keras-style ``predict(batch)`` returning one row of
    class probabilities per image.
    """

    def __init__(self, model: Any, labels: Sequence[str], input_size: int = 224) -> None:
        if not labels:
            raise ValueError("Classifier needs at least one label")
        self.model = model
        self.labels = list(labels)
        self.input_size = input_size

    def _prepare(self, image: Image.Image) -> np.ndarray:
        size = (self.input_size, self.input_size)
        fitted = ImageOps.fit(image.convert("RGB"), size, Image.Resampling.LANCZOS)
        array = np.asarray(fitted, dtype=np.float32)
        # Teachable Machine models expect pixels scaled to [-1, 1].
        normalized = (array / 127.5) - 1.0
        return normalized[np.newaxis, ...]

    def predict(self, image: Image.Image) -> List[Prediction]:
        scores = np.asarray(self.model.predict(self._prepare(image), verbose=0))
        row = scores.reshape(-1)
        return [
            Prediction(class_name=label, probability=float(row[index]))
            for index, label in enumerate(self.labels)
            if index < row.size
        ]

    def detect(self, image: Image.Image) -> BookDetection:
        return interpret_predictions(self.predict(image))

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> Optional["PageClassifier"]:
        settings = settings or get_settings()
        if not settings.classifier_model_path:
            return None

        if settings.classifier_labels_path:
            labels = load_labels(settings.classifier_labels_path)
        elif settings.classifier_metadata_url:
            labels = fetch_metadata_labels(settings.classifier_metadata_url)
        else:
            raise RuntimeError(
                "CLASSIFIER_MODEL_PATH is set but neither CLASSIFIER_LABELS_PATH "
                "nor CLASSIFIER_METADATA_URL is configured"
            )

        # TensorFlow is an optional extra; only import it when a model is configured.
        from tensorflow import keras

        logger.info("Loading page classifier from %s", settings.classifier_model_path)
        model = keras.models.load_model(settings.classifier_model_path, compile=False)
        classifier = cls(model, labels)
        logger.info("Page classifier loaded: classes=%s", classifier.labels)
        return classifier
