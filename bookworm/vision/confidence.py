"""Heuristic "is there a book page in frame" score.

Three cheap statistics over a downscaled frame, blended linearly:

* text-likeness: share of mid-brightness pixels
* edge density: share of pixels with a strong forward-difference gradient
* contrast: mean brightness in a readable band and a wide min/max spread

Used when no trained classifier is configured.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Tuple

import numpy as np
from PIL import Image


logger = logging.getLogger("bookworm.vision")

TEXT_SAMPLE_SIZE = 200
EDGE_SAMPLE_SIZE = 150
CONTRAST_SAMPLE_SIZE = 100

EDGE_MAGNITUDE_THRESHOLD = 30.0

WEIGHTS = (0.4, 0.3, 0.3)  # text, edge, contrast


@dataclass(frozen=True)
class ConfidenceBreakdown:
    text: float
    edge: float
    contrast: float
    combined: float


def _brightness(image: Image.Image, size: int) -> np.ndarray:
    sample = image.convert("RGB").resize((size, size), Image.Resampling.BILINEAR)
    pixels = np.asarray(sample, dtype=np.float64)
    return pixels.sum(axis=2) / 3.0


def _step(ratio: float, steps: Tuple[Tuple[float, float], ...]) -> float:
    for threshold, score in steps:
        if ratio > threshold:
            return score
    return 0.0


def text_pattern_confidence(image: Image.Image) -> float:
    brightness = _brightness(image, TEXT_SAMPLE_SIZE)
    text_like = np.count_nonzero((brightness > 30) & (brightness < 220))
    ratio = text_like / brightness.size
    return _step(ratio, ((0.3, 0.8), (0.2, 0.6), (0.1, 0.3)))


def edge_confidence(image: Image.Image) -> float:
    brightness = _brightness(image, EDGE_SAMPLE_SIZE)
    height, width = brightness.shape

    center = brightness[1:-1, 1:-1]
    right = brightness[1:-1, 2:]
    down = brightness[2:, 1:-1]
    magnitude = np.hypot(center - right, center - down)

    ratio = np.count_nonzero(magnitude > EDGE_MAGNITUDE_THRESHOLD) / ((width - 2) * (height - 2))
    return _step(ratio, ((0.15, 0.7), (0.1, 0.5), (0.05, 0.3)))


def contrast_confidence(image: Image.Image) -> float:
    brightness = _brightness(image, CONTRAST_SAMPLE_SIZE)
    average = float(brightness.mean())
    spread = float(brightness.max() - brightness.min())

    confidence = 0.0
    if 80 < average < 180:
        confidence += 0.3
    if spread > 100:
        confidence += 0.4
    if spread > 150:
        confidence += 0.3
    return min(1.0, confidence)


def _component(fn: Callable[[Image.Image], float], image: Image.Image) -> float:
    try:
        return fn(image)
    except (ValueError, OSError) as exc:
        logger.debug("%s failed on frame: %s", fn.__name__, exc)
        return 0.0


def confidence_breakdown(image: Image.Image) -> ConfidenceBreakdown:
    text = _component(text_pattern_confidence, image)
    edge = _component(edge_confidence, image)
    contrast = _component(contrast_confidence, image)

    text_w, edge_w, contrast_w = WEIGHTS
    combined = text * text_w + edge * edge_w + contrast * contrast_w
    combined = min(1.0, max(0.0, combined))
    return ConfidenceBreakdown(text=text, edge=edge, contrast=contrast, combined=combined)


def book_confidence(image: Image.Image) -> float:
    return confidence_breakdown(image).combined
