from .classifier import BookDetection, PageClassifier, Prediction, interpret_predictions
from .confidence import ConfidenceBreakdown, book_confidence, confidence_breakdown
from .detector import BookDetector, DetectionResult, confidence_level
from .images import decode_image
from .ocr import MIN_PAGE_TEXT_LENGTH, extract_page_text, has_readable_text

__all__ = [
    "BookDetection",
    "BookDetector",
    "ConfidenceBreakdown",
    "DetectionResult",
    "MIN_PAGE_TEXT_LENGTH",
    "PageClassifier",
    "Prediction",
    "book_confidence",
    "confidence_breakdown",
    "confidence_level",
    "decode_image",
    "extract_page_text",
    "has_readable_text",
    "interpret_predictions",
]
