"""
Selfie analysis: payload validation, the vision model requester and the
free-text parser that turns its reply into an AnalysisResult.

Usage:
    from analysis import validate_image, get_vision_analyzer, parse_outcome

    image = validate_image(payload, max_mb=settings.max_image_mb)
    text = get_vision_analyzer().analyze(image)
    outcome = parse_outcome(text)
"""

from analysis.models import AnalysisResult, ParseOutcome, Recommendation
from analysis.images import ValidatedImage, validate_image
from analysis.parser import parse_analysis, parse_outcome
from analysis.client import VisionAnalyzer, get_vision_analyzer

__all__ = [
    "AnalysisResult",
    "ParseOutcome",
    "Recommendation",
    "ValidatedImage",
    "validate_image",
    "parse_analysis",
    "parse_outcome",
    "VisionAnalyzer",
    "get_vision_analyzer",
]
