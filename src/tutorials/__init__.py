"""Tutorial video lookup, normalization and liveness-checked fallback."""

from tutorials.resolver import (
    TutorialError,
    TutorialResolution,
    TutorialResolver,
    TutorialTables,
    get_tutorial_resolver,
)
from tutorials.youtube import LivenessChecker, extract_video_id, to_embed_url

__all__ = [
    "TutorialError",
    "TutorialResolution",
    "TutorialResolver",
    "TutorialTables",
    "get_tutorial_resolver",
    "LivenessChecker",
    "extract_video_id",
    "to_embed_url",
]
