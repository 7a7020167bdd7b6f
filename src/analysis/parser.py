"""
Free-text analysis parser.

Turns the vision model's reply into an AnalysisResult. The reply is prose
in a loose "Label: value" layout and may embed a JSON object. Extraction
runs in two passes:

1. Regex pass over the prose establishes a baseline (skin tone, undertone,
   skin type, foundation shade keywords), defaulting anything missing.
2. The first decodable JSON object, if any, overlays the fields it carries.

Nothing here raises for odd input except the explicit "no face" replies,
which `parse_analysis` reports as AnalysisFailed.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

from config.constants import (
    DEFAULT_ANALYSIS_DEFAULTS,
    RECOMMENDATION_SECTIONS,
    ParseStatus,
    SkinTone,
    Undertone,
)
from core.exceptions import AnalysisFailed
from core.logging import get_logger
from analysis.models import AnalysisResult, ParseOutcome, Recommendation

logger = get_logger(__name__)

DEFAULTS = DEFAULT_ANALYSIS_DEFAULTS

NO_FACE_MESSAGE = "No face detected in the image. Please upload a clear photo showing a face."


# =============================================================================
# Patterns
# =============================================================================

# "Skin Tone: Medium", "**Complexion**: Fair", "Undertones: Warm"
_TONE_LABEL = re.compile(r"(?:skin\s*tone|complexion)[*_]*\s*:\s*([^.\n,]+)", re.IGNORECASE)
_UNDERTONE_LABEL = re.compile(r"(?:undertones|undertone)[*_]*\s*:\s*([^.\n,]+)", re.IGNORECASE)

# "your skin tone is tan", "skin tone appears to be deep"
_TONE_PHRASE = re.compile(r"skin\s*tone\s+(?:is|appears\s+to\s+be)\s+([^.\n,]+)", re.IGNORECASE)
# "you have a warm undertone", "with an olive undertone"
_UNDERTONE_PHRASE = re.compile(
    r"\b(?:have|has|with)\s+(?:an|a)\s+([^.\n,]+?)\s+undertone", re.IGNORECASE
)

_SKIN_TYPE_LABEL = re.compile(r"skin\s*type[*_]*\s*:\s*([^.\n,]+)", re.IGNORECASE)

# "Suggested Foundation: MAC Studio Fix in NC30", "Shade: Custard"
_SHADE_LINE = re.compile(
    r"(?:suggested\s+foundation|shades?)[*_]*\s*:[*_\s]*([^\n]+)", re.IGNORECASE
)

_SECTION_SHADE = re.compile(r"shades?[*_]*\s*:[*_\s]*([^\n]+)", re.IGNORECASE)
_SECTION_COLOR = re.compile(r"colou?rs?(?:\s+family)?[*_]*\s*:[*_\s]*([^\n]+)", re.IGNORECASE)
_SECTION_INGREDIENTS = re.compile(r"ingredients?[*_]*\s*:[*_\s]*([^\n]+)", re.IGNORECASE)
_INGREDIENT_SPLIT = re.compile(r",|\band\b", re.IGNORECASE)

_MARKDOWN = re.compile(r"[*_`]")


# =============================================================================
# Helpers
# =============================================================================

def _clean(value: str) -> str:
    return _MARKDOWN.sub("", value).strip().strip(":-–").strip()


def _first_token(value: str) -> str:
    tokens = _clean(value).split()
    return tokens[0].title() if tokens else ""


def _match_enum(enum_cls, patterns, text: str):
    """Value of the first pattern that matches; None when that value is not an enum member."""
    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        member = enum_cls.normalize(_first_token(match.group(1)))
        if member is None:
            # A labelled but unrecognized value is treated as missing
            logger.debug("Unrecognized value in analysis text", field=enum_cls.__name__, value=match.group(1))
        return member
    return None


def extract_skin_tone(text: str) -> Optional[SkinTone]:
    return _match_enum(SkinTone, (_TONE_LABEL, _TONE_PHRASE), text)


def extract_undertone(text: str) -> Optional[Undertone]:
    return _match_enum(Undertone, (_UNDERTONE_LABEL, _UNDERTONE_PHRASE), text)


def extract_skin_type(text: str) -> Optional[str]:
    match = _SKIN_TYPE_LABEL.search(text)
    if not match:
        return None
    return _first_token(match.group(1)) or None


def extract_foundation_shades(text: str) -> List[str]:
    """Shade keywords from "Suggested Foundation:" and "Shade:" lines."""
    shades: List[str] = []
    for match in _SHADE_LINE.finditer(text):
        value = _clean(match.group(1)).strip(' ."\'')
        if not value:
            continue
        candidates = [value]
        if " in " in value:
            candidates.append(value.split(" in ", 1)[1].strip(' ."\''))
        for candidate in candidates:
            if candidate and candidate not in shades:
                shades.append(candidate)
    return shades


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """First `{` position at which a JSON object decodes, or None."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def extract_section_recommendations(text: str) -> List[Recommendation]:
    """
    Recommendations from product sections in the prose.

    A section runs from its heading word to the next blank line. Shade and
    color lines are appended to the reason, an ingredients line is split
    into a list.
    """
    recommendations: List[Recommendation] = []

    for heading, product_type in RECOMMENDATION_SECTIONS.items():
        match = re.search(rf"\b{heading}\b[\s\S]*?(?=\n\s*\n|$)", text, re.IGNORECASE)
        if not match:
            continue

        section = match.group(0)
        category = heading.lower()
        reason = f"Recommended for your {category} needs"

        for detail in (_SECTION_SHADE, _SECTION_COLOR):
            detail_match = detail.search(section)
            if detail_match:
                reason += f" - {_clean(detail_match.group(1))}"

        ingredients: List[str] = []
        ingredient_match = _SECTION_INGREDIENTS.search(section)
        if ingredient_match:
            ingredients = [
                _clean(part) for part in _INGREDIENT_SPLIT.split(ingredient_match.group(1))
                if _clean(part)
            ]

        recommendations.append(Recommendation(
            category=category,
            product_type=product_type,
            reason=reason,
            priority=len(recommendations) + 1,
            ingredients=ingredients,
        ))

    return recommendations


def default_recommendation() -> Recommendation:
    return Recommendation(
        category=DEFAULTS.FALLBACK_CATEGORY.lower(),
        product_type=DEFAULTS.FALLBACK_PRODUCT_TYPE,
        reason=DEFAULTS.FALLBACK_REASON,
        priority=1,
        ingredients=list(DEFAULTS.FALLBACK_INGREDIENTS),
    )


def _json_recommendations(items: List[Any]) -> List[Recommendation]:
    recommendations = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            recommendations.append(Recommendation.model_validate(item))
        except ValueError as e:
            logger.debug("Skipping malformed recommendation", error=str(e))
    return recommendations


def _string_list(items: List[Any]) -> List[str]:
    return [str(item).strip() for item in items if item is not None and str(item).strip()]


def find_failure_marker(text: str) -> Optional[str]:
    lowered = text.lower()
    for marker in DEFAULTS.FAILURE_MARKERS:
        if marker in lowered:
            return marker
    return None


# =============================================================================
# Entry points
# =============================================================================

def parse_outcome(text: str) -> ParseOutcome:
    """
    Parse a model reply into a three-way outcome.

    Never raises. A reply carrying a "no face" marker yields a FAILED
    outcome with a user-facing message and no result.
    """
    text = text or ""

    marker = find_failure_marker(text)
    if marker is not None:
        message = NO_FACE_MESSAGE if marker == "no_face_detected" else text.strip()
        logger.warning("Analysis reported no face", marker=marker)
        return ParseOutcome(status=ParseStatus.FAILED, message=message)

    skin_tone = extract_skin_tone(text)
    undertone = extract_undertone(text)
    fields: Dict[str, Any] = {
        "skin_type": extract_skin_type(text) or DEFAULTS.SKIN_TYPE,
        "foundation_shades": extract_foundation_shades(text),
    }
    recommendations: List[Recommendation] = []

    data = extract_json_object(text)
    if data is not None:
        skin_type = data.get("skinType")
        if isinstance(skin_type, str) and skin_type.strip():
            fields["skin_type"] = skin_type.strip()

        if isinstance(data.get("concerns"), list):
            concerns = _string_list(data["concerns"])
            if concerns:
                fields["concerns"] = concerns

        if isinstance(data.get("recommendations"), list):
            recommendations = _json_recommendations(data["recommendations"])

        if isinstance(data.get("features"), dict):
            fields["features"] = {str(k): str(v) for k, v in data["features"].items() if v is not None}

        if isinstance(data.get("foundationShades"), list):
            shades = _string_list(data["foundationShades"])
            if shades:
                fields["foundation_shades"] = shades

        skin_tone = SkinTone.normalize(data.get("skinTone")) or skin_tone
        undertone = Undertone.normalize(data.get("undertone")) or undertone

    if not recommendations:
        recommendations = extract_section_recommendations(text) or [default_recommendation()]

    result = AnalysisResult(
        skin_tone=skin_tone or DEFAULTS.SKIN_TONE,
        undertone=undertone or DEFAULTS.UNDERTONE,
        recommendations=recommendations,
        **fields,
    )

    if skin_tone is not None and undertone is not None:
        status, message = ParseStatus.PARSED, "Analysis parsed"
    else:
        missing = [name for name, value in (("skin tone", skin_tone), ("undertone", undertone)) if value is None]
        status, message = ParseStatus.DEGRADED, f"Defaults used for {', '.join(missing)}"
        logger.warning("Analysis parsed with defaults", missing=missing)

    logger.info(
        "Analysis parsed",
        outcome=status.value,
        skin_tone=result.skin_tone.value,
        undertone=result.undertone.value,
        recommendations=len(result.recommendations),
    )
    return ParseOutcome(status=status, result=result, message=message)


def parse_analysis(text: str) -> AnalysisResult:
    """
    Parse a model reply into an AnalysisResult.

    Raises:
        AnalysisFailed: the reply says no face could be analyzed
    """
    outcome = parse_outcome(text)
    if outcome.result is None:
        raise AnalysisFailed(outcome.message, raw_text=text)
    return outcome.result


def parse_with_status(text: str) -> Tuple[AnalysisResult, ParseStatus]:
    outcome = parse_outcome(text)
    if outcome.result is None:
        raise AnalysisFailed(outcome.message, raw_text=text)
    return outcome.result, outcome.status
