"""
Tests for the free-text analysis parser.
"""

import pytest

from analysis.parser import (
    extract_foundation_shades,
    extract_json_object,
    extract_section_recommendations,
    extract_skin_tone,
    extract_undertone,
    parse_analysis,
    parse_outcome,
    parse_with_status,
)
from config.constants import ParseStatus, SkinTone, Undertone
from core.exceptions import AnalysisFailed


class TestFieldExtraction:

    @pytest.mark.parametrize("text,expected", [
        ("Skin Tone: Deep", SkinTone.DEEP),
        ("**Skin tone**: light, with some redness", SkinTone.LIGHT),
        ("Complexion: Tan", SkinTone.TAN),
        ("Your skin tone appears to be fair.", SkinTone.FAIR),
        ("Skin Tone: Olive-ish", None),
        ("Skin Tone: Olive\nOverall your skin tone is tan.", None),
        ("No tone mentioned", None),
    ])
    def test_skin_tone(self, text, expected):
        assert extract_skin_tone(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("Undertone: Warm", Undertone.WARM),
        ("Undertones: cool", Undertone.COOL),
        ("You have a neutral undertone.", Undertone.NEUTRAL),
        ("Undertone: Olive\nYou have a warm undertone.", None),
        ("nothing here", None),
    ])
    def test_undertone(self, text, expected):
        assert extract_undertone(text) == expected

    def test_foundation_shades_include_shade_after_in(self):
        shades = extract_foundation_shades("Suggested Foundation: MAC Studio Fix in NC30\nShade: Custard")
        assert shades == ["MAC Studio Fix in NC30", "NC30", "Custard"]

    def test_json_object_skips_non_json_braces(self):
        text = 'Notes {not json} then {"skinType": "Dry"} trailing'
        assert extract_json_object(text) == {"skinType": "Dry"}

    def test_json_object_absent(self):
        assert extract_json_object("no braces at all") is None


class TestSectionRecommendations:

    def test_sections_with_details(self):
        text = (
            "Foundation\n"
            "Shade: Warm Beige\n"
            "Ingredients: hyaluronic acid, niacinamide and vitamin E\n"
            "\n"
            "Blush\n"
            "Color: Peach\n"
        )
        recs = extract_section_recommendations(text)

        assert [r.category for r in recs] == ["foundation", "blush"]
        assert recs[0].reason == "Recommended for your foundation needs - Warm Beige"
        assert recs[0].ingredients == ["hyaluronic acid", "niacinamide", "vitamin E"]
        assert recs[1].reason == "Recommended for your blush needs - Peach"
        assert [r.priority for r in recs] == [1, 2]

    def test_lip_section_is_its_own_category(self):
        recs = extract_section_recommendations("Lipstick: nude\n\nLip gloss is optional")

        assert [(r.category, r.product_type) for r in recs] == [("lipstick", "Lipstick"), ("lip", "Lip")]


class TestParseOutcome:

    def test_text_and_json_overlay(self):
        """Labelled prose plus an embedded JSON object."""
        text = 'Undertone: Warm\nSkin Tone: Deep\n{"skinType":"Oily","concerns":["Acne"],"recommendations":[]}'

        result = parse_analysis(text)

        assert result.skin_tone == SkinTone.DEEP
        assert result.undertone == Undertone.WARM
        assert result.skin_type == "Oily"
        assert result.concerns == ["Acne"]
        assert len(result.recommendations) >= 1

    def test_unable_to_analyze_raises(self):
        with pytest.raises(AnalysisFailed) as exc_info:
            parse_analysis("Unable to analyze image")
        assert exc_info.value.status_code == 422
        assert "Unable to analyze image" in exc_info.value.message

    def test_no_face_sentinel_gets_friendly_message(self):
        outcome = parse_outcome("NO_FACE_DETECTED")
        assert outcome.status == ParseStatus.FAILED
        assert outcome.result is None
        assert "No face detected" in outcome.message
        assert outcome.ok is False

    def test_garbage_degrades_to_defaults(self):
        outcome = parse_outcome("lorem ipsum dolor sit amet")

        assert outcome.status == ParseStatus.DEGRADED
        result = outcome.result
        assert result.skin_tone == SkinTone.MEDIUM
        assert result.undertone == Undertone.NEUTRAL
        assert result.skin_type == "Normal"
        assert result.concerns == ["Uneven skin tone"]
        assert len(result.recommendations) == 1
        assert result.recommendations[0].category == "foundation"

    def test_unrecognized_labelled_tone_uses_default(self):
        outcome = parse_outcome("Skin Tone: Olive\nUndertone: Warm\nOverall your skin tone is tan.")

        assert outcome.status == ParseStatus.DEGRADED
        assert outcome.result.skin_tone == SkinTone.MEDIUM
        assert outcome.result.undertone == Undertone.WARM

    @pytest.mark.parametrize("text", ["", "{", "}{", "{{{}", '{"recommendations": "nope"}', "\x00\x01"])
    def test_never_raises_on_odd_input(self, text):
        outcome = parse_outcome(text)
        assert outcome.status in (ParseStatus.PARSED, ParseStatus.DEGRADED)
        assert outcome.result.recommendations

    def test_json_tones_count_as_extracted(self):
        outcome = parse_outcome('{"skinTone": "tan", "undertone": "COOL"}')
        assert outcome.status == ParseStatus.PARSED
        assert outcome.result.skin_tone == SkinTone.TAN
        assert outcome.result.undertone == Undertone.COOL

    def test_json_recommendations_preferred_over_sections(self):
        text = (
            "Foundation\nShade: Ivory\n\n"
            '{"recommendations": [{"category": "serum", "productType": "Serum", '
            '"reason": "Hydration", "priority": 1, "ingredients": ["hyaluronic acid"]}]}'
        )
        result = parse_outcome(text).result
        assert [r.category for r in result.recommendations] == ["serum"]
        assert result.recommendations[0].ingredients == ["hyaluronic acid"]

    def test_reparse_of_payload_is_stable(self):
        text = "Skin Tone: Light\nUndertone: Cool\nSkin Type: Dry\nShade: Porcelain"
        first = parse_analysis(text)

        import json
        second = parse_analysis(json.dumps(first.to_payload()))

        assert second == first

    def test_parse_with_status(self):
        result, status = parse_with_status("Skin Tone: Tan\nUndertone: Warm")
        assert status == ParseStatus.PARSED
        assert result.skin_tone == SkinTone.TAN
