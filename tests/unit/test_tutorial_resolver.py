"""
Tests for tutorial lookup and liveness-checked fallback.
"""

from unittest.mock import MagicMock

import pytest

from tutorials.resolver import TutorialError, TutorialResolver, TutorialTables

EMBED = "https://www.youtube.com/embed/"


@pytest.fixture
def tables():
    from config.settings import get_settings
    return TutorialTables.from_file(get_settings().tutorials_file)


def _checker(dead=()):
    """Checker reporting every video live except ids listed in ``dead``."""
    checker = MagicMock()
    checker.is_available.side_effect = lambda ref: not any(video_id in ref for video_id in dead)
    checker.check_many.side_effect = lambda refs: {r: checker.is_available(r) for r in refs}
    return checker


class TestLookup:

    def test_undertone_entry_used_when_tone_missing(self, tables):
        resolver = TutorialResolver(tables, checker=_checker())
        assert resolver.lookup("eyeshadow", "Tan", "Warm") == EMBED + "SycFuomRuQo"

    def test_exact_skin_tone(self, tables):
        resolver = TutorialResolver(tables, checker=_checker())
        assert resolver.lookup("foundation", "tan", None) == EMBED + "UlTLlOFjYz0"

    def test_undertone_ignored_for_other_categories(self, tables):
        resolver = TutorialResolver(tables, checker=_checker())
        # Concealer has no Tan entry; nearest is Medium regardless of undertone
        assert resolver.lookup("concealer", "Tan", "Warm") == EMBED + "n5YbJ8LzI2M"

    def test_nearest_tone_tie_goes_to_first_in_order(self, tables):
        resolver = TutorialResolver(tables, checker=_checker())
        # Light is one step from both Fair and Medium
        assert resolver.lookup("concealer", "Light", None) == EMBED + "VEDrLcPZM_o"
        # Medium is two steps from both Fair and Deep
        assert resolver.lookup("lipstick", "Medium", None) == EMBED + "xP2nqq1c6Uc"

    def test_category_default_without_tone(self, tables):
        resolver = TutorialResolver(tables, checker=_checker())
        assert resolver.lookup("blush", None, None) == EMBED + "BHdpCHFL0GQ"
        assert resolver.lookup("eyeshadow", "Tan", None) == EMBED + "qEQq1wx_4Ro"

    def test_unknown_category_uses_foundation_default(self, tables):
        resolver = TutorialResolver(tables, checker=_checker())
        assert resolver.lookup("contour", "Deep", "Cool") == EMBED + "ZD92D2qQW8U"

    def test_global_default_when_nothing_else(self):
        tables = TutorialTables.from_dict({
            "global_default": EMBED + "ZD92D2qQW8U",
            "categories": {"bronzer": {"by_skin_tone": {}}},
        })
        resolver = TutorialResolver(tables, checker=_checker())

        assert resolver.lookup("bronzer", "Tan", None) == EMBED + "ZD92D2qQW8U"
        assert resolver.lookup("anything", None, None) == EMBED + "ZD92D2qQW8U"

    def test_missing_global_default_still_returns_reference(self):
        from config.constants import DEFAULT_TUTORIAL_CONFIG

        tables = TutorialTables.from_dict({"categories": {"blush": {"by_skin_tone": {}}}})
        resolver = TutorialResolver(tables, checker=_checker())

        assert resolver.lookup("eyeshadow", "Tan", "Warm") == DEFAULT_TUTORIAL_CONFIG.GLOBAL_DEFAULT
        assert resolver.final_default("blush") == DEFAULT_TUTORIAL_CONFIG.GLOBAL_DEFAULT

    def test_unknown_table_keys_ignored(self):
        tables = TutorialTables.from_dict({
            "global_default": "g",
            "categories": {"Blush": {"by_skin_tone": {"Porcelain": "x", "fair": "y"}}},
        })
        entry = tables.category("blush")
        assert list(entry.by_skin_tone.values()) == ["y"]

    def test_lookup_all_skips_empty_categories(self, tables):
        resolver = TutorialResolver(tables, checker=_checker())
        picks = resolver.lookup_all("Medium", "Cool")

        assert "mascara" not in picks
        assert picks["eyeshadow"] == EMBED + "XPkwk20RjJw"
        assert picks["foundation"] == EMBED + "ZD92D2qQW8U"


class TestLoading:

    def test_missing_file(self, tmp_path):
        with pytest.raises(TutorialError):
            TutorialTables.from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "tutorials.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(TutorialError):
            TutorialTables.from_file(path)

    def test_top_level_must_be_object(self, tmp_path):
        path = tmp_path / "tutorials.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(TutorialError):
            TutorialTables.from_file(path)


class TestVerify:

    def test_valid_reference(self, tables):
        resolver = TutorialResolver(tables, checker=_checker())
        resolution = resolver.verify("https://youtu.be/ZD92D2qQW8U", "foundation")

        assert resolution.is_valid is True
        assert resolution.is_fallback is False
        assert resolution.embed_url == EMBED + "ZD92D2qQW8U"

    def test_first_live_fallback(self, tables):
        resolver = TutorialResolver(tables, checker=_checker(dead=("AAAAAAAAAAA", "mLN4RM-m7yg")))
        resolution = resolver.verify("AAAAAAAAAAA", "foundation")

        assert resolution.is_valid is False
        assert resolution.is_fallback is True
        assert resolution.embed_url == EMBED + "HPx5zZk_45Q"

    def test_all_fallbacks_dead(self, tables):
        dead = ("AAAAAAAAAAA", "sRg20WYF-fI", "BHqkEjfHYQ8", "qBJeAp7Vfe4")
        resolver = TutorialResolver(tables, checker=_checker(dead=dead))
        resolution = resolver.verify("AAAAAAAAAAA", "blush")

        assert resolution.is_fallback is True
        assert resolution.embed_url == EMBED + "BHdpCHFL0GQ"

    def test_unknown_category_uses_foundation_chain(self, tables):
        resolver = TutorialResolver(tables, checker=_checker(dead=("AAAAAAAAAAA",)))
        resolution = resolver.verify("AAAAAAAAAAA", "contour")
        assert resolution.embed_url == EMBED + "mLN4RM-m7yg"

    def test_unknown_category_final_default(self, tables):
        dead = ("AAAAAAAAAAA", "mLN4RM-m7yg", "HPx5zZk_45Q", "ZCbeHxnGcUk")
        resolver = TutorialResolver(tables, checker=_checker(dead=dead))
        resolution = resolver.verify("AAAAAAAAAAA", "contour")
        assert resolution.embed_url == EMBED + "z1r67VKWGFU"

    def test_mascara_final_default(self, tables):
        dead = ("AAAAAAAAAAA", "mLN4RM-m7yg", "HPx5zZk_45Q", "ZCbeHxnGcUk")
        resolver = TutorialResolver(tables, checker=_checker(dead=dead))
        resolution = resolver.verify("AAAAAAAAAAA", "mascara")
        assert resolution.embed_url == EMBED + "MzJFw8Y5g1s"


class TestResolve:

    def test_resolve_without_verify_skips_network(self, tables):
        checker = _checker()
        resolver = TutorialResolver(tables, checker=checker)

        resolution = resolver.resolve("eyeshadow", "Tan", "Warm")

        assert resolution.embed_url == EMBED + "SycFuomRuQo"
        checker.is_available.assert_not_called()

    def test_resolve_all_with_verify(self, tables):
        resolver = TutorialResolver(tables, checker=_checker(dead=("XZQfNBYazPI",)))
        resolved = resolver.resolve_all("Light", "Cool", verify=True)

        assert resolved["foundation"].is_fallback is True
        assert resolved["foundation"].embed_url == EMBED + "mLN4RM-m7yg"
        assert resolved["blush"].is_valid is True
        assert resolved["blush"].embed_url == EMBED + "AcFUGTZdEPk"
