"""
Tutorial resolver.

Maps (category, skin tone, undertone) to a tutorial video and verifies
supplied video references, falling back through per-category chains.
All tables come from a JSON file (``tutorials/data/tutorials.json`` unless
TUTORIALS_PATH is set); nothing here raises for missing entries.

Lookup order for a profile:
    exact skin tone -> undertone (categories with match_undertone) ->
    nearest skin tone by ordinal distance -> category default ->
    foundation default -> global default
"""

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from config.constants import DEFAULT_TUTORIAL_CONFIG, SKIN_TONE_ORDER, SkinTone, Undertone
from config.settings import get_settings
from core.logging import LoggerMixin, get_logger
from tutorials.youtube import LivenessChecker, to_embed_url

logger = get_logger(__name__)

BASE_CATEGORY = DEFAULT_TUTORIAL_CONFIG.BASE_CATEGORY


class TutorialError(RuntimeError):
    """Raised when the tutorial tables cannot be loaded."""


@dataclass(frozen=True)
class CategoryTutorials:
    by_skin_tone: Dict[SkinTone, str] = field(default_factory=dict)
    by_undertone: Dict[Undertone, str] = field(default_factory=dict)
    default: Optional[str] = None
    match_undertone: bool = False
    fallbacks: Tuple[str, ...] = ()
    final_default: Optional[str] = None


@dataclass(frozen=True)
class TutorialTables:
    categories: Dict[str, CategoryTutorials]
    global_default: str
    verification_default: str

    @classmethod
    def from_dict(cls, data: dict) -> "TutorialTables":
        categories: Dict[str, CategoryTutorials] = {}
        for name, raw in (data.get("categories") or {}).items():
            by_tone = {}
            for tone, url in (raw.get("by_skin_tone") or {}).items():
                member = SkinTone.normalize(tone)
                if member is None:
                    logger.warning("Ignoring unknown skin tone in tutorial table", category=name, tone=tone)
                    continue
                by_tone[member] = url
            by_undertone = {}
            for tone, url in (raw.get("by_undertone") or {}).items():
                member = Undertone.normalize(tone)
                if member is None:
                    logger.warning("Ignoring unknown undertone in tutorial table", category=name, undertone=tone)
                    continue
                by_undertone[member] = url

            categories[name.strip().lower()] = CategoryTutorials(
                by_skin_tone=by_tone,
                by_undertone=by_undertone,
                default=raw.get("default"),
                match_undertone=bool(raw.get("match_undertone", False)),
                fallbacks=tuple(raw.get("fallbacks") or ()),
                final_default=raw.get("final_default"),
            )

        global_default = data.get("global_default") or DEFAULT_TUTORIAL_CONFIG.GLOBAL_DEFAULT
        return cls(
            categories=categories,
            global_default=global_default,
            verification_default=data.get("verification_default") or global_default,
        )

    @classmethod
    def from_file(cls, path: Path) -> "TutorialTables":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise TutorialError(f"Failed to read tutorials file {path}: {e}") from e
        if not isinstance(data, dict):
            raise TutorialError(f"Tutorials file {path} must hold a JSON object")

        tables = cls.from_dict(data)
        logger.info("Tutorial tables loaded", path=str(path), categories=len(tables.categories))
        return tables

    def category(self, name: Optional[str]) -> Optional[CategoryTutorials]:
        return self.categories.get((name or "").strip().lower())


class TutorialResolution(BaseModel):
    embed_url: str
    is_valid: bool
    is_fallback: bool
    message: str


class TutorialResolver(LoggerMixin):
    """Table lookup plus verified fallback for tutorial videos."""

    def __init__(self, tables: TutorialTables, checker: Optional[LivenessChecker] = None):
        self.tables = tables
        self._checker = checker

    @property
    def checker(self) -> LivenessChecker:
        if self._checker is None:
            self._checker = LivenessChecker()
        return self._checker

    # -----------------------------------------------------------------
    # Table lookup
    # -----------------------------------------------------------------

    def lookup(self, category: str, skin_tone: Optional[str], undertone: Optional[str]) -> str:
        """Tutorial for a profile. Always returns a non-empty reference."""
        tables = self.tables
        base = tables.category(BASE_CATEGORY)
        base_default = base.default if base else None
        entry = tables.category(category)

        if entry is None:
            return base_default or tables.global_default

        tone = SkinTone.normalize(skin_tone)
        under = Undertone.normalize(undertone)

        if tone is not None and tone in entry.by_skin_tone:
            return entry.by_skin_tone[tone]

        if entry.match_undertone and under is not None and under in entry.by_undertone:
            return entry.by_undertone[under]

        if tone is not None:
            nearest = self._nearest_tone(tone, entry.by_skin_tone)
            if nearest is not None:
                return entry.by_skin_tone[nearest]

        return entry.default or base_default or tables.global_default

    @staticmethod
    def _nearest_tone(tone: SkinTone, available: Dict[SkinTone, str]) -> Optional[SkinTone]:
        closest = None
        best = len(SKIN_TONE_ORDER)
        for candidate in SKIN_TONE_ORDER:
            if candidate not in available:
                continue
            distance = abs(candidate.ordinal - tone.ordinal)
            if distance < best:
                best, closest = distance, candidate
        return closest

    def lookup_all(self, skin_tone: Optional[str], undertone: Optional[str]) -> Dict[str, str]:
        names = [name for name, entry in self.tables.categories.items()
                 if entry.by_skin_tone or entry.by_undertone or entry.default]
        return {name: self.lookup(name, skin_tone, undertone) for name in names}

    # -----------------------------------------------------------------
    # Verification
    # -----------------------------------------------------------------

    def fallback_chain(self, category: Optional[str]) -> Tuple[str, ...]:
        entry = self.tables.category(category)
        if entry is None or not entry.fallbacks:
            entry = self.tables.category(BASE_CATEGORY)
        return entry.fallbacks if entry else ()

    def final_default(self, category: Optional[str]) -> str:
        entry = self.tables.category(category)
        if entry is not None and entry.final_default:
            return entry.final_default
        return self.tables.verification_default

    def verify(self, reference: str, category: Optional[str] = None) -> TutorialResolution:
        """
        Validate ``reference``; on failure walk the category's fallback chain.

        ``is_valid`` describes the supplied reference, ``is_fallback`` whether
        a substitute was returned.
        """
        category = category or BASE_CATEGORY
        embed_url = to_embed_url(reference)
        if embed_url is not None and self.checker.is_available(embed_url):
            return TutorialResolution(
                embed_url=embed_url, is_valid=True, is_fallback=False, message="Valid YouTube video",
            )

        self.logger.info("Tutorial unavailable, trying fallbacks", reference=reference, category=category)
        for candidate in self.fallback_chain(category):
            if self.checker.is_available(candidate):
                return TutorialResolution(
                    embed_url=to_embed_url(candidate) or candidate,
                    is_valid=False,
                    is_fallback=True,
                    message="Original video unavailable, using fallback",
                )

        self.logger.warning("All tutorial fallbacks unavailable", category=category)
        return TutorialResolution(
            embed_url=self.final_default(category),
            is_valid=False,
            is_fallback=True,
            message="Original video unavailable, using default tutorial",
        )

    def resolve(
        self,
        category: str,
        skin_tone: Optional[str],
        undertone: Optional[str],
        verify: bool = False,
    ) -> TutorialResolution:
        reference = self.lookup(category, skin_tone, undertone)
        if verify:
            return self.verify(reference, category)
        return TutorialResolution(
            embed_url=to_embed_url(reference) or reference,
            is_valid=True,
            is_fallback=False,
            message="Tutorial from lookup table",
        )

    def resolve_all(
        self,
        skin_tone: Optional[str],
        undertone: Optional[str],
        verify: bool = False,
    ) -> Dict[str, TutorialResolution]:
        """
        Tutorials for every category. With ``verify`` the table picks are
        probed concurrently and only unavailable ones walk their chains.
        """
        picks = self.lookup_all(skin_tone, undertone)
        if not verify:
            return {name: self.resolve(name, skin_tone, undertone) for name in picks}

        availability = self.checker.check_many(picks.values())
        resolved: Dict[str, TutorialResolution] = {}
        for name, reference in picks.items():
            if availability.get(reference):
                resolved[name] = TutorialResolution(
                    embed_url=to_embed_url(reference) or reference,
                    is_valid=True,
                    is_fallback=False,
                    message="Valid YouTube video",
                )
            else:
                resolved[name] = self.verify(reference, name)
        return resolved


# =============================================================================
# Singleton
# =============================================================================

_resolver: Optional[TutorialResolver] = None
_resolver_lock = threading.Lock()


def get_tutorial_resolver() -> TutorialResolver:
    """Get or create the TutorialResolver singleton (thread-safe)."""
    global _resolver
    if _resolver is None:
        with _resolver_lock:
            if _resolver is None:
                tables = TutorialTables.from_file(get_settings().tutorials_file)
                _resolver = TutorialResolver(tables)
    return _resolver


def reset_tutorial_resolver() -> None:
    global _resolver
    with _resolver_lock:
        _resolver = None
