"""
Product matcher.

Every catalog product is scored against an AnalysisResult with additive
weights (see config.constants.MatchWeights):

- foundation products whose name contains a suggested shade keyword
- ingredient overlap with each recommendation
- product category equal to a recommendation's category (or its group)
- concern keywords found in product benefits
- shade family equal to the analysed skin tone
- undertone equal to the analysed undertone; untagged products earn this
  when their name or description mentions the undertone

Products are sorted by score (ties keep catalog order), deduplicated by id
and cut to the configured limit.
"""

from typing import Iterable, List, Optional

from config.constants import (
    CATEGORY_GROUPS,
    DEFAULT_MATCH_WEIGHTS,
    MatchWeights,
    SkinTone,
    Undertone,
)
from core.logging import get_logger
from analysis.models import AnalysisResult
from analysis.parser import default_recommendation
from catalog.models import Product, ScoredProduct

logger = get_logger(__name__)


def _category_matches(rec_category: str, product: Product) -> bool:
    key = (rec_category or "").strip().lower()
    if not key:
        return False
    return product.category_key == key or product.category_key in CATEGORY_GROUPS.get(key, ())


def score_product(
    product: Product,
    analysis: AnalysisResult,
    weights: MatchWeights = DEFAULT_MATCH_WEIGHTS,
) -> int:
    score = 0
    name = product.name.lower()

    if product.category_key == "foundation":
        for shade in analysis.foundation_shades:
            if shade and shade.lower() in name:
                score += weights.SHADE_KEYWORD

    product_ingredients = [i.lower() for i in product.ingredients]
    for rec in analysis.recommendations:
        for ingredient in rec.ingredients:
            needle = ingredient.strip().lower()
            if needle and any(needle in have for have in product_ingredients):
                score += weights.INGREDIENT
        if _category_matches(rec.category, product):
            score += weights.CATEGORY

    benefits = [b.lower() for b in product.benefits]
    for concern in analysis.concerns:
        needle = concern.strip().lower()
        if not needle:
            continue
        score += weights.CONCERN_BENEFIT * sum(1 for benefit in benefits if needle in benefit)

    if product.shade_family is not None and product.shade_family == analysis.skin_tone:
        score += weights.SHADE_FAMILY

    if product.undertone is not None:
        if product.undertone == analysis.undertone:
            score += weights.UNDERTONE
    elif analysis.undertone.value.lower() in f"{name} {product.description.lower()}":
        score += weights.UNDERTONE

    return score


def rank_products(
    analysis: AnalysisResult,
    products: Iterable[Product],
    limit: int = 6,
    weights: MatchWeights = DEFAULT_MATCH_WEIGHTS,
) -> List[ScoredProduct]:
    """Score, sort, deduplicate and truncate ``products`` for ``analysis``."""
    if limit <= 0:
        return []

    scored = [
        ScoredProduct(product=product, match_score=score_product(product, analysis, weights))
        for product in products
    ]
    scored.sort(key=lambda s: s.match_score, reverse=True)

    ranked: List[ScoredProduct] = []
    seen = set()
    for item in scored:
        if item.product.id in seen:
            continue
        seen.add(item.product.id)
        ranked.append(item)
        if len(ranked) >= limit:
            break

    logger.debug(
        "Products ranked",
        skin_tone=analysis.skin_tone.value,
        undertone=analysis.undertone.value,
        returned=len(ranked),
        top_score=ranked[0].match_score if ranked else None,
    )
    return ranked


def analysis_for_tones(
    skin_tone: Optional[str],
    undertone: Optional[str],
) -> AnalysisResult:
    """
    Minimal analysis for a bare (skin tone, undertone) pair.

    Values outside the enumerations fall back to the defaults.
    """
    fields = {}
    tone = SkinTone.normalize(skin_tone)
    if tone is not None:
        fields["skin_tone"] = tone
    under = Undertone.normalize(undertone)
    if under is not None:
        fields["undertone"] = under
    return AnalysisResult(recommendations=[default_recommendation()], **fields)


def recommend_for_tones(
    skin_tone: Optional[str],
    undertone: Optional[str],
    products: Iterable[Product],
    limit: int = 6,
) -> List[ScoredProduct]:
    return rank_products(analysis_for_tones(skin_tone, undertone), products, limit=limit)
