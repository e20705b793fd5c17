"""Template recommendations for ranked categories."""

from .taxonomy import Taxonomy, load_taxonomy
from .types import Category, TemplateRecommendation

DEFAULT_MAX_RECOMMENDATIONS = 5
CATEGORY_LIMIT = 3


def category_relevance(keywords: list[str], category: Category) -> float:
    """Fraction of the category's keywords present in *keywords* (0.0 - 1.0)."""
    if not category.keywords:
        return 0.0
    found = {k.lower() for k in keywords}
    matches = sum(1 for k in category.keywords if k in found)
    return matches / len(category.keywords)


def recommend(
    categories: list[str],
    keywords: list[str],
    max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS,
    per_category: int | None = None,
    taxonomy: Taxonomy | None = None,
) -> list[TemplateRecommendation]:
    """Recommend templates for the top ranked *categories*.

    Only the first three categories are considered.  Each contributes its
    templates (all of them, or the first *per_category*), all scored with
    the category's keyword relevance.  The result is sorted by relevance,
    stable for ties, and capped at *max_recommendations*.
    """
    if max_recommendations <= 0:
        return []
    taxonomy = taxonomy or load_taxonomy()

    candidates: list[TemplateRecommendation] = []
    for key in categories[:CATEGORY_LIMIT]:
        category = taxonomy.get(key)
        if category is None:
            continue
        relevance = category_relevance(keywords, category)
        templates = category.templates
        if per_category is not None:
            templates = templates[:per_category]
        for template in templates:
            candidates.append(
                TemplateRecommendation(
                    name=template.name,
                    url=template.url,
                    description=template.description,
                    category=category.key,
                    relevance_score=relevance,
                    link=f"[{template.name}]({template.url})",
                )
            )

    candidates.sort(key=lambda r: r.relevance_score, reverse=True)
    return candidates[:max_recommendations]
