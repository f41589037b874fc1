"""
Taxonomy matcher: pick the best taxonomy candidate for a free-text field.

No-match is never an error. The caller gets the input back unchanged (or the
default sub-category for empty/generic tracks), so an import always yields a
displayable record even without a taxonomy.
"""
from typing import Iterable, Optional, Sequence

import structlog

from product_matching.matching.normalizer import normalize_text
from product_matching.matching.similarity import similarity
from product_matching.models.domain import FieldMatch

logger = structlog.get_logger(__name__)

DEFAULT_MATCH_THRESHOLD = 0.5
DEFAULT_SUB_CATEGORY = "מסלול כללי"

# general, regular, standard, basic
GENERIC_TRACK_TERMS = ("כללי", "רגיל", "סטנדרטי", "בסיסי")


def _is_blank(text: Optional[str]) -> bool:
    # Quote-only cells normalize to "" and would be contained in every candidate
    return not normalize_text(text)


def rank_candidates(
    input_text: str, candidates: Iterable[str]
) -> list[tuple[str, float]]:
    """
    Score every candidate against the input, best first.

    The sort is stable, so equal scores keep the candidates' original order.
    """
    scored = [(candidate, similarity(input_text, candidate)) for candidate in candidates]
    scored.sort(key=lambda item: item[1], reverse=True)
    return scored


def _best_match(
    field: str, input_text: str, candidates: Sequence[str], threshold: float
) -> Optional[FieldMatch]:
    ranked = rank_candidates(input_text, candidates)
    if not ranked:
        return None

    best_value, best_score = ranked[0]
    if best_score >= threshold:
        logger.debug(
            "Taxonomy field matched",
            field=field,
            input=input_text,
            matched=best_value,
            score=round(best_score, 2),
        )
        return FieldMatch(
            value=best_value,
            score=best_score,
            matched=True,
            original_input=input_text,
        )

    logger.debug(
        "No taxonomy candidate cleared threshold",
        field=field,
        input=input_text,
        best_candidate=best_value,
        best_score=round(best_score, 2),
        threshold=threshold,
    )
    return FieldMatch(
        value=input_text, score=best_score, matched=False, original_input=input_text
    )


def resolve_category(
    input_text: Optional[str],
    candidates: Sequence[str],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> FieldMatch:
    """Match a category; empty input gives "", no match keeps the input"""
    if _is_blank(input_text):
        return FieldMatch(value="", original_input=input_text or "")

    match = _best_match("category", input_text, candidates, threshold)
    return match or FieldMatch(value=input_text, original_input=input_text)


def resolve_company(
    input_text: Optional[str],
    candidates: Sequence[str],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> FieldMatch:
    """Match a company; empty input gives "", no match keeps the input"""
    if _is_blank(input_text):
        return FieldMatch(value="", original_input=input_text or "")

    match = _best_match("company", input_text, candidates, threshold)
    return match or FieldMatch(value=input_text, original_input=input_text)


def resolve_sub_category(
    input_text: Optional[str],
    candidates: Sequence[str],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
    default: str = DEFAULT_SUB_CATEGORY,
) -> FieldMatch:
    """
    Match a sub-category (investment track).

    Empty input, or unmatched input that reads as a generic track, resolves to
    the default sub-category. Other unmatched input is kept as-is.
    """
    if _is_blank(input_text):
        return FieldMatch(value=default, original_input=input_text or "")

    match = _best_match("sub_category", input_text, candidates, threshold)
    if match and match.matched:
        return match

    normalized = normalize_text(input_text)
    if any(term in normalized for term in GENERIC_TRACK_TERMS):
        logger.debug("Generic track defaulted", input=input_text, default=default)
        return FieldMatch(
            value=default,
            score=match.score if match else 0.0,
            original_input=input_text,
        )

    return match or FieldMatch(value=input_text, original_input=input_text)


def match_category(
    input_text: Optional[str],
    candidates: Sequence[str],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> str:
    return resolve_category(input_text, candidates, threshold).value


def match_company(
    input_text: Optional[str],
    candidates: Sequence[str],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> str:
    return resolve_company(input_text, candidates, threshold).value


def match_sub_category(
    input_text: Optional[str],
    candidates: Sequence[str],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> str:
    return resolve_sub_category(input_text, candidates, threshold).value


def batch_match(
    records: Iterable[dict],
    categories: Sequence[str],
    sub_categories: Sequence[str],
    companies: Sequence[str],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> list[dict]:
    """
    Match the category/sub_category/company keys of many partial records.

    Other keys are copied through untouched.
    """
    matched = []
    for record in records:
        matched.append(
            {
                **record,
                "category": match_category(record.get("category"), categories, threshold),
                "sub_category": match_sub_category(
                    record.get("sub_category"), sub_categories, threshold
                ),
                "company": match_company(record.get("company"), companies, threshold),
            }
        )
    return matched
