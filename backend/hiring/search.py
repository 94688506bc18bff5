"""
Candidate list search, filtering and sorting.

Everything here is a pure function of (candidates, criteria): the same
snapshot and the same criteria always give the same ordered list, so callers
are free to debounce or memoize around apply_criteria.
"""
from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from backend.hiring.models import Candidate, FilterCriteria

# (field accessor, weight)
FUZZY_FIELDS = (
    (lambda c: c.full_name, 3),
    (lambda c: c.applied_position, 2),
    (lambda c: " ".join(c.skills), 2),
    (lambda c: c.status, 1),
)

SUBSTRING_POINTS = 10
PREFIX_POINTS = 5
CONTAINS_POINTS = 2

END_OF_DAY = time(23, 59, 59, 999000)


def _search_term(criteria: FilterCriteria) -> str:
    return (criteria.search or "").strip().lower()


def fuzzy_score(candidate: Candidate, search: str) -> int:
    """
    Weighted relevance of a candidate for a search string; 0 means no match.

    Per field: +10*weight if the field contains the whole search string, then
    for every (search word, field word) pair +5*weight when the field word
    starts with the search word, else +2*weight when it contains it.
    """
    term = (search or "").strip().lower()
    if not term:
        return 0
    search_words = term.split()
    score = 0
    for accessor, weight in FUZZY_FIELDS:
        value = (accessor(candidate) or "").lower()
        if term in value:
            score += weight * SUBSTRING_POINTS
        field_words = value.split()
        for search_word in search_words:
            for field_word in field_words:
                if field_word.startswith(search_word):
                    score += weight * PREFIX_POINTS
                elif search_word in field_word:
                    score += weight * CONTAINS_POINTS
    return score


def _date_bounds(criteria: FilterCriteria) -> Tuple[Optional[datetime], Optional[datetime]]:
    start = end = None
    if criteria.date_from:
        start = datetime.combine(criteria.date_from, time.min, tzinfo=timezone.utc)
    if criteria.date_to:
        end = datetime.combine(criteria.date_to, END_OF_DAY, tzinfo=timezone.utc)
    return start, end


def matches_criteria(candidate: Candidate, criteria: FilterCriteria) -> bool:
    """True when the candidate passes every active filter."""
    if criteria.status and candidate.status != criteria.status:
        return False

    position = (criteria.position or "").strip().lower()
    if position and position not in candidate.applied_position.lower():
        return False

    start, end = _date_bounds(criteria)
    if start and candidate.created_at < start:
        return False
    if end and candidate.created_at > end:
        return False

    term = _search_term(criteria)
    if term and fuzzy_score(candidate, term) == 0:
        return False
    return True


def filter_candidates(candidates: Iterable[Candidate], criteria: FilterCriteria) -> List[Candidate]:
    return [c for c in candidates if matches_criteria(c, criteria)]


def _sort_key(sort_by: str):
    if sort_by == "full_name":
        return lambda c: (c.full_name.casefold(), c.full_name)
    if sort_by == "matching_score":
        return lambda c: c.matching_score
    return lambda c: c.created_at


def sort_candidates(candidates: Iterable[Candidate], criteria: FilterCriteria) -> List[Candidate]:
    """
    Order by the selected key and direction. With an active search, relevance
    (descending) comes first and the selected key only breaks ties.
    """
    ordered = sorted(
        candidates,
        key=_sort_key(criteria.sort_by),
        reverse=criteria.sort_order == "desc",
    )
    term = _search_term(criteria)
    if term:
        # sorted() is stable, so equal relevance keeps the key order above
        ordered.sort(key=lambda c: fuzzy_score(c, term), reverse=True)
    return ordered


def apply_criteria(candidates: Sequence[Candidate], criteria: Optional[FilterCriteria] = None) -> List[Candidate]:
    """Filter then sort a candidate snapshot."""
    criteria = criteria or FilterCriteria()
    return sort_candidates(filter_candidates(candidates, criteria), criteria)
