# hiring/scoring.py
import math
from typing import Optional, Sequence

from backend.hiring.position_matcher import match_position, resolve_required_skills
from backend.hiring.taxonomy import MATCHING_TAXONOMY, RECOMMENDATION_TAXONOMY, SkillTaxonomy

EXACT_MATCH_CREDIT = 1.0
PARTIAL_MATCH_CREDIT = 0.5
UNMATCHED_SKILL_POINTS = 10


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (round() is banker's)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def _lowered(skills: Optional[Sequence[str]]):
    return [s.strip().lower() for s in skills or [] if isinstance(s, str) and s.strip()]


def compute_matching_score(
    position: str,
    skills: Optional[Sequence[str]],
    taxonomy: SkillTaxonomy = MATCHING_TAXONOMY,
) -> int:
    """
    Score stored with a candidate when it is created (0-100).

    With a taxonomy match, the share of required skills that relate (substring
    either way) to any candidate skill. Without one, 10 points per skill, capped
    at 100. There is no ad hoc skill extraction on this path.
    """
    candidate_skills = _lowered(skills)
    matched = match_position(position, taxonomy)
    if not matched:
        return min(len(candidate_skills) * UNMATCHED_SKILL_POINTS, 100)

    required = matched[1]
    if not required:
        return 0
    hits = 0
    for requirement in required:
        req = requirement.lower()
        if any(skill in req or req in skill for skill in candidate_skills):
            hits += 1
    return clamp_score(hits / len(required) * 100)


def compute_similarity_score(
    position: str,
    skills: Optional[Sequence[str]],
    taxonomy: SkillTaxonomy = RECOMMENDATION_TAXONOMY,
    default_required: Optional[Sequence[str]] = None,
) -> int:
    """
    Score used to rank candidates for a position at request time (0-100).

    Each required skill earns 1.0 for an exact case-insensitive match, else 0.5
    if any candidate skill contains it or is contained in it.
    """
    required = resolve_required_skills(position, taxonomy, default=default_required)
    if not required:
        return 0
    candidate_skills = _lowered(skills)
    exact = set(candidate_skills)

    total = 0.0
    for requirement in required:
        req = requirement.lower()
        if req in exact:
            total += EXACT_MATCH_CREDIT
        elif any(skill in req or req in skill for skill in candidate_skills):
            total += PARTIAL_MATCH_CREDIT
    return clamp_score(total / len(required) * 100)
