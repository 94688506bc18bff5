from typing import Iterable, List, Optional, Sequence

from backend.hiring.config import SCORING_RULES
from backend.hiring.models import Candidate, ScoredCandidate
from backend.hiring.scoring import compute_similarity_score
from backend.hiring.taxonomy import RECOMMENDATION_TAXONOMY, SkillTaxonomy


def _rank_key(scored: ScoredCandidate):
    candidate = scored.candidate
    return (scored.similarity_score, candidate.matching_score, candidate.created_at)


def rank_candidates(scored: Iterable[ScoredCandidate], limit: Optional[int] = None) -> List[ScoredCandidate]:
    """
    Drop zero scores, then order by similarity, matching score and creation
    time, all descending. Equal keys keep their input order.
    """
    if limit is None:
        limit = SCORING_RULES["recommendation_limit"]
    kept = [s for s in scored if s.similarity_score > 0]
    kept.sort(key=_rank_key, reverse=True)
    return kept[:max(limit, 0)]


def score_candidates(
    position: str,
    candidates: Sequence[Candidate],
    taxonomy: SkillTaxonomy = RECOMMENDATION_TAXONOMY,
) -> List[ScoredCandidate]:
    return [
        ScoredCandidate(c, compute_similarity_score(position, c.skills, taxonomy))
        for c in candidates
    ]


def recommend(
    position: str,
    candidates: Sequence[Candidate],
    taxonomy: SkillTaxonomy = RECOMMENDATION_TAXONOMY,
    limit: Optional[int] = None,
) -> dict:
    """Build the recommendation response for one position."""
    ranked = rank_candidates(score_candidates(position, candidates, taxonomy), limit=limit)
    return {
        "position": position,
        "recommendations": [s.to_dict() for s in ranked],
        "total_candidates_analyzed": len(candidates),
    }
