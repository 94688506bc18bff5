from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from backend.hiring.config import SCORING_RULES
from backend.hiring.models import (
    CANDIDATE_STATUSES,
    AnalyticsSnapshot,
    Candidate,
    PositionCount,
    StatusCount,
    utcnow,
)
from backend.hiring.scoring import round_half_up


def percentage(count: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(count / total * 100)


def status_distribution(candidates: Sequence[Candidate]) -> List[StatusCount]:
    """Count and share per canonical status, in canonical order."""
    total = len(candidates)
    counts = Counter(c.status for c in candidates)
    return [
        StatusCount(status=status, count=counts.get(status, 0), percentage=percentage(counts.get(status, 0), total))
        for status in CANDIDATE_STATUSES
    ]


def top_positions(candidates: Sequence[Candidate], limit: Optional[int] = None) -> List[PositionCount]:
    """Most applied-to positions; equal counts keep first-seen order."""
    if limit is None:
        limit = SCORING_RULES["top_positions_limit"]
    counts = Counter()
    for c in candidates:
        counts[c.applied_position] += 1
    # Counter keeps insertion order and sorted() is stable
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [PositionCount(position=p, count=n) for p, n in ranked[:max(limit, 0)]]


def recent_candidates(
    candidates: Sequence[Candidate],
    now: Optional[datetime] = None,
    days: Optional[int] = None,
) -> List[Candidate]:
    """Candidates created at or after now - days, newest first. Not truncated."""
    if days is None:
        days = SCORING_RULES["recent_window_days"]
    cutoff = (now or utcnow()) - timedelta(days=days)
    recent = [c for c in candidates if c.created_at >= cutoff]
    recent.sort(key=lambda c: c.created_at, reverse=True)
    return recent


def build_analytics(candidates: Sequence[Candidate], now: Optional[datetime] = None) -> AnalyticsSnapshot:
    return AnalyticsSnapshot(
        total_candidates=len(candidates),
        status_distribution=status_distribution(candidates),
        top_positions=top_positions(candidates),
        recent_candidates=recent_candidates(candidates, now=now),
    )
