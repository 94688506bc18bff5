# hiring/models.py
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

STATUS_NEW = "New"
STATUS_INTERVIEWING = "Interviewing"
STATUS_HIRED = "Hired"
STATUS_REJECTED = "Rejected"

# Canonical order, also used for analytics output.
CANDIDATE_STATUSES = (STATUS_NEW, STATUS_INTERVIEWING, STATUS_HIRED, STATUS_REJECTED)

SORT_KEYS = ("created_at", "full_name", "matching_score")
SORT_ORDERS = ("asc", "desc")

CHANGE_INSERTED = "inserted"
CHANGE_UPDATED = "updated"
CHANGE_DELETED = "deleted"
CHANGE_KINDS = (CHANGE_INSERTED, CHANGE_UPDATED, CHANGE_DELETED)


def clean_skills(skills) -> Tuple[str, ...]:
    """Drop non-string and blank entries, keep insertion order and casing."""
    if not isinstance(skills, (list, tuple)):
        return ()
    return tuple(s.strip() for s in skills if isinstance(s, str) and s.strip())


def _as_utc(value) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Candidate:
    id: str
    user_id: str
    full_name: str
    applied_position: str
    status: str = STATUS_NEW
    resume_url: Optional[str] = None
    skills: Tuple[str, ...] = ()
    matching_score: int = 0
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        object.__setattr__(self, "created_at", _as_utc(self.created_at))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "full_name": self.full_name,
            "applied_position": self.applied_position,
            "status": self.status,
            "resume_url": self.resume_url,
            "skills": list(self.skills),
            "matching_score": self.matching_score,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Candidate":
        """Build a candidate from a store row (skills may be a JSON string)."""
        skills = row.get("skills") or []
        if isinstance(skills, bytes):
            skills = skills.decode("utf-8", errors="ignore")
        if isinstance(skills, str):
            try:
                skills = json.loads(skills)
            except ValueError:
                skills = [skills]
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            full_name=row.get("full_name") or "",
            applied_position=row.get("applied_position") or "",
            status=row.get("status") or STATUS_NEW,
            resume_url=row.get("resume_url") or None,
            skills=clean_skills(skills),
            matching_score=int(row.get("matching_score") or 0),
            created_at=_as_utc(row.get("created_at") or utcnow()),
        )


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    similarity_score: int

    def to_dict(self) -> Dict[str, Any]:
        payload = self.candidate.to_dict()
        payload["similarity_score"] = self.similarity_score
        return payload


@dataclass(frozen=True)
class FilterCriteria:
    """What the candidate list should show. Empty values disable a filter."""

    search: str = ""
    status: str = ""
    position: str = ""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"

    def __post_init__(self):
        if self.status and self.status not in CANDIDATE_STATUSES:
            raise ValueError(f"Unknown status: {self.status}")
        if self.sort_by not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {self.sort_by}")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {self.sort_order}")


@dataclass(frozen=True)
class StatusCount:
    status: str
    count: int
    percentage: int


@dataclass(frozen=True)
class PositionCount:
    position: str
    count: int


@dataclass(frozen=True)
class AnalyticsSnapshot:
    total_candidates: int
    status_distribution: List[StatusCount] = field(default_factory=list)
    top_positions: List[PositionCount] = field(default_factory=list)
    recent_candidates: List[Candidate] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_candidates": self.total_candidates,
            "status_distribution": [asdict(s) for s in self.status_distribution],
            "top_positions": [asdict(p) for p in self.top_positions],
            "recent_candidates": [c.to_dict() for c in self.recent_candidates],
        }


@dataclass(frozen=True)
class ChangeEvent:
    kind: str
    record: Candidate

    def __post_init__(self):
        if self.kind not in CHANGE_KINDS:
            raise ValueError(f"Unknown change kind: {self.kind}")
