"""Tests for recommendation ranking."""

from datetime import timedelta

from backend.hiring.models import ScoredCandidate
from backend.hiring.ranking import rank_candidates, recommend, score_candidates


class TestRankCandidates:
    """Tests for ordering, exclusion and truncation."""

    def test_zero_scores_are_excluded(self, make_candidate):
        scored = [ScoredCandidate(make_candidate(), 0), ScoredCandidate(make_candidate(), 10)]
        ranked = rank_candidates(scored)
        assert [s.similarity_score for s in ranked] == [10]

    def test_truncates_to_three(self, make_candidate):
        scored = [ScoredCandidate(make_candidate(), score) for score in (10, 50, 30, 70, 20)]
        ranked = rank_candidates(scored)
        assert [s.similarity_score for s in ranked] == [70, 50, 30]

    def test_matching_score_breaks_ties(self, make_candidate):
        low = make_candidate(matching_score=20)
        high = make_candidate(matching_score=80)
        ranked = rank_candidates([ScoredCandidate(low, 50), ScoredCandidate(high, 50)])
        assert [s.candidate.id for s in ranked] == [high.id, low.id]

    def test_newer_candidate_breaks_remaining_ties(self, make_candidate, now):
        older = make_candidate(created_at=now - timedelta(days=3))
        newer = make_candidate(created_at=now - timedelta(hours=1))
        ranked = rank_candidates([ScoredCandidate(older, 50), ScoredCandidate(newer, 50)])
        assert [s.candidate.id for s in ranked] == [newer.id, older.id]

    def test_fully_equal_keys_keep_input_order(self, make_candidate, now):
        first = make_candidate(id="first", created_at=now)
        second = make_candidate(id="second", created_at=now)
        ranked = rank_candidates([ScoredCandidate(first, 40), ScoredCandidate(second, 40)])
        assert [s.candidate.id for s in ranked] == ["first", "second"]

    def test_custom_limit(self, make_candidate):
        scored = [ScoredCandidate(make_candidate(), 10 + i) for i in range(5)]
        assert len(rank_candidates(scored, limit=5)) == 5


class TestRecommend:
    """Tests for the full recommendation response."""

    def test_response_shape(self, make_candidate):
        candidates = [
            make_candidate(full_name="Ana", skills=["React", "TypeScript", "CSS"]),
            make_candidate(full_name="Ben", skills=["Cooking"]),
            make_candidate(full_name="Cy", skills=["React Native"]),
        ]
        result = recommend("Frontend Developer", candidates)

        assert result["position"] == "Frontend Developer"
        assert result["total_candidates_analyzed"] == 3
        names = [r["full_name"] for r in result["recommendations"]]
        assert names == ["Ana", "Cy"]
        assert result["recommendations"][0]["similarity_score"] == 43

    def test_never_more_than_three(self, make_candidate):
        candidates = [make_candidate(skills=["React"]) for _ in range(6)]
        assert len(recommend("Frontend Developer", candidates)["recommendations"]) == 3

    def test_empty_candidate_set(self):
        result = recommend("Frontend Developer", [])
        assert result["recommendations"] == []
        assert result["total_candidates_analyzed"] == 0

    def test_score_candidates_keeps_every_candidate(self, make_candidate):
        candidates = [make_candidate(skills=[]), make_candidate(skills=["HTML"])]
        scores = [s.similarity_score for s in score_candidates("Frontend Developer", candidates)]
        assert scores == [0, 14]
