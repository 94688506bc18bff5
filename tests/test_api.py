"""Tests for the HTTP API."""

import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import pytest

import backend.main
from backend.hiring.db_io import InMemoryCandidateStore, StorageError
from backend.hiring.resume_storage import ResumeStorage
from backend.main import app, get_resume_storage, get_store

PDF_BYTES = b"%PDF-1.4\n%fake resume\n"


def _add(client, headers, **overrides):
    body = {
        "full_name": "Ana Lima",
        "applied_position": "Frontend Developer",
        "skills": ["React", "TypeScript", "JavaScript", "CSS", "HTML"],
    }
    body.update(overrides)
    return client.post("/api/candidates", json=body, headers=headers)


class BrokenStore(InMemoryCandidateStore):
    def _insert(self, candidate):
        raise StorageError("insert failed")

    def list_by_owner(self, owner_id):
        raise StorageError("read failed")


class TestAuthentication:
    """Every candidate endpoint requires a bearer token."""

    @pytest.mark.parametrize(
        "method, path",
        [
            ("post", "/api/candidates"),
            ("get", "/api/candidates"),
            ("post", "/api/recommend"),
            ("get", "/api/analytics"),
            ("delete", "/api/candidates/abc"),
        ],
    )
    def test_missing_token(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_unknown_token(self, client):
        response = client.get("/api/analytics", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_non_bearer_scheme(self, client):
        response = client.get("/api/analytics", headers={"Authorization": "Basic token-alice"})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_rejected_before_validation(self, client):
        """Test that a bad payload without a token still gets 401."""
        response = client.post("/api/candidates", json={"skills": "not-a-list"})
        assert response.status_code == 401


class TestAddCandidate:
    def test_created_with_matching_score(self, client, alice_headers):
        response = _add(client, alice_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["matching_score"] == 100
        assert body["candidate"]["status"] == "New"
        assert body["candidate"]["matching_score"] == 100
        assert body["candidate"]["user_id"] == "owner-alice"

    def test_blank_and_non_string_skills_dropped(self, client, alice_headers):
        response = _add(client, alice_headers, applied_position="Backend Developer", skills=["Python", "", 42, "  "])
        body = response.json()
        assert body["candidate"]["skills"] == ["Python"]
        assert body["matching_score"] == 20

    def test_missing_name(self, client, alice_headers):
        response = _add(client, alice_headers, full_name="   ")
        assert response.status_code == 400
        assert response.json() == {"error": "Full name is required"}

    def test_missing_position(self, client, alice_headers):
        response = _add(client, alice_headers, applied_position=None)
        assert response.status_code == 400
        assert response.json() == {"error": "Applied position is required"}

    def test_storage_failure(self, client, alice_headers):
        app.dependency_overrides[get_store] = lambda: BrokenStore()
        response = _add(client, alice_headers)
        assert response.status_code == 500
        assert response.json() == {"error": "insert failed"}


class TestListCandidates:
    def test_filters_and_sorts(self, client, alice_headers, bob_headers):
        _add(client, alice_headers, full_name="Zoe")
        _add(client, alice_headers, full_name="Adam", applied_position="QA Engineer", skills=["Jest"])
        _add(client, bob_headers, full_name="Bob's candidate")

        response = client.get(
            "/api/candidates",
            params={"sort_by": "full_name", "sort_order": "asc"},
            headers=alice_headers,
        )
        assert response.status_code == 200
        assert [c["full_name"] for c in response.json()["candidates"]] == ["Adam", "Zoe"]

        response = client.get("/api/candidates", params={"search": "jest"}, headers=alice_headers)
        assert [c["full_name"] for c in response.json()["candidates"]] == ["Adam"]

    def test_unknown_status_filter(self, client, alice_headers):
        response = client.get("/api/candidates", params={"status": "Archived"}, headers=alice_headers)
        assert response.status_code == 400

    def test_bad_date(self, client, alice_headers):
        response = client.get("/api/candidates", params={"date_from": "15/03/2024"}, headers=alice_headers)
        assert response.status_code == 400
        assert "YYYY-MM-DD" in response.json()["error"]

    def test_empty_status_result(self, client, alice_headers):
        _add(client, alice_headers)
        response = client.get("/api/candidates", params={"status": "Hired"}, headers=alice_headers)
        assert response.status_code == 200
        assert response.json()["candidates"] == []


class TestStatusAndDelete:
    def test_update_status(self, client, alice_headers):
        candidate_id = _add(client, alice_headers).json()["candidate"]["id"]
        response = client.patch(
            f"/api/candidates/{candidate_id}/status", json={"status": "Interviewing"}, headers=alice_headers,
        )
        assert response.status_code == 200
        assert response.json()["candidate"]["status"] == "Interviewing"

    def test_invalid_status(self, client, alice_headers):
        candidate_id = _add(client, alice_headers).json()["candidate"]["id"]
        response = client.patch(
            f"/api/candidates/{candidate_id}/status", json={"status": "hired"}, headers=alice_headers,
        )
        assert response.status_code == 400

    def test_other_owner_gets_404(self, client, alice_headers, bob_headers):
        candidate_id = _add(client, alice_headers).json()["candidate"]["id"]
        response = client.patch(
            f"/api/candidates/{candidate_id}/status", json={"status": "Hired"}, headers=bob_headers,
        )
        assert response.status_code == 404

    def test_delete(self, client, alice_headers):
        candidate_id = _add(client, alice_headers).json()["candidate"]["id"]
        assert client.delete(f"/api/candidates/{candidate_id}", headers=alice_headers).status_code == 200
        assert client.delete(f"/api/candidates/{candidate_id}", headers=alice_headers).status_code == 404


class TestRecommend:
    def test_top_three(self, client, alice_headers):
        _add(client, alice_headers, full_name="Full", skills=["React", "TypeScript", "JavaScript", "CSS"])
        _add(client, alice_headers, full_name="Half", skills=["React", "CSS"])
        _add(client, alice_headers, full_name="One", skills=["HTML"])
        _add(client, alice_headers, full_name="Partial", skills=["React Native"])
        _add(client, alice_headers, full_name="None", skills=["Cooking"])

        response = client.post("/api/recommend", json={"position": "Frontend Developer"}, headers=alice_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["total_candidates_analyzed"] == 5
        assert [r["full_name"] for r in body["recommendations"]] == ["Full", "Half", "One"]
        scores = [r["similarity_score"] for r in body["recommendations"]]
        assert scores == sorted(scores, reverse=True)

    def test_position_required(self, client, alice_headers):
        response = client.post("/api/recommend", json={"position": "  "}, headers=alice_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Position is required"}

    def test_storage_failure(self, client, alice_headers):
        app.dependency_overrides[get_store] = lambda: BrokenStore()
        response = client.post("/api/recommend", json={"position": "QA"}, headers=alice_headers)
        assert response.status_code == 500


class TestAnalytics:
    def test_summary(self, client, alice_headers, store, make_candidate, now):
        store.add(make_candidate(applied_position="QA Engineer", created_at=now - timedelta(days=20)))
        _add(client, alice_headers)
        _add(client, alice_headers)

        body = client.get("/api/analytics", headers=alice_headers).json()
        assert body["total_candidates"] == 3
        assert body["top_positions"][0] == {"position": "Frontend Developer", "count": 2}
        assert {"status": "New", "count": 3, "percentage": 100} in body["status_distribution"]
        assert len(body["recent_candidates"]) == 2

    def test_empty(self, client, bob_headers):
        body = client.get("/api/analytics", headers=bob_headers).json()
        assert body["total_candidates"] == 0
        assert all(row["percentage"] == 0 for row in body["status_distribution"])

    def test_naive_timestamps_are_utc(self, client, alice_headers, store, make_candidate):
        """Test that a seeded record without tzinfo is counted as UTC."""
        store.add(make_candidate(created_at=datetime(2024, 3, 14, 12, 0)))
        response = client.get("/api/analytics", headers=alice_headers)
        assert response.status_code == 200
        assert len(response.json()["recent_candidates"]) == 1

        response = client.get(
            "/api/candidates", params={"date_from": "2024-03-14", "date_to": "2024-03-14"}, headers=alice_headers,
        )
        assert response.status_code == 200
        assert response.json()["total"] == 1


class TestResumeUpload:
    def test_pdf_upload(self, client, alice_headers):
        response = client.post(
            "/api/resume/upload",
            files={"file": ("cv.pdf", PDF_BYTES, "application/pdf")},
            headers=alice_headers,
        )
        assert response.status_code == 200
        assert response.json()["url"].startswith("/uploads/owner-alice/")

    def test_rejects_non_pdf(self, client, alice_headers):
        response = client.post(
            "/api/resume/upload",
            files={"file": ("cv.txt", b"plain text", "text/plain")},
            headers=alice_headers,
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Please upload a PDF file"}

    def test_uploaded_resume_is_downloadable(self, client, alice_headers):
        url = client.post(
            "/api/resume/upload",
            files={"file": ("cv.pdf", PDF_BYTES, "application/pdf")},
            headers=alice_headers,
        ).json()["url"]

        response = client.get(url)
        assert response.status_code == 200
        assert response.content == PDF_BYTES
        assert response.headers["content-type"] == "application/pdf"

    def test_unknown_resume(self, client):
        response = client.get("/uploads/owner-alice/123.pdf")
        assert response.status_code == 404
        assert response.json() == {"error": "Resume not found"}

    def test_rejects_oversize_upload(self, client, alice_headers, tmp_path):
        app.dependency_overrides[get_resume_storage] = lambda: ResumeStorage(tmp_path, "/uploads", max_bytes=64)
        response = client.post(
            "/api/resume/upload",
            files={"file": ("cv.pdf", PDF_BYTES + b"0" * 1024, "application/pdf")},
            headers=alice_headers,
        )
        assert response.status_code == 400
        assert not list(tmp_path.rglob("*.pdf"))


class TestMisc:
    def test_health(self, client):
        assert client.get("/api/health").json()["status"] == "ok"

    def test_positions(self, client):
        positions = client.get("/api/positions").json()["positions"]
        assert positions[0]["position"] == "Frontend Developer"
        assert len(positions) == 6

    def test_store_created_once_under_concurrency(self, monkeypatch):
        created = []

        def slow_factory():
            time.sleep(0.01)
            created.append(InMemoryCandidateStore())
            return created[-1]

        monkeypatch.setattr(backend.main, "_store", None)
        monkeypatch.setattr(backend.main, "create_store", slow_factory)
        with ThreadPoolExecutor(max_workers=8) as pool:
            stores = list(pool.map(lambda _: get_store(), range(8)))

        assert len(created) == 1
        assert all(s is created[0] for s in stores)
