from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, List, Optional
from datetime import datetime
import logging
import threading

from backend import API_PREFIX, API_TITLE, API_VERSION, CORS_ORIGINS
from backend.hiring.analytics import build_analytics
from backend.hiring.auth import AuthError, TokenAuthenticator
from backend.hiring.config import LOG_LEVEL, UPLOAD_CONFIG
from backend.hiring.db_io import CandidateNotFound, CandidateStore, StorageError, create_store
from backend.hiring.models import CANDIDATE_STATUSES, FilterCriteria, clean_skills, utcnow
from backend.hiring.ranking import recommend
from backend.hiring.resume_storage import (
    ResumeStorage,
    ResumeStorageError,
    ResumeValidationError,
    validate_resume,
)
from backend.hiring.scoring import compute_matching_score
from backend.hiring.search import apply_criteria
from backend.hiring.taxonomy import MATCHING_TAXONOMY, RECOMMENDATION_TAXONOMY

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title=API_TITLE, version=API_VERSION)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# PAYLOADS
# ============================================================
class AddCandidatePayload(BaseModel):
    full_name: Optional[str] = None
    applied_position: Optional[str] = None
    skills: Optional[List[Any]] = Field(default=None, description="Skill names; blanks are dropped")
    resume_url: Optional[str] = None


class RecommendPayload(BaseModel):
    position: Optional[str] = None


class StatusUpdatePayload(BaseModel):
    status: str = Field(..., description="New status value")


# ============================================================
# DEPENDENCIES
# ============================================================
_store: Optional[CandidateStore] = None
_store_lock = threading.Lock()

# Resumes are served under the upload base URL when it is a local path.
RESUME_ROUTE = UPLOAD_CONFIG["public_base_url"] if UPLOAD_CONFIG["public_base_url"].startswith("/") else "/uploads"

bearer_scheme = HTTPBearer(auto_error=False)


def get_store() -> CandidateStore:
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = create_store()
    return _store


def get_resume_storage() -> ResumeStorage:
    return ResumeStorage()


def get_authenticator() -> TokenAuthenticator:
    return TokenAuthenticator()


def get_matching_taxonomy():
    return MATCHING_TAXONOMY


def get_recommendation_taxonomy():
    return RECOMMENDATION_TAXONOMY


def get_clock():
    return utcnow


def current_owner(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    authenticator: TokenAuthenticator = Depends(get_authenticator),
) -> str:
    try:
        return authenticator.authenticate(credentials.credentials if credentials else None)
    except AuthError:
        raise HTTPException(status_code=401, detail="Unauthorized")


def _parse_date_yyyy_mm_dd(value, field_name):
    if not value:
        return None
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{field_name} must be YYYY-MM-DD")


# ============================================================
# ERROR RENDERING
# ============================================================
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request, exc):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        loc = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"{loc}: {errors[0].get('msg')}" if loc else errors[0].get("msg", message)
    return JSONResponse(status_code=400, content={"error": message})


# ============================================================
# HEALTH CHECK
# ============================================================
@app.get(f"{API_PREFIX}/health")
async def health_check():
    return {"status": "ok", "message": f"{API_TITLE} is running"}


# ============================================================
# CANDIDATES
# ============================================================
@app.post(f"{API_PREFIX}/candidates", status_code=201)
async def add_candidate(
    payload: AddCandidatePayload,
    owner_id: str = Depends(current_owner),
    store: CandidateStore = Depends(get_store),
    taxonomy=Depends(get_matching_taxonomy),
):
    full_name = (payload.full_name or "").strip()
    if not full_name:
        raise HTTPException(status_code=400, detail="Full name is required")
    position = (payload.applied_position or "").strip()
    if not position:
        raise HTTPException(status_code=400, detail="Applied position is required")

    skills = clean_skills(payload.skills or [])
    matching_score = compute_matching_score(position, skills, taxonomy)
    try:
        candidate = store.insert(
            owner_id,
            full_name=full_name,
            applied_position=position,
            skills=skills,
            matching_score=matching_score,
            resume_url=payload.resume_url,
        )
    except StorageError as exc:
        logger.exception("Insert failed for owner %s", owner_id)
        raise HTTPException(status_code=500, detail=str(exc) or "Unable to save candidate")

    logger.info("Added candidate %s (%s) with matching score %d", candidate.id, position, matching_score)
    return {"candidate": candidate.to_dict(), "matching_score": matching_score}


@app.get(f"{API_PREFIX}/candidates")
async def list_candidates(
    search: str = Query(""),
    status: str = Query(""),
    position: str = Query(""),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc"),
    owner_id: str = Depends(current_owner),
    store: CandidateStore = Depends(get_store),
):
    try:
        criteria = FilterCriteria(
            search=search,
            status=status,
            position=position,
            date_from=_parse_date_yyyy_mm_dd(date_from, "date_from"),
            date_to=_parse_date_yyyy_mm_dd(date_to, "date_to"),
            sort_by=sort_by,
            sort_order=sort_order.lower(),
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        candidates = store.list_by_owner(owner_id)
    except StorageError as exc:
        logger.exception("Listing candidates failed for owner %s", owner_id)
        raise HTTPException(status_code=500, detail=str(exc) or "Unable to load candidates")

    rows = apply_criteria(candidates, criteria)
    return {
        "candidates": [c.to_dict() for c in rows],
        "total": len(rows),
        "total_unfiltered": len(candidates),
    }


@app.patch(f"{API_PREFIX}/candidates/{{candidate_id}}/status")
async def update_candidate_status(
    candidate_id: str,
    payload: StatusUpdatePayload,
    owner_id: str = Depends(current_owner),
    store: CandidateStore = Depends(get_store),
):
    if payload.status not in CANDIDATE_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status value")
    try:
        candidate = store.update_status(owner_id, candidate_id, payload.status)
    except CandidateNotFound:
        raise HTTPException(status_code=404, detail="Candidate not found")
    except StorageError as exc:
        logger.exception("Status update failed for candidate %s", candidate_id)
        raise HTTPException(status_code=500, detail=str(exc) or "Unable to update status")
    return {"candidate": candidate.to_dict()}


@app.delete(f"{API_PREFIX}/candidates/{{candidate_id}}")
async def remove_candidate(
    candidate_id: str,
    owner_id: str = Depends(current_owner),
    store: CandidateStore = Depends(get_store),
):
    try:
        store.delete(owner_id, candidate_id)
    except CandidateNotFound:
        raise HTTPException(status_code=404, detail="Candidate not found")
    except StorageError as exc:
        logger.exception("Delete failed for candidate %s", candidate_id)
        raise HTTPException(status_code=500, detail=str(exc) or "Unable to delete candidate")
    return {"success": True}


# ============================================================
# RESUME UPLOAD
# ============================================================
@app.post(f"{API_PREFIX}/resume/upload")
async def upload_resume(
    file: UploadFile = File(...),
    owner_id: str = Depends(current_owner),
    storage: ResumeStorage = Depends(get_resume_storage),
):
    # One byte past the limit is enough to reject oversize files.
    data = await file.read(storage.max_bytes + 1)
    try:
        validate_resume(file.filename, file.content_type, data, storage.max_bytes)
    except ResumeValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        url = storage.store(owner_id, data)
    except ResumeStorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return {"url": url}


@app.get(f"{RESUME_ROUTE}/{{owner_segment}}/{{filename}}")
async def download_resume(
    owner_segment: str,
    filename: str,
    storage: ResumeStorage = Depends(get_resume_storage),
):
    path = storage.locate(owner_segment, filename)
    if path is None:
        raise HTTPException(status_code=404, detail="Resume not found")
    return FileResponse(path, media_type="application/pdf", filename=filename)


# ============================================================
# RECOMMENDATIONS & ANALYTICS
# ============================================================
@app.post(f"{API_PREFIX}/recommend")
async def recommend_candidates(
    payload: RecommendPayload,
    owner_id: str = Depends(current_owner),
    store: CandidateStore = Depends(get_store),
    taxonomy=Depends(get_recommendation_taxonomy),
):
    position = (payload.position or "").strip()
    if not position:
        raise HTTPException(status_code=400, detail="Position is required")
    try:
        candidates = store.list_by_owner(owner_id)
    except StorageError as exc:
        logger.exception("Loading candidates for recommendation failed")
        raise HTTPException(status_code=500, detail=str(exc) or "Unable to load candidates")
    return recommend(position, candidates, taxonomy)


@app.get(f"{API_PREFIX}/analytics")
async def candidate_analytics(
    owner_id: str = Depends(current_owner),
    store: CandidateStore = Depends(get_store),
    clock=Depends(get_clock),
):
    try:
        candidates = store.list_by_owner(owner_id)
    except StorageError as exc:
        logger.exception("Loading candidates for analytics failed")
        raise HTTPException(status_code=500, detail=str(exc) or "Unable to load candidates")
    return build_analytics(candidates, now=clock()).to_dict()


@app.get(f"{API_PREFIX}/positions")
async def list_positions(taxonomy=Depends(get_matching_taxonomy)):
    return {
        "positions": [
            {"position": name, "required_skills": list(skills)}
            for name, skills in taxonomy
        ]
    }


# ============================================================
# ROOT ENDPOINT
# ============================================================
@app.get("/")
async def root():
    return {
        "message": f"Welcome to {API_TITLE}",
        "docs": "/docs",
        "version": API_VERSION,
    }

# ============================================================
# RUN LOCAL
# ============================================================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
