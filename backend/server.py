"""
FastAPI Server for the Degree Planner API

Serves the dashboard: plan templates, the signed-in user's working
transcript and plan, the plan overview for a selected semester, and the
lesson offerings for the session calendar.

Usage:
    python server.py                    # Run server on port 8000
    python server.py --port 3001        # Custom port
"""

import argparse
import base64
import binascii
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from api.client import TranscriptParserClient
from core.auth import AuthenticatedUser, get_current_user
from core.config import initialize_firebase
from services.cache import is_cache_available
from services.catalog import get_catalogs
from services.firebase import get_plan_store, get_transcript_store
from services.planner import (
    EmptyTranscriptError,
    LessonNotFoundError,
    PlanNotFoundError,
    PlannerError,
    PlannerService,
    StoreFailureError,
    TranscriptParseError,
)
from services.transcript import (
    AttemptNotFoundError,
    DuplicateAttemptError,
    FinalizedAttemptError,
    TranscriptError,
)


# Pydantic Models (API Request/Response Schemas)

class HealthResponse(BaseModel):
    status: str
    redis: str


class PlanSelectionRequest(BaseModel):
    faculty: str
    program: str
    period: str


class TranscriptUploadRequest(BaseModel):
    pdf_base64: str


class AttemptCreateRequest(BaseModel):
    semester: str
    code: str
    name: Optional[str] = None
    credits: Optional[str] = None


class AttemptRef(BaseModel):
    semester: str
    code: str


class GradeUpdateRequest(AttemptRef):
    grade: str


class SessionUpdateRequest(AttemptRef):
    session_id: Optional[str] = None
    lesson_id: Optional[str] = None


class SemesterRef(BaseModel):
    semester: str


class SemesterSelection(BaseModel):
    semester: Optional[str] = None


class UploadResponse(BaseModel):
    parsed: int
    state: Dict[str, Any]


class LessonListResponse(BaseModel):
    course_code: str
    lessons: List[Dict[str, Any]]
    total: int


# Per-user planners (one working session per user)

_planners: Dict[str, PlannerService] = {}


def get_planner(user: AuthenticatedUser = Depends(get_current_user)) -> PlannerService:
    """FastAPI dependency returning the signed-in user's loaded planner"""
    planner = _planners.get(user.uid)
    if planner is None:
        planner = PlannerService(
            user_id=user.uid,
            transcript_store=get_transcript_store(),
            plan_store=get_plan_store()
        )
        try:
            planner.load()
        except StoreFailureError as e:
            raise HTTPException(status_code=502, detail=str(e))
        _planners[user.uid] = planner
    return planner


def _http_error(error: Exception) -> HTTPException:
    """Map transcript and planner errors to HTTP errors"""
    if isinstance(error, (AttemptNotFoundError, PlanNotFoundError, LessonNotFoundError)):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, (DuplicateAttemptError, FinalizedAttemptError)):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, (TranscriptParseError, EmptyTranscriptError)):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, StoreFailureError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


# App Lifespan (startup/shutdown)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown"""
    print("[Server] Initializing Firebase...")
    initialize_firebase()
    print("[Server] Ready!")

    yield

    _planners.clear()
    print("[Server] Shutdown complete")


# FastAPI App

app = FastAPI(
    title="Degree Planner API",
    description="Transcript overlay, prerequisite checks and progress for degree plans",
    version="1.0.0",
    lifespan=lifespan
)

# CORS - Allow frontend origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# API Endpoints

@app.get("/", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    redis_status = "connected" if is_cache_available() else "unavailable"
    return HealthResponse(status="ok", redis=redis_status)


@app.get("/api/catalog/plans")
async def list_plan_templates():
    """Faculty -> program -> period names of the plan templates"""
    return {"faculties": get_catalogs().plans.list_options()}


@app.get("/api/state")
async def get_state(planner: PlannerService = Depends(get_planner)):
    """The user's working transcript and plan"""
    return planner.snapshot()


@app.get("/api/overview")
async def get_overview(
    semester: Optional[str] = Query(None, description="Semester to evaluate; defaults to the selected one"),
    planner: PlannerService = Depends(get_planner)
):
    """Plan overview (slot statuses, electives, progress) as of a semester"""
    return planner.overview(semester)


@app.post("/api/plan")
async def select_plan(request: PlanSelectionRequest, planner: PlannerService = Depends(get_planner)):
    try:
        planner.select_plan(request.faculty, request.program, request.period)
    except PlannerError as e:
        raise _http_error(e)
    return planner.snapshot()


@app.delete("/api/plan")
async def reset_plan(planner: PlannerService = Depends(get_planner)):
    try:
        planner.reset_plan()
    except PlannerError as e:
        raise _http_error(e)
    return planner.snapshot()


@app.post("/api/transcript/upload", response_model=UploadResponse)
async def upload_transcript(request: TranscriptUploadRequest, planner: PlannerService = Depends(get_planner)):
    """
    Parse a transcript PDF (base64) and append its rows.

    Rows stay in the working transcript even if storing them fails (502).
    """
    try:
        file_bytes = base64.b64decode(request.pdf_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="pdf_base64 is not valid base64")

    try:
        async with TranscriptParserClient() as parser:
            courses = await planner.upload_transcript(file_bytes, parser=parser)
    except PlannerError as e:
        raise _http_error(e)

    return UploadResponse(parsed=len(courses), state=planner.snapshot())


@app.delete("/api/transcript")
async def reset_transcript(planner: PlannerService = Depends(get_planner)):
    try:
        planner.reset_transcript()
    except PlannerError as e:
        raise _http_error(e)
    return planner.snapshot()


@app.post("/api/transcript/attempts")
async def add_attempt(request: AttemptCreateRequest, planner: PlannerService = Depends(get_planner)):
    try:
        planner.add_attempt(request.semester, request.code, request.name, request.credits)
    except TranscriptError as e:
        raise _http_error(e)
    return planner.snapshot()


@app.delete("/api/transcript/attempts")
async def delete_attempt(request: AttemptRef, planner: PlannerService = Depends(get_planner)):
    try:
        planner.delete_attempt(request.semester, request.code)
    except TranscriptError as e:
        raise _http_error(e)
    return planner.snapshot()


@app.patch("/api/transcript/attempts/grade")
async def set_grade(request: GradeUpdateRequest, planner: PlannerService = Depends(get_planner)):
    try:
        planner.set_grade(request.semester, request.code, request.grade)
    except TranscriptError as e:
        raise _http_error(e)
    return planner.snapshot()


@app.patch("/api/transcript/attempts/session")
async def set_session(request: SessionUpdateRequest, planner: PlannerService = Depends(get_planner)):
    """Set the attempt's session, either from a calendar lesson or a raw id"""
    try:
        if request.lesson_id:
            planner.select_lesson(request.semester, request.code, request.lesson_id)
        else:
            planner.set_session(request.semester, request.code, request.session_id)
    except (TranscriptError, PlannerError) as e:
        raise _http_error(e)
    return planner.snapshot()


@app.post("/api/semesters")
async def add_semester(planner: PlannerService = Depends(get_planner)):
    try:
        planner.add_semester()
    except TranscriptError as e:
        raise _http_error(e)
    return planner.snapshot()


@app.patch("/api/semesters/selected")
async def select_semester(request: SemesterSelection, planner: PlannerService = Depends(get_planner)):
    """Change the semester the overview is evaluated at"""
    planner.select_semester(request.semester)
    return planner.snapshot()


@app.delete("/api/semesters")
async def delete_semester(request: SemesterRef, planner: PlannerService = Depends(get_planner)):
    try:
        planner.delete_semester(request.semester)
    except TranscriptError as e:
        raise _http_error(e)
    return planner.snapshot()


@app.post("/api/save")
async def save(planner: PlannerService = Depends(get_planner)):
    """Persist the working transcript and plan"""
    try:
        planner.save()
    except PlannerError as e:
        raise _http_error(e)
    return planner.snapshot()


@app.get("/api/lessons/{course_code}", response_model=LessonListResponse)
async def list_lessons(course_code: str, user: AuthenticatedUser = Depends(get_current_user)):
    """
    Lesson offerings of a course for the session calendar.

    Example: /api/lessons/BLG%20210E
    """
    lessons = get_catalogs().lessons.lessons_for(course_code)
    return LessonListResponse(
        course_code=course_code,
        lessons=[lesson.to_dict() for lesson in lessons],
        total=len(lessons)
    )


# Main

def main():
    import uvicorn

    parser = argparse.ArgumentParser(description="Degree Planner API Server")
    parser.add_argument("--port", type=int, default=8000, help="Port to run on")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")

    args = parser.parse_args()

    print(f"[Server] Starting on http://{args.host}:{args.port}")

    uvicorn.run(
        "server:app" if args.reload else app,
        host=args.host,
        port=args.port,
        reload=args.reload
    )


if __name__ == "__main__":
    main()
