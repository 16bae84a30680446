"""
FastAPI server for Career Compass

This server exposes the assessment, roadmap, goal and profile operations
to the frontend. The caller's identity arrives in the X-User-Id header,
set by the authenticating gateway in front of this service.
"""
import os
import logging
from typing import Any, Dict, List, Optional
from datetime import datetime
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from roadmap.config import (
    CORS_ORIGINS,
    DATABASE_PATH,
    ENFORCE_STEP_LOCKS,
    HOST,
    LOG_LEVEL,
    PORT,
    SERIALIZE_ROADMAP_CREATION,
)
from models.career_models import (
    Assessment,
    AssessmentAnswers,
    AssessmentOutcome,
    CareerTemplate,
    Goal,
    Roadmap,
    RoadmapProgress,
    Step,
    UserProfile,
)
from roadmap.errors import (
    CareerCompassError,
    InvalidRoadmapError,
    NotFoundError,
    StepLockedError,
    UnauthorizedError,
    UnknownTemplateError,
)
from roadmap.recommendation import ASSESSMENT_QUESTIONS
from roadmap.template_catalog import TemplateCatalog, load_default_catalog
from services.career_service import CareerService
from storage.document_store import SqliteDocumentStore
from utils.tracing import get_tracing_status, initialize_tracing, is_tracing_enabled, shutdown_tracing

API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Global service instances
career_service: Optional[CareerService] = None

# Domain error -> HTTP status
ERROR_STATUS_CODES = {
    UnauthorizedError: 401,
    NotFoundError: 404,
    UnknownTemplateError: 404,
    StepLockedError: 409,
    InvalidRoadmapError: 422,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the document store and load the template catalog on startup"""
    global career_service

    try:
        catalog = load_default_catalog()

        store = SqliteDocumentStore(DATABASE_PATH)
        await store.initialize()

        career_service = CareerService(
            store,
            catalog,
            enforce_step_locks=ENFORCE_STEP_LOCKS,
            serialize_per_user=SERIALIZE_ROADMAP_CREATION
        )
        logger.info(
            f"Career Compass API started (templates={len(catalog)}, "
            f"enforce_step_locks={ENFORCE_STEP_LOCKS})"
        )
    except Exception as e:
        logger.error(f"Failed to initialize career service: {e}")

    yield

    logger.info("Career Compass API shutting down")
    if is_tracing_enabled():
        shutdown_tracing()


# FastAPI app
app = FastAPI(
    title="Career Compass API",
    description="Career assessment, roadmap and goal tracking API",
    version=API_VERSION,
    lifespan=lifespan
)

# Instrument FastAPI with OpenTelemetry (if tracing is enabled)
if initialize_tracing():
    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI app instrumented with OpenTelemetry")
    except Exception as e:
        logger.warning(f"Failed to instrument FastAPI: {e}")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CareerCompassError)
async def career_error_handler(request: Request, exc: CareerCompassError):
    status_code = 400
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Dependencies

def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Acting user id from the X-User-Id header, or None."""
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()


def get_career_service() -> CareerService:
    if career_service is None:
        raise HTTPException(status_code=503, detail="Career service not available")
    return career_service


def get_template_catalog(service: CareerService = Depends(get_career_service)) -> TemplateCatalog:
    return service.catalog


# Request/Response Models

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str


class SubmitAssessmentRequest(BaseModel):
    answers: AssessmentAnswers
    recommended_career: str


class CompleteAssessmentRequest(BaseModel):
    answers: AssessmentAnswers


class CreateRoadmapRequest(BaseModel):
    title: str
    description: str
    steps: List[Step] = Field(default_factory=list)
    skills: Optional[List[str]] = None


class SwitchTemplateRequest(BaseModel):
    career_key: str


class AddGoalRequest(BaseModel):
    title: str = Field(..., min_length=1)
    deadline: Optional[datetime] = None


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = None
    current_role: Optional[str] = None
    target_role: Optional[str] = None
    bio: Optional[str] = None


class IdResponse(BaseModel):
    id: str


class TemplateSummary(BaseModel):
    career_key: str
    template: CareerTemplate


# Endpoints

@app.get("/", response_model=Dict[str, Any])
async def root():
    """Root endpoint with system information"""
    return {
        "message": "Career Compass API",
        "version": API_VERSION,
        "status": "active",
        "endpoints": {
            "questions": "/assessment/questions",
            "assessments": "/assessments",
            "complete_assessment": "/assessments/complete",
            "templates": "/templates",
            "roadmaps": "/roadmaps",
            "active_roadmap": "/roadmaps/active",
            "toggle_step": "/roadmaps/{roadmap_id}/steps/{step_id}/toggle",
            "goals": "/goals",
            "profile": "/profile",
            "health": "/health"
        }
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Reports 'degraded' when the service failed to start."""
    status = "healthy" if career_service is not None else "degraded"
    return HealthResponse(
        status=status,
        timestamp=datetime.now().isoformat(),
        version=API_VERSION
    )


@app.get("/tracing/status")
async def tracing_status():
    """Get OpenTelemetry tracing status"""
    return get_tracing_status()


# Assessment endpoints

@app.get("/assessment/questions")
async def get_assessment_questions():
    """The quiz bank shown to users"""
    return {"questions": ASSESSMENT_QUESTIONS}


@app.post("/assessments", response_model=IdResponse)
async def submit_assessment(
    request: SubmitAssessmentRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    """Store a completed quiz with the recommendation the client computed"""
    assessment_id = await service.submit_assessment(user_id, request.answers, request.recommended_career)
    return IdResponse(id=assessment_id)


@app.post("/assessments/complete", response_model=AssessmentOutcome)
async def complete_assessment(
    request: CompleteAssessmentRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    """Recommend a career, store the quiz and activate the matching roadmap"""
    return await service.complete_assessment(user_id, request.answers)


@app.get("/assessments", response_model=List[Assessment])
async def get_user_assessments(
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    return await service.get_user_assessments(user_id)


# Template endpoints

@app.get("/templates", response_model=List[TemplateSummary])
async def list_templates(
    search: Optional[str] = None,
    skills: Optional[List[str]] = Query(None),
    catalog: TemplateCatalog = Depends(get_template_catalog)
):
    """Browse career templates by free text and required skills"""
    return [
        TemplateSummary(career_key=key, template=template)
        for key, template in catalog.search(search, skills)
    ]


@app.get("/templates/skills", response_model=List[str])
async def list_template_skills(catalog: TemplateCatalog = Depends(get_template_catalog)):
    return catalog.all_skills()


# Roadmap endpoints

@app.post("/roadmaps", response_model=IdResponse)
async def create_roadmap(
    request: CreateRoadmapRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    """Activate a roadmap with client-supplied steps, archiving the current one"""
    roadmap_id = await service.create_roadmap(
        user_id,
        request.title,
        request.description,
        request.steps,
        request.skills
    )
    return IdResponse(id=roadmap_id)


@app.post("/roadmaps/switch", response_model=IdResponse)
async def switch_template(
    request: SwitchTemplateRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    """Activate a fresh roadmap built from a catalog template"""
    roadmap_id = await service.switch_template(user_id, request.career_key)
    return IdResponse(id=roadmap_id)


@app.get("/roadmaps", response_model=List[Roadmap])
async def list_roadmaps(
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    return await service.list_roadmaps(user_id)


@app.get("/roadmaps/active", response_model=Optional[Roadmap])
async def get_active_roadmap(
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    return await service.get_active_roadmap(user_id)


@app.get("/roadmaps/active/progress", response_model=Optional[RoadmapProgress])
async def get_active_roadmap_progress(
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    """Active roadmap with locked/unlocked/completed state per step"""
    return await service.get_roadmap_progress(user_id)


@app.post("/roadmaps/{roadmap_id}/steps/{step_id}/toggle")
async def toggle_step(
    roadmap_id: str,
    step_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    await service.toggle_step(user_id, roadmap_id, step_id)
    return {"success": True}


# Goal endpoints

@app.post("/goals", response_model=IdResponse)
async def add_goal(
    request: AddGoalRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    goal_id = await service.add_goal(user_id, request.title.strip(), request.deadline)
    return IdResponse(id=goal_id)


@app.get("/goals", response_model=List[Goal])
async def get_goals(
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    return await service.get_goals(user_id)


@app.post("/goals/{goal_id}/toggle")
async def toggle_goal(
    goal_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    await service.toggle_goal(user_id, goal_id)
    return {"success": True}


@app.delete("/goals/{goal_id}")
async def delete_goal(
    goal_id: str,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    await service.delete_goal(user_id, goal_id)
    return {"success": True}


# Profile endpoints

@app.get("/profile", response_model=Optional[UserProfile])
async def get_profile(
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    return await service.get_profile(user_id)


@app.patch("/profile", response_model=UserProfile)
async def update_profile(
    request: UpdateProfileRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: CareerService = Depends(get_career_service)
):
    return await service.update_profile(user_id, **request.model_dump(exclude_unset=True))


if __name__ == "__main__":
    logger.info(f"Starting server on {HOST}:{PORT}")
    uvicorn.run(
        "api_server:app",
        host=HOST,
        port=PORT,
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level="info"
    )
