"""
FastAPI application for ClaimsFlow.

Provides:
- Intake session endpoints driving the FNOL conversation
- Claim endpoints (read, patch, notifications)
- Triage endpoints (scores, routing, assignment, insights)
- Health check and dashboard endpoints
"""

import logging

# Reduce noise from verbose libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("python_multipart").setLevel(logging.WARNING)

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..fnol.collaborators import KeywordPhotoAnalyzer, PhotoAnalyzer
from ..fnol.schema import (
    AccidentType,
    Claim,
    ClaimPatch,
    ClaimPhoto,
    ClaimScores,
    ClaimStatus,
    NotificationType,
    StepInput,
)
from ..fnol.session_engine import IntakeSessionEngine
from ..storage.claim_store import ClaimStore
from ..triage.insights import DASHBOARD_VIEWS, dashboard_stats, fraud_risk_level, generate_insights
from ..triage.workflow import TriageService
from ..utils.config import get_settings
from ..utils.errors import (
    ClaimsFlowError,
    DependencyUnavailableError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)

settings = get_settings()

logging.basicConfig(
    level=settings.effective_log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

STATUS_CODES = {
    NotFoundError: 404,
    InvalidTransitionError: 409,
    ValidationFailedError: 422,
    DependencyUnavailableError: 503,
}


# =============================================================================
# Request Models
# =============================================================================


class AccidentTypeRequest(BaseModel):
    accident_type: AccidentType


class PhotoUploadRequest(BaseModel):
    """Photos already analyzed by the client, or raw references to analyze here."""
    photos: List[ClaimPhoto] = Field(default_factory=list)
    urls: List[str] = Field(default_factory=list)


class NotificationRequest(BaseModel):
    type: NotificationType
    message: str = Field(min_length=1)


class RoutingRequest(BaseModel):
    scores: Optional[ClaimScores] = None


class StatusRequest(BaseModel):
    status: ClaimStatus


# =============================================================================
# Service wiring
# =============================================================================


@dataclass
class Services:
    store: ClaimStore
    intake: IntakeSessionEngine
    triage: TriageService
    photo_analyzer: PhotoAnalyzer


def build_services(
    store: Optional[ClaimStore] = None,
    intake: Optional[IntakeSessionEngine] = None,
    triage: Optional[TriageService] = None,
    photo_analyzer: Optional[PhotoAnalyzer] = None,
) -> Services:
    store = store or ClaimStore()
    return Services(
        store=store,
        intake=intake or IntakeSessionEngine(store=store),
        triage=triage or TriageService(store=store),
        photo_analyzer=photo_analyzer or KeywordPhotoAnalyzer(),
    )


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the API.

    Without ``services`` the default SQLite-backed services are created on
    startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting ClaimsFlow API...")
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services()
        logger.info(f"Claim database: {app.state.services.store.db_path}")
        yield
        logger.info("Shutting down ClaimsFlow API...")

    app = FastAPI(
        title="ClaimsFlow",
        description="FNOL intake and claim triage",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    @app.exception_handler(ClaimsFlowError)
    async def claimsflow_error_handler(request: Request, exc: ClaimsFlowError):
        status_code = next(
            (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)),
            500,
        )
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    _register_routes(app)
    return app


def _services(request: Request) -> Services:
    return request.app.state.services


# =============================================================================
# Routes
# =============================================================================


def _register_routes(app: FastAPI) -> None:

    # -------------------------------------------------------------------------
    # Health Check Endpoints
    # -------------------------------------------------------------------------

    @app.get("/")
    async def root(request: Request):
        """Root endpoint - basic health check."""
        return {
            "service": "ClaimsFlow",
            "status": "running",
            "active_sessions": _services(request).intake.active_session_count(),
        }

    @app.get("/health")
    async def health_check(request: Request):
        """Detailed health check endpoint."""
        services = _services(request)
        return {
            "status": "healthy",
            "active_sessions": services.intake.active_session_count(),
            "claims": services.store.count(),
            "config": {
                "session_idle_minutes": settings.session_idle_minutes,
                "seeded_scoring": settings.scoring_seed is not None,
            },
        }

    # -------------------------------------------------------------------------
    # Intake Sessions
    # -------------------------------------------------------------------------

    @app.post("/sessions", status_code=201)
    async def start_session(request: Request):
        return _services(request).intake.start_session()

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: str, request: Request):
        return _services(request).intake.get_session(session_id)

    @app.delete("/sessions/{session_id}", status_code=204)
    async def abandon_session(session_id: str, request: Request):
        _services(request).intake.abandon_session(session_id)

    @app.post("/sessions/{session_id}/input")
    async def submit_step_input(session_id: str, step_input: StepInput, request: Request):
        return _services(request).intake.submit_step_input(session_id, step_input)

    @app.post("/sessions/{session_id}/accident-type")
    async def select_accident_type(session_id: str, body: AccidentTypeRequest, request: Request):
        return _services(request).intake.select_accident_type(session_id, body.accident_type)

    @app.post("/sessions/{session_id}/photos")
    async def upload_photos(session_id: str, body: PhotoUploadRequest, request: Request):
        services = _services(request)
        photos = list(body.photos) + services.photo_analyzer.analyze_batch(body.urls)
        return services.intake.upload_photos(session_id, photos)

    @app.post("/sessions/{session_id}/finalize")
    async def finalize_session(session_id: str, request: Request):
        claim = _services(request).intake.finalize(session_id)
        return {"claim": claim}

    # -------------------------------------------------------------------------
    # Claims
    # -------------------------------------------------------------------------

    @app.get("/claims")
    async def list_claims(
        request: Request,
        view: Optional[str] = Query(None, description="pending | active | closed"),
        status: Optional[ClaimStatus] = None,
        limit: int = Query(100, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        """List claims for the adjuster dashboard."""
        statuses = None
        if view is not None:
            if view not in DASHBOARD_VIEWS:
                raise ValidationFailedError(f"Unknown dashboard view '{view}'", field="view")
            statuses = DASHBOARD_VIEWS[view]
        if status is not None:
            statuses = [status] if statuses is None else [s for s in statuses if s == status]
        claims = _services(request).store.list_all(statuses=statuses, limit=limit, offset=offset)
        return {
            "claims": [
                {
                    "id": claim.id,
                    "status": claim.status.value,
                    "customer_name": claim.customer_name,
                    "accident_type": claim.accident_type.value,
                    "created_at": claim.created_at.isoformat(),
                    "adjuster_type": claim.routing.adjuster_type.value if claim.routing else None,
                    "fraud_risk_level": fraud_risk_level(claim.scores.fraud_risk) if claim.scores else None,
                }
                for claim in claims
            ]
        }

    @app.get("/claims/stats")
    async def claim_stats(request: Request):
        return dashboard_stats(_services(request).store.list_all(limit=-1))

    @app.get("/claims/{claim_id}")
    async def get_claim(claim_id: str, request: Request) -> Claim:
        return _services(request).store.require(claim_id)

    @app.patch("/claims/{claim_id}")
    async def update_claim(claim_id: str, patch: ClaimPatch, request: Request) -> Claim:
        return _services(request).store.update(claim_id, patch)

    @app.post("/claims/{claim_id}/status")
    async def advance_status(claim_id: str, body: StatusRequest, request: Request) -> Claim:
        return _services(request).triage.advance_status(claim_id, body.status)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    @app.get("/claims/{claim_id}/notifications")
    async def list_notifications(claim_id: str, request: Request, read: Optional[bool] = None):
        services = _services(request)
        notifications = services.store.list_notifications(claim_id, read=read)
        claim = services.store.require(claim_id)
        return {"notifications": notifications, "unread_count": claim.unread_count}

    @app.post("/claims/{claim_id}/notifications", status_code=201)
    async def add_notification(claim_id: str, body: NotificationRequest, request: Request):
        return _services(request).store.add_notification(claim_id, body.type, body.message)

    @app.post("/claims/{claim_id}/notifications/read-all")
    async def mark_all_read(claim_id: str, request: Request):
        claim = _services(request).store.mark_all_read(claim_id)
        return {"notifications": claim.notifications, "unread_count": claim.unread_count}

    # -------------------------------------------------------------------------
    # Triage
    # -------------------------------------------------------------------------

    @app.post("/claims/{claim_id}/scores")
    async def compute_scores(claim_id: str, request: Request, recompute: bool = False) -> ClaimScores:
        """Stored scores are returned unless ``recompute``; routed claims refuse a recompute (409)."""
        return _services(request).triage.compute_scores(claim_id, recompute=recompute)

    @app.post("/claims/{claim_id}/routing")
    async def compute_routing(claim_id: str, request: Request, body: Optional[RoutingRequest] = None):
        scores = body.scores if body else None
        return _services(request).triage.compute_routing(claim_id, scores)

    @app.post("/claims/{claim_id}/triage")
    async def triage_claim(claim_id: str, request: Request):
        return _services(request).triage.triage_claim(claim_id).to_dict()

    @app.post("/claims/{claim_id}/assign")
    async def assign_claim(claim_id: str, request: Request) -> Claim:
        return _services(request).triage.assign(claim_id)

    @app.get("/claims/{claim_id}/insights")
    async def claim_insights(claim_id: str, request: Request):
        claim = _services(request).store.require(claim_id)
        if claim.scores is None:
            raise InvalidTransitionError(f"Claim {claim_id} has not been scored yet")
        return {
            "insights": generate_insights(claim, claim.scores),
            "fraud_risk_level": fraud_risk_level(claim.scores.fraud_risk),
        }


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Run the FastAPI server."""
    import uvicorn

    uvicorn.run(
        "claimsflow.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
