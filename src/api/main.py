"""
FILE: src/api/main.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api.observability import setup_observability
from src.api.persistence_profile import validate_persistence_profile_guardrails
from src.api.routers import (  # noqa: F401  route modules register on the shared router
    proposals_approval_routes,
    proposals_stakeholder_routes,
)
from src.api.routers.proposals import router as proposal_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _app_lifespan(_app: FastAPI):
    validate_persistence_profile_guardrails()
    yield


app = FastAPI(
    title="Reformulation Proposal Approvals API",
    version="0.1.0",
    description=(
        "Product-reformulation proposal workflow.\n\n"
        "Proposal status is derived from stakeholder approvals: "
        "`DRAFT`, `PENDING_APPROVAL`, `APPROVED`, `REJECTED`, or `CHANGES_REQUESTED`."
    ),
    openapi_tags=[
        {
            "name": "Reformulation Proposals",
            "description": "Proposal, stakeholder invitation, and approval endpoints.",
        },
    ],
    lifespan=_app_lifespan,
)

setup_observability(app)
app.include_router(proposal_router)


@app.exception_handler(Exception)
async def unhandled_exception_to_problem_details(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception while serving request", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/problem+json",
        content={
            "type": "about:blank",
            "title": "Internal Server Error",
            "status": 500,
            "detail": "An unexpected error occurred.",
            "instance": str(request.url.path),
        },
    )


@app.get("/health", tags=["Health"])
def health() -> dict[str, str]:
    return {"status": "ok"}
