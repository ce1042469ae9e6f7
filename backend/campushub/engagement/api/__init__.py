"""FastAPI routers for the engagement domain."""

from __future__ import annotations

from fastapi import APIRouter

from campushub.engagement.api import clubs, events, jobs, teams, users

router = APIRouter(prefix="/api/v1")

router.include_router(users.router)
router.include_router(clubs.router)
router.include_router(events.router)
router.include_router(teams.router)
router.include_router(jobs.router)

__all__ = ["router"]
