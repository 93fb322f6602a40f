"""APIRouter registration for the survey builder service."""

from __future__ import annotations

from fastapi import APIRouter

from survey_builder.routes.data import router as data_router
from survey_builder.routes.results import router as results_router

api_router = APIRouter()
api_router.include_router(data_router, tags=["Data"])
api_router.include_router(results_router, tags=["Results", "Export"])

__all__ = ["api_router"]
