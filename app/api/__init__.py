"""API router for v1 endpoints."""

from fastapi import APIRouter

from app.api import intelligence

router = APIRouter()

# User gap detection routes
router.include_router(intelligence.router)
