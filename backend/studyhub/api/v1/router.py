"""API v1 router - includes all v1 endpoints."""

from fastapi import APIRouter

from studyhub.api.v1.endpoints import exams, health, reviews

api_router = APIRouter()

api_router.include_router(health.router, prefix="", tags=["Health"])
api_router.include_router(reviews.router, prefix="", tags=["Reviews"])
api_router.include_router(exams.router, prefix="/exams", tags=["Exams"])
