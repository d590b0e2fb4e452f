"""API routes."""

from fastapi import APIRouter

from coach.api import sessions, exercises

api_router = APIRouter()

api_router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
api_router.include_router(exercises.router, prefix="/exercises", tags=["Exercises"])
