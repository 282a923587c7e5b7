"""
MoodFlow API
============
FastAPI application entry point. Mount routers here.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from moodflow.config import get_settings
from moodflow.routers import analysis, correlations, goals, mood, screens

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="MoodFlow API",
    description="Mood tracking by time of day, with daily factors, goals and AI analysis",
    version="0.1.0",
    docs_url="/api/docs" if settings.environment != "production" else None,
    redoc_url="/api/redoc" if settings.environment != "production" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(mood.router)
app.include_router(correlations.router)
app.include_router(goals.router)
app.include_router(analysis.router)
app.include_router(screens.router)


@app.get("/api/v1/health")
async def health_check() -> dict:
    return {"status": "ok", "service": "moodflow-api"}
