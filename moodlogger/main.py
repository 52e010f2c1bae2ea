# mood logger backend api
# fastapi app with local/remote entry store, gemini insights and google sheets export

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from moodlogger.config import settings
from moodlogger.services.db import db
from moodlogger.routers import entries, insights, export

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """startup: connect to mongodb when configured. shutdown: close connection."""
    logger.info("Starting Mood Logger backend...")
    await db.connect()
    logger.info("Mood Logger backend ready")
    yield
    logger.info("Shutting down Mood Logger backend...")
    await db.close()


app = FastAPI(
    title="Mood Logger API",
    description="Daily self-assessment API — theme scores, overall mood, trend insights and sheet export",
    version="0.1.0",
    lifespan=lifespan,
)

# cors — allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# register routers
app.include_router(entries.router)
app.include_router(insights.router)
app.include_router(export.router)


@app.get("/health")
async def health_check():
    """basic health check endpoint"""
    return {
        "status": "ok",
        "service": "mood-logger-api",
        "remoteStore": db.is_configured,
        "insights": bool(settings.GEMINI_API_KEY),
        "sheetsExport": bool(settings.GOOGLE_SHEET_ID),
    }
