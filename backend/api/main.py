"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import favourites, map_pins, venues
from services.venue_catalog import load_default_catalog

logger = logging.getLogger(__name__)

# Create app
app = FastAPI(
    title="Pawsport Venues API",
    description="API for the dog-friendly venue directory",
    version="0.1.0",
)

# CORS middleware for the mobile / web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(venues.router, prefix="/venues", tags=["venues"])
app.include_router(map_pins.router, prefix="/map", tags=["map"])
app.include_router(favourites.router, prefix="/favourites", tags=["favourites"])


@app.on_event("startup")
def startup_event():
    """Load the venue catalog once on startup."""
    catalog = load_default_catalog()
    logger.info("Loaded %d venues", len(catalog))


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Pawsport Venues API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
