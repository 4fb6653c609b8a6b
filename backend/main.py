"""
BoundaryMetrics — Grade Boundary Analysis & UMS Calculator
FastAPI backend entry point.
"""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment before anything reads it
load_dotenv()

from core import config  # noqa: E402
from core.grading import GRADE_ORDER, UMS_SCALE  # noqa: E402
from routes.analyze import router as analyze_router  # noqa: E402
from routes.boundaries import router as boundaries_router  # noqa: E402
from routes.calculations import router as calculations_router  # noqa: E402
from routes.calculator import router as calculator_router  # noqa: E402
from routes.reports import router as reports_router  # noqa: E402

logging.basicConfig(
    level=config.log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

APP_NAME = config.app_name()

app = FastAPI(
    title=f"{APP_NAME} API",
    description=(
        "Grade boundary analysis and UMS calculation — raw marks to grades, "
        "boundary statistics and trends from historical boundary tables."
    ),
    version="1.0.0",
)

# CORS: allow the front-end dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route modules
app.include_router(boundaries_router, prefix="/api/boundaries", tags=["Boundaries"])
app.include_router(calculator_router, prefix="/api/calculator", tags=["Calculator"])
app.include_router(analyze_router, prefix="/api/analysis", tags=["Analysis"])
app.include_router(calculations_router, prefix="/api/calculations", tags=["Calculations"])
app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "app_name": APP_NAME,
    }


@app.get("/api/config")
async def get_config():
    """Return server configuration to the frontend."""
    return {
        "app_name": APP_NAME,
        "default_max_mark": config.default_max_mark(),
        "grades": GRADE_ORDER,
        "ums_scale": UMS_SCALE,
    }
