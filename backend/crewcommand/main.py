"""Main FastAPI application entry point"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import logging

from crewcommand import __version__
from crewcommand.api.assignment_requests import router as assignment_requests_router
from crewcommand.api.auth import router as auth_router
from crewcommand.api.errors import (
    crewcommand_error_handler,
    request_validation_error_handler,
    unhandled_error_handler,
)
from crewcommand.api.health import router as health_router
from crewcommand.api.hours import router as hours_router
from crewcommand.api.job_sites import router as job_sites_router
from crewcommand.api.tasks import router as tasks_router
from crewcommand.api.users import router as users_router
from crewcommand.api.voice import router as voice_router
from crewcommand.api.workers import router as workers_router
from crewcommand.config import settings
from crewcommand.exceptions import CrewCommandError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="CrewCommand API",
    description="Construction crew scheduling with site-scoped access control and voice commands",
    version=__version__,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

# Error rendering
app.add_exception_handler(CrewCommandError, crewcommand_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Include routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(job_sites_router)
app.include_router(tasks_router)
app.include_router(users_router)
app.include_router(workers_router)
app.include_router(assignment_requests_router)
app.include_router(hours_router)
app.include_router(voice_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "CrewCommand API",
        "version": __version__,
        "status": "running",
    }
