"""Registo de Estadias – FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.database import Base, engine
# Import models so Base.metadata has all tables before create_all
from app.models import Apartment, Stay  # noqa: F401
from app.routers import apartments, stays, exports

settings = get_settings()
app = FastAPI(title=settings.app_name, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Save-Method"],
)

app.include_router(apartments.router)
app.include_router(stays.router)
app.include_router(exports.router)


@app.on_event("startup")
def startup():
    log = logging.getLogger("uvicorn.error")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        log.warning("Database startup failed (tables skipped). Check DATABASE_URL and network. Error: %s", e)
    if settings.export_dir:
        log.info("PDF exports are saved to %s", settings.export_dir)
    else:
        log.info("EXPORT_DIR not set - PDF exports are served as downloads")


@app.get("/")
def root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
