"""
Letterpress Backend API
FastAPI application that turns order personalization into downloadable PDF letters.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from letterpress.config import StorageKind, get_settings
from letterpress.routers import downloads, letters, webhooks
from letterpress.services.storage import IMAGE_FOLDER, PDF_FOLDER

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(
    title="Letterpress API",
    description="Personalized PDF letters generated from order line item properties",
    version="0.1.0",
)

# The storefront checkout extension calls the lookup endpoint cross-origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(letters.router, prefix="/api", tags=["letters"])
app.include_router(downloads.router, prefix="/download", tags=["downloads"])

# Locally stored files are referenced by root-relative URLs (/pdfs/..., /images/...)
if settings.storage.kind == StorageKind.LOCAL:
    for folder in (PDF_FOLDER, IMAGE_FOLDER):
        directory = os.path.join(os.path.abspath(settings.storage.local_root), folder)
        app.mount(f"/{folder}", StaticFiles(directory=directory, check_dir=False), name=folder)


@app.on_event("startup")
async def log_startup_config() -> None:
    logger.info(
        f"Letterpress API starting: storage={settings.storage.kind.value}, "
        f"public_base_url={settings.public_base_url or '(relative links)'}, "
        f"render_concurrency={settings.renderer.max_concurrent_renders}"
    )


@app.get("/")
async def root():
    return {"message": "Letterpress API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}
