"""
MP4 conversion service. Uploaded videos are converted to MP4 in the background.

Run with:
    uvicorn mp4convert.main:create_app --factory
or:
    mp4convert serve
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .execution.base import TranscodeEngine
from .execution.ffmpeg import FFmpegEngine
from .execution.worker import ConversionWorker
from .jobs.store import JobStore
from .persistence.manager import SQLiteJobStore
from .routes import health, jobs

logger = logging.getLogger(__name__)


async def _http_exception_handler(request, exc: StarletteHTTPException):
    # Error bodies are {"message": ...} across the API
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=422, content={"message": message})


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[JobStore] = None,
    engine: Optional[TranscodeEngine] = None,
) -> FastAPI:
    """
    Create the conversion API application.

    Args:
        settings: Runtime settings. Loaded from the environment if not provided.
        store: Job store. SQLite at settings.db_path if not provided.
        engine: Transcoder. FFmpeg if not provided.

    Returns:
        FastAPI application with job routes and static serving of outputs
    """
    settings = settings or Settings.from_env()
    settings.ensure_directories()

    store = store or SQLiteJobStore(db_path=str(settings.db_path))
    engine = engine or FFmpegEngine(ffmpeg_path=settings.ffmpeg_path)

    if not engine.available:
        logger.warning(f"{engine.name} is not available; conversions will fail until it is installed")

    app = FastAPI(title="MP4 Convert", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)

    app.state.settings = settings
    app.state.job_store = store
    app.state.engine = engine
    app.state.worker = ConversionWorker(
        store=store,
        engine=engine,
        output_dir=settings.output_dir,
        public_prefix=settings.public_prefix,
    )

    app.include_router(health.router)
    app.include_router(jobs.router)

    # Converted files, addressed by each job's output_url
    app.mount(
        settings.public_prefix,
        StaticFiles(directory=str(settings.output_dir)),
        name="converted",
    )

    logger.info(
        f"Serving uploads={settings.upload_dir} outputs={settings.output_dir} "
        f"at {settings.public_prefix}"
    )
    return app
