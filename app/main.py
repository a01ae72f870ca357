import fcntl
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.database import AsyncSessionLocal, create_tables, dispose_engine
from app.exceptions import TodoAppError, UnauthenticatedError, status_code_for
from app.logging_config import setup_logging
from app.routers.auth import router as auth_router
from app.routers.categories import router as categories_router
from app.routers.tasks import router as tasks_router
from app.routers.jobs import router as jobs_router
from app.scripts.seed_data import seed_demo_data
from app.services.scheduler import setup_scheduler

logger = logging.getLogger(__name__)


def _acquire_scheduler_lock(lock_file: str):
    # Only the first worker to grab the lock registers the recurring jobs
    lock_fd = open(lock_file, "w")
    try:
        fcntl.flock(lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except (BlockingIOError, OSError):
        lock_fd.close()
        return None
    return lock_fd


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger.info("Starting To-Do List API (pid %s)", os.getpid())

    if settings.CREATE_TABLES_ON_STARTUP:
        await create_tables()
    if settings.SEED_DEMO_DATA:
        async with AsyncSessionLocal() as db:
            await seed_demo_data(db)

    lock_fd = None
    scheduler = None
    if settings.ENABLE_SCHEDULER:
        lock_fd = _acquire_scheduler_lock(settings.SCHEDULER_LOCK_FILE)
        if lock_fd is None:
            logger.info("Another worker owns the recurring jobs; this one only runs triggered jobs")
        # Every worker gets a scheduler so manually triggered jobs can run here
        scheduler = setup_scheduler(settings, register_recurring=lock_fd is not None)
    app.state.scheduler = scheduler

    yield

    if scheduler:
        scheduler.shutdown(wait=True)
    if lock_fd:
        fcntl.flock(lock_fd, fcntl.LOCK_UN)
        lock_fd.close()
    await dispose_engine()
    logger.info("Shutdown complete")


def _field_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(location), "message": error.get("msg", "Invalid value")})
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TodoAppError)
    async def handle_app_error(request: Request, exc: TodoAppError):
        status_code = status_code_for(exc)
        content = {"error": exc.error_code, "message": exc.message}
        if exc.context.get("errors"):
            content["details"] = exc.context["errors"]
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
        if status_code >= 500:
            logger.error("%s %s failed: %s | %s", request.method, request.url.path, exc.message, exc.context)
        else:
            logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, exc.error_code)
        return JSONResponse(status_code=status_code, content=content, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "One or more validation errors occurred",
                "details": _field_errors(exc),
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"error": "internal_server_error", "message": "An unexpected error occurred"},
        )


def create_app() -> FastAPI:
    app = FastAPI(
        lifespan=lifespan,
        title="To-Do List API",
        description="Multi-user to-do lists with categories, paging and maintenance jobs",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(categories_router)
    app.include_router(tasks_router)
    app.include_router(jobs_router)

    @app.get("/")
    def root():
        return {"message": "To-Do List API running"}

    return app


app = create_app()
