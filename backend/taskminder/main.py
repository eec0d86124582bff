# taskminder/main.py

import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from taskminder.core.config import settings
from taskminder.core.database import MongoDbContext
from taskminder.core.logging_config import setup_logging, add_trace_id_middleware
from taskminder.api.v1 import api_router
from taskminder.modules.tasks.repository import TaskRepository
from taskminder.modules.tasks.services import TaskManager
from taskminder.worker.due_scanner import DueTaskScanner, LogReminderSink

VALIDATION_MESSAGES = {
    "path": "Invalid task ID",
    "body": "Invalid request body",
    "query": "Invalid query parameters",
}

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    location = errors[0]["loc"][0] if errors and errors[0].get("loc") else "body"
    logger.warning(f"Validation Error on {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": VALIDATION_MESSAGES.get(location, "Invalid request")},
    )

async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled Exception: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal server error"})

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME}...")
    mongo: Optional[MongoDbContext] = None
    if getattr(app.state, "task_manager", None) is None:
        mongo = MongoDbContext()
        await mongo.connect()
        repository = TaskRepository(mongo.get_db())
        await repository.create_indexes()
        app.state.task_manager = TaskManager(repository)

    scanner_task: Optional[asyncio.Task] = None
    scanner: Optional[DueTaskScanner] = None
    if settings.REMINDER_SCANNER_ENABLED:
        scanner = DueTaskScanner(
            app.state.task_manager,
            LogReminderSink(),
            poll_interval=timedelta(seconds=settings.REMINDER_POLL_INTERVAL_SECONDS),
            lookahead=timedelta(seconds=settings.REMINDER_LOOKAHEAD_SECONDS),
        )
        scanner_task = asyncio.create_task(scanner.run(), name="due-task-scanner")
    else:
        logger.info("In-process reminder scanner disabled.")

    try:
        yield
    finally:
        logger.info("Shutting down...")
        try:
            if scanner is not None and scanner_task is not None:
                scanner.stop()
                await scanner_task
        finally:
            if mongo is not None:
                await mongo.disconnect()

def create_app(task_manager: Optional[TaskManager] = None) -> FastAPI:
    """Builds the ASGI app. A pre-built manager skips the database setup in the lifespan."""
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
        exception_handlers={
            RequestValidationError: validation_exception_handler,
            Exception: generic_exception_handler,
        },
    )
    app.state.task_manager = task_manager

    app.middleware("http")(add_trace_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app

def run():
    """Console entry point: serves the app with uvicorn."""
    import uvicorn
    uvicorn.run("taskminder.main:app", host="0.0.0.0", port=8080, log_config=None)

app = create_app()
