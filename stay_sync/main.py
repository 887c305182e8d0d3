# stay_sync/main.py

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stay_sync.config import ALLOWED_ORIGINS, SCHEDULER_ENABLED
from stay_sync.logging_config import setup_logging
from stay_sync.middleware import RequestIDMiddleware
from stay_sync.routes.availability import router as availability_router
from stay_sync.routes.calendar import router as calendar_router
from stay_sync.routes.health import router as health_router
from stay_sync.routes.metrics import router as metrics_router
from stay_sync.routes.reservations import router as reservations_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Stay Sync API",
    description="Reservations, external calendar sync and availability for a single property",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(reservations_router, tags=["Reservations"])
app.include_router(calendar_router, tags=["Calendar"])
app.include_router(availability_router, tags=["Availability"])


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies and query strings as 400 with the field errors."""
    logger.info("request_validation_failed", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "error": "validation_error",
                "message": "Invalid request",
                "errors": jsonable_encoder(exc.errors()),
            }
        },
    )


@app.on_event("startup")
def startup_event() -> None:
    """Start background jobs."""
    from stay_sync.scheduler import start_scheduler

    logger.info("FastAPI application starting up...")

    if SCHEDULER_ENABLED:
        start_scheduler()
    else:
        logger.info("scheduler_disabled")

    logger.info("FastAPI application initialized")


@app.on_event("shutdown")
def shutdown_event() -> None:
    from stay_sync.scheduler import stop_scheduler

    stop_scheduler()
    logger.info("FastAPI application stopped")
