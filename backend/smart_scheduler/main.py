import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from smart_scheduler.api.routes import health, reference, schedules
from smart_scheduler.core.config import get_settings
from smart_scheduler.core.exceptions import AppError
from smart_scheduler.db.bootstrap import ensure_runtime_schema_compatibility
from smart_scheduler.db.session import SessionLocal
from smart_scheduler.services.repository import SqlScheduleRepository
from smart_scheduler.services.schedule_engine import ScheduleEngine

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def create_schedule_engine() -> ScheduleEngine:
    ensure_runtime_schema_compatibility()
    engine = ScheduleEngine(SqlScheduleRepository(SessionLocal))
    await engine.hydrate()
    return engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests install their own engine before startup.
    if getattr(app.state, "schedule_engine", None) is None:
        app.state.schedule_engine = await create_schedule_engine()
        logger.info("Schedule engine ready")
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind, "message": exc.message, "details": exc.details},
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={"kind": "ValidationError", "message": "Invalid request", "details": {"errors": errors}},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(schedules.router, prefix=f"{settings.api_prefix}/schedules", tags=["schedules"])
app.include_router(reference.router, prefix=settings.api_prefix, tags=["reference"])
