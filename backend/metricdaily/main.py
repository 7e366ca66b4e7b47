import asyncio
import contextlib
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from metricdaily.api.audit import router as audit_router
from metricdaily.api.dashboard import router as dashboard_router
from metricdaily.api.data import router as data_router
from metricdaily.api.settings import router as settings_router
from metricdaily.api.targets import router as targets_router
from metricdaily.api.work_logs import router as work_logs_router
from metricdaily.core.config import settings
from metricdaily.core.exceptions import StorageUnavailable, TrackerError
from metricdaily.core.logging_utils import setup_logging
from metricdaily.db import Base, engine, open_store
from metricdaily.models.audit_log import AuditLog  # noqa: F401  (import ensures table is registered)
from metricdaily.models.uph_target import UPHTarget  # noqa: F401
from metricdaily.models.user_settings import UserSettings  # noqa: F401
from metricdaily.models.work_log import WorkLog  # noqa: F401
from metricdaily.services.live import LiveProgressTracker, run_ticker


setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if settings.live_refresh_seconds > 0:
        task = asyncio.create_task(
            run_ticker(app.state.live_tracker, open_store, settings.live_refresh_seconds, settings.timezone)
        )
    yield
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


app = FastAPI(title="Metric Daily", lifespan=lifespan)
app.state.live_tracker = LiveProgressTracker()

# Allow CORS for local frontend
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    error_id = str(uuid.uuid4())[:8]
    log = logger.error if isinstance(exc, StorageUnavailable) else logger.warning
    log("API Error [%s]: %s %s %s - %s", error_id, exc.__class__.__name__, request.method, request.url.path, exc.message)

    body = {"detail": exc.message, "code": exc.code, "error_id": error_id}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return JSONResponse(status_code=exc.status_code, content=body)


# Create DB tables on startup
if settings.storage_backend == "sql":
    Base.metadata.create_all(bind=engine)

app.include_router(work_logs_router)
app.include_router(targets_router)
app.include_router(audit_router)
app.include_router(settings_router)
app.include_router(dashboard_router)
app.include_router(data_router)


@app.get("/")
def root():
    return {"message": "Metric Daily backend is running", "storage_backend": settings.storage_backend}
