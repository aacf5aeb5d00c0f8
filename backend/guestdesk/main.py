"""
GuestDesk application entry point
Staff assignment and request lifecycle service for hotel guest services
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from guestdesk.config import settings
from guestdesk.database import init_db
from guestdesk.routers import assignment, service_requests, bulk_operations

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Setup logging configuration"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan"""
    setup_logging(settings.LOG_LEVEL)

    init_db()

    # Notification channels
    from guestdesk.notification.channel import NotificationChannelRegistry, LogChannel
    NotificationChannelRegistry().register(LogChannel())

    # Event handlers
    from guestdesk.services.event_handlers import register_event_handlers
    register_event_handlers()

    logger.info(f"{settings.APP_NAME} started")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Staff assignment, request lifecycle and bulk operations for hotel guest services",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query parameters are client errors (400)"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    reason = f"{field}: {first.get('msg', 'invalid input')}" if field else first.get("msg", "invalid input")
    return JSONResponse(
        status_code=400,
        content={"detail": {"kind": "validation_error", "reason": reason, "errors": jsonable_encoder(errors)}},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": {"kind": "internal_error", "reason": "Internal server error"}},
    )


app.include_router(assignment.router)
app.include_router(service_requests.router)
app.include_router(bulk_operations.router)


@app.get("/health")
def health_check():
    """Health check"""
    return {"status": "healthy"}
