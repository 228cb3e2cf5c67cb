import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from push_service.api.v1.router import api_router, internal_api_router
from push_service.core.config import settings
from push_service.core.exceptions import PushServiceError
from push_service.db.base import Base
from push_service.db.session import engine
# Registers the table on Base.metadata
from push_service.models.subscription import PushSubscription  # noqa: F401

logger = logging.getLogger(__name__)

# sw.js and other browser assets, served from the site root
PUBLIC_DIR = Path(__file__).resolve().parent.parent / "public"

@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    Base.metadata.create_all(bind=engine)
    if not settings.VAPID_PRIVATE_KEY:
        logger.warning("VAPID keys not configured: notifications cannot be sent")
    logger.info(f"--- 🚀 {settings.PROJECT_NAME} started ---")
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    lifespan=lifespan,
)

origins = settings.cors_origin_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials="*" not in origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )

@app.exception_handler(PushServiceError)
async def push_service_error_handler(request: Request, exc: PushServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.status_code, exc.message)

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "path": ".".join(str(p) for p in err.get("loc", ())),
            "message": err.get("msg"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    return error_response(400, "Validation failed", details=details)

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, "Internal server error")

app.include_router(api_router, prefix=settings.API_V1_STR)
app.include_router(internal_api_router, prefix=settings.INTERNAL_API_STR)

@app.get("/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

# Last: the root mount would otherwise shadow the API routes
app.mount("/", StaticFiles(directory=PUBLIC_DIR, check_dir=False), name="public")
