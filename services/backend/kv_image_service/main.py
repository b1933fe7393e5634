import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from config import Settings, get_settings
from kv_image_service.dependencies import (
    create_shared_state,
    get_app_settings,
    get_kv_service,
)
from kv_image_service.errors import KVError
from kv_image_service.schemas import ConfigResponse, HealthResponse, error_responses
from kv_image_service.service import KVService, Payload
from kv_image_service.storage import KeyValueStore

# Get settings and configure logging before anything else
settings = get_settings()
settings.configure_logging()

# Create logger for this module
logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

router = APIRouter()
kv_router = APIRouter(prefix="/kv", tags=["kv"])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    app_settings: Settings = app.state.settings
    # Startup
    logger.info(f"Starting {app_settings.app_name} v{app_settings.app_version}")
    logger.info(f"Environment: {app_settings.environment}")
    logger.info(f"Debug mode: {app_settings.debug}")
    logger.info(f"Store backend: {type(app.state.shared_state.backend).__name__}")

    yield

    # Shutdown
    logger.info("Shutting down application")


async def kv_error_handler(request: Request, exc: KVError) -> JSONResponse:
    """Convert store errors into JSON responses with the mapped status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def _to_response(payload: Payload) -> Response:
    return Response(content=payload.content, media_type=payload.media_type)


@router.get("/", response_class=HTMLResponse)
def index() -> str:
    """Greeting page."""
    return "<h1>Hello World</h1>"


@router.get("/hello", response_class=HTMLResponse)
def hello(name: Optional[str] = None) -> str:
    """Greet a visitor by name."""
    if name:
        return f"<h1>Hello {name}</h1>"
    return "<h1>Hello Unknown Visitor</h1>"


@router.get("/health", response_model=HealthResponse)
def health_check(app_settings: Settings = Depends(get_app_settings)) -> dict[str, str]:
    """Simple health-check endpoint."""
    return {
        "status": "ok",
        "environment": app_settings.environment,
        "version": app_settings.app_version,
    }


@router.get("/config", response_model=ConfigResponse)
def get_config(app_settings: Settings = Depends(get_app_settings)) -> dict:
    """Get current configuration (non-sensitive values only)."""
    return {
        "app_name": app_settings.app_name,
        "app_version": app_settings.app_version,
        "environment": app_settings.environment,
        "debug": app_settings.debug,
        "lock_timeout": app_settings.lock_timeout,
        "thumbnail_width": app_settings.thumbnail_width,
        "thumbnail_height": app_settings.thumbnail_height,
        "max_blur_sigma": app_settings.max_blur_sigma,
        "log_level": app_settings.log_level,
        "log_json": app_settings.log_json,
    }


@kv_router.get(
    "/{key}",
    response_class=Response,
    responses=error_responses(404, 500),
)
def get_kv(key: str, service: KVService = Depends(get_kv_service)) -> Response:
    """Read the value stored under a key.

    Opaque values are returned with their declared content type, images
    as PNG.
    """
    return _to_response(service.read(key))


@kv_router.post(
    "/{key}",
    response_class=PlainTextResponse,
    responses=error_responses(400, 500),
)
async def post_kv(
    key: str,
    request: Request,
    content_type: Optional[str] = Header(default=None),
    service: KVService = Depends(get_kv_service),
) -> str:
    """Store the request body under a key.

    The ``Content-Type`` header decides how the body is stored: image
    types are decoded and rejected with 400 if that fails, anything else
    is kept verbatim.
    """
    content = await request.body()
    declared_type = content_type or DEFAULT_CONTENT_TYPE

    # Lock acquisition and image decoding block, keep them off the event loop
    await run_in_threadpool(service.write, key, declared_type, content)
    return "OK"


@kv_router.get(
    "/{key}/grayscale",
    response_class=Response,
    responses=error_responses(403, 404, 500),
)
def grayscale(key: str, service: KVService = Depends(get_kv_service)) -> Response:
    """Return the stored image converted to grayscale."""
    return _to_response(service.grayscale(key))


@kv_router.get(
    "/{key}/blur/{sigma}",
    response_class=Response,
    responses=error_responses(403, 404, 500),
)
def blur(key: str, sigma: float, service: KVService = Depends(get_kv_service)) -> Response:
    """Return the stored image with a Gaussian blur of standard deviation ``sigma``."""
    return _to_response(service.blur(key, sigma))


@kv_router.get(
    "/{key}/thumbnail",
    response_class=Response,
    responses=error_responses(403, 404, 500),
)
def thumbnail(key: str, service: KVService = Depends(get_kv_service)) -> Response:
    """Return the stored image shrunk to fit the thumbnail box."""
    return _to_response(service.thumbnail(key))


def create_app(
    app_settings: Optional[Settings] = None,
    backend: Optional[KeyValueStore] = None,
) -> FastAPI:
    """Create a FastAPI application with its own shared store.

    Args:
        app_settings: Settings to use. Defaults to the cached settings.
        backend: Storage backend. Defaults to a new in-memory store.

    Returns:
        FastAPI: The configured application.
    """
    app_settings = app_settings or get_settings()

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        debug=app_settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.shared_state = create_shared_state(app_settings, backend)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(KVError, kv_error_handler)
    app.include_router(router)
    app.include_router(kv_router)
    return app


app = create_app(settings)
