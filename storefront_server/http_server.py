"""HTTP server for the storefront: static page, products API and streaming chat."""

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from importlib import resources
from typing import Optional

import httpx
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .cache import CacheStore
from .catalog import CatalogProvider
from .chat import ChatProxy
from .config import Settings
from .exceptions import ValidationError
from .inference import InferenceClient
from .models import ChatRequest

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-http-server")

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
STREAM_HEADERS = {
    **CORS_HEADERS,
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

router = APIRouter()


@lru_cache(maxsize=1)
def load_index_html() -> str:
    """Read the storefront page shipped with the package."""
    return resources.files("storefront_server").joinpath("static/index.html").read_text(encoding="utf-8")


def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(content, status_code=status_code, headers=CORS_HEADERS)


@router.get("/")
@router.get("/index.html")
async def index():
    """Serve the single-page storefront."""
    return Response(load_index_html(), media_type="text/html;charset=UTF-8", headers=CORS_HEADERS)


@router.get("/api/products")
async def list_products(request: Request):
    """Return the current catalog as ``{"product": [...]}``."""
    try:
        catalog = await request.app.state.catalog_provider.get_catalog()
        return JSONResponse(catalog.to_payload(), headers=CORS_HEADERS)
    except Exception as e:
        logger.error(f"Error in list_products: {e}", exc_info=True)
        return error_response(500, "Failed to load products", details=str(e))


@router.post("/api/chat")
async def chat(request: Request):
    """Relay a chat completion as a server-sent-events stream."""
    try:
        body = await request.json()
    except ValueError:
        return error_response(400, "Invalid JSON body")
    if not isinstance(body, dict):
        return error_response(400, "Invalid JSON body", details="Expected a JSON object")

    try:
        chat_request = ChatRequest.model_validate(body)
    except PydanticValidationError as e:
        return error_response(400, "Invalid request", details=str(e))

    chat_proxy: ChatProxy = request.app.state.chat_proxy
    try:
        chunks = await chat_proxy.handle_chat(
            chat_request.message, chat_request.conversation_history
        )
    except ValidationError as e:
        return error_response(400, str(e))
    except Exception as e:
        logger.error(f"Error in chat: {e}", exc_info=True)
        return error_response(500, "Internal server error", details=str(e))

    return StreamingResponse(chunks, media_type="text/event-stream", headers=STREAM_HEADERS)


@router.options("/{path:path}")
async def preflight(path: str):
    """Answer CORS preflight requests for any path."""
    return Response(status_code=204, headers=PREFLIGHT_HEADERS)


async def not_found_handler(request: Request, exc: StarletteHTTPException):
    # Unknown paths and unsupported methods are both reported as 404.
    if exc.status_code in (404, 405):
        return PlainTextResponse("Not found", status_code=404, headers=CORS_HEADERS)
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=CORS_HEADERS)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Server settings (read from the environment at startup if omitted)
        transport: Optional httpx transport for outbound calls
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown."""
        # Startup
        logger.info("Starting Storefront HTTP Server...")
        app_settings = settings or Settings.from_env()
        client = httpx.AsyncClient(transport=transport, follow_redirects=True)
        cache = CacheStore(app_settings.cache_file)
        catalog_provider = CatalogProvider(cache, client, app_settings)

        app.state.settings = app_settings
        app.state.catalog_provider = catalog_provider
        app.state.chat_proxy = ChatProxy(catalog_provider, InferenceClient(client, app_settings))

        yield

        # Shutdown
        logger.info("Shutting down Storefront HTTP Server...")
        await client.aclose()

    app = FastAPI(
        title="Storefront Chat Server",
        description="Product catalog and LLM shopping assistant for an online store",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)
    app.add_exception_handler(StarletteHTTPException, not_found_handler)
    return app


app = create_app()


def run_http_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """
    Run the HTTP server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to bind to (default: 8000)
        reload: Enable hot reloading (default: False)
    """
    import uvicorn

    logger.info(f"Starting server on {host}:{port} (reload={'enabled' if reload else 'disabled'})")

    if reload:
        # Hot reloading - watches for file changes
        uvicorn.run(
            "storefront_server.http_server:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["storefront_server"],
            log_level="info",
        )
    else:
        uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_http_server(reload=True)
