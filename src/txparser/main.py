"""FastAPI application factory and main entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from txparser import __version__
from txparser.api import api_router
from txparser.core.config import Settings, get_settings
from txparser.core.logging import configure_logging
from txparser.infrastructure.blockchain import ChainClient, JSONRPCClient
from txparser.services.tx_parser import IngestionLoop, MemoryStore, Store, TxParser

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start block ingestion on startup and drain it on shutdown."""
    settings: Settings = app.state.settings
    ingestion: IngestionLoop = app.state.ingestion

    logger.info(f"Starting {settings.app_name} {__version__}")
    await ingestion.start()

    yield

    logger.info("Shutting down, waiting for in-flight ingestion...")
    await ingestion.stop(grace_period=settings.shutdown_grace_period)
    await app.state.chain_client.close()
    logger.info("Shutdown complete")


def create_app(
    settings: Settings | None = None,
    chain_client: ChainClient | None = None,
    store: Store | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Settings to use instead of the cached environment settings
        chain_client: Chain client to use instead of a JSON-RPC client
        store: Store to use instead of a fresh in-memory store
    """
    settings = settings or get_settings()

    configure_logging(
        level=settings.log_level,
        fmt=settings.log_format,
        service_name=settings.app_name,
        environment=settings.environment,
    )

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Ethereum transaction parser API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # One store per process, shared by ingestion and queries
    store = store or MemoryStore(initial_cursor=settings.start_block)
    chain_client = chain_client or JSONRPCClient(
        rpc_urls=settings.active_rpc_urls,
        timeout=settings.rpc_timeout,
        max_retries=settings.rpc_max_retries,
        retry_delay=settings.rpc_retry_delay,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.chain_client = chain_client
    app.state.ingestion = IngestionLoop(
        client=chain_client,
        store=store,
        poll_interval=settings.poll_interval,
    )
    app.state.parser = TxParser(store)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    register_routes(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Map request validation failures to 400 Bad Request."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"] if part != "body")
            messages.append(f"{field}: {error['msg']}" if field else error["msg"])

        logger.debug(f"Rejected {request.method} {request.url.path}: {messages}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "; ".join(messages)},
        )


def register_routes(app: FastAPI) -> None:
    """Register all application routes."""
    settings: Settings = app.state.settings

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health", tags=["System"])
    async def health_check(request: Request):
        """Health check endpoint with ingestion progress."""
        return {
            "status": "healthy",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "subscriptions": request.app.state.store.subscription_count(),
            "ingestion": request.app.state.ingestion.get_sync_status(),
        }


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.port}")

    uvicorn.run(
        "txparser.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
