"""FastAPI application factory."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Response, status
from sqlalchemy import text

from ark_indexer.api.routes import transfers
from ark_indexer.core.config import Settings, configure_logging
from ark_indexer.core.database import setup_db_session
from ark_indexer.services.indexing.transfer_processor import TransferProcessor
from ark_indexer.services.metadata.fetcher import MetadataFetcher
from ark_indexer.services.metadata.uri import make_sanitizer
from ark_indexer.services.starknet.rpc import StarknetRpcClient
from ark_indexer.services.storage.file_manager import (
    FileManager,
    LocalFileManager,
    PinataFileManager,
)
from ark_indexer.uow import create_uow_factory

logger = structlog.get_logger()


def build_file_manager(settings: Settings) -> FileManager | None:
    """File storage selected by ``STORAGE_BACKEND``, or None when image caching is off."""
    if settings.storage_backend == "local":
        return LocalFileManager(settings.local_storage_root)
    if settings.storage_backend == "pinata":
        return PinataFileManager(settings.pinata_jwt)
    return None


def build_transfer_processor(settings: Settings, uow_factory) -> TransferProcessor:
    """Wire a TransferProcessor from settings."""
    rpc = StarknetRpcClient(settings.starknet_rpc_url, timeout=settings.rpc_timeout_seconds)
    fetcher = MetadataFetcher(timeout=settings.metadata_timeout_seconds)
    return TransferProcessor(
        rpc=rpc,
        uow_factory=uow_factory,
        metadata_fetcher=fetcher,
        uri_sanitizer=make_sanitizer(settings.ipfs_gateway),
        file_manager=build_file_manager(settings),
    )


async def close_transfer_processor(processor: TransferProcessor) -> None:
    """Release the HTTP clients owned by a processor."""
    await processor.rpc.aclose()  # type: ignore[attr-defined]
    await processor.metadata_fetcher.aclose()
    if isinstance(processor.file_manager, PinataFileManager):
        await processor.file_manager.aclose()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    - Startup: load settings, configure logging, build the session factory
      and the transfer processor
    - Shutdown: close the RPC, metadata and storage HTTP clients
    """
    settings = Settings()  # type: ignore[call-arg]
    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    uow_factory = create_uow_factory(session_factory)
    processor = build_transfer_processor(settings, uow_factory)

    # Store in app.state for access in routes
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.uow_factory = uow_factory
    app.state.transfer_processor = processor

    logger.info(
        "application.startup",
        db_url=settings.database_url.split("@")[-1],
        storage_backend=settings.storage_backend,
    )

    yield

    logger.info("application.shutdown")
    await close_transfer_processor(processor)


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Ark Starknet Indexer",
        description="Token transfer indexing for Starknet collections",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(transfers.router, prefix="/webhooks", tags=["webhooks"])

    # Health check endpoint with database validation
    @app.get("/health")
    async def health_check(response: Response):
        """Health check endpoint with database connectivity test.

        Returns:
            200: {"status": "healthy"} if database connection succeeds
            503: {"status": "unhealthy", "error": {...}} if database connection fails
        """
        try:
            async with app.state.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            logger.debug("health_check.success")
            return {"status": "healthy"}

        except Exception as e:
            logger.error(
                "health_check.failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return {
                "status": "unhealthy",
                "error": {
                    "type": type(e).__name__,
                    "message": str(e),
                },
            }

    return app


# Create app instance for uvicorn
app = create_app()
