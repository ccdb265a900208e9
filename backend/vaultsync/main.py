"""FastAPI application entry point"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import get_settings
from .api import router
from .middleware import ObservabilityMiddleware, setup_logging


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    settings = get_settings()

    setup_logging(log_level=settings.log_level)

    app = FastAPI(
        title="VaultSync",
        description="Keeps markdown vaults in sync with a Chroma vector index",
        version=__version__,
    )

    app.add_middleware(ObservabilityMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "vaultsync.main:app",
        host=settings.host,
        port=settings.port,
    )
