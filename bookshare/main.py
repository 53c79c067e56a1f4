import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from bookshare.api.routes import router
from bookshare.core.config import Settings
from bookshare.core.errors import register_error_handlers
from bookshare.services.catalog_store import CatalogStore
from bookshare.services.storage.file_store import FileStore

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        # Both stores must be usable before the first request; otherwise refuse to start.
        file_store = FileStore(settings.upload_dir, max_bytes=settings.max_upload_bytes)
        file_store.ensure_ready()
        catalog_store = CatalogStore(settings.database_url)
        catalog_store.open()

        app.state.file_store = file_store
        app.state.catalog_store = catalog_store
        logger.info("Bookshare ready on %s", settings.base_url)
        try:
            yield
        finally:
            catalog_store.close()

    app = FastAPI(
        title="Bookshare",
        version="1.0.0",
        description="Upload, browse, rate and download e-books.",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(router)
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/", include_in_schema=False)
    async def index() -> FileResponse:
        return FileResponse(STATIC_DIR / "index.html")

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
