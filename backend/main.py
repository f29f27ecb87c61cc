"""Tabsync FastAPI application and command line entry point."""

import argparse
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import auth, tabs
from config import Settings, settings as default_settings
from logging_config import setup_file_logging
from services import Services, build_services

__version__ = "0.1.0"

console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
    handlers=[console_handler],
)
logger = logging.getLogger(__name__)


def create_app(services: Services | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the app. Without ``services`` they are loaded on startup."""
    settings = settings or (services.settings if services else default_settings)

    app = FastAPI(title="Tabsync API", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router)
    app.include_router(tabs.router)

    if services is not None:
        app.state.services = services

    @app.on_event("startup")
    async def startup():
        """Load settings, ip ranges and credentials once."""
        if getattr(app.state, "services", None) is None:
            settings.data_dir.mkdir(parents=True, exist_ok=True)
            app.state.services = build_services(settings)
        logger.info("Services ready.")

    @app.get("/")
    @app.get("/api/")
    async def root():
        return f"version: {__version__}"

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


def run(argv: list[str] | None = None) -> int:
    """``python main.py <port>``: check the data directory and serve."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Tabsync sync server")
    parser.add_argument("port", type=int, help="port to listen on")
    parser.add_argument("--host", default="0.0.0.0")
    args = parser.parse_args(argv)

    if not default_settings.data_dir.is_dir():
        print(f"Create data directory: {default_settings.data_dir.resolve()} and users.txt")
        return 1

    history_dir = default_settings.history_dir
    if not history_dir.exists():
        history_dir.mkdir()
        print(f"Create history directory: {history_dir.resolve()}")

    # LOG_LEVEL filters the console only; debug.app.log always receives DEBUG
    console_handler.setLevel(default_settings.log_level)
    setup_file_logging(default_settings.log_dir)
    logger.info(f"Listening on port {args.port}")
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(run())
