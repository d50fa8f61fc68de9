"""Main entry point for the NeuroShop API."""

from datetime import datetime

from dotenv import load_dotenv
load_dotenv()  # Load .env into environment variables

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from neuroshop import __version__
from neuroshop.api.middleware import RequestLoggingMiddleware
from neuroshop.api.routes import search_router
from neuroshop.config.settings import settings
from neuroshop.errors import InvalidQueryError, NeuroShopError
from neuroshop.logging import configure_logging

logger = structlog.get_logger()


def create_app() -> FastAPI:
    """Build the FastAPI application with middleware and routers."""
    app = FastAPI(title="NeuroShop API", version=__version__)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(search_router)

    @app.exception_handler(NeuroShopError)
    async def neuroshop_error_handler(request: Request, exc: NeuroShopError) -> JSONResponse:
        status_code = 400 if isinstance(exc, InvalidQueryError) else 500
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container orchestration."""
        return {"status": "ok", "timestamp": datetime.now().isoformat()}

    return app


def main() -> None:
    """Configure logging and serve the API with uvicorn."""
    configure_logging()
    logger.info(
        "Starting NeuroShop API",
        host=settings.api_host,
        port=settings.api_port,
        environment=settings.environment,
    )
    uvicorn.run(create_app(), host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
