import uvicorn
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from layerchat.api.routes import router as api_router
from layerchat.api.admin_routes import admin_router
from layerchat.core.config import settings
from layerchat.core.dependencies import AppContext, build_context

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Application factory pattern for creating the FastAPI app.

    Args:
        context: Optional application context replacing the one built from settings

    Returns:
        FastAPI application instance
    """
    context = context or build_context(settings)
    app_settings = context.settings

    # Create FastAPI app
    app = FastAPI(
        title=app_settings.PROJECT_NAME,
        description=app_settings.PROJECT_DESCRIPTION,
        version=app_settings.VERSION,
        openapi_url=f"{app_settings.API_V1_STR}/openapi.json"
    )
    app.state.context = context

    # Set up CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in app_settings.CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include all routers
    app.include_router(api_router, prefix=app_settings.API_V1_STR)
    app.include_router(admin_router, prefix=app_settings.API_V1_STR)

    logger.info(f"Starting {app_settings.PROJECT_NAME} v{app_settings.VERSION}")
    logger.info(f"Debug mode: {app_settings.DEBUG}")
    return app


# Create the default app instance
app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=settings.WORKERS
    )
