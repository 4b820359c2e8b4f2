import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from badger.api.routes.admin_dashboard import router as admin_dashboard_router
from badger.api.routes.badge_applications import router as badge_applications_router
from badger.api.routes.health import router as health_router
from badger.api.routes.helpers import request_validation_error_response
from badger.api.routes.promotion_templates import router as promotion_templates_router
from badger.api.routes.promotions import router as promotions_router
from badger.core.config import get_settings
from badger.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)

    docs_enabled = settings.openapi_docs_enabled
    app = FastAPI(
        title="Badger API",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.add_exception_handler(RequestValidationError, request_validation_error_response)
    app.include_router(health_router)
    app.include_router(badge_applications_router)
    app.include_router(promotion_templates_router)
    app.include_router(promotions_router)
    app.include_router(admin_dashboard_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "badger.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
