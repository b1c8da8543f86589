import os
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from demo_builder.config import Settings, configure_logging
from demo_builder.dependencies import get_settings
from demo_builder.errors import DemoBuilderError, NotFoundError, ValidationError
from demo_builder.routes import demos

ERROR_MESSAGES = {
    "/generate-demo": "Failed to generate demo",
    "/demos": "Failed to fetch demos",
    "/delete-vercel-deployments": "Failed to delete Vercel deployments",
    "/delete-demo-data": "Failed to delete demo data",
    "/delete-demo": "Failed to delete demo",
    "/test-vercel": "Failed to test Vercel API",
    "/github/repos": "Failed to fetch GitHub repositories",
}


def _error_label(path: str) -> str:
    for prefix, label in ERROR_MESSAGES.items():
        if path == prefix or path.startswith(prefix + "/"):
            return label
    return "Request failed"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    # Create FastAPI app
    app = FastAPI(
        title=settings.app_title,
        description=settings.app_description,
        version=settings.app_version
    )
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"]
        )

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_error(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": "Demo not found", "details": str(exc)})

    @app.exception_handler(DemoBuilderError)
    async def demo_builder_error(request: Request, exc: DemoBuilderError):
        logging.error(f"{request.method} {request.url.path} failed: {str(exc)}")
        return JSONResponse(status_code=500, content={"error": _error_label(request.url.path), "details": str(exc)})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logging.exception(f"{request.method} {request.url.path} failed unexpectedly")
        return JSONResponse(status_code=500, content={"error": _error_label(request.url.path), "details": str(exc)})

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logging.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    app.include_router(demos.router)
    return app


configure_logging()
app = create_app()

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 3005))
    uvicorn.run(app, host="0.0.0.0", port=port)
