from typing import Optional
from datetime import datetime
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from kiwi_crm.domain.errors import AuthenticationError, CrmError, StorageError
from kiwi_crm.infrastructure.config import Settings, get_settings
from kiwi_crm.infrastructure.database.gateway import PersistenceGateway
from kiwi_crm.infrastructure.database.session import create_engine, create_session_factory, create_tables
from kiwi_crm.infrastructure.observability.logging import setup_logging
from .route import chat, dashboard, leads, notes, tasks

logger = structlog.get_logger(__name__)


def internal_error(detail: str) -> PlainTextResponse:
    return PlainTextResponse(f"Internal server error: {detail}", status_code=500)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the CRM API application"""

    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format, settings.service_name)

    app = FastAPI(title="Kiwi CRM API")
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        structlog.contextvars.bind_contextvars(trace_id=uuid4().hex)
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception("Unhandled error", path=request.url.path, method=request.method)
            return internal_error(str(e))
        finally:
            structlog.contextvars.unbind_contextvars("trace_id", "user_id")

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        return PlainTextResponse("Unauthorized", status_code=401)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        return internal_error(exc.message)

    @app.exception_handler(CrmError)
    async def crm_error_handler(request: Request, exc: CrmError):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        return JSONResponse({"error": "Invalid request", "details": errors}, status_code=400)

    @app.on_event("startup")
    async def startup_event():
        """Connect to the database and make sure the tables exist"""
        engine = create_engine(settings.database_url, echo=settings.database_echo)
        await create_tables(engine)

        app.state.engine = engine
        app.state.gateway = PersistenceGateway(create_session_factory(engine))

        logger.info("API server started", model=settings.llm_model)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Release database connections"""
        await app.state.engine.dispose()
        logger.info("API server shutdown")

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat()
        }

    app.include_router(chat.router)
    app.include_router(dashboard.router)
    app.include_router(leads.router)
    app.include_router(tasks.router)
    app.include_router(notes.router)

    return app


def main():
    import uvicorn
    uvicorn.run(
        "kiwi_crm.application.api.api_server:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
    )


if __name__ == "__main__":
    main()
