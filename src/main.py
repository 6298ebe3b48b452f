from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from src.application.dtos.common_dto import HealthResponse, RootResponse
from src.infrastructure.api.errors import add_exception_handlers
from src.infrastructure.api.middlewares import add_default_middlewares
from src.infrastructure.api.routes.user_routes import router as user_router
from src.infrastructure.database.repositories.user_repository import UserRepository
from src.infrastructure.database.supabase_client import get_supabase_client
from src.infrastructure.logging_config import configure_logging
from src.infrastructure.storage.upload_storage import LocalUploadStorage, UploadStorage

logger = logging.getLogger(__name__)


def build_user_repository() -> UserRepository:
    repo = UserRepository(get_supabase_client())
    if repo.backend == "postgres":
        repo.pg_client.ensure_schema()
    return repo


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # release pooled Postgres connections on shutdown
    users = app.state.users
    if users.backend == "postgres":
        users.pg_client.close()
        logger.info("PostgreSQL pool closed")


def create_app(
    users: UserRepository | None = None,
    storage: UploadStorage | None = None,
    upload_dir: str | None = None,
) -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="User Records Service",
        lifespan=lifespan,
        version="0.1.0",
        description="""
        ## User Records API

        FastAPI service for managing user records with optional profile
        pictures, backed by Supabase or a local PostgreSQL database.

        ### Features
        - **Users**: Create, list, fetch, update and delete user records
        - **Profile pictures**: One jpeg/jpg/png/gif image per request, up to 5 MB,
          served back under `/uploads`
        - **Validation**: Field rules for names, email, phone number and gender;
          emails are unique

        ### Error Responses
        - **400 Bad Request**: Missing or invalid fields, duplicate email, bad file, invalid id
        - **404 Not Found**: User does not exist, or no users stored
        - **500 Internal Server Error**: `{"success": false, "message": ...}`
        """,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    app.state.users = users if users is not None else build_user_repository()
    if storage is None:
        storage = LocalUploadStorage(upload_dir)
    app.state.storage = storage
    static_dir = storage.directory if isinstance(storage, LocalUploadStorage) else LocalUploadStorage(upload_dir).directory
    logger.info("Users backend: %s, uploads in %s", app.state.users.backend, static_dir.resolve())

    add_default_middlewares(app)
    add_exception_handlers(app)

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the User Records API",
    )
    def root():
        """Get API root information."""
        return {"status": "ok", "service": "user-records-service", "version": app.version}

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check that the API is running and report the persistence backend and user count",
    )
    def health():
        """Check API health status."""
        users = app.state.users
        return {"status": "healthy", "backend": users.backend, "users": users.count()}

    app.include_router(user_router)
    app.mount("/uploads", StaticFiles(directory=static_dir), name="uploads")
    return app


def run() -> None:
    import uvicorn

    uvicorn.run(
        "src.main:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENV", "development") == "development",
    )


if __name__ == "__main__":
    run()
