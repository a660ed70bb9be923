from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from projectmaster.api.middleware import AuditMiddleware
from projectmaster.api.v1.router import v1_router
from projectmaster.common.logging import get_logger, setup_logging
from projectmaster.config import settings
from projectmaster.integrations import AIClient, SqlBackend, build_auth_provider, build_backend

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Tests install their own collaborators on app.state before startup.
    if getattr(app.state, "backend", None) is None:
        app.state.backend = build_backend()
    if getattr(app.state, "auth_provider", None) is None:
        app.state.auth_provider = build_auth_provider()
    if getattr(app.state, "ai_client", None) is None:
        app.state.ai_client = AIClient()
    if isinstance(app.state.backend, SqlBackend):
        await app.state.backend.init_schema()
    logger.info(
        "Started with %s backing store and %s auth",
        app.state.backend.name,
        app.state.auth_provider.name,
    )
    yield
    await app.state.backend.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="ProjectMaster API",
        description="Projects, departments, tasks and photo documentation",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS
    origins = settings.ALLOWED_ORIGINS.split(",") if settings.ALLOWED_ORIGINS != "*" else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(AuditMiddleware)

    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        integrations = [
            await dep.probe()
            for dep in (
                getattr(app.state, "backend", None),
                getattr(app.state, "auth_provider", None),
                getattr(app.state, "ai_client", None),
            )
            if dep is not None
        ]
        healthy = bool(integrations) and all(i["healthy"] for i in integrations)
        return {
            "status": "healthy" if healthy else "degraded",
            "service": "projectmaster",
            "version": "1.0.0",
            "env": settings.APP_ENV,
            "integrations": integrations,
        }

    return app


app = create_app()
