"""Kithu - Salary Transparency API."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kithu.api import auth, salaries
from kithu.api.errors import register_error_handlers
from kithu.config import Settings, get_settings
from kithu.database import Base, create_db_engine, create_session_factory
from kithu.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Import all models so they're registered with Base
    from kithu import models  # noqa: F401

    # Create tables
    Base.metadata.create_all(bind=app.state.engine)
    logger.info(f"{app.state.settings.app_name} started")

    yield

    app.state.engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around one immutable settings object.

    Raises ``ConfigurationError`` when settings are missing or invalid, so a
    misconfigured process fails at startup instead of on first request.
    """
    settings = settings or get_settings()
    configure_logging(settings.debug)

    app = FastAPI(
        title=settings.app_name,
        description="Share salaries anonymously and compare pay",
        version="0.1.0",
        lifespan=lifespan,
    )

    engine = create_db_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.token_issuer = TokenIssuer(settings)

    # CORS for frontend; credentials are needed for the refresh cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    app.include_router(auth.router, prefix="/api")
    app.include_router(salaries.router, prefix="/api")

    return app


def run() -> None:
    """Console entrypoint: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("kithu.main:create_app", factory=True, host="0.0.0.0", port=5000)
