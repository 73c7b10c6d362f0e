"""FastAPI application factory. No business logic; only wiring and middleware.

Run with: uvicorn app.main:create_app --factory
"""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import router as v1_router
from app.core.config import Settings, get_settings
from app.core.database import build_engine, build_session_factory
from app.core.security import TokenIssuer


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application from explicit settings.

    Settings, the session factory and the token issuer are attached to app.state and
    reach request handlers only through dependencies. Missing JWT secrets make
    get_settings() raise, so the process fails at startup rather than on first request.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Inkpost API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.token_issuer = TokenIssuer(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "API is running"}

    return app
