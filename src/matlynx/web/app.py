"""
MATLYNX web application.

FastAPI app over the collection store. Pages are gated by the route
gate; form actions map domain errors to JSON responses:
- ValidationError -> 400 {"errors": {field: reason}}
- EmailTaken -> 409 {"error": message}
- UserNotFound / WrongPassword -> 401 {"error": message}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from matlynx import __version__
from matlynx.clock import Clock, utcnow
from matlynx.exceptions import AuthError, EmailTaken, ValidationError
from matlynx.logging import setup_logging
from matlynx.settings import get_settings
from matlynx.store import Store, open_store
from matlynx.web.router import web_router

logger = logging.getLogger(__name__)


def create_app(store: Store | None = None, clock: Clock = utcnow) -> FastAPI:
    """
    Build the app.

    Args:
        store: Collection store (defaults to the one at settings.STORE_URL)
        clock: Time source for record stamps
    """
    setup_logging()
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Construction materials marketplace",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = store or open_store()
    app.state.clock = clock

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"errors": exc.as_dict()})

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        status_code = 409 if isinstance(exc, EmailTaken) else 401
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "version": __version__}

    # Registered last: the router ends with a catch-all page route
    app.include_router(web_router)

    logger.info(f"{settings.APP_NAME} web app created")
    return app
