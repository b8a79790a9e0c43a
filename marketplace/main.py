import logging
import random
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from marketplace.api.routes_auth import router as auth_router
from marketplace.api.routes_cart import router as cart_router
from marketplace.api.routes_order import router as order_router
from marketplace.api.routes_product import router as product_router
from marketplace.core.clock import SystemClock
from marketplace.core.config import Settings, get_settings
from marketplace.core.exceptions import MarketplaceError, NotFoundError, StorageError, ValidationError
from marketplace.db.session import build_engine, build_session_factory, create_tables

logger = logging.getLogger("marketplace")

ERROR_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _status_for(exc: MarketplaceError) -> int:
    for exc_type, code in ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def create_app(
    settings: Settings = None,
    session_factory: sessionmaker = None,
    clock=None,
    rng: random.Random = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    engine = None
    if session_factory is None:
        engine = build_engine(settings)
        session_factory = build_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if engine is not None and settings.AUTO_CREATE_TABLES:
            create_tables(engine)
        yield
        if engine is not None:
            engine.dispose()

    app = FastAPI(
        title="marketplace-api",
        description="Catalog, carts and orders for the marketplace",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.clock = clock or SystemClock()
    app.state.rng = rng or random.Random()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        return JSONResponse(status_code=_status_for(exc), content=exc.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal storage error", "code": StorageError.code},
        )

    @app.get("/health", tags=["Health"])
    def health():
        db = session_factory()
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning(f"Health check failed: {e}")
            return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"status": "unavailable"})
        finally:
            db.close()
        return {"status": "ok"}

    # Register endpoints
    app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
    app.include_router(product_router, prefix="/api", tags=["Product"])
    app.include_router(cart_router, prefix="/api", tags=["Cart"])
    app.include_router(order_router, prefix="/api", tags=["Order"])

    return app
