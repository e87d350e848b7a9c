# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from storefront.api.errors import register_exception_handlers
from storefront.api.routers import auth, carts, items, health
from storefront.data.database import init_db
from storefront.services.revocation_registry import create_redis_client
from storefront.utils.logging import get_logger
from storefront.utils.settings import CORS_ORIGINS

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database")
    try:
        init_db()
        logger.info("Database tables created")
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise

    yield

    app.state.redis.close()


def create_app(redis_client=None) -> FastAPI:
    app = FastAPI(
        title="Storefront API",
        version="1.0.0",
        lifespan=lifespan,
    )

    # shared connection pool, handed to the services per request through api.deps
    app.state.redis = redis_client or create_redis_client()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(carts.router)
    app.include_router(items.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
