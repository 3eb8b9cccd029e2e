"""FastAPI application."""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .engine import OrderLifecycleEngine
from .problem_details import install_problem_details_handler
from .routers import materials, notifications, orders
from .services.notification_feed import NotificationFeed


def create_app(
    engine: Optional[OrderLifecycleEngine] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the dashboard API around an injected (or empty) engine."""
    settings = settings or (engine.settings if engine else get_settings())
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if settings.ENV.lower() == "production" and any(origin.strip() == "*" for origin in settings.cors_origins):
        raise RuntimeError("ALLOWED_ORIGINS must be explicit in production.")

    engine = engine or OrderLifecycleEngine(settings=settings)
    feed = NotificationFeed(limit=settings.NOTIFICATION_FEED_LIMIT)
    engine.subscribe(feed.handle)

    app = FastAPI(
        title="Material Order Tracker",
        version="1.0.0",
        description="Order lifecycle and permission engine for construction material orders",
    )
    app.state.engine = engine
    app.state.notification_feed = feed

    cors_headers = ["Content-Type", "X-User-Id"]
    if settings.ENV.lower() != "production":
        cors_headers = ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=cors_headers,
    )
    install_problem_details_handler(app)

    app.include_router(orders.router, prefix="/api/v1")
    app.include_router(notifications.router, prefix="/api/v1")
    app.include_router(materials.router, prefix="/api/v1")

    @app.get("/api/v1/system/health")
    def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "version": "1.0.0",
            "orders": len(app.state.engine.store),
        }

    return app
