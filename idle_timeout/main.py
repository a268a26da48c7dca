import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from idle_timeout.services.activity import ActivityTracker
from idle_timeout.services.idle_monitor import IdleMonitor
from idle_timeout.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class ActivityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, tracker: ActivityTracker):
        super().__init__(app)
        self.tracker = tracker

    async def dispatch(self, request: Request, call_next):
        self.tracker.record_activity()
        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    tracker: ActivityTracker = app.state.tracker
    monitor: IdleMonitor = app.state.idle_monitor

    monitor.start(tracker, tracker.configured_timeout())
    try:
        yield
    finally:
        monitor.stop()


def create_app(config: Settings | None = None, monitor: IdleMonitor | None = None) -> FastAPI:
    config = config or default_settings
    tracker = ActivityTracker(config.idle_timeout)

    app = FastAPI(title="Idle Timeout Guard", lifespan=lifespan)
    app.state.tracker = tracker
    app.state.idle_monitor = monitor or IdleMonitor()

    # Only track activity if idle timeout is configured
    if config.idle_timeout > 0:
        logger.info("Idle timeout enabled: %d seconds", config.idle_timeout)
        app.add_middleware(ActivityMiddleware, tracker=tracker)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
