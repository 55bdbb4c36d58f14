import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pagewiki.config import Settings
from pagewiki.core.bus import EventBus
from pagewiki.core.errors import APIError
from pagewiki.frontend import FrontEndDispatcher
from pagewiki.log_utils import inject_request_id, setup_logging
from pagewiki.routers.health import router as health_router
from pagewiki.routers.wiki import router as wiki_router
from pagewiki.storage import ConnectionPool, StorageService, load_catalog

logger = logging.getLogger("pagewiki")


def create_app(settings: Settings | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or Settings.from_env()
        # catalog and pool failures abort startup before anything listens
        queries = load_catalog(cfg.sql_queries)
        db_dir = os.path.dirname(cfg.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        bus = EventBus(default_timeout=cfg.reply_timeout_s)
        pool = ConnectionPool(cfg.db_path, max_size=cfg.max_pool_size, acquire_timeout=cfg.acquire_timeout_s)
        storage = StorageService(pool, queries, cfg.queue)
        try:
            await storage.start(bus)
        except Exception:
            logger.error("Cannot start storage service", exc_info=True)
            await pool.close()
            raise

        app.state.settings = cfg
        app.state.bus = bus
        app.state.storage = storage
        app.state.frontend = FrontEndDispatcher(bus, cfg.queue, timeout=cfg.reply_timeout_s)
        try:
            yield
        finally:
            await storage.stop(bus)
            await bus.close()

    app = FastAPI(title="pagewiki", version="0.1.0", lifespan=lifespan)

    @app.middleware("http")
    async def add_req_id(request, call_next):
        return await inject_request_id(request, call_next)

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        body = {"code": exc.code, "message": exc.message}
        if exc.details:
            body["details"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=body)

    app.include_router(health_router)
    app.include_router(wiki_router)
    return app


load_dotenv()
setup_logging()

app = create_app()
