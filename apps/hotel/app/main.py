import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from hotel_shared import RequestIDMiddleware, add_standard_health, setup_json_logging

from . import config
from .errors import HotelError
from .routes import router
from .seed import seed_database
from .services import HotelServices
from .store import HotelStore

_log = logging.getLogger("hotel.api")


def create_app(store: Optional[HotelStore] = None, demo_seed: Optional[bool] = None) -> FastAPI:
    store = store if store is not None else HotelStore()
    seed = config.DEMO_SEED if demo_seed is None else demo_seed

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.create_all()
        if seed and seed_database(store):
            _log.info("demo seed loaded")
        yield

    app = FastAPI(title="Hotel Desk API", version="0.1.0", lifespan=lifespan)
    setup_json_logging()
    app.add_middleware(RequestIDMiddleware)
    add_standard_health(app, checks={"db": store.ping})
    app.state.hotel = HotelServices(store)

    @app.exception_handler(HotelError)
    async def _hotel_error(request: Request, exc: HotelError):
        _log.info("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
        return JSONResponse({"detail": exc.message, "error": exc.kind}, status_code=exc.status_code)

    app.include_router(router)
    return app


app = create_app()
