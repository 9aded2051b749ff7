from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel, Field

from villagemap.config import debounce_s, get_view_config
from villagemap.geo.aoi import BBox
from villagemap.query.http import HttpFeatureQuery
from villagemap.query.types import FeatureQuery, FilterSelection
from villagemap.viewport.coordinator import FetchResult
from villagemap.viewport.session import MapSession


class ApiBounds(BaseModel):
    south: float = Field(ge=-90.0, le=90.0)
    north: float = Field(ge=-90.0, le=90.0)
    west: float
    east: float


class ApiViewportEvent(BaseModel):
    bounds: ApiBounds
    zoom: float = Field(ge=0.0, le=24.0)


class ApiFilter(BaseModel):
    state: str | None = None
    district: str | None = None
    subdistrict: str | None = None


def create_app(query_factory: Callable[[], FeatureQuery] | None = None) -> FastAPI:
    """
    One map session per app instance; it lives for the lifespan of the app and is
    disposed exactly once on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        query = query_factory() if query_factory is not None else HttpFeatureQuery()
        session = MapSession(query, config=get_view_config(), debounce_s=debounce_s())
        app.state.session = session
        try:
            yield
        finally:
            session.dispose()
            aclose = getattr(query, "aclose", None)
            if aclose is not None:
                await aclose()
            logger.info("Map API shut down")

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _session(request: Request) -> MapSession:
        return request.app.state.session

    def _payload(session: MapSession, result: FetchResult) -> dict[str, Any]:
        out: dict[str, Any] = {
            "outcome": result.outcome.value,
            "seq": result.seq,
            "status": session.status().as_dict(),
            "plot": session.figure(),
        }
        if result.error is not None:
            out["error"] = str(result.error.cause)
        return out

    @app.post("/map/viewport")
    async def viewport_changed(body: ApiViewportEvent, request: Request):
        session = _session(request)
        b = body.bounds
        result = await session.on_viewport_changed(
            BBox(min_lon=b.west, min_lat=b.south, max_lon=b.east, max_lat=b.north),
            body.zoom,
        )
        return _payload(session, result)

    @app.post("/map/filter")
    async def filter_changed(body: ApiFilter, request: Request):
        session = _session(request)
        result = await session.on_filter_changed(
            FilterSelection.of(body.state, body.district, body.subdistrict)
        )
        return _payload(session, result)

    @app.get("/map/plot")
    def plot(request: Request):
        return _session(request).figure()

    @app.get("/map/status")
    def status(request: Request):
        return _session(request).status().as_dict()

    return app


app = create_app()
