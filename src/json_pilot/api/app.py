from __future__ import annotations

from fastapi import FastAPI

from json_pilot.api.routes.documents import router as documents_router
from json_pilot.api.routes.health import router as health_router
from json_pilot.api.routes.query import router as query_router
from json_pilot.api.routes.root import router as root_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="json-pilot API",
        description="Inspect, query and reshape JSON documents.",
        version="0.1.0",
    )

    app.include_router(root_router, include_in_schema=False)
    app.include_router(health_router, include_in_schema=False)
    app.include_router(documents_router)
    app.include_router(query_router)

    return app
