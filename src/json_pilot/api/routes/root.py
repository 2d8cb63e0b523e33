from __future__ import annotations

from typing import Any

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root() -> dict[str, Any]:
    """Root discovery endpoint listing the document operations."""
    return {
        "meta": {
            "title": "json-pilot API",
            "description": "Inspect, query and reshape JSON documents.",
            "version": "0.1.0",
        },
        "links": {
            "self": "/",
            "overlay": "/overlay",
            "toggle": "/toggle",
            "query": "/query",
            "compress": "/compress",
            "sort-keys": "/sort-keys",
            "openapi": "/openapi.json",
            "docs": "/docs",
        },
    }
