"""FastAPI application serving read-only swap quotes.

The app never signs or sends transactions: every request runs
SwapService.estimate on a read-only signer. Rate limiting is left to the
reverse proxy in front of it.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from swap_engine import __version__
from swap_engine.api.endpoints import SUPPORTED_NETWORKS, router

_TRUTHY = ("true", "1", "yes")


@dataclass(frozen=True)
class ServerSettings:
    """Bind address and request limits for the quote server.

    Attributes:
        host: Interface to bind (SWAP_HOST)
        port: Port to bind (SWAP_PORT)
        reload: Auto-reload on code changes (SWAP_DEBUG)
        max_request_size: Largest accepted body in bytes; quote requests are tiny
    """

    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    max_request_size: int = 64 * 1024

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerSettings:
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("SWAP_HOST", cls.host),
            port=int(env.get("SWAP_PORT", cls.port)),
            reload=env.get("SWAP_DEBUG", "false").lower() in _TRUTHY,
        )


DEFAULT_SERVER_SETTINGS = ServerSettings()


def create_app(settings: ServerSettings = DEFAULT_SERVER_SETTINGS) -> FastAPI:
    """Build the quote API with its size guard, quote router and health check."""
    api = FastAPI(
        title="Stablecoin Swap Engine",
        description="Route discovery and quotes for Mento stable asset swaps",
        version=__version__,
    )

    @api.middleware("http")
    async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                size = int(content_length)
            except ValueError:
                return JSONResponse(status_code=400, content={"detail": "Invalid Content-Length"})
            if size > settings.max_request_size:
                return JSONResponse(status_code=413, content={"detail": "Request too large"})
        return await call_next(request)

    api.include_router(router)

    @api.get("/health")
    async def health() -> dict[str, object]:
        return {
            "status": "ok",
            "version": __version__,
            "networks": sorted(SUPPORTED_NETWORKS),
        }

    return api


app = create_app()


def run() -> None:
    """Serve `app` with uvicorn, configured from SWAP_HOST, SWAP_PORT and SWAP_DEBUG."""
    settings = ServerSettings.from_env()
    uvicorn.run(
        "swap_engine.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )


if __name__ == "__main__":
    run()
