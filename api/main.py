"""FastAPI proxy in front of the SerpApi events search."""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Optional

import requests
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ingest import serpapi_client

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="SerpApi Events Proxy",
    description="Proxy to the SerpApi google_events engine",
    version=VERSION,
)

# Thread pool for the blocking upstream requests
executor = ThreadPoolExecutor(max_workers=4)


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: str
    version: str


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION,
    )


@app.get("/search")
async def search_events(
    q: Optional[str] = None,
    location: Optional[str] = None,
    hl: Optional[str] = None,
    gl: Optional[str] = None,
    start: Optional[int] = None,
):
    """
    Forward a search to SerpApi.

    - The API key only comes from the server environment.
    - ``engine`` is always ``google_events``.
    - Upstream error statuses and bodies are passed through.
    """
    try:
        api_key = serpapi_client.get_api_key()
    except ValueError:
        return _error(500, "Missing SERPAPI_API_KEY env var. Set it on the server.")

    if not q:
        return _error(400, "Missing required query param: q")

    params = {"q": q, "location": location, "hl": hl, "gl": gl, "start": start}
    try:
        loop = asyncio.get_event_loop()
        response = await loop.run_in_executor(
            executor, serpapi_client.search, params, api_key
        )
    except requests.RequestException as exc:
        logger.warning("SerpApi request failed: %s", exc)
        return _error(500, str(exc))

    try:
        body = response.json()
    except ValueError:
        body = {"error": response.text}
    return JSONResponse(status_code=response.status_code, content=body)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "SerpApi Events Proxy",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "search": "/search?q=",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3001)
