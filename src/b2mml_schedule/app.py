"""FastAPI application for decoding and normalising schedule messages.

Quick start (run the server)::

    uvicorn b2mml_schedule.app:app --reload

Endpoints:

    GET  /health                Basic health probe
    POST /schedules/decode      XML body -> JSON view of the message
    POST /schedules/normalise   XML body -> re-encoded XML (UTC times, canonical layout)
    GET  /config/serialiser     Active serialiser configuration
    GET  /metrics/cache         Schema context cache statistics

Example: decode a message::

    curl -X POST http://localhost:8000/schedules/decode \
         -H "Content-Type: application/xml" \
         --data-binary @ProcessProductionSchedule.xml | jq .

Error handling:
    * Invalid messages are answered with 422 and a JSON body
      ``{"error": "Invalid message", "detail": "<reason>"}``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict

from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import get_config
from .document import get_document_bridge
from .errors import InvalidMessageError
from .schedule import ProcessProductionSchedule

logger = logging.getLogger(__name__)

XML_MEDIA_TYPE = "application/xml"

app = FastAPI(
    title="B2MML Production Schedule API",
    version=__version__,
    description="Decode and normalise B2MML ProcessProductionSchedule messages",
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def time_requests(request: Request, call_next):
    """Add response timing headers."""
    start_time = time.time()
    response = await call_next(request)
    response_time = time.time() - start_time

    response.headers["X-Response-Time"] = f"{response_time:.3f}s"
    response.headers["X-API-Version"] = __version__
    return response


class HealthResponse(BaseModel):
    """Response model for the health endpoint."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Package version")
    release_id: str = Field(..., description="releaseID written to encoded messages")


@app.exception_handler(InvalidMessageError)
async def invalid_message_handler(request: Request, exc: InvalidMessageError):
    """Report unreadable messages as 422 with the failure reason."""
    logger.info("Rejected message on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid message", "detail": str(exc)},
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy", version=__version__, release_id=get_config().release_id
    )


def _decode(body: bytes) -> Dict[str, Any]:
    return ProcessProductionSchedule.from_xml_bytes(body).to_dict()


def _normalise(body: bytes) -> bytes:
    return ProcessProductionSchedule.from_xml_bytes(body).to_xml_bytes()


# Parsing and encoding are CPU bound and run in the worker threadpool.
@app.post("/schedules/decode")
async def decode_schedule(request: Request) -> Dict[str, Any]:
    """Decode the XML request body and return its JSON view."""
    body = await request.body()
    return await run_in_threadpool(_decode, body)


@app.post("/schedules/normalise")
async def normalise_schedule(request: Request) -> Response:
    """Decode the XML request body and encode it again."""
    body = await request.body()
    content = await run_in_threadpool(_normalise, body)
    return Response(content=content, media_type=XML_MEDIA_TYPE)


@app.get("/config/serialiser")
def serialiser_config() -> Dict[str, Any]:
    """Current serialiser configuration."""
    return get_config().to_dict()


@app.get("/metrics/cache")
def cache_metrics() -> Dict[str, int]:
    """Schema context cache statistics of the shared document bridge."""
    return get_document_bridge().cache.get_stats()
