"""
Prometheus metrics endpoint.

Example:
    GET /metrics

    Response:
        # HELP charity_shift_signups_total Shift signup attempts by outcome
        # TYPE charity_shift_signups_total counter
        charity_shift_signups_total{outcome="success",shift_type="flexible"} 12.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Expose every registered counter and histogram in the Prometheus text format.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
