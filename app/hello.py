"""Hello endpoints — smoke tests for a deployed Gatekeeper.

  GET /hello    — current server time
  GET /greeting — "Hello <name>", echoing the query parameters back
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Request

from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["hello"])

# Same layout as a US-locale date/time string: "10/19/2026, 5:45:03 PM"
_TIME_FORMAT = "%m/%d/%Y, %I:%M:%S %p"


def format_time(moment: datetime) -> str:
    return moment.strftime(_TIME_FORMAT)


@router.get("/hello")
async def hello() -> dict[str, Any]:
    now = datetime.now().astimezone()
    logger.info("Hello called", time=now.isoformat())
    return {
        "timeInMilliseconds": int(now.timestamp() * 1000),
        "timeInString": format_time(now),
    }


def build_greeting(name: Optional[str], default_name: str) -> str:
    return f"Hello {name or default_name}"


@router.get("/greeting")
async def greeting(request: Request) -> dict[str, Any]:
    """Greet ``?name=`` (or the configured default name when absent or empty)."""
    params = dict(request.query_params)
    default_name = request.app.state.config.greeting_name
    return {
        "payload": build_greeting(params.get("name"), default_name),
        "params": params,
    }
