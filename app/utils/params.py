"""Request parameter helpers shared by the handlers.

Handlers take their inputs as a flat ``params`` mapping: query string values
overlaid with the fields of a JSON object body (body wins on conflicts).
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from starlette.requests import Request

from app.constants import MSG_MISSING_PARAMS


async def read_params(request: Request) -> Optional[dict[str, Any]]:
    """Merge query parameters and the JSON body of ``request``.

    Returns None when a body is present but is not a JSON object (malformed
    JSON, an array, a scalar…). An empty body contributes nothing.
    """
    params: dict[str, Any] = dict(request.query_params)

    body = await request.body()
    if not body.strip():
        return params

    try:
        payload = json.loads(body)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None

    params.update(payload)
    return params


def missing_params_message(
    params: Optional[dict[str, Any]],
    required: Iterable[str] = (),
) -> Optional[str]:
    """Return an error message naming the missing required params, or None.

    A param counts as missing when it is absent or falsy (None, "", 0…).
    """
    if params is None:
        return MSG_MISSING_PARAMS

    missing = [name for name in required if not params.get(name)]
    if missing:
        return f"Missing required parameters: {', '.join(missing)}"
    return None
