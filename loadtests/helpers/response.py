"""Response error extraction for load test observability.

Turns PrintStream API error bodies into one-line messages. Two shapes
come back from the API:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "..."}]}
- Domain errors (400/403/404/409/502): {"error": {"field": ["msg"]}},
  with "current_status" added on conflicts
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def _join(messages) -> str:
    return "; ".join(map(str, messages)) if isinstance(messages, list) else str(messages)


def extract_error_detail(response: Response) -> str:
    """Return a compact error string for Locust failure messages."""
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if "detail" in body and isinstance(body["detail"], list):
        parts = []
        for err in body["detail"]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            message = " | ".join(f"{field}: {_join(msgs)}" for field, msgs in error.items())
        else:
            message = str(error)
        if body.get("current_status"):
            message = f"{message} (status: {body['current_status']})"
        return message

    return str(body)[:300]
