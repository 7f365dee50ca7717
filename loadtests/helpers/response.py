"""Turn Reviews API error bodies into one-line failure messages for Locust.

Domain errors come back as {"error": {field: [messages]}}, with
`review_id` on a duplicate submission and `current_status` on an invalid
transition. Malformed request bodies are rejected by FastAPI with its
usual {"detail": [...]} list.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def _messages(error) -> str:
    if not isinstance(error, dict):
        return str(error)
    parts = []
    for field, messages in error.items():
        if isinstance(messages, list):
            messages = "; ".join(str(m) for m in messages)
        parts.append(f"{field}: {messages}")
    return " | ".join(parts)


def extract_error_detail(response: Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return (response.text or "")[:300] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:300]

    if "error" in body:
        detail = _messages(body["error"])
        if body.get("review_id"):
            detail += f" (review {body['review_id']})"
        if body.get("current_status"):
            detail += f" (status {body['current_status']})"
        return detail

    if isinstance(body.get("detail"), list):
        return " | ".join(f"{'.'.join(str(p) for p in err.get('loc', []))}: {err.get('msg')}" for err in body["detail"])

    return str(body)[:300]
