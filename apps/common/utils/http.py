from __future__ import annotations

import json
from typing import Any

from django.http import HttpRequest, HttpResponse


def is_htmx_request(request: HttpRequest) -> bool:
    """Detect HTMX (or django-htmx) requests in a resilient way."""
    header_value: Any = request.headers.get("HX-Request")
    if isinstance(header_value, str) and header_value.lower() == "true":
        return True

    htmx_attr = getattr(request, "htmx", None)
    return bool(htmx_attr)


def htmx_trigger(
    triggers: dict[str, Any],
    *,
    status: int = 200,
    content: str = "",
    response: HttpResponse | None = None,
) -> HttpResponse:
    """Attach an HX-Trigger payload to a (new or given) response."""
    resp = response if response is not None else HttpResponse(content, status=status)
    resp["HX-Trigger"] = json.dumps(triggers)
    return resp


def sweet_alert(icon: str, title: str, text: str = "", **extra: Any) -> dict[str, Any]:
    alert: dict[str, Any] = {"icon": icon, "title": title}
    if text:
        alert["text"] = text
    alert.update(extra)
    return {"show-sweet-alert": alert}
