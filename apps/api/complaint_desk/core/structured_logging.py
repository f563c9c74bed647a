"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    user_id: object | None = None,
    complaint_id: object | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """
    Return a PII-safe log context dict.

    Only identifiers and enum-like values belong here, never names, emails
    or message bodies. Empty values are dropped and ids are stringified.
    """
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if complaint_id:
        context["complaint_id"] = str(complaint_id)
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    for key, value in extra.items():
        if value is None or value == "":
            continue
        context[key] = value if isinstance(value, (str, int, float, bool)) else str(value)
    return context
