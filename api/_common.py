"""Shared helpers for the serverless handlers."""

import asyncio
import json
from typing import Any, Optional

from src.services.listings_engine import ListingsEngine, build_engine
from src.utils.logging import correlation_context, get_structured_logger, setup_logging

setup_logging()
logger = get_structured_logger(__name__)

_engine: Optional[ListingsEngine] = None


def get_engine() -> ListingsEngine:
    """Process-wide engine, built on first use so caches survive warm invocations."""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


def run(coro):
    """Run a coroutine to completion from a synchronous handler, under a fresh correlation ID."""
    with correlation_context():
        return asyncio.run(coro)


def json_response(status_code: int, body: Any) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def error_response(status_code: int, message: str) -> dict:
    return json_response(status_code, {"error": message})


def query_params(request: dict) -> dict:
    return request.get("query", {}) or {}


def get_param(params: dict, key: str) -> Optional[str]:
    """Single string value of a query parameter, None when blank."""
    value = params.get(key)
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def get_list_param(params: dict, key: str) -> Optional[list[str]]:
    """Repeated or comma-separated parameter values."""
    value = params.get(key)
    if value is None:
        return None
    raw = value if isinstance(value, list) else [value]
    values = [part.strip() for item in raw for part in str(item).split(",") if part.strip()]
    return values or None


def get_number_param(params: dict, key: str, cast=float):
    value = get_param(params, key)
    if value is None:
        return None
    try:
        return cast(value)
    except ValueError:
        return None
