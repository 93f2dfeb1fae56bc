"""Shared helpers for the serverless HTTP handlers."""

import asyncio
import json
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional

from clawban.utils.logging_config import LoggingConfig


class BadRequest(Exception):
    """Malformed HTTP request (body is not a JSON object, bad path)."""
    pass


def run(coro):
    """Run a coroutine to completion from a synchronous handler."""
    return asyncio.run(coro)


def read_json_body(request: BaseHTTPRequestHandler) -> Optional[Any]:
    """Parse the request body as JSON; an empty body reads as None."""
    try:
        content_length = int(request.headers.get('Content-Length', 0) or 0)
        raw_body = request.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""
    except (ValueError, UnicodeDecodeError) as e:
        raise BadRequest("Invalid JSON body") from e
    if not raw_body:
        return None
    try:
        return json.loads(raw_body)
    except json.JSONDecodeError as e:
        raise BadRequest("Invalid JSON body") from e


def request_id_header(request: BaseHTTPRequestHandler) -> Optional[str]:
    return request.headers.get(LoggingConfig.LOG_REQUEST_ID_HEADER) or request.headers.get(
        LoggingConfig.LOG_REQUEST_ID_HEADER.lower()
    )


def send_json(request: BaseHTTPRequestHandler, status: int, payload: dict,
              correlation_id: Optional[str] = None) -> None:
    request.send_response(status)
    request.send_header('Content-Type', 'application/json')
    if correlation_id:
        request.send_header(LoggingConfig.LOG_REQUEST_ID_HEADER, correlation_id)
    request.end_headers()
    request.wfile.write(json.dumps(payload).encode('utf-8'))


def success(data: Any) -> dict:
    return {"success": True, "data": data}


def failure(error: str) -> dict:
    return {"success": False, "error": error}
