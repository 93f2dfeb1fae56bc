"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Dict, Optional, Tuple
from unittest.mock import Mock

from tests.utils.assertions import parse_body


def make_handler(handler_cls, method: str, path: str, body: Any = None,
                 headers: Optional[Dict[str, str]] = None):
    """Build a request handler instance without a socket.

    ``body`` may be a dict (sent as JSON), raw str/bytes, or None.
    """
    if body is None:
        raw = b""
    elif isinstance(body, bytes):
        raw = body
    elif isinstance(body, str):
        raw = body.encode("utf-8")
    else:
        raw = json.dumps(body).encode("utf-8")

    h = handler_cls.__new__(handler_cls)
    h.command = method
    h.path = path
    h.request_version = "HTTP/1.1"
    h.headers = {"Content-Type": "application/json", "Content-Length": str(len(raw))}
    h.headers.update(headers or {})
    h.rfile = BytesIO(raw)
    h.wfile = BytesIO()
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()
    return h


def call_handler(handler_cls, method: str, path: str, body: Any = None,
                 headers: Optional[Dict[str, str]] = None) -> Tuple[int, Dict[str, Any], Any]:
    """Invoke ``do_<METHOD>`` and return (status, parsed body, handler)."""
    h = make_handler(handler_cls, method, path, body, headers)
    getattr(h, f"do_{method}")()
    status = h.send_response.call_args[0][0]
    return status, parse_body(h.wfile.getvalue()), h


def sent_headers(h) -> Dict[str, str]:
    return {call.args[0]: call.args[1] for call in h.send_header.call_args_list}
