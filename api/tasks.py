"""Task endpoints for the board.

Routes (``/api`` prefix optional):
    GET    /tasks?assignee=&tag=&board=
    POST   /tasks
    GET    /tasks/{id}
    PATCH  /tasks/{id}
    DELETE /tasks/{id}
    POST   /tasks/{id}/move
    POST   /tasks/{id}/usage
"""

import re
from http.server import BaseHTTPRequestHandler
from typing import Optional
from urllib.parse import parse_qs, urlparse

from api._common import BadRequest, failure, read_json_body, request_id_header, run, send_json, success
from clawban.services.task_service import TaskService
from clawban.utils.errors import InvalidArgumentError, StorageError
from clawban.utils.logging import correlation_context, get_structured_logger, log_timing
from clawban.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)

ROUTE_RE = re.compile(r"^(?:/api)?/tasks(?:/(?P<task_id>[^/]+))?(?:/(?P<action>move|usage))?/?$")
FILTER_PARAMS = ("assignee", "tag", "board")
TASK_NOT_FOUND = "Task not found"


def parse_list_query(query: str) -> dict:
    """Build a list filter from a query string. ``assignee=null`` means unassigned."""
    params = parse_qs(query, keep_blank_values=True)
    filters = {}
    for name in FILTER_PARAMS:
        if name in params:
            value = params[name][0]
            filters[name] = None if name == "assignee" and value == "null" else value
    return filters


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for task CRUD."""

    def do_GET(self):
        self._dispatch("GET")

    def do_POST(self):
        self._dispatch("POST")

    def do_PATCH(self):
        self._dispatch("PATCH")

    def do_DELETE(self):
        self._dispatch("DELETE")

    def _dispatch(self, method: str) -> None:
        url = urlparse(self.path)
        with correlation_context(request_id_header(self)) as correlation_id:
            operation = f"{method} {url.path}"
            try:
                with log_timing(operation, logger=logger, method=method):
                    status, payload = self._route(method, url.path, url.query)
            except (BadRequest, InvalidArgumentError) as e:
                logger.warning("Rejected request", operation=operation, error=str(e))
                status, payload = 400, failure(str(e))
            except StorageError as e:
                logger.error("Storage error", operation=operation, error=str(e))
                status, payload = 500, failure("Failed to process task request")
            except Exception as e:
                logger.error("Unhandled error", exc_info=True, operation=operation, error=str(e))
                status, payload = 500, failure("Internal server error")
            send_json(self, status, payload, correlation_id)

    def _route(self, method: str, path: str, query: str) -> tuple[int, dict]:
        match = ROUTE_RE.match(path)
        if not match:
            return 404, failure("Not found")
        task_id: Optional[str] = match.group("task_id")
        action: Optional[str] = match.group("action")
        service = TaskService()

        if task_id is None:
            if method == "GET":
                tasks = run(service.list_tasks(parse_list_query(query)))
                return 200, success({
                    "tasks": [task.to_row() for task in tasks],
                    "total": len(tasks),
                })
            if method == "POST":
                task = run(service.create_task(self._body()))
                return 201, success(task.to_row())
            return 405, failure("Method not allowed")

        if action == "move" and method == "POST":
            body = self._body()
            task = run(service.move_task(task_id, body.get("status")))
            return self._task_or_404(task)
        if action == "usage" and method == "POST":
            task = run(service.record_usage(task_id, self._body()))
            return self._task_or_404(task)
        if action is not None:
            return 405, failure("Method not allowed")

        if method == "GET":
            return self._task_or_404(run(service.get_task(task_id)))
        if method == "PATCH":
            return self._task_or_404(run(service.update_task(task_id, self._body())))
        if method == "DELETE":
            if not run(service.delete_task(task_id)):
                return 404, failure(TASK_NOT_FOUND)
            return 200, success({"id": task_id})
        return 405, failure("Method not allowed")

    def _body(self) -> dict:
        body = read_json_body(self)
        if body is None:
            return {}
        if not isinstance(body, dict):
            raise BadRequest("Request body must be a JSON object")
        return body

    @staticmethod
    def _task_or_404(task) -> tuple[int, dict]:
        if task is None:
            return 404, failure(TASK_NOT_FOUND)
        return 200, success(task.to_row())
