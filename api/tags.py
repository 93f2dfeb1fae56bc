"""Tag listing endpoint."""

from http.server import BaseHTTPRequestHandler

from api._common import failure, request_id_header, run, send_json, success
from clawban.services.task_service import TaskService
from clawban.utils.errors import StorageError
from clawban.utils.logging import correlation_context, get_structured_logger, log_timing
from clawban.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)


class handler(BaseHTTPRequestHandler):
    """GET /api/tags - every known tag, ordered by name."""

    def do_GET(self):
        with correlation_context(request_id_header(self)) as correlation_id:
            try:
                with log_timing("GET /api/tags", logger=logger):
                    tags = run(TaskService().list_tags())
            except StorageError as e:
                logger.error("Error listing tags", error=str(e))
                send_json(self, 500, failure("Failed to list tags"), correlation_id)
                return
            except Exception as e:
                logger.error("Unhandled error", exc_info=True, error=str(e))
                send_json(self, 500, failure("Internal server error"), correlation_id)
                return
            data = [tag.model_dump(include={"name", "color"}) for tag in tags]
            send_json(self, 200, success(data), correlation_id)
