"""Task service - validates caller input and sequences tag resolution and task writes."""

import re
from typing import Any, Mapping, Optional, Union
from pydantic import BaseModel, ValidationError

from clawban.models.tag import Tag
from clawban.models.task import (
    LLMUsage,
    Task,
    TaskCreate,
    TaskFilter,
    TaskMove,
    TaskStatus,
    TaskUpdate,
)
from clawban.services.store import DurableStore, get_store
from clawban.services.tag_registry import TagRegistry
from clawban.services.task_repository import TaskRepository
from clawban.utils.errors import InvalidArgumentError


TASK_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,30}$")


def validation_message(error: ValidationError) -> str:
    """Human-readable message for the first validation failure."""
    first = error.errors()[0]
    message = first.get("msg", "Invalid request")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {message}" if location else message


def parse_request(model: type[BaseModel], payload: Union[BaseModel, Mapping[str, Any], None]):
    """Validate ``payload`` into ``model``; failures become InvalidArgumentError."""
    if isinstance(payload, model):
        return payload
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise InvalidArgumentError("Request body must be a JSON object")
    try:
        return model.model_validate(dict(payload))
    except ValidationError as e:
        raise InvalidArgumentError(validation_message(e)) from e


def check_task_id(task_id: str) -> str:
    if not isinstance(task_id, str) or not TASK_ID_RE.match(task_id):
        raise InvalidArgumentError("Invalid task ID format")
    return task_id


class TaskService:
    """Entry point for task operations.

    Input is validated before any store call. Tags are resolved before the
    task row is written; if the task write then fails, the new tags remain
    as unused registry entries.
    """

    def __init__(
        self,
        store: Optional[DurableStore] = None,
        repository: Optional[TaskRepository] = None,
        tags: Optional[TagRegistry] = None,
    ):
        store = store or get_store()
        self.tags = tags or TagRegistry(store)
        self.repository = repository or TaskRepository(store, self.tags)

    async def create_task(self, payload: Union[TaskCreate, Mapping[str, Any]]) -> Task:
        request = parse_request(TaskCreate, payload)
        return await self.repository.create(request)

    async def get_task(self, task_id: str) -> Optional[Task]:
        return await self.repository.get_by_id(check_task_id(task_id))

    async def list_tasks(self, filters: Union[TaskFilter, Mapping[str, Any], None] = None) -> list[Task]:
        return await self.repository.list(parse_request(TaskFilter, filters))

    async def update_task(self, task_id: str, payload: Union[TaskUpdate, Mapping[str, Any]]) -> Optional[Task]:
        check_task_id(task_id)
        patch = parse_request(TaskUpdate, payload)
        return await self.repository.update(task_id, patch)

    async def move_task(self, task_id: str, status: Union[TaskStatus, str]) -> Optional[Task]:
        check_task_id(task_id)
        move = parse_request(TaskMove, {"status": status})
        return await self.repository.move(task_id, move.status)

    async def delete_task(self, task_id: str) -> bool:
        return await self.repository.delete(check_task_id(task_id))

    async def record_usage(self, task_id: str, payload: Union[LLMUsage, Mapping[str, Any]]) -> Optional[Task]:
        check_task_id(task_id)
        entry = parse_request(LLMUsage, payload)
        return await self.repository.append_usage(task_id, entry)

    async def list_tags(self) -> list[Tag]:
        return await self.tags.list_all()
