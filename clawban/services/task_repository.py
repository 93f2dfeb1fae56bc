"""Task repository - persistence for board tasks over the durable store."""

from typing import Optional
from ulid import ULID

from clawban.models.task import LLMUsage, Task, TaskCreate, TaskFilter, TaskStatus, TaskUpdate
from clawban.services.store import TASKS_TABLE, DurableStore, get_store
from clawban.services.tag_registry import TagRegistry, normalize_tag_name
from clawban.utils.timestamps import utc_now_iso


def generate_task_id() -> str:
    """Generate a text-based task ID (ULID format)."""
    return str(ULID())


def completion_changes(previous: TaskStatus, requested: TaskStatus,
                       completed_at: Optional[str], now: str) -> dict:
    """Status and ``completed_at`` to write together for a status change.

    ``completed_at`` is set iff the task is complete: entering ``complete``
    stamps ``now``, staying keeps the old stamp, leaving clears it.
    """
    if requested != TaskStatus.COMPLETE:
        stamp = None
    elif previous == TaskStatus.COMPLETE and completed_at:
        stamp = completed_at
    else:
        stamp = now
    return {"status": requested.value, "completed_at": stamp}


class TaskRepository:
    """CRUD and filtered listing over the ``tasks`` table.

    Missing rows are reported as ``None``/``False``; a task disappearing
    under a concurrent delete is an expected outcome, not an error.
    Writes to the same id are last-writer-wins.
    """

    def __init__(self, store: Optional[DurableStore] = None, tags: Optional[TagRegistry] = None):
        self.store = store or get_store()
        self.tags = tags or TagRegistry(self.store)

    async def create(self, request: TaskCreate) -> Task:
        """Persist a new task. Tags are resolved before the row is written."""
        tag_names = await self.tags.resolve(request.tags)
        now = utc_now_iso()
        task = Task(
            id=generate_task_id(),
            title=request.title,
            description=request.description,
            model_strategy=request.model_strategy,
            estimated_token_cost=request.estimated_token_cost or 0,
            estimated_dollar_cost=request.estimated_dollar_cost or 0,
            status=TaskStatus.NEW,
            assignee=request.assignee,
            board=request.board,
            tags=tag_names,
            created_at=now,
            updated_at=now,
            completed_at=None,
            llm_usage=[],
        )
        row = await self.store.insert(TASKS_TABLE, task.to_row())
        return Task(**row)

    async def get_by_id(self, task_id: str) -> Optional[Task]:
        rows = await self.store.select(TASKS_TABLE, eq={"id": task_id})
        return Task(**rows[0]) if rows else None

    async def list(self, task_filter: Optional[TaskFilter] = None) -> list[Task]:
        """Tasks matching every provided filter field, newest first."""
        provided = (task_filter or TaskFilter()).provided()
        eq = {}
        contains = {}
        if "assignee" in provided:
            eq["assignee"] = provided["assignee"]
        if "board" in provided:
            eq["board"] = provided["board"]
        if "tag" in provided:
            contains["tags"] = [normalize_tag_name(provided["tag"])]

        rows = await self.store.select(
            TASKS_TABLE,
            eq=eq,
            contains=contains,
            order_by="created_at",
            descending=True,
        )
        return [Task(**row) for row in rows]

    async def update(self, task_id: str, patch: TaskUpdate) -> Optional[Task]:
        """Apply only the fields present in ``patch``.

        A status change reads the stored row first so ``completed_at`` can be
        computed from the real previous status and written in the same row
        update as ``status``.
        """
        changes = patch.changes()
        now = utc_now_iso()

        if "status" in changes:
            current = await self.get_by_id(task_id)
            if current is None:
                return None
            changes.update(completion_changes(
                current.status, TaskStatus(changes["status"]), current.completed_at, now
            ))

        if "tags" in changes:
            changes["tags"] = await self.tags.resolve(changes["tags"])

        changes["updated_at"] = now
        row = await self.store.update(TASKS_TABLE, task_id, changes)
        return Task(**row) if row else None

    async def move(self, task_id: str, status: TaskStatus) -> Optional[Task]:
        """Move a task to another column (the board's drag-and-drop write)."""
        return await self.update(task_id, TaskUpdate(status=status))

    async def delete(self, task_id: str) -> bool:
        return await self.store.delete(TASKS_TABLE, task_id)

    async def append_usage(self, task_id: str, entry: LLMUsage) -> Optional[Task]:
        """Append one entry to a task's usage log."""
        current = await self.get_by_id(task_id)
        if current is None:
            return None
        if not entry.timestamp:
            entry = entry.model_copy(update={"timestamp": utc_now_iso()})
        usage = [item.model_dump(mode="json") for item in current.llm_usage]
        usage.append(entry.model_dump(mode="json"))
        row = await self.store.update(
            TASKS_TABLE, task_id, {"llm_usage": usage, "updated_at": utc_now_iso()}
        )
        return Task(**row) if row else None
