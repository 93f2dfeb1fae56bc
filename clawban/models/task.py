"""Task models - board tasks plus the create/update/filter request shapes."""

from enum import Enum
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from clawban.utils.settings import Settings


TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 10_000
TAG_NAME_MAX_LENGTH = 40


class TaskStatus(str, Enum):
    """Kanban columns."""
    NEW = "new"
    APPROVED = "approved"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"


class ModelStrategy(str, Enum):
    """Which model mix is expected to work the task."""
    OPUS_PLANNING = "opus-planning"
    OPUS_CODING = "opus-coding"
    SONNET_CODING = "sonnet-coding"
    MIXED = "mixed"


Assignee = Optional[Literal["rufus", "james"]]
Board = Literal["work", "personal"]


class LLMUsage(BaseModel):
    """One entry of a task's LLM usage log."""
    model: str = Field(..., min_length=1, description="Model identifier")
    tokens_in: int = Field(default=0, ge=0)
    tokens_out: int = Field(default=0, ge=0)
    cost: float = Field(default=0, ge=0, allow_inf_nan=False, description="Dollar cost")
    timestamp: Optional[str] = Field(None, description="When the usage happened (ISO-8601)")


class Task(BaseModel):
    """Task model - one card on the board."""
    id: str = Field(..., description="Task ID (ULID text)")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Task description")
    model_strategy: Optional[ModelStrategy] = Field(None, description="Model strategy")
    estimated_token_cost: int = Field(default=0, ge=0)
    estimated_dollar_cost: float = Field(default=0, ge=0, allow_inf_nan=False)
    status: TaskStatus = Field(default=TaskStatus.NEW, description="Board column")
    assignee: Assignee = Field(None, description="rufus, james or null (unassigned)")
    board: Board = Field(default="work")
    tags: list[str] = Field(default_factory=list, description="Normalized tag names")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    completed_at: Optional[str] = None
    llm_usage: list[LLMUsage] = Field(default_factory=list)

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, value):
        return "" if value is None else value

    @field_validator("tags", "llm_usage", mode="before")
    @classmethod
    def _null_list(cls, value):
        return [] if value is None else value

    def to_row(self) -> dict:
        """Serialize to the persisted row layout."""
        return self.model_dump(mode="json")


def _clean_tag_names(names: Optional[list[str]]) -> Optional[list[str]]:
    if names is None:
        return None
    cleaned = []
    for name in names:
        stripped = name.strip()
        if not stripped or len(stripped) > TAG_NAME_MAX_LENGTH:
            raise ValueError(f"Tag names must be between 1 and {TAG_NAME_MAX_LENGTH} characters")
        cleaned.append(stripped)
    return cleaned


class TaskCreate(BaseModel):
    """Body of a create request."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LENGTH, validate_default=True)
    model_strategy: ModelStrategy
    estimated_token_cost: int = Field(default=0, ge=0)
    estimated_dollar_cost: float = Field(default=0, ge=0, allow_inf_nan=False)
    assignee: Assignee = None
    board: Board = "work"
    tags: list[str] = Field(default_factory=list)

    @field_validator("description")
    @classmethod
    def _description_required(cls, value: str) -> str:
        if Settings.TASK_REQUIRE_DESCRIPTION and not value:
            raise ValueError(
                f"Description must be between 1 and {DESCRIPTION_MAX_LENGTH:,} characters"
            )
        return value

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: list[str]) -> list[str]:
        return _clean_tag_names(value)


class TaskUpdate(BaseModel):
    """Partial update. Only fields the caller actually sent are applied."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    model_strategy: Optional[ModelStrategy] = None
    estimated_token_cost: Optional[int] = Field(None, ge=0)
    estimated_dollar_cost: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    status: Optional[TaskStatus] = None
    assignee: Assignee = None
    board: Optional[Board] = None
    tags: Optional[list[str]] = None

    @field_validator("title", "model_strategy", "estimated_token_cost",
                     "estimated_dollar_cost", "status", "board", "tags")
    @classmethod
    def _not_null(cls, value, info):
        # assignee is the only field where an explicit null means something
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @field_validator("description")
    @classmethod
    def _description(cls, value: Optional[str]) -> str:
        if value is None:
            value = ""
        if Settings.TASK_REQUIRE_DESCRIPTION and not value:
            raise ValueError(
                f"Description must be between 1 and {DESCRIPTION_MAX_LENGTH:,} characters"
            )
        return value

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return _clean_tag_names(value)

    def changes(self) -> dict:
        """Fields present in the request, in JSON form."""
        return self.model_dump(mode="json", exclude_unset=True)


class TaskFilter(BaseModel):
    """List filter. An explicit ``assignee=None`` selects unassigned tasks;
    leaving the field unset applies no assignee filter."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    assignee: Assignee = None
    tag: Optional[str] = Field(None, min_length=1, max_length=TAG_NAME_MAX_LENGTH)
    board: Optional[Board] = None

    def provided(self) -> dict:
        """Filter fields the caller set. ``tag``/``board`` set to None are ignored."""
        fields = self.model_dump(exclude_unset=True)
        return {
            key: value for key, value in fields.items()
            if value is not None or key == "assignee"
        }


class TaskMove(BaseModel):
    """Body of a move request."""
    model_config = ConfigDict(extra="forbid")

    status: TaskStatus
