"""Request models for every Taskwarrior tool.

Each tool owns one pydantic model describing its accepted arguments. The
models double as the JSON Schemas advertised to MCP clients.

Text fields come in three kinds:

* constrained text (project, tag, identifier, report and column names,
  dates) is checked against a pattern or a closed set and emitted as-is;
* ``FreeText`` (descriptions, annotations, append/prepend text) accepts
  anything and is always shell-quoted when a command is built;
* ``FilterText`` is raw Taskwarrior filter syntax. It is passed to the
  shell unescaped, so the caller is trusted to send a well-formed filter.

The kind is attached to the annotation so that command builders can check
it (see ``field_kind``) instead of relying on naming conventions.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, List, Mapping, Optional, Type, TypeVar, get_args

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
)

from taskwarrior_mcp.core.errors import FieldIssue, RequestValidationError

__all__ = [
    "FieldKind",
    "FreeText",
    "FilterText",
    "Identifier",
    "ProjectName",
    "TagName",
    "DateText",
    "Priority",
    "TaskStatus",
    "ClearableField",
    "ListReport",
    "BuiltinReport",
    "VisualizationReport",
    "TaskRequest",
    "GetNextTasksRequest",
    "ListTasksRequest",
    "ListTasksFilteredRequest",
    "CountTasksRequest",
    "TaskIdentifierRequest",
    "AddTaskRequest",
    "TaskModifications",
    "ModifyTaskRequest",
    "ModifyTasksBulkRequest",
    "AnnotateTaskRequest",
    "TaskTextRequest",
    "UndoLastRequest",
    "BuiltinReportRequest",
    "VisualizationReportRequest",
    "CustomReportRequest",
    "field_kind",
    "validate_request",
]

ModelT = TypeVar("ModelT", bound=BaseModel)


class FieldKind(str, Enum):
    """How a text field is treated when it reaches the shell."""

    FREE_TEXT = "free_text"
    FILTER = "filter"


PROJECT_PATTERN = r"^[A-Za-z0-9._-]+$"
TAG_PATTERN = r"^[@A-Za-z0-9_-]+$"
IDENTIFIER_PATTERN = r"^[A-Za-z0-9,-]+$"
NAME_PATTERN = r"^[A-Za-z0-9._-]+$"

FreeText = Annotated[str, StringConstraints(min_length=1), FieldKind.FREE_TEXT]
# An all-blank filter would widen a bulk modify to every task
FilterText = Annotated[str, StringConstraints(min_length=1, pattern=r"\S"), FieldKind.FILTER]

Identifier = Annotated[str, StringConstraints(min_length=1, pattern=IDENTIFIER_PATTERN)]
ProjectName = Annotated[str, StringConstraints(pattern=PROJECT_PATTERN)]
TagName = Annotated[str, StringConstraints(pattern=TAG_PATTERN)]
ReportName = Annotated[str, StringConstraints(pattern=NAME_PATTERN)]
ColumnName = Annotated[str, StringConstraints(pattern=NAME_PATTERN)]
# Grammar is checked by the command builder, see core.dates
DateText = Annotated[str, StringConstraints(min_length=1)]


class Priority(str, Enum):
    """Task priority levels."""

    HIGH = "H"
    MEDIUM = "M"
    LOW = "L"


class TaskStatus(str, Enum):
    """Task status filter options."""

    PENDING = "pending"
    COMPLETED = "completed"
    DELETED = "deleted"
    WAITING = "waiting"
    RECURRING = "recurring"


class ClearableField(str, Enum):
    """Attributes that ``clear_fields`` may reset to empty."""

    DUE = "due"
    START = "start"
    WAIT = "wait"
    UNTIL = "until"
    SCHEDULED = "scheduled"
    PRIORITY = "priority"
    PROJECT = "project"
    DEPENDS = "depends"


class BuiltinReport(str, Enum):
    LIST = "list"
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    OVERDUE = "overdue"
    READY = "ready"
    RECURRING = "recurring"


class ListReport(str, Enum):
    """Reports accepted by ``list_tasks_filtered``."""

    LIST = "list"
    NEXT = "next"
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    BLOCKING = "blocking"
    LONG = "long"
    LS = "ls"
    MINIMAL = "minimal"
    NEWEST = "newest"
    OLDEST = "oldest"
    OVERDUE = "overdue"
    READY = "ready"
    RECURRING = "recurring"
    UNBLOCKED = "unblocked"
    WAITING = "waiting"


class VisualizationReport(str, Enum):
    BURNDOWN = "burndown"
    CALENDAR = "calendar"
    HISTORY = "history"
    SUMMARY = "summary"
    TIMESHEET = "timesheet"


def _dedupe(values: Optional[List[Any]]) -> Optional[List[Any]]:
    # Tag sets: drop repeats, keep first-seen order
    if values is None:
        return None
    return list(dict.fromkeys(values))


class TaskRequest(BaseModel):
    """Base for all request models."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    @field_validator("tags", "tags_remove", "clear_fields", check_fields=False)
    @classmethod
    def _unique(cls, value: Optional[List[Any]]) -> Optional[List[Any]]:
        return _dedupe(value)


# ============================================================================
# Query requests
# ============================================================================


class GetNextTasksRequest(TaskRequest):
    """Arguments for ``get_next_tasks``."""

    tags: Optional[List[TagName]] = Field(default=None, description="Tags to filter by")
    project: Optional[ProjectName] = Field(default=None, description="Project to filter by")


class ListTasksRequest(TaskRequest):
    """Arguments for ``list_tasks``."""

    status: Optional[TaskStatus] = Field(default=None, description="Task status to filter by")
    project: Optional[ProjectName] = Field(default=None, description="Project to filter by")
    tags: Optional[List[TagName]] = Field(default=None, description="Tags to filter by")


class CountTasksRequest(TaskRequest):
    """Arguments for ``count_tasks``."""

    status: Optional[TaskStatus] = Field(default=None, description="Task status to filter by")
    project: Optional[ProjectName] = Field(default=None, description="Project to filter by")
    tags: Optional[List[TagName]] = Field(default=None, description="Tags to filter by")
    priority: Optional[Priority] = Field(default=None, description="Priority to filter by")


class ListTasksFilteredRequest(CountTasksRequest):
    """Arguments for ``list_tasks_filtered``."""

    report: Optional[ListReport] = Field(
        default=None, description="Report used to render the result (default: list)"
    )


class BuiltinReportRequest(TaskRequest):
    report: BuiltinReport = Field(..., description="Built-in report to run")
    project: Optional[ProjectName] = Field(default=None, description="Project to filter by")
    tags: Optional[List[TagName]] = Field(default=None, description="Tags to filter by")
    priority: Optional[Priority] = Field(default=None, description="Priority to filter by")


class VisualizationReportRequest(TaskRequest):
    report: VisualizationReport = Field(..., description="Visualization report to run")
    project: Optional[ProjectName] = Field(default=None, description="Project to filter by")
    tags: Optional[List[TagName]] = Field(default=None, description="Tags to filter by")


class CustomReportRequest(TaskRequest):
    """Arguments for ``custom_report``.

    ``columns`` overrides the report's columns for this one call only; the
    labels are derived from the column names.
    """

    report: ReportName = Field(..., description="Name of a report defined in taskrc")
    columns: Optional[List[ColumnName]] = Field(
        default=None, description="Columns to show, e.g. ['id', 'project', 'description']"
    )
    filter: Optional[FilterText] = Field(
        default=None,
        description="Raw Taskwarrior filter placed before the report name, e.g. 'project:work +next'",
    )


# ============================================================================
# Single-task requests
# ============================================================================


class TaskIdentifierRequest(TaskRequest):
    """Arguments for tools that only need a task ID or UUID."""

    identifier: Identifier = Field(..., description="Task ID or UUID")


class AnnotateTaskRequest(TaskIdentifierRequest):
    annotation: FreeText = Field(..., description="Annotation text to add")


class TaskTextRequest(TaskIdentifierRequest):
    """Arguments for ``append_task`` and ``prepend_task``."""

    text: FreeText = Field(..., description="Text to add to the description")


class UndoLastRequest(TaskRequest):
    """``undo_last`` takes no arguments."""


class AddTaskRequest(TaskRequest):
    """Arguments for ``add_task``."""

    description: FreeText = Field(..., description="Task description")
    due: Optional[DateText] = Field(default=None, description="Due date (e.g. 2024-12-31, +3d, friday, eom)")
    wait: Optional[DateText] = Field(default=None, description="Hide the task until this date")
    until: Optional[DateText] = Field(default=None, description="Expire the task after this date")
    scheduled: Optional[DateText] = Field(default=None, description="Date work is scheduled to begin")
    priority: Optional[Priority] = Field(default=None, description="Task priority: H, M or L")
    project: Optional[ProjectName] = Field(default=None, description="Project to assign")
    depends: Optional[List[Identifier]] = Field(default=None, description="IDs or UUIDs this task depends on")
    tags: Optional[List[TagName]] = Field(default=None, description="Tags to apply (without '+')")


class TaskModifications(TaskRequest):
    """Modification fields shared by ``modify_task`` and ``modify_tasks_bulk``."""

    description: Optional[FreeText] = Field(default=None, description="New task description")
    due: Optional[DateText] = Field(default=None, description="New due date")
    start: Optional[DateText] = Field(default=None, description="Start date (marks the task active)")
    stop_task: Optional[bool] = Field(default=None, description="Stop an active task (clears start)")
    wait: Optional[DateText] = Field(default=None, description="New wait date")
    until: Optional[DateText] = Field(default=None, description="New until date")
    scheduled: Optional[DateText] = Field(default=None, description="New scheduled date")
    priority: Optional[Priority] = Field(default=None, description="New priority: H, M or L")
    project: Optional[ProjectName] = Field(default=None, description="New project")
    depends: Optional[List[Identifier]] = Field(default=None, description="IDs or UUIDs this task depends on")
    tags: Optional[List[TagName]] = Field(default=None, description="Tags to add (without '+')")
    tags_remove: Optional[List[TagName]] = Field(default=None, description="Tags to remove (without '-')")
    clear_fields: Optional[List[ClearableField]] = Field(
        default=None, description="Attributes to reset to empty"
    )


class ModifyTaskRequest(TaskModifications):
    identifier: Identifier = Field(..., description="Task ID or UUID to modify")


class ModifyTasksBulkRequest(TaskModifications):
    filter: FilterText = Field(
        ...,
        description="Raw Taskwarrior filter selecting the tasks, e.g. 'project:work +urgent'",
    )


# ============================================================================
# Helpers
# ============================================================================


def _annotation_kinds(annotation: Any) -> List[FieldKind]:
    kinds = []
    for arg in get_args(annotation):
        if isinstance(arg, FieldKind):
            kinds.append(arg)
        else:
            kinds.extend(_annotation_kinds(arg))
    return kinds


def field_kind(model: Type[BaseModel], name: str) -> Optional[FieldKind]:
    """Return the FieldKind declared for ``name`` on ``model``, if any."""
    info = model.model_fields[name]
    for item in info.metadata:
        if isinstance(item, FieldKind):
            return item
    kinds = _annotation_kinds(info.annotation)
    return kinds[0] if kinds else None


def _format_loc(loc: Any) -> str:
    return ".".join(str(part) for part in loc) or "arguments"


def validate_request(
    model: Type[ModelT],
    raw: Optional[Mapping[str, Any]],
    *,
    operation: str,
) -> ModelT:
    """Validate raw tool arguments against ``model``.

    Args:
        model: Request model of the operation
        raw: Arguments as received from the transport (None means no arguments)
        operation: Tool name, used in the error message

    Returns:
        The validated request

    Raises:
        RequestValidationError: listing every offending field
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise RequestValidationError(
            operation, [FieldIssue("arguments", "Input should be an object")]
        )

    try:
        return model.model_validate(dict(raw))
    except ValidationError as exc:
        issues = [
            FieldIssue(_format_loc(err["loc"]), err["msg"]) for err in exc.errors()
        ]
        raise RequestValidationError(operation, issues) from exc
