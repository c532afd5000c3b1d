"""Translate validated requests into Taskwarrior command lines.

Each builder takes the request model of one operation and returns a
``CommandInvocation``: the ordered tokens that follow the ``task`` binary,
plus how the line must be run. Builders never touch the process; they only
decide what the line looks like.

Token rules:

* free text (``FreeText`` fields) is always wrapped with ``shell_quote``;
* raw filters (``FilterText`` fields) are emitted verbatim;
* constrained values (ids, projects, tags, enums) are emitted as-is, their
  character sets having been checked by the request models;
* date values are checked against ``core.dates`` before anything is emitted.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from taskwarrior_mcp.core.dates import validate_date
from taskwarrior_mcp.core.schemas import (
    AddTaskRequest,
    AnnotateTaskRequest,
    BuiltinReportRequest,
    CountTasksRequest,
    CustomReportRequest,
    FieldKind,
    GetNextTasksRequest,
    ListTasksFilteredRequest,
    ListTasksRequest,
    ModifyTaskRequest,
    ModifyTasksBulkRequest,
    TaskIdentifierRequest,
    TaskTextRequest,
    UndoLastRequest,
    VisualizationReportRequest,
    field_kind,
)

if TYPE_CHECKING:
    from taskwarrior_mcp.config import TaskwarriorSettings

__all__ = [
    "DEFAULT_BULK_SHELL",
    "CommandInvocation",
    "shell_quote",
    "build_get_next_tasks",
    "build_list_tasks",
    "build_list_tasks_filtered",
    "build_count_tasks",
    "build_get_task_info",
    "build_mark_task_done",
    "build_add_task",
    "build_modify_task",
    "build_modify_tasks_bulk",
    "build_delete_task",
    "build_annotate_task",
    "build_append_task",
    "build_prepend_task",
    "build_duplicate_task",
    "build_undo_last",
    "build_builtin_report",
    "build_visualization_report",
    "build_custom_report",
]

DEFAULT_BULK_SHELL = "/bin/bash"
NO_CONFIRMATION = "rc.confirmation=no"


def shell_quote(text: str) -> str:
    """Wrap ``text`` in single quotes so a POSIX shell reads it back literally.

    Embedded single quotes close the quoted run, emit an escaped quote and
    reopen it: ``It's`` becomes ``'It'\\''s'``.
    """
    return "'" + text.replace("'", "'\\''") + "'"


@dataclass(frozen=True)
class CommandInvocation:
    """A ready-to-run Taskwarrior command line.

    Attributes:
        args: Tokens following the binary, in emission order
        binary: Executable placed first on the line
        auto_confirm: Pipe ``confirm_command`` into the process to answer prompts
        shell: Shell executable to run the line with (None: the default shell)
        confirm_command: Command whose output answers confirmation prompts
    """

    args: Tuple[str, ...]
    binary: str = "task"
    auto_confirm: bool = False
    shell: Optional[str] = None
    confirm_command: str = "yes"

    @property
    def tokens(self) -> Tuple[str, ...]:
        return (self.binary,) + self.args

    @property
    def command_line(self) -> str:
        line = " ".join(self.tokens)
        if self.auto_confirm:
            return f"{self.confirm_command} | {line}"
        return line

    def with_settings(self, settings: "TaskwarriorSettings") -> "CommandInvocation":
        """Return a copy bound to the configured binary and shells."""
        return replace(
            self,
            binary=settings.binary,
            confirm_command=settings.confirm_command,
            shell=settings.bulk_shell if self.shell is not None else None,
        )


# ============================================================================
# Token helpers
# ============================================================================


def _invocation(tokens: Iterable[str], **kwargs: Any) -> CommandInvocation:
    return CommandInvocation(args=tuple(tokens), **kwargs)


def _plain(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _free_text(request: BaseModel, name: str) -> str:
    if field_kind(type(request), name) is not FieldKind.FREE_TEXT:
        raise TypeError(f"{type(request).__name__}.{name} is not a free-text field")
    return shell_quote(getattr(request, name))


def _filter_text(request: BaseModel, name: str) -> str:
    if field_kind(type(request), name) is not FieldKind.FILTER:
        raise TypeError(f"{type(request).__name__}.{name} is not a filter field")
    return getattr(request, name)


def _date_token(name: str, value: str) -> str:
    return f"{name}:{validate_date(name, value)}"


def _attribute_filters(request: BaseModel, order: Sequence[str]) -> List[str]:
    """Emit ``name:value`` filters (and ``+tag`` for tags) in ``order``."""
    tokens: List[str] = []
    for name in order:
        value = getattr(request, name, None)
        if value is None:
            continue
        if name == "tags":
            tokens.extend(f"+{tag}" for tag in value)
        else:
            tokens.append(f"{name}:{_plain(value)}")
    return tokens


def _modifier_tokens(
    request: BaseModel,
    *,
    include_description: bool = True,
    escape_project: bool = False,
) -> List[str]:
    """Emit modifiers for whichever modification fields ``request`` carries.

    The order is fixed: description, due, priority, start, stop, wait, until,
    scheduled, project, depends, added tags, removed tags, cleared fields.
    """
    values = {name: getattr(request, name) for name in type(request).model_fields}
    tokens: List[str] = []

    if include_description and values.get("description") is not None:
        tokens.append(f"description:{_free_text(request, 'description')}")
    if values.get("due") is not None:
        tokens.append(_date_token("due", values["due"]))
    if values.get("priority") is not None:
        tokens.append(f"priority:{_plain(values['priority'])}")
    if values.get("start") is not None:
        tokens.append(_date_token("start", values["start"]))
    if values.get("stop_task"):
        tokens.append("start:")
    for name in ("wait", "until", "scheduled"):
        if values.get(name) is not None:
            tokens.append(_date_token(name, values[name]))
    if values.get("project") is not None:
        project = values["project"]
        tokens.append(f"project:{shell_quote(project) if escape_project else project}")
    if values.get("depends"):
        tokens.append("depends:" + ",".join(values["depends"]))
    for tag in values.get("tags") or ():
        tokens.append(f"+{tag}")
    for tag in values.get("tags_remove") or ():
        tokens.append(f"-{tag}")
    for cleared in values.get("clear_fields") or ():
        tokens.append(f"{_plain(cleared)}:")

    return tokens


# ============================================================================
# Queries
# ============================================================================


def build_get_next_tasks(request: GetNextTasksRequest) -> CommandInvocation:
    """``task limit: [+tag ...] [project:P] next``"""
    return _invocation(
        ["limit:", *_attribute_filters(request, ("tags", "project")), "next"]
    )


def build_list_tasks(request: ListTasksRequest) -> CommandInvocation:
    return _invocation(
        [*_attribute_filters(request, ("status", "project", "tags")), "list"]
    )


def build_count_tasks(request: CountTasksRequest) -> CommandInvocation:
    return _invocation(
        [
            *_attribute_filters(request, ("status", "project", "priority", "tags")),
            "count",
        ]
    )


def build_list_tasks_filtered(request: ListTasksFilteredRequest) -> CommandInvocation:
    """Same filters as ``count_tasks``, rendered by ``report`` (default ``list``)."""
    report = _plain(request.report) if request.report is not None else "list"
    return _invocation(
        [
            *_attribute_filters(request, ("status", "project", "priority", "tags")),
            report,
        ]
    )


def build_builtin_report(request: BuiltinReportRequest) -> CommandInvocation:
    return _invocation(
        [
            *_attribute_filters(request, ("project", "priority", "tags")),
            _plain(request.report),
        ]
    )


def build_visualization_report(
    request: VisualizationReportRequest,
) -> CommandInvocation:
    return _invocation(
        [*_attribute_filters(request, ("project", "tags")), _plain(request.report)]
    )


def _column_label(column: str) -> str:
    return column[:1].upper() + column[1:]


def build_custom_report(request: CustomReportRequest) -> CommandInvocation:
    """Run a named report, optionally overriding its columns for this call.

    Column overrides are passed as ``rc.report.<name>.columns`` and
    ``rc.report.<name>.labels``; each label is its column name with the first
    character upper-cased.
    """
    tokens: List[str] = []
    if request.filter is not None:
        tokens.append(_filter_text(request, "filter"))
    tokens.append(request.report)
    if request.columns:
        tokens.append(f"rc.report.{request.report}.columns={','.join(request.columns)}")
        labels = ",".join(_column_label(column) for column in request.columns)
        tokens.append(f"rc.report.{request.report}.labels={labels}")
    return _invocation(tokens)


# ============================================================================
# Single-task commands
# ============================================================================


def build_get_task_info(request: TaskIdentifierRequest) -> CommandInvocation:
    return _invocation([request.identifier, "info"])


def build_mark_task_done(request: TaskIdentifierRequest) -> CommandInvocation:
    return _invocation([request.identifier, "done"])


def build_delete_task(request: TaskIdentifierRequest) -> CommandInvocation:
    return _invocation([NO_CONFIRMATION, request.identifier, "delete"])


def build_duplicate_task(request: TaskIdentifierRequest) -> CommandInvocation:
    return _invocation([request.identifier, "duplicate"])


def build_annotate_task(request: AnnotateTaskRequest) -> CommandInvocation:
    return _invocation(
        [request.identifier, "annotate", _free_text(request, "annotation")]
    )


def build_append_task(request: TaskTextRequest) -> CommandInvocation:
    return _invocation([request.identifier, "append", _free_text(request, "text")])


def build_prepend_task(request: TaskTextRequest) -> CommandInvocation:
    return _invocation([request.identifier, "prepend", _free_text(request, "text")])


def build_undo_last(request: UndoLastRequest) -> CommandInvocation:
    return _invocation([NO_CONFIRMATION, "undo"])


# ============================================================================
# Creation and modification
# ============================================================================


def build_add_task(request: AddTaskRequest) -> CommandInvocation:
    """``task add '<description>' [modifiers ...]``

    The description is a bare quoted token and the project is quoted too;
    the remaining modifiers follow the shared modification order.
    """
    return _invocation(
        [
            "add",
            _free_text(request, "description"),
            *_modifier_tokens(request, include_description=False, escape_project=True),
        ]
    )


def build_modify_task(request: ModifyTaskRequest) -> CommandInvocation:
    return _invocation(
        [shell_quote(request.identifier), "modify", *_modifier_tokens(request)]
    )


def build_modify_tasks_bulk(request: ModifyTasksBulkRequest) -> CommandInvocation:
    """Modify every task matching a raw filter.

    Taskwarrior asks for confirmation when a modification touches several
    tasks, so the line is always run with prompts answered automatically.
    """
    return _invocation(
        [_filter_text(request, "filter"), "modify", *_modifier_tokens(request)],
        auto_confirm=True,
        shell=DEFAULT_BULK_SHELL,
    )
