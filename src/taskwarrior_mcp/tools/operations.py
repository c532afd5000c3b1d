"""The operation catalog.

Every tool the server exposes is registered here, pairing its request model
with the builder that turns a validated request into a command line.
"""

from __future__ import annotations

from typing import List, Optional

from taskwarrior_mcp.config import TaskwarriorSettings
from taskwarrior_mcp.core import commands
from taskwarrior_mcp.core.executor import run_invocation
from taskwarrior_mcp.core.schemas import (
    AddTaskRequest,
    AnnotateTaskRequest,
    BuiltinReportRequest,
    CountTasksRequest,
    CustomReportRequest,
    GetNextTasksRequest,
    ListTasksFilteredRequest,
    ListTasksRequest,
    ModifyTaskRequest,
    ModifyTasksBulkRequest,
    TaskIdentifierRequest,
    TaskTextRequest,
    UndoLastRequest,
    VisualizationReportRequest,
)
from taskwarrior_mcp.tools.router import OperationDefinition, OperationRouter, Runner

OPERATIONS: List[OperationDefinition] = [
    OperationDefinition(
        name="get_next_tasks",
        description="Get a list of all pending tasks",
        request_model=GetNextTasksRequest,
        builder=commands.build_get_next_tasks,
    ),
    OperationDefinition(
        name="list_tasks",
        description="List tasks by status, project and tags",
        request_model=ListTasksRequest,
        builder=commands.build_list_tasks,
    ),
    OperationDefinition(
        name="mark_task_done",
        description="Mark a task as done (completed)",
        request_model=TaskIdentifierRequest,
        builder=commands.build_mark_task_done,
    ),
    OperationDefinition(
        name="add_task",
        description="Add a new task",
        request_model=AddTaskRequest,
        builder=commands.build_add_task,
    ),
    OperationDefinition(
        name="modify_task",
        description="Modify an existing task",
        request_model=ModifyTaskRequest,
        builder=commands.build_modify_task,
    ),
    OperationDefinition(
        name="modify_tasks_bulk",
        description="Modify multiple tasks using TaskWarrior filter syntax",
        request_model=ModifyTasksBulkRequest,
        builder=commands.build_modify_tasks_bulk,
    ),
    OperationDefinition(
        name="get_task_info",
        description="Get detailed information about a specific task",
        request_model=TaskIdentifierRequest,
        builder=commands.build_get_task_info,
    ),
    OperationDefinition(
        name="count_tasks",
        description="Count tasks matching specified filters",
        request_model=CountTasksRequest,
        builder=commands.build_count_tasks,
    ),
    OperationDefinition(
        name="list_tasks_filtered",
        description="List tasks with comprehensive filtering options",
        request_model=ListTasksFilteredRequest,
        builder=commands.build_list_tasks_filtered,
    ),
    OperationDefinition(
        name="delete_task",
        description="Delete a task from TaskWarrior",
        request_model=TaskIdentifierRequest,
        builder=commands.build_delete_task,
    ),
    OperationDefinition(
        name="annotate_task",
        description="Add an annotation to a task",
        request_model=AnnotateTaskRequest,
        builder=commands.build_annotate_task,
    ),
    OperationDefinition(
        name="append_task",
        description="Append text to a task description",
        request_model=TaskTextRequest,
        builder=commands.build_append_task,
    ),
    OperationDefinition(
        name="prepend_task",
        description="Prepend text to a task description",
        request_model=TaskTextRequest,
        builder=commands.build_prepend_task,
    ),
    OperationDefinition(
        name="duplicate_task",
        description="Duplicate an existing task",
        request_model=TaskIdentifierRequest,
        builder=commands.build_duplicate_task,
    ),
    OperationDefinition(
        name="undo_last",
        description="Undo the last TaskWarrior operation",
        request_model=UndoLastRequest,
        builder=commands.build_undo_last,
    ),
    OperationDefinition(
        name="builtin_report",
        description=(
            "Generate built-in TaskWarrior reports "
            "(list, all, active, completed, blocked, overdue, ready, recurring)"
        ),
        request_model=BuiltinReportRequest,
        builder=commands.build_builtin_report,
    ),
    OperationDefinition(
        name="visualization_report",
        description=(
            "Generate TaskWarrior visualization reports "
            "(burndown, calendar, history, summary, timesheet)"
        ),
        request_model=VisualizationReportRequest,
        builder=commands.build_visualization_report,
    ),
    OperationDefinition(
        name="custom_report",
        description=(
            "Execute custom TaskWarrior reports with user-defined columns and filters"
        ),
        request_model=CustomReportRequest,
        builder=commands.build_custom_report,
    ),
]


def build_router(
    settings: Optional[TaskwarriorSettings] = None,
    *,
    runner: Runner = run_invocation,
) -> OperationRouter:
    """Create a router over the full catalog."""
    return OperationRouter(OPERATIONS, settings=settings, runner=runner)
