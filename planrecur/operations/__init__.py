"""
Operations Layer - Sans-I/O recurrence logic.

This package contains pure functions that turn stored plans and exception
records into calendar occurrences.  Nothing here does I/O: fetching plans
and exceptions, and writing edits back, is the caller's job.

Data flow:
    ┌─────────────────────────────────────┐
    │  plan + exception records           │
    ├─────────────────────────────────────┤
    │  expansion_ops.expand()             │
    │  -> raw ExpandedOccurrence list     │
    ├─────────────────────────────────────┤
    │  overlay_ops.overlay()              │
    │  -> final ExpandedOccurrence list   │
    ├─────────────────────────────────────┤
    │  calendar_ops.to_calendar_events()  │
    │  -> CalendarEvent list              │
    └─────────────────────────────────────┘

Usage:
    from planrecur.operations import expand_plans_to_calendar_events

    events = expand_plans_to_calendar_events(
        plans, "2025-03-01", "2025-03-07", exceptions_by_plan_id
    )

Modules:
    expansion_ops: Recurrence config resolution and the occurrence walk
    overlay_ops: Cancelled / modified / moved exception overlay
    calendar_ops: Plan → CalendarEvent view mapping
    edit_ops: Recurring delete scopes (this / this and future / all)
"""
from planrecur.operations.calendar_ops import as_plan
from planrecur.operations.calendar_ops import expand_occurrences
from planrecur.operations.calendar_ops import expand_plans_to_calendar_events
from planrecur.operations.calendar_ops import group_exceptions_by_plan
from planrecur.operations.calendar_ops import occurrence_to_calendar_event
from planrecur.operations.calendar_ops import plan_to_calendar_event
from planrecur.operations.calendar_ops import plans_to_calendar_events
from planrecur.operations.calendar_ops import to_calendar_events
from planrecur.operations.calendar_ops import ViewSettings
from planrecur.operations.edit_ops import RecurringEditScope
from planrecur.operations.edit_ops import resolve_delete_scope
from planrecur.operations.edit_ops import ScopeAction
from planrecur.operations.edit_ops import ScopeActionKind
from planrecur.operations.expansion_ops import DEFAULT_MAX_STEPS
from planrecur.operations.expansion_ops import expand
from planrecur.operations.expansion_ops import iter_occurrence_dates
from planrecur.operations.expansion_ops import resolve_anchor
from planrecur.operations.expansion_ops import resolve_config
from planrecur.operations.overlay_ops import index_exceptions
from planrecur.operations.overlay_ops import overlay
from planrecur.operations.overlay_ops import parse_exceptions

__all__ = [
    # Expansion
    "DEFAULT_MAX_STEPS",
    "expand",
    "iter_occurrence_dates",
    "resolve_anchor",
    "resolve_config",
    # Overlay
    "overlay",
    "index_exceptions",
    "parse_exceptions",
    # Calendar view mapping
    "ViewSettings",
    "as_plan",
    "expand_occurrences",
    "expand_plans_to_calendar_events",
    "group_exceptions_by_plan",
    "occurrence_to_calendar_event",
    "plan_to_calendar_event",
    "plans_to_calendar_events",
    "to_calendar_events",
    # Edit scopes
    "RecurringEditScope",
    "ScopeAction",
    "ScopeActionKind",
    "resolve_delete_scope",
]
