"""
Recurring-instance edit scopes - Sans-I/O business logic.

When a user deletes one instance of a recurring plan, the calendar asks
whether the change applies to this instance, this and all following
instances, or the whole series.  This module turns that choice into a
description of the write to perform; performing it is the caller's job.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from typing_extensions import assert_never

from planrecur.lib.dates import format_date, parse_date
from planrecur.objects.plan import Cancelled, InstanceException


class RecurringEditScope(str, Enum):
    THIS = "this"
    THIS_AND_FUTURE = "thisAndFuture"
    ALL = "all"


class ScopeActionKind(str, Enum):
    CREATE_EXCEPTION = "create_exception"
    UPDATE_PLAN = "update_plan"
    DELETE_PLAN = "delete_plan"


@dataclass(frozen=True)
class ScopeAction:
    """
    The write a scoped delete boils down to.

    Attributes:
        kind: What to do
        plan_id: The parent plan
        exception: Exception record to create (CREATE_EXCEPTION)
        plan_update: Plan fields to update (UPDATE_PLAN)
    """

    kind: ScopeActionKind
    plan_id: str
    exception: Optional[InstanceException] = None
    plan_update: dict = field(default_factory=dict)


def resolve_delete_scope(
    plan_id: str, instance_date: str | date, scope: str | RecurringEditScope
) -> ScopeAction:
    """
    Work out how to delete an instance of a recurring plan.

    - THIS: create a cancelled exception for the instance
    - THIS_AND_FUTURE: end the series the day before the instance
    - ALL: delete the parent plan

    Raises:
        ValueError: Unknown scope or unparseable instance date
    """
    scope = RecurringEditScope(scope)
    day = parse_date(instance_date)
    if day is None:
        raise ValueError("an instance date is required")

    if scope is RecurringEditScope.THIS:
        return ScopeAction(
            kind=ScopeActionKind.CREATE_EXCEPTION,
            plan_id=plan_id,
            exception=Cancelled(instance_date=day),
        )
    elif scope is RecurringEditScope.THIS_AND_FUTURE:
        return ScopeAction(
            kind=ScopeActionKind.UPDATE_PLAN,
            plan_id=plan_id,
            plan_update={"recurrence_end_date": format_date(day - timedelta(days=1))},
        )
    elif scope is RecurringEditScope.ALL:
        return ScopeAction(kind=ScopeActionKind.DELETE_PLAN, plan_id=plan_id)
    else:
        assert_never(scope)
