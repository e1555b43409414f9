"""
Maintenance Scheduler.

Builds the ordered list of service tasks for a unit. Infrastructure defects
(missing expansion tank, missing or failed PRV) always sort first and are
due immediately. Routine tasks are timed from current wear: the flush
interval shortens as sediment approaches the flush threshold, the anode is
due once the shield has less than a year left, and hybrid filter and drain
checks are keyed to their status flags rather than elapsed time.

A flush is never scheduled on a tank past the sediment lockout, or on a
fragile tank carrying enough sediment to seal a weak spot: the task is
reported as locked instead.
"""

import math
from typing import Optional

from opterra.models.enums import (
    AirFilterStatus,
    DescaleStatus,
    ExpansionTankStatus,
    FlushStatus,
    TaskType,
    TaskUrgency,
)
from opterra.models.results import MaintenanceSchedule, MaintenanceTask

from .constants import (
    ANODE_HORIZON_MONTHS,
    ANODE_SCHEDULE_MONTHS,
    BUNDLE_WINDOW_MONTHS,
    DESCALE_INTERVAL_HARD_MONTHS,
    DESCALE_INTERVAL_MONTHS,
    FLUSH_INTERVAL_MONTHS,
    HARD_WATER_GPG,
    PSI_CODE_LIMIT,
    SEDIMENT_FLUSH_LBS,
    SEDIMENT_LOCKOUT_LBS,
)
from .stress import StressProfile
from .verdict import RuleContext

URGENCY_RANK = {
    TaskUrgency.OVERDUE: 0,
    TaskUrgency.DUE: 1,
    TaskUrgency.SCHEDULE: 2,
    TaskUrgency.UPCOMING: 3,
    TaskUrgency.LOCKED: 4,
}

FLUSH_URGENCY = {
    FlushStatus.CRITICAL: TaskUrgency.OVERDUE,
    FlushStatus.DUE: TaskUrgency.DUE,
    FlushStatus.ADVISORY: TaskUrgency.SCHEDULE,
    FlushStatus.OPTIMAL: TaskUrgency.UPCOMING,
}


def infrastructure_tasks(ctx: RuleContext, stress: StressProfile) -> list[MaintenanceTask]:
    """Code-level defects, due now."""
    inp = ctx.inp
    tasks = []
    thermal = stress.factors.get("thermal_expansion", 1.0)
    pressure = stress.factors.get("pressure", 1.0)

    if ctx.has_tank and inp.is_closed_loop and inp.expansion_tank_status == ExpansionTankStatus.MISSING:
        tasks.append(
            MaintenanceTask(
                task_type=TaskType.INFRASTRUCTURE_FIX,
                code="exp_tank_install",
                label="Install Expansion Tank",
                months_until_due=0,
                urgency=TaskUrgency.OVERDUE,
                is_infrastructure=True,
                aging_multiplier=thermal,
                note="Closed-loop system without thermal expansion protection.",
            )
        )
    if ctx.has_tank and inp.expansion_tank_status == ExpansionTankStatus.WATERLOGGED:
        tasks.append(
            MaintenanceTask(
                task_type=TaskType.INFRASTRUCTURE_FIX,
                code="exp_tank_replace",
                label="Replace Expansion Tank",
                months_until_due=0,
                urgency=TaskUrgency.DUE,
                is_infrastructure=True,
                aging_multiplier=thermal,
                note="Expansion tank bladder has failed.",
            )
        )
    if inp.house_psi > PSI_CODE_LIMIT:
        code, label, note = (
            ("prv_replace", "Replace PRV", "Pressure-reducing valve is no longer regulating.")
            if inp.has_prv
            else ("prv_install", "Install PRV", f"House pressure {inp.house_psi:.0f} PSI exceeds code.")
        )
        tasks.append(
            MaintenanceTask(
                task_type=TaskType.INFRASTRUCTURE_FIX,
                code=code,
                label=label,
                months_until_due=0,
                urgency=TaskUrgency.OVERDUE,
                is_infrastructure=True,
                aging_multiplier=pressure,
                note=note,
            )
        )
    return tasks


def flush_task(ctx: RuleContext) -> MaintenanceTask:
    wear = ctx.wear
    locked = wear.sediment_lbs >= SEDIMENT_LOCKOUT_LBS or (
        ctx.is_fragile and wear.sediment_lbs >= SEDIMENT_FLUSH_LBS
    )
    if locked:
        return MaintenanceTask(
            task_type=TaskType.FLUSH,
            code="flush",
            label="Tank Flush",
            months_until_due=None,
            urgency=TaskUrgency.LOCKED,
            note="Flushing is unsafe: hardened sediment may be sealing a weak spot.",
        )

    months_since = int(round(ctx.inp.years_since_flush * 12))
    months = max(FLUSH_INTERVAL_MONTHS - months_since, 0)
    if wear.months_to_flush is not None:
        months = min(months, wear.months_to_flush)
    return MaintenanceTask(
        task_type=TaskType.FLUSH,
        code="flush",
        label="Tank Flush",
        months_until_due=months,
        urgency=FLUSH_URGENCY[wear.flush_status],
        note=f"{wear.sediment_lbs:.1f} lbs of sediment, accruing {wear.sediment_rate:.2f} lbs/year.",
    )


def anode_task(ctx: RuleContext) -> MaintenanceTask:
    life = ctx.shield.life
    months = min(max(int(round((life - 1.0) * 12)), 0), ANODE_HORIZON_MONTHS)
    if life <= 0:
        urgency = TaskUrgency.OVERDUE
    elif life < 1.0:
        urgency = TaskUrgency.DUE
    elif months <= ANODE_SCHEDULE_MONTHS:
        urgency = TaskUrgency.SCHEDULE
    else:
        urgency = TaskUrgency.UPCOMING
    return MaintenanceTask(
        task_type=TaskType.ANODE,
        code="anode",
        label="Anode Rod Check",
        months_until_due=months,
        urgency=urgency,
        note=f"Shield life {life:.1f} years.",
    )


def descale_task(ctx: RuleContext) -> MaintenanceTask:
    inp = ctx.inp
    status = ctx.wear.descale_status
    if status in (DescaleStatus.LOCKOUT, DescaleStatus.RUN_TO_FAILURE):
        return MaintenanceTask(
            task_type=TaskType.DESCALE,
            code="descale",
            label="Descale Heat Exchanger",
            months_until_due=None,
            urgency=TaskUrgency.LOCKED,
            note="Descaling now risks exposing pinhole leaks in the heat exchanger.",
        )

    interval = (
        DESCALE_INTERVAL_HARD_MONTHS
        if inp.effective_hardness > HARD_WATER_GPG
        else DESCALE_INTERVAL_MONTHS
    )
    months_since = int(round(inp.years_since_descale * 12))
    months = max(interval - months_since, 0)
    if status == DescaleStatus.CRITICAL:
        months, urgency = 0, TaskUrgency.OVERDUE
    elif status == DescaleStatus.DUE:
        months, urgency = 0, TaskUrgency.DUE
    elif months == 0:
        urgency = TaskUrgency.DUE
    elif months <= 3:
        urgency = TaskUrgency.SCHEDULE
    else:
        urgency = TaskUrgency.UPCOMING
    return MaintenanceTask(
        task_type=TaskType.DESCALE,
        code="descale",
        label="Descale Heat Exchanger",
        months_until_due=months,
        urgency=urgency,
        note=f"Scale score {ctx.wear.scale_score:.0f}/100, {interval}-month interval.",
    )


def hybrid_tasks(ctx: RuleContext) -> list[MaintenanceTask]:
    inp = ctx.inp
    filter_timing = {
        AirFilterStatus.CLOGGED: (0, TaskUrgency.OVERDUE),
        AirFilterStatus.DIRTY: (1, TaskUrgency.DUE),
        AirFilterStatus.CLEAN: (3, TaskUrgency.UPCOMING),
    }
    filter_months, filter_urgency = filter_timing[inp.air_filter_status]
    drain_months, drain_urgency = (
        (6, TaskUrgency.UPCOMING) if inp.is_condensate_clear else (0, TaskUrgency.OVERDUE)
    )
    return [
        MaintenanceTask(
            task_type=TaskType.FILTER,
            code="air_filter",
            label="Clean Air Filter",
            months_until_due=filter_months,
            urgency=filter_urgency,
            note=f"Filter is {inp.air_filter_status.value.lower()}.",
        ),
        MaintenanceTask(
            task_type=TaskType.DRAIN,
            code="condensate_drain",
            label="Clear Condensate Drain",
            months_until_due=drain_months,
            urgency=drain_urgency,
            note="Drain clear." if inp.is_condensate_clear else "Drain blocked.",
        ),
    ]


def sort_key(task: MaintenanceTask) -> tuple:
    """Infrastructure by urgency first, then soonest due (locked last), urgency, code."""
    months = math.inf if task.months_until_due is None else task.months_until_due
    rank = URGENCY_RANK[task.urgency]
    if task.is_infrastructure:
        return (0, rank, months, rank, task.code)
    return (1, 0, months, rank, task.code)


def bundle_tasks(tasks: list[MaintenanceTask]) -> tuple[list[str], Optional[str]]:
    """Routine tasks due within the bundle window of the earliest one, if two or more."""
    routine = [t for t in tasks if not t.is_infrastructure and t.months_until_due is not None]
    if not routine:
        return [], None
    earliest = min(t.months_until_due for t in routine)
    grouped = [t.code for t in routine if t.months_until_due <= earliest + BUNDLE_WINDOW_MONTHS]
    if len(grouped) < 2:
        return [], None
    return grouped, (
        f"{len(grouped)} services fall within {BUNDLE_WINDOW_MONTHS} months of each other; "
        "one visit covers them all."
    )


def schedule(ctx: RuleContext, stress: StressProfile) -> MaintenanceSchedule:
    """Build the ordered maintenance schedule."""
    tasks = infrastructure_tasks(ctx, stress)
    if ctx.inp.is_tankless:
        tasks.append(descale_task(ctx))
    else:
        tasks.append(flush_task(ctx))
        tasks.append(anode_task(ctx))
    if ctx.inp.is_hybrid:
        tasks.extend(hybrid_tasks(ctx))

    tasks.sort(key=sort_key)
    bundle, reason = bundle_tasks(tasks)
    return MaintenanceSchedule(
        technology=ctx.inp.technology,
        tasks=tasks,
        bundle=bundle,
        bundle_reason=reason,
    )
