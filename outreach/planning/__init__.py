"""Pure planning helpers shared by the structural operations."""

from .shift import ShiftEntry, ShiftPlan, plan_collapse, plan_collapse_by_position, plan_insert

__all__ = [
    "ShiftEntry",
    "ShiftPlan",
    "plan_collapse",
    "plan_collapse_by_position",
    "plan_insert",
]
