"""Maintenance feasibility checks."""

from orderflow.maintenance.feasibility import (
    add_lead_days,
    check_feasibility,
    check_maintenance_feasibility,
    local_today,
    red_items_only,
)

__all__ = [
    "add_lead_days",
    "check_feasibility",
    "check_maintenance_feasibility",
    "local_today",
    "red_items_only",
]
