"""
Plain-text formatting of pool data for chat replies and assistant context
"""

from typing import Iterable

from src.models import Assignment, ResourceAvailability, UtilizationRecord


def format_assignment_line(assignment: Assignment) -> str:
    """e.g. 'P1 (assigned 2026-10-16, due 2026-10-20)'"""
    due = ""
    if assignment.due_return_at:
        due = f", due {assignment.due_return_at.date().isoformat()}"
    return f"{assignment.resource_id} (assigned {assignment.assigned_at.date().isoformat()}{due})"


def format_resource_line(resource: ResourceAvailability) -> str:
    return f"{resource.id} {resource.name}: {resource.available}/{resource.quantity} available"


def format_utilization_line(record: UtilizationRecord) -> str:
    percent = round(record.utilization * 100)
    return f"{record.resource_id} {record.date}: {percent}% ({record.allocated}/{record.total})"


def format_assignments(assignments: Iterable[Assignment]) -> str:
    lines = [format_assignment_line(a) for a in assignments]
    return "\n".join(lines) if lines else "You have no current assignments."


def format_resources(resources: Iterable[ResourceAvailability]) -> str:
    lines = [format_resource_line(r) for r in resources]
    return "\n".join(lines) if lines else "No resources in the catalog."


def format_utilization(records: Iterable[UtilizationRecord]) -> str:
    lines = [format_utilization_line(r) for r in records]
    return "\n".join(lines) if lines else "No utilization data for this period."
