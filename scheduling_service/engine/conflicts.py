"""
Conflict detection for resource assignments.

Given candidate resources and a proposed window, report every existing
booking that overlaps it. This only answers the question: it takes no lock
and writes nothing, so two callers checking the same window concurrently can
both see no conflict and then both book it.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduling_service.engine.overlap import format_conflict_message, to_utc
from scheduling_service.models.entities import CheckConflictsRequest, CheckConflictsResult, Conflict
from scheduling_service.models.errors import SchedulingError
from scheduling_service.storage.repositories import ScheduleRepository

logger = logging.getLogger(__name__)


class ConflictService:
    def __init__(self, db: Session):
        self.schedule = ScheduleRepository(db)

    def check_conflicts(self, req: CheckConflictsRequest) -> CheckConflictsResult:
        """
        Check the requested resources for bookings overlapping [start_time, end_time).

        Validation:
        1. No resource ids: nothing to check, returns no conflicts without a query
        2. end_time must be strictly after start_time

        One conflict is produced per overlapping schedule entry, so a resource
        booked twice inside the window yields two conflicts. Unknown resource
        ids simply match nothing.
        """
        if not req.resource_ids:
            return CheckConflictsResult(has_conflicts=False, conflicts=[])

        start_time, end_time = to_utc(req.start_time), to_utc(req.end_time)
        if end_time <= start_time:
            raise SchedulingError.validation("end_time must be after start_time")

        try:
            rows = self.schedule.find_overlapping(
                req.resource_ids,
                start_time,
                end_time,
                exclude_schedule_id=req.exclude_schedule_id,
            )
        except SQLAlchemyError as exc:
            raise SchedulingError.internal("failed to check conflicts", exc) from exc

        conflicts = [
            self._row_to_conflict(model, resource_name, event_name, task_title, start_time, end_time)
            for model, resource_name, event_name, task_title in rows
        ]
        return CheckConflictsResult(has_conflicts=len(conflicts) > 0, conflicts=conflicts)

    @staticmethod
    def _row_to_conflict(model, resource_name, event_name, task_title, start_time, end_time) -> Conflict:
        existing_start = to_utc(model.start_time)
        existing_end = to_utc(model.end_time)
        return Conflict(
            resource_id=model.resource_id,
            resource_name=resource_name,
            conflicting_event_id=model.event_id,
            conflicting_event_name=event_name,
            existing_start_time=existing_start,
            existing_end_time=existing_end,
            requested_start_time=start_time,
            requested_end_time=end_time,
            conflicting_task_id=model.task_id,
            conflicting_task_title=task_title,
            message=format_conflict_message(resource_name, event_name, existing_start, existing_end),
        )
