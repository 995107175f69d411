import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduling_service.engine.overlap import to_utc
from scheduling_service.models.entities import Resource, ResourceAvailability, ResourceAvailabilityRequest
from scheduling_service.models.errors import SchedulingError
from scheduling_service.storage.repositories import ResourceRepository, ScheduleRepository

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Read-only queries over what a resource is booked for."""

    def __init__(self, db: Session):
        self.resources = ResourceRepository(db)
        self.schedule = ScheduleRepository(db)

    def get_resource_availability(self, req: ResourceAvailabilityRequest) -> ResourceAvailability:
        """
        Return the schedule entries of one resource over a date range.

        An empty range (start == end) is accepted; only a range ending before
        it starts is rejected. Entries come back ordered by start time.
        """
        start_date, end_date = to_utc(req.start_date), to_utc(req.end_date)
        if end_date < start_date:
            raise SchedulingError.validation("end_date must be after start_date")

        try:
            entries = self.schedule.get_resource_schedule(req.resource_id, start_date, end_date)
        except SQLAlchemyError as exc:
            raise SchedulingError.internal("failed to get resource schedule", exc) from exc

        logger.debug(f"Resource {req.resource_id}: {len(entries)} entries in range")
        return ResourceAvailability(resource_id=req.resource_id, entries=entries)

    def get_resource_by_id(self, resource_id: int) -> Resource:
        try:
            resource = self.resources.get_by_id(resource_id)
        except SQLAlchemyError as exc:
            raise SchedulingError.internal("failed to get resource", exc) from exc

        if resource is None:
            raise SchedulingError.not_found("resource not found")
        return resource
