from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from scheduling_service.engine.overlap import to_utc
from scheduling_service.models.entities import Resource, ResourceType, ScheduleEntry
from scheduling_service.storage.database import EventModel, ResourceModel, ScheduleModel, TaskModel


class ResourceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, resource_id: int) -> Optional[Resource]:
        model = self.db.query(ResourceModel).filter(ResourceModel.id == resource_id).first()
        if not model:
            return None
        return self._model_to_resource(model)

    @staticmethod
    def _model_to_resource(model: ResourceModel) -> Resource:
        return Resource(
            id=model.id,
            name=model.name,
            type=ResourceType(model.type),
            is_available=bool(model.is_available),
            hourly_rate=model.hourly_rate,
            notes=model.notes,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class ScheduleRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_resource_schedule(self, resource_id: int, start_date, end_date) -> List[ScheduleEntry]:
        """Entries of one resource whose [start, end) window meets the closed range [start_date, end_date]."""
        rows = (
            self.db.query(ScheduleModel, EventModel.event_name, TaskModel.title.label("task_title"))
            .join(EventModel, ScheduleModel.event_id == EventModel.id)
            .outerjoin(TaskModel, ScheduleModel.task_id == TaskModel.id)
            .filter(
                ScheduleModel.resource_id == resource_id,
                ScheduleModel.start_time <= to_utc(end_date),
                ScheduleModel.end_time > to_utc(start_date),
            )
            .order_by(ScheduleModel.start_time, ScheduleModel.id)
            .all()
        )
        return [self._row_to_entry(model, event_name, task_title) for model, event_name, task_title in rows]

    def find_overlapping(
        self,
        resource_ids: Sequence[int],
        start_time,
        end_time,
        exclude_schedule_id: Optional[int] = None,
    ):
        """
        Return every entry of the given resources overlapping [start_time, end_time).

        One round trip for the whole id list. Each row is
        ``(ScheduleModel, resource_name, event_name, task_title)``.
        """
        query = (
            self.db.query(
                ScheduleModel,
                ResourceModel.name.label("resource_name"),
                EventModel.event_name,
                TaskModel.title.label("task_title"),
            )
            .join(ResourceModel, ScheduleModel.resource_id == ResourceModel.id)
            .join(EventModel, ScheduleModel.event_id == EventModel.id)
            .outerjoin(TaskModel, ScheduleModel.task_id == TaskModel.id)
            .filter(
                ScheduleModel.resource_id.in_(list(resource_ids)),
                ScheduleModel.start_time < to_utc(end_time),
                ScheduleModel.end_time > to_utc(start_time),
            )
        )
        if exclude_schedule_id is not None:
            query = query.filter(ScheduleModel.id != exclude_schedule_id)
        return query.order_by(ScheduleModel.resource_id, ScheduleModel.start_time, ScheduleModel.id).all()

    @staticmethod
    def _row_to_entry(model: ScheduleModel, event_name: str, task_title: Optional[str]) -> ScheduleEntry:
        return ScheduleEntry(
            id=model.id,
            resource_id=model.resource_id,
            event_id=model.event_id,
            event_name=event_name,
            start_time=to_utc(model.start_time),
            end_time=to_utc(model.end_time),
            task_id=model.task_id,
            task_title=task_title,
            notes=model.notes,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
