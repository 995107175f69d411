from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class ResourceType(str, Enum):
    STAFF = "staff"
    EQUIPMENT = "equipment"
    MATERIALS = "materials"


@dataclass(frozen=True)
class Resource:
    id: int
    name: str
    type: ResourceType
    is_available: bool = True  # advisory only, never blocks a booking
    hourly_rate: Optional[Decimal] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ScheduleEntry:
    """One booking of a resource for an event over the half-open window [start_time, end_time)."""

    id: int
    resource_id: int
    event_id: int
    event_name: str
    start_time: datetime
    end_time: datetime
    task_id: Optional[int] = None
    task_title: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Conflict:
    resource_id: int
    resource_name: str
    conflicting_event_id: int
    conflicting_event_name: str
    existing_start_time: datetime
    existing_end_time: datetime
    requested_start_time: datetime
    requested_end_time: datetime
    message: str
    conflicting_task_id: Optional[int] = None
    conflicting_task_title: Optional[str] = None


@dataclass(frozen=True)
class CheckConflictsRequest:
    resource_ids: List[int]
    start_time: datetime
    end_time: datetime
    exclude_schedule_id: Optional[int] = None  # lets an update skip its own entry


@dataclass(frozen=True)
class CheckConflictsResult:
    has_conflicts: bool
    conflicts: List[Conflict] = field(default_factory=list)


@dataclass(frozen=True)
class ResourceAvailabilityRequest:
    resource_id: int
    start_date: datetime
    end_date: datetime


@dataclass(frozen=True)
class ResourceAvailability:
    resource_id: int
    entries: List[ScheduleEntry] = field(default_factory=list)
