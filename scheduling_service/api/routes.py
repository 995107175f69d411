from datetime import datetime
from decimal import Decimal
import logging
import re
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import (
    AliasChoices,
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from sqlalchemy.orm import Session

from scheduling_service.api.rate_limit import configured_rate_limit, limiter
from scheduling_service.engine.availability import AvailabilityService
from scheduling_service.engine.conflicts import ConflictService
from scheduling_service.models.entities import (
    CheckConflictsRequest,
    CheckConflictsResult,
    Conflict,
    Resource,
    ResourceAvailability,
    ResourceAvailabilityRequest,
    ResourceType,
    ScheduleEntry,
)
from scheduling_service.storage.database import get_db

router = APIRouter()
logger = logging.getLogger(__name__)

INT32_MAX = 2**31 - 1
RESOURCE_ID_PATTERN = re.compile(r"-?[0-9]+")
# RFC3339 date-time: "T" separator, mandatory offset
RFC3339_PATTERN = re.compile(
    r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}(\.[0-9]+)?(Z|[+-][0-9]{2}:[0-9]{2})"
)
_timestamp = TypeAdapter(AwareDatetime)


class ErrorResponse(BaseModel):
    error: str
    message: str


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=error, message=message).model_dump())


class CheckConflictsDTO(BaseModel):
    resource_ids: List[int] = Field(
        default_factory=list, validation_alias=AliasChoices("resource_ids", "resourceIds")
    )
    start_time: AwareDatetime = Field(..., validation_alias=AliasChoices("start_time", "startTime"))
    end_time: AwareDatetime = Field(..., validation_alias=AliasChoices("end_time", "endTime"))
    exclude_schedule_id: Optional[int] = Field(
        None, validation_alias=AliasChoices("exclude_schedule_id", "excludeScheduleId")
    )

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_rfc3339(cls, v):
        """Only RFC3339 strings; epoch numbers and offset-less values are rejected."""
        return parse_rfc3339(v)

    def to_domain(self) -> CheckConflictsRequest:
        return CheckConflictsRequest(
            resource_ids=self.resource_ids,
            start_time=self.start_time,
            end_time=self.end_time,
            exclude_schedule_id=self.exclude_schedule_id,
        )


class ConflictDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    resource_id: int
    resource_name: str
    conflicting_event_id: int
    conflicting_event_name: str
    conflicting_task_id: Optional[int] = None
    conflicting_task_title: Optional[str] = None
    existing_start_time: datetime
    existing_end_time: datetime
    requested_start_time: datetime
    requested_end_time: datetime
    message: str

    @classmethod
    def from_domain(cls, c: Conflict) -> "ConflictDTO":
        return cls.model_validate(c)


class CheckConflictsResponse(BaseModel):
    has_conflicts: bool
    conflicts: List[ConflictDTO]

    @classmethod
    def from_domain(cls, result: CheckConflictsResult) -> "CheckConflictsResponse":
        return cls(
            has_conflicts=result.has_conflicts,
            conflicts=[ConflictDTO.from_domain(c) for c in result.conflicts],
        )


class ScheduleEntryDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    resource_id: int
    event_id: int
    event_name: str
    task_id: Optional[int] = None
    task_title: Optional[str] = None
    start_time: datetime
    end_time: datetime
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, e: ScheduleEntry) -> "ScheduleEntryDTO":
        return cls.model_validate(e)


class ResourceAvailabilityResponse(BaseModel):
    resource_id: int
    entries: List[ScheduleEntryDTO]

    @classmethod
    def from_domain(cls, availability: ResourceAvailability) -> "ResourceAvailabilityResponse":
        return cls(
            resource_id=availability.resource_id,
            entries=[ScheduleEntryDTO.from_domain(e) for e in availability.entries],
        )


class ResourceDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: ResourceType
    hourly_rate: Optional[Decimal] = None
    is_available: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, r: Resource) -> "ResourceDTO":
        return cls.model_validate(r)


def parse_resource_id(value: str) -> Optional[int]:
    if not RESOURCE_ID_PATTERN.fullmatch(value):
        return None
    resource_id = int(value)
    if resource_id < -INT32_MAX - 1 or resource_id > INT32_MAX:
        return None
    return resource_id


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 timestamp; a UTC offset is required. Raises ValueError."""
    if not isinstance(value, str) or not RFC3339_PATTERN.fullmatch(value):
        raise ValueError("timestamp must be in RFC3339 format")
    try:
        return _timestamp.validate_python(value)
    except ValidationError as exc:
        raise ValueError("timestamp must be in RFC3339 format") from exc


def parse_timestamp(value: str) -> Optional[datetime]:
    try:
        return parse_rfc3339(value)
    except ValueError:
        return None


@router.post(
    "/check-conflicts",
    response_model=CheckConflictsResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Check resources for overlapping bookings",
)
@limiter.limit(configured_rate_limit)
def check_conflicts(request: Request, body: CheckConflictsDTO, db: Session = Depends(get_db)):
    """
    Report existing bookings that overlap a proposed window.

    Bookings are half-open: an entry ending exactly when the window starts
    (or starting exactly when it ends) is not a conflict.

    **Error Handling:**
    - 400 `invalid_request`: malformed body
    - 400 `VALIDATION`: end_time not after start_time
    - 500 `INTERNAL`: store failure
    """
    started = time.perf_counter()
    result = ConflictService(db).check_conflicts(body.to_domain())
    duration_ms = (time.perf_counter() - started) * 1000

    logger.info(
        f"Conflict check completed: resource_count={len(body.resource_ids)} "
        f"conflict_count={len(result.conflicts)} duration_ms={duration_ms:.1f}"
    )
    return CheckConflictsResponse.from_domain(result)


@router.get(
    "/resource-availability",
    response_model=ResourceAvailabilityResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="List a resource's bookings over a date range",
)
@limiter.limit(configured_rate_limit)
def resource_availability(
    request: Request,
    resource_id: Optional[str] = Query(None, description="Resource id"),
    start_date: Optional[str] = Query(None, description="RFC3339 range start"),
    end_date: Optional[str] = Query(None, description="RFC3339 range end"),
    db: Session = Depends(get_db),
):
    """
    Return the bookings of one resource over a date range, ordered by start time.

    Query parameters are checked here so each kind of bad input gets its own
    error code: `missing_parameters`, `invalid_resource_id`,
    `invalid_start_date`, `invalid_end_date`.
    """
    if not resource_id or not start_date or not end_date:
        return error_response(400, "missing_parameters", "resource_id, start_date, and end_date are required")

    parsed_id = parse_resource_id(resource_id)
    if parsed_id is None:
        return error_response(400, "invalid_resource_id", "resource_id must be a valid integer")

    parsed_start = parse_timestamp(start_date)
    if parsed_start is None:
        return error_response(400, "invalid_start_date", "start_date must be in RFC3339 format")

    parsed_end = parse_timestamp(end_date)
    if parsed_end is None:
        return error_response(400, "invalid_end_date", "end_date must be in RFC3339 format")

    req = ResourceAvailabilityRequest(resource_id=parsed_id, start_date=parsed_start, end_date=parsed_end)
    result = AvailabilityService(db).get_resource_availability(req)

    logger.info(f"Resource availability retrieved: resource_id={parsed_id} entry_count={len(result.entries)}")
    return ResourceAvailabilityResponse.from_domain(result)


@router.get(
    "/resources/{resource_id}",
    response_model=ResourceDTO,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Get a resource",
)
@limiter.limit(configured_rate_limit)
def get_resource(request: Request, resource_id: int, db: Session = Depends(get_db)):
    return ResourceDTO.from_domain(AvailabilityService(db).get_resource_by_id(resource_id))
