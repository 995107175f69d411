from datetime import timedelta, timezone
from decimal import Decimal

import pytest

from conftest import at
from scheduling_service.engine.availability import AvailabilityService
from scheduling_service.models.entities import ResourceAvailabilityRequest, ResourceType
from scheduling_service.models.errors import ErrorCode, SchedulingError


def availability(db, resource_id, start, end):
    return AvailabilityService(db).get_resource_availability(
        ResourceAvailabilityRequest(resource_id=resource_id, start_date=start, end_date=end)
    )


class TestResourceAvailability:

    def test_returns_entries_in_range(self, db, booked_chef):
        chef, gala, entry = booked_chef
        result = availability(db, chef.id, at(0), at(0, day_offset=1))

        assert result.resource_id == chef.id
        assert len(result.entries) == 1
        found = result.entries[0]
        assert found.id == entry.id
        assert found.event_id == gala.id
        assert found.event_name == "Summer Gala"
        assert found.start_time == at(9)
        assert found.end_time == at(17)
        assert found.start_time.tzinfo is not None
        assert found.task_id is None
        assert found.task_title is None
        assert found.notes is None

    def test_ordered_by_start_time(self, db, seed):
        chef = seed.resource()
        gala = seed.event()
        seed.entry(chef, gala, at(18), at(20))
        seed.entry(chef, gala, at(8), at(10))
        seed.entry(chef, gala, at(12), at(14))

        result = availability(db, chef.id, at(0), at(23))

        assert [e.start_time for e in result.entries] == [at(8), at(12), at(18)]

    def test_empty_range_is_not_an_error(self, db, booked_chef):
        chef, _, _ = booked_chef
        result = availability(db, chef.id, at(0, day_offset=3), at(0, day_offset=4))
        assert result.entries == []

    def test_unknown_resource_returns_empty_list(self, db, booked_chef):
        assert availability(db, 99999, at(0), at(23)).entries == []

    def test_only_requested_resource(self, db, seed):
        chef = seed.resource(name="Chef")
        server = seed.resource(name="Server")
        gala = seed.event()
        seed.entry(server, gala, at(9), at(17))

        assert availability(db, chef.id, at(0), at(23)).entries == []

    def test_partially_overlapping_entries_included(self, db, booked_chef):
        chef, _, _ = booked_chef
        assert len(availability(db, chef.id, at(12), at(20)).entries) == 1
        assert len(availability(db, chef.id, at(5), at(10)).entries) == 1

    def test_entry_ending_at_range_start_excluded(self, db, booked_chef):
        chef, _, _ = booked_chef
        assert availability(db, chef.id, at(17), at(20)).entries == []

    def test_equal_start_and_end_accepted(self, db, booked_chef):
        """A zero-length range is valid here and returns entries covering that instant."""
        chef, _, _ = booked_chef
        result = availability(db, chef.id, at(12), at(12))
        assert len(result.entries) == 1

    def test_end_before_start_rejected(self, broken_db):
        with pytest.raises(SchedulingError) as exc_info:
            availability(broken_db, 1, at(12), at(11))
        assert exc_info.value.code == ErrorCode.VALIDATION
        assert exc_info.value.message == "end_date must be after start_date"

    def test_other_time_zones_normalised(self, db, booked_chef):
        chef, _, _ = booked_chef
        plus_two = timezone(timedelta(hours=2))
        result = availability(db, chef.id, at(0).astimezone(plus_two), at(23).astimezone(plus_two))
        assert len(result.entries) == 1

    def test_task_and_notes_present(self, db, seed):
        chef = seed.resource()
        gala = seed.event()
        plating = seed.task(title="Plating")
        seed.entry(chef, gala, at(9), at(11), task=plating, notes="Bring knives")

        entry = availability(db, chef.id, at(0), at(23)).entries[0]

        assert entry.task_id == plating.id
        assert entry.task_title == "Plating"
        assert entry.notes == "Bring knives"

    def test_store_error_wrapped_as_internal(self, broken_db):
        with pytest.raises(SchedulingError) as exc_info:
            availability(broken_db, 1, at(0), at(23))
        assert exc_info.value.code == ErrorCode.INTERNAL
        assert exc_info.value.cause is not None


class TestGetResourceByID:

    def test_found(self, db, seed):
        oven = seed.resource(
            name="Combi Oven",
            type=ResourceType.EQUIPMENT,
            hourly_rate=Decimal("45.50"),
            is_available=False,
            notes="Needs 3-phase power",
        )

        resource = AvailabilityService(db).get_resource_by_id(oven.id)

        assert resource.id == oven.id
        assert resource.name == "Combi Oven"
        assert resource.type == ResourceType.EQUIPMENT
        assert resource.hourly_rate == Decimal("45.50")
        assert resource.is_available is False
        assert resource.notes == "Needs 3-phase power"

    def test_optional_columns_absent(self, db, seed):
        linen = seed.resource(name="Linen", type=ResourceType.MATERIALS)
        resource = AvailabilityService(db).get_resource_by_id(linen.id)
        assert resource.hourly_rate is None
        assert resource.notes is None
        assert resource.is_available is True

    def test_not_found(self, db):
        with pytest.raises(SchedulingError) as exc_info:
            AvailabilityService(db).get_resource_by_id(99999)
        assert exc_info.value.code == ErrorCode.NOT_FOUND
        assert "resource not found" in exc_info.value.message

    def test_store_error_wrapped_as_internal(self, broken_db):
        with pytest.raises(SchedulingError) as exc_info:
            AvailabilityService(broken_db).get_resource_by_id(1)
        assert exc_info.value.code == ErrorCode.INTERNAL
        assert exc_info.value.message == "failed to get resource"
