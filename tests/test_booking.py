"""Tests for booking allocation: layout, conflicts, hours and atomicity."""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql

from conftest import NOW, at_tuesday, auth, book
from salonbook.core.errors import ConflictError, InvalidAssignment, ValidationError
from salonbook.core.policy import SchedulingPolicy
from salonbook.models import Appointment, AppointmentServiceAssignment
from salonbook.services.booking import BookingAllocator, lock_staff_query
from salonbook.services.lines import AssignmentList, BookingLine, LegacySingle


async def _count(db, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_multi_service_booking_lays_services_back_to_back(client, customer, salon):
    resp = await book(client, customer, at_tuesday(10), (salon.haircut, salon.xena), (salon.colour, salon.yusuf))

    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["status"] == "pending"
    assert data["startTime"] == "2026-03-03T10:00:00"
    assert data["endTime"] == "2026-03-03T11:15:00"
    # First pair is mirrored as the primary service/staff
    assert data["serviceId"] == str(salon.haircut.id)
    assert data["staffId"] == str(salon.xena.id)

    first, second = data["assignments"]
    assert (first["startTime"], first["endTime"]) == ("2026-03-03T10:00:00", "2026-03-03T10:30:00")
    assert first["staff"]["name"] == "Xena"
    assert (second["startTime"], second["endTime"]) == ("2026-03-03T10:30:00", "2026-03-03T11:15:00")
    assert second["staff"]["name"] == "Yusuf"
    assert [a["status"] for a in data["assignments"]] == ["pending", "pending"]


@pytest.mark.asyncio
async def test_overlapping_booking_is_rejected_naming_the_staff(client, customer, other_customer, salon):
    first = await book(client, customer, at_tuesday(10), (salon.haircut, salon.xena))
    assert first.status_code == 201

    resp = await book(client, other_customer, at_tuesday(10, 15), (salon.facial, salon.xena))

    assert resp.status_code == 400
    assert "Xena" in resp.json()["detail"]
    assert "conflicting appointment" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_back_to_back_bookings_do_not_conflict(client, customer, other_customer, salon):
    first = await book(client, customer, at_tuesday(10), (salon.haircut, salon.xena))
    second = await book(client, other_customer, at_tuesday(10, 30), (salon.haircut, salon.xena))

    assert first.status_code == 201
    assert second.status_code == 201


@pytest.mark.asyncio
async def test_staff_checked_over_whole_appointment_span(client, customer, other_customer, salon):
    """Xena's own slot (10:00-10:30) is free, but she is busy later inside the combined span."""
    busy = await book(client, other_customer, at_tuesday(10, 30), (salon.haircut, salon.xena))
    assert busy.status_code == 201

    resp = await book(client, customer, at_tuesday(10), (salon.haircut, salon.xena), (salon.colour, salon.yusuf))

    assert resp.status_code == 400
    assert "Xena" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_booking_outside_working_hours_is_rejected(client, customer, salon):
    resp = await book(client, customer, at_tuesday(17, 45), (salon.haircut, salon.xena))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Xena is only available from 09:00 to 18:00 on this day"


@pytest.mark.asyncio
async def test_later_service_past_closing_is_rejected(client, customer, salon):
    """Haircut fits (17:00-17:30) but the colour would run to 18:15."""
    resp = await book(client, customer, at_tuesday(17), (salon.haircut, salon.xena), (salon.colour, salon.yusuf))

    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Yusuf is only available")


@pytest.mark.asyncio
async def test_staff_without_hours_that_day_is_unconstrained(client, customer, salon):
    wednesday_evening = at_tuesday(21) + timedelta(days=1)
    resp = await book(client, customer, wednesday_evening, (salon.haircut, salon.xena))

    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_staff_not_offering_service_is_rejected(client, customer, salon):
    resp = await book(client, customer, at_tuesday(10), (salon.colour, salon.xena))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Staff Xena is not assigned to service Hair Colour"


@pytest.mark.asyncio
async def test_unknown_service_is_not_found(client, customer, salon):
    resp = await client.post(
        "/api/v1/appointments",
        json={
            "startTime": at_tuesday(10).isoformat(),
            "services": [{"serviceId": str(uuid4()), "staffId": str(salon.xena.id)}],
        },
        headers=auth(customer),
    )

    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_empty_services_list_is_rejected(client, customer, salon):
    resp = await client.post(
        "/api/v1/appointments",
        json={"startTime": at_tuesday(10).isoformat(), "services": []},
        headers=auth(customer),
    )

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_missing_services_and_legacy_pair_is_rejected(client, customer, salon):
    resp = await client.post(
        "/api/v1/appointments",
        json={"startTime": at_tuesday(10).isoformat(), "serviceId": str(salon.haircut.id)},
        headers=auth(customer),
    )

    assert resp.status_code == 400
    assert "serviceId and staffId" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_legacy_single_service_body_is_accepted(client, customer, salon):
    resp = await client.post(
        "/api/v1/appointments",
        json={
            "startTime": at_tuesday(11).isoformat(),
            "serviceId": str(salon.facial.id),
            "staffId": str(salon.xena.id),
            "notes": "First visit",
        },
        headers=auth(customer),
    )

    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["endTime"] == "2026-03-03T12:00:00"
    assert data["notes"] == "First visit"
    assert len(data["assignments"]) == 1


@pytest.mark.asyncio
async def test_rejected_booking_writes_nothing(client, db, customer, other_customer, salon):
    busy = await book(client, other_customer, at_tuesday(10, 30), (salon.colour, salon.yusuf))
    assert busy.status_code == 201

    resp = await book(client, customer, at_tuesday(10), (salon.haircut, salon.xena), (salon.colour, salon.yusuf))

    assert resp.status_code == 400
    assert await _count(db, Appointment) == 1
    assert await _count(db, AppointmentServiceAssignment) == 1


@pytest.mark.asyncio
async def test_booking_requires_authentication(client, salon):
    resp = await client.post("/api/v1/appointments", json={"startTime": at_tuesday(10).isoformat(), "services": []})

    assert resp.status_code in (401, 403)


@pytest.mark.asyncio
async def test_allocator_sub_intervals_partition_the_appointment(db, customer, salon):
    allocator = BookingAllocator(db, SchedulingPolicy(), lambda: NOW)
    start = at_tuesday(9)

    appointment = await allocator.create_booking(
        customer.id,
        AssignmentList((
            BookingLine(salon.facial.id, salon.xena.id),
            BookingLine(salon.colour.id, salon.yusuf.id),
            BookingLine(salon.haircut.id, salon.xena.id),
        )),
        start,
    )

    total = timedelta(minutes=60 + 45 + 30)
    assert appointment.end_time - appointment.start_time == total
    cursor = appointment.start_time
    for position, assignment in enumerate(appointment.assignments):
        assert assignment.position == position
        assert assignment.start_time == cursor
        cursor = assignment.end_time
    assert cursor == appointment.end_time


@pytest.mark.asyncio
async def test_allocator_raises_typed_errors(db, customer, salon):
    allocator = BookingAllocator(db, SchedulingPolicy(), lambda: NOW)

    with pytest.raises(InvalidAssignment):
        await allocator.create_booking(
            customer.id, LegacySingle(BookingLine(salon.facial.id, salon.yusuf.id)), at_tuesday(10)
        )

    with pytest.raises(ConflictError) as exc:
        await allocator.create_booking(
            customer.id, LegacySingle(BookingLine(salon.facial.id, salon.xena.id)), at_tuesday(8)
        )
    assert exc.value.reason == "outside-hours"
    assert exc.value.staff_id == salon.xena.id


def test_assignment_list_cannot_be_empty():
    with pytest.raises(ValidationError):
        AssignmentList(())


def test_staff_lock_is_select_for_update():
    sql = str(lock_staff_query([uuid4()]).compile(dialect=postgresql.dialect()))

    assert "FOR UPDATE" in sql
    assert "ORDER BY staff.id" in sql


class LockRecordingAllocator(BookingAllocator):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.locked: list[set] = []

    async def _lock_staff(self, staff_ids) -> None:
        staff_ids = set(staff_ids)
        self.locked.append(staff_ids)
        await super()._lock_staff(staff_ids)


@pytest.mark.asyncio
async def test_reschedule_locks_every_staff_it_moves(client, db, customer, salon):
    resp = await book(client, customer, at_tuesday(10), (salon.haircut, salon.xena), (salon.colour, salon.yusuf))
    allocator = LockRecordingAllocator(db, SchedulingPolicy(), lambda: NOW)

    moved = await allocator.reschedule(UUID(resp.json()["id"]), at_tuesday(14), customer)

    assert allocator.locked == [{salon.xena.id, salon.yusuf.id}]
    assert moved.start_time == at_tuesday(14)
