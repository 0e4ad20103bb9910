"""Tests for staff availability windows and slot generation."""

from datetime import date, datetime, time, timedelta
from uuid import uuid4

import pytest

from conftest import NOW, TUESDAY, at_tuesday, auth, book
from salonbook.core.errors import ConflictError, ValidationError
from salonbook.core.policy import SchedulingPolicy
from salonbook.services import availability
from salonbook.services.intervals import day_of_week, overlaps
from salonbook.services.slots import FULLY_BOOKED_MESSAGE, PAST_DATE_MESSAGE, generate_slots, iter_slots


def test_overlap_is_half_open():
    nine, ten, eleven = (datetime(2026, 3, 3, h) for h in (9, 10, 11))
    assert overlaps(nine, ten, datetime(2026, 3, 3, 9, 30), eleven)
    assert not overlaps(nine, ten, ten, eleven)
    assert not overlaps(ten, eleven, nine, ten)


def test_day_of_week_counts_from_sunday():
    assert day_of_week(date(2026, 3, 1)) == 0  # Sunday
    assert day_of_week(TUESDAY) == 2
    assert day_of_week(date(2026, 3, 7)) == 6  # Saturday


def test_iter_slots_skips_busy_and_past_candidates():
    busy = [(at_tuesday(10), at_tuesday(11))]
    now = at_tuesday(9, 10)

    slots = iter_slots(TUESDAY, time(9), time(12), timedelta(minutes=60), busy, now, timedelta(minutes=30))

    assert [s.start_time.time() for s in slots] == [time(11)]


def test_iter_slots_is_restartable():
    args = (TUESDAY, time(9), time(10), timedelta(minutes=30), [], NOW, timedelta(minutes=30))
    assert list(iter_slots(*args)) == list(iter_slots(*args))
    assert [s.display_time for s in iter_slots(*args)] == ["09:00 AM", "09:30 AM"]


# ============================================================================
# AVAILABILITY STORE
# ============================================================================

@pytest.mark.asyncio
async def test_windows_are_listed_in_order(db, salon):
    await availability.add_window(db, salon.xena.id, 1, time(9), time(13))

    windows = await availability.list_windows(db, salon.xena.id)

    assert [(w.day_of_week, w.start_time) for w in windows] == [(1, time(9)), (2, time(9))]
    assert (await availability.get_window(db, salon.xena.id, 2)).end_time == time(18)
    assert await availability.get_window(db, salon.xena.id, 5) is None


@pytest.mark.asyncio
async def test_split_shift_windows_may_touch(db, salon):
    await availability.add_window(db, salon.xena.id, 4, time(9), time(12))
    await availability.add_window(db, salon.xena.id, 4, time(12), time(17))

    windows = await availability.get_windows(db, salon.xena.id, 4)

    assert len(windows) == 2


@pytest.mark.asyncio
async def test_overlapping_window_is_rejected(db, salon):
    with pytest.raises(ConflictError):
        await availability.add_window(db, salon.xena.id, 2, time(17), time(20))


@pytest.mark.asyncio
async def test_window_must_open_before_it_closes(db, salon):
    with pytest.raises(ValidationError):
        await availability.add_window(db, salon.xena.id, 3, time(12), time(9))


@pytest.mark.asyncio
async def test_update_checks_against_other_windows_only(db, salon):
    window = await availability.get_window(db, salon.xena.id, 2)

    updated = await availability.update_window(db, window.id, {"end_time": time(19)})

    assert updated.end_time == time(19)


@pytest.mark.asyncio
async def test_admin_replaces_schedule(client, admin, salon):
    resp = await client.post(
        f"/api/v1/availability/staff/{salon.xena.id}",
        json={"schedules": [
            {"dayOfWeek": 1, "startTime": "10:00", "endTime": "14:00"},
            {"dayOfWeek": 1, "startTime": "15:00", "endTime": "19:00"},
        ]},
        headers=auth(admin),
    )

    assert resp.status_code == 201, resp.text
    assert [(w["dayOfWeek"], w["startTime"]) for w in resp.json()] == [(1, "10:00:00"), (1, "15:00:00")]

    listed = await client.get(f"/api/v1/availability/staff/{salon.xena.id}")
    assert len(listed.json()) == 2


@pytest.mark.asyncio
async def test_schedule_batch_with_overlap_is_rejected_whole(client, admin, salon):
    resp = await client.post(
        f"/api/v1/availability/staff/{salon.xena.id}",
        json={"schedules": [
            {"dayOfWeek": 1, "startTime": "10:00", "endTime": "14:00"},
            {"dayOfWeek": 1, "startTime": "13:00", "endTime": "19:00"},
        ]},
        headers=auth(admin),
    )

    assert resp.status_code == 400
    listed = await client.get(f"/api/v1/availability/staff/{salon.xena.id}")
    assert [w["dayOfWeek"] for w in listed.json()] == [2]


@pytest.mark.asyncio
async def test_schedule_changes_require_admin(client, customer, salon):
    resp = await client.post(
        f"/api/v1/availability/staff/{salon.xena.id}/schedule",
        json={"dayOfWeek": 3, "startTime": "09:00", "endTime": "17:00"},
        headers=auth(customer),
    )

    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_add_update_and_delete_window(client, admin, salon):
    created = await client.post(
        f"/api/v1/availability/staff/{salon.xena.id}/schedule",
        json={"dayOfWeek": 3, "startTime": "09:00", "endTime": "17:00"},
        headers=auth(admin),
    )
    assert created.status_code == 201
    window_id = created.json()["id"]

    updated = await client.put(
        f"/api/v1/availability/{window_id}", json={"endTime": "18:30"}, headers=auth(admin)
    )
    assert updated.json()["endTime"] == "18:30:00"

    deleted = await client.delete(f"/api/v1/availability/{window_id}", headers=auth(admin))
    assert deleted.json()["message"] == "Schedule deleted successfully"

    missing = await client.delete(f"/api/v1/availability/{window_id}", headers=auth(admin))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_unknown_staff_is_not_found(client, admin, salon):
    resp = await client.post(
        f"/api/v1/availability/staff/{uuid4()}/schedule",
        json={"dayOfWeek": 3, "startTime": "09:00", "endTime": "17:00"},
        headers=auth(admin),
    )

    assert resp.status_code == 404


# ============================================================================
# SLOTS
# ============================================================================

@pytest.mark.asyncio
async def test_slots_skip_booked_time_and_closing(client, db, customer, salon):
    await availability.set_windows(
        db, salon.xena.id, [{"day_of_week": 2, "start_time": time(9), "end_time": time(12)}]
    )
    booked = await book(client, customer, at_tuesday(10), (salon.facial, salon.xena))
    assert booked.status_code == 201

    resp = await client.get(
        "/api/v1/availability/available-slots",
        params={"staffId": str(salon.xena.id), "serviceId": str(salon.facial.id), "date": "2026-03-03"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert [s["startTime"] for s in data["slots"]] == ["2026-03-03T09:00:00", "2026-03-03T11:00:00"]
    assert [s["displayTime"] for s in data["slots"]] == ["09:00 AM", "11:00 AM"]
    assert data["message"] is None


@pytest.mark.asyncio
async def test_staff_busy_in_another_staffs_booking_has_no_slot(client, db, customer, salon):
    """Yusuf is assigned the colour inside an appointment whose primary staff is Xena."""
    await book(client, customer, at_tuesday(9), (salon.haircut, salon.xena), (salon.colour, salon.yusuf))

    result = await generate_slots(db, salon.yusuf.id, salon.colour.id, TUESDAY, NOW, SchedulingPolicy())

    starts = [s.start_time.time() for s in result.slots]
    assert starts[0] == time(10, 30)


@pytest.mark.asyncio
async def test_past_date_returns_message(client, salon):
    resp = await client.get(
        "/api/v1/availability/available-slots",
        params={"staffId": str(salon.xena.id), "serviceId": str(salon.haircut.id), "date": "2026-03-01"},
    )

    assert resp.json() == {"slots": [], "message": PAST_DATE_MESSAGE}


@pytest.mark.asyncio
async def test_day_without_window_has_no_slots(client, salon):
    resp = await client.get(
        "/api/v1/availability/available-slots",
        params={"staffId": str(salon.xena.id), "serviceId": str(salon.haircut.id), "date": "2026-03-04"},
    )

    assert resp.json() == {"slots": [], "message": None}


@pytest.mark.asyncio
async def test_fully_booked_day_says_so(client, db, customer, salon):
    await availability.set_windows(
        db, salon.xena.id, [{"day_of_week": 2, "start_time": time(9), "end_time": time(10)}]
    )
    await book(client, customer, at_tuesday(9), (salon.facial, salon.xena))

    result = await generate_slots(db, salon.xena.id, salon.facial.id, TUESDAY, NOW, SchedulingPolicy())

    assert result.slots == []
    assert result.message == FULLY_BOOKED_MESSAGE


@pytest.mark.asyncio
async def test_slots_require_all_parameters(client, salon):
    resp = await client.get("/api/v1/availability/available-slots", params={"staffId": str(salon.xena.id)})

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_slots_for_unknown_service_are_not_found(client, salon):
    resp = await client.get(
        "/api/v1/availability/available-slots",
        params={"staffId": str(salon.xena.id), "serviceId": str(uuid4()), "date": "2026-03-03"},
    )

    assert resp.status_code == 404
