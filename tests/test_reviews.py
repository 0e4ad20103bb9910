"""Tests for customer reviews and staff responses."""

import pytest

from conftest import at_tuesday, auth, book, mark_paid


async def _completed(client, db, customer, admin, salon) -> str:
    resp = await book(client, customer, at_tuesday(10), (salon.haircut, salon.xena), (salon.colour, salon.yusuf))
    appointment_id = resp.json()["id"]
    await mark_paid(db, appointment_id)
    done = await client.put(f"/api/v1/appointments/{appointment_id}/complete", headers=auth(admin))
    assert done.status_code == 200, done.text
    return appointment_id


async def _review(client, user, appointment_id, service, rating=5, comment="Lovely"):
    return await client.post(
        "/api/v1/reviews",
        json={"appointmentId": appointment_id, "serviceId": str(service.id), "rating": rating, "comment": comment},
        headers=auth(user),
    )


@pytest.mark.asyncio
async def test_review_attributed_to_staff_who_did_the_service(client, db, customer, admin, salon):
    appointment_id = await _completed(client, db, customer, admin, salon)

    resp = await _review(client, customer, appointment_id, salon.colour, rating=4)

    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["staffId"] == str(salon.yusuf.id)
    assert data["rating"] == 4
    assert data["service"]["name"] == "Hair Colour"


@pytest.mark.asyncio
async def test_review_cannot_be_credited_to_another_staff(client, db, customer, admin, salon, xena_user):
    appointment_id = await _completed(client, db, customer, admin, salon)

    resp = await client.post(
        "/api/v1/reviews",
        json={
            "appointmentId": appointment_id,
            "serviceId": str(salon.colour.id),
            "staffId": str(salon.xena.id),
            "rating": 1,
        },
        headers=auth(customer),
    )

    assert resp.status_code == 201
    assert resp.json()["staffId"] == str(salon.yusuf.id)

    reply = await client.put(
        f"/api/v1/reviews/{resp.json()['id']}/response", json={"response": "Sorry!"}, headers=auth(xena_user)
    )
    assert reply.status_code == 403


@pytest.mark.asyncio
async def test_each_service_reviewed_once(client, db, customer, admin, salon):
    appointment_id = await _completed(client, db, customer, admin, salon)

    first = await _review(client, customer, appointment_id, salon.haircut)
    again = await _review(client, customer, appointment_id, salon.haircut)
    other = await _review(client, customer, appointment_id, salon.colour)

    assert first.status_code == 201
    assert again.status_code == 400
    assert again.json()["detail"] == "You have already reviewed this service for this appointment"
    assert other.status_code == 201

    listed = await client.get("/api/v1/reviews")
    assert len(listed.json()) == 2


@pytest.mark.asyncio
async def test_only_completed_appointments_can_be_reviewed(client, customer, salon):
    resp = await book(client, customer, at_tuesday(10), (salon.haircut, salon.xena))

    review = await _review(client, customer, resp.json()["id"], salon.haircut)

    assert review.status_code == 400
    assert review.json()["detail"] == "You can only review completed appointments"


@pytest.mark.asyncio
async def test_cannot_review_someone_elses_appointment(client, db, customer, other_customer, admin, salon):
    appointment_id = await _completed(client, db, customer, admin, salon)

    resp = await _review(client, other_customer, appointment_id, salon.haircut)

    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_service_must_be_part_of_the_appointment(client, db, customer, admin, salon):
    appointment_id = await _completed(client, db, customer, admin, salon)

    resp = await _review(client, customer, appointment_id, salon.facial)

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Service not found in this appointment"


@pytest.mark.asyncio
async def test_rating_out_of_range_is_rejected(client, db, customer, admin, salon):
    appointment_id = await _completed(client, db, customer, admin, salon)

    resp = await _review(client, customer, appointment_id, salon.haircut, rating=6)

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_staff_respond_to_their_own_reviews(client, db, customer, admin, salon, xena_user, yusuf_user):
    appointment_id = await _completed(client, db, customer, admin, salon)
    review_id = (await _review(client, customer, appointment_id, salon.haircut)).json()["id"]

    wrong = await client.put(
        f"/api/v1/reviews/{review_id}/response", json={"response": "Thanks!"}, headers=auth(yusuf_user)
    )
    right = await client.put(
        f"/api/v1/reviews/{review_id}/response", json={"response": "Thanks, Priya!"}, headers=auth(xena_user)
    )

    assert wrong.status_code == 403
    assert wrong.json()["detail"] == "You can only respond to reviews for services you provided"
    assert right.status_code == 200
    assert right.json()["staffResponse"] == "Thanks, Priya!"

    fetched = await client.get(f"/api/v1/reviews/{review_id}")
    assert fetched.json()["staffResponse"] == "Thanks, Priya!"


@pytest.mark.asyncio
async def test_admin_may_respond_and_customer_may_not(client, db, customer, admin, salon):
    appointment_id = await _completed(client, db, customer, admin, salon)
    review_id = (await _review(client, customer, appointment_id, salon.haircut)).json()["id"]

    by_customer = await client.put(
        f"/api/v1/reviews/{review_id}/response", json={"response": "Me too"}, headers=auth(customer)
    )
    by_admin = await client.put(
        f"/api/v1/reviews/{review_id}/response", json={"response": "Glad you enjoyed it"}, headers=auth(admin)
    )

    assert by_customer.status_code == 403
    assert by_admin.status_code == 200


@pytest.mark.asyncio
async def test_unknown_review_is_not_found(client):
    resp = await client.get("/api/v1/reviews/00000000-0000-0000-0000-000000000000")

    assert resp.status_code == 404
