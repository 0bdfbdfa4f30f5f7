"""HTTP tests for the /pet-hosting endpoints."""

import inspect

import pytest
from conftest import jan
from fastapi.routing import APIRoute

from app.domain.hosting.router import router
from app.domain.hosting.schemas import BookingCreate, BookingDecision

BASE = "/pet-hosting"

HOST_PAYLOAD = {
    "bio": "Fenced yard",
    "address": "12 Oak Street",
    "city": "Austin",
    "state": "TX",
    "latitude": 30.2672,
    "longitude": -97.7431,
    "maxPets": 1,
    "baseDailyRate": 30,
    "petSizePreferences": ["medium", "large"],
    "amenities": ["yard"],
    "sizePricingTiers": {"small": 1.0, "medium": 1.2, "large": 1.5},
    "durationDiscounts": {"weekly": 0.1, "monthly": 0.2},
}


@pytest.fixture
def api_host(client, identity, host_user):
    identity.user = host_user
    response = client.post(f"{BASE}/hosts", json=HOST_PAYLOAD)
    assert response.status_code == 201
    return response.json()


def booking_payload(host_id, pet_id, check_in, check_out, **extra):
    return {
        "hostId": host_id,
        "petId": pet_id,
        "checkInDate": check_in.isoformat(),
        "checkOutDate": check_out.isoformat(),
        **extra,
    }


def review_payload(booking_id, overall=5):
    return {
        "bookingId": booking_id,
        "careQuality": 5,
        "communication": 5,
        "cleanliness": 4,
        "value": 4,
        "overall": overall,
        "comment": "Came home happy",
    }


# ── Hosts ──────────────────────────────────────────


class TestHostEndpoints:
    def test_create_and_fetch(self, client, api_host):
        assert api_host["city"] == "Austin"
        assert api_host["trustScore"] == 0
        assert api_host["hasMinimumReviews"] is False
        assert api_host["isSuperHost"] is False

        fetched = client.get(f"{BASE}/hosts/{api_host['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["baseDailyRate"] == 30.0

    def test_second_profile_conflicts(self, client, api_host):
        response = client.post(f"{BASE}/hosts", json=HOST_PAYLOAD)
        assert response.status_code == 409

    def test_my_profile(self, client, identity, api_host, owner):
        assert client.get(f"{BASE}/hosts/user/me").json()["id"] == api_host["id"]
        identity.user = owner
        assert client.get(f"{BASE}/hosts/user/me").status_code == 404

    def test_unknown_host(self, client):
        assert client.get(f"{BASE}/hosts/nope").status_code == 404

    def test_invalid_pricing_tables(self, client, identity, host_user):
        identity.user = host_user
        bad_tiers = {**HOST_PAYLOAD, "sizePricingTiers": {"enormous": 3.0}}
        assert client.post(f"{BASE}/hosts", json=bad_tiers).status_code == 422
        bad_discounts = {**HOST_PAYLOAD, "durationDiscounts": {"weekly": 1.5}}
        assert client.post(f"{BASE}/hosts", json=bad_discounts).status_code == 422

    def test_update_requires_ownership(self, client, identity, api_host, owner):
        identity.user = owner
        response = client.patch(f"{BASE}/hosts/{api_host['id']}", json={"bio": "hijacked"})
        assert response.status_code == 403

    def test_update(self, client, api_host):
        response = client.patch(f"{BASE}/hosts/{api_host['id']}", json={"maxPets": 3})
        assert response.status_code == 200
        assert response.json()["maxPets"] == 3

    def test_delete_unused_host(self, client, api_host):
        response = client.delete(f"{BASE}/hosts/{api_host['id']}")
        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert client.get(f"{BASE}/hosts/{api_host['id']}").status_code == 404


class TestSearchEndpoint:
    def test_filters(self, client, api_host):
        both = client.get(f"{BASE}/hosts", params={"city": "austin", "petSize": "large"}).json()
        assert [h["id"] for h in both["hosts"]] == [api_host["id"]]

        none = client.get(f"{BASE}/hosts/search", params={"petSize": "giant"}).json()
        assert none["total"] == 0

        amenity = client.get(f"{BASE}/hosts", params=[("amenities", "yard"), ("amenities", "pool")]).json()
        assert amenity["total"] == 0

    def test_radius_reports_distance(self, client, api_host):
        near = client.get(
            f"{BASE}/hosts", params={"latitude": 30.27, "longitude": -97.74, "radiusKm": 5}
        ).json()
        assert near["total"] == 1
        assert near["hosts"][0]["distanceKm"] < 1

        far = client.get(
            f"{BASE}/hosts", params={"latitude": 32.7767, "longitude": -96.797, "radiusKm": 50}
        ).json()
        assert far["total"] == 0

    def test_blocked_dates_exclude_host(self, client, api_host):
        client.post(
            f"{BASE}/hosts/{api_host['id']}/availability",
            json={"startDate": jan(1).isoformat(), "endDate": jan(20).isoformat(), "isBlocked": True},
        )
        params = {"checkInDate": jan(10).isoformat(), "checkOutDate": jan(12).isoformat()}
        assert client.get(f"{BASE}/hosts", params=params).json()["total"] == 0

        later = {"checkInDate": jan(21).isoformat(), "checkOutDate": jan(23).isoformat()}
        assert client.get(f"{BASE}/hosts", params=later).json()["total"] == 1

    def test_radius_above_maximum_rejected(self, client):
        response = client.get(f"{BASE}/hosts", params={"latitude": 0, "longitude": 0, "radiusKm": 500})
        assert response.status_code == 422

    def test_bad_sort_field_rejected(self, client):
        assert client.get(f"{BASE}/hosts", params={"sortBy": "password"}).status_code == 422


# ── Photos and calendar ──────────────────────────────────────────


class TestPhotoEndpoints:
    def test_primary_photo_shown_first(self, client, api_host):
        host_url = f"{BASE}/hosts/{api_host['id']}"
        client.post(f"{host_url}/photos", json={"photoUrl": "https://img/a.jpg", "isPrimary": True})
        second = client.post(
            f"{host_url}/photos", json={"photoUrl": "https://img/b.jpg", "isPrimary": True}
        ).json()

        photos = client.get(host_url).json()["photos"]
        assert len(photos) == 2
        assert photos[0]["id"] == second["id"]
        assert [p["isPrimary"] for p in photos] == [True, False]

    def test_delete_photo(self, client, api_host):
        host_url = f"{BASE}/hosts/{api_host['id']}"
        photo = client.post(f"{host_url}/photos", json={"photoUrl": "https://img/a.jpg"}).json()
        assert client.delete(f"{host_url}/photos/{photo['id']}").status_code == 200
        assert client.get(host_url).json()["photos"] == []


class TestAvailabilityEndpoints:
    def test_add_list_remove(self, client, api_host):
        url = f"{BASE}/hosts/{api_host['id']}/availability"
        created = client.post(
            url,
            json={"startDate": jan(3).isoformat(), "endDate": jan(6).isoformat(), "maxPetsAvailable": 0},
        )
        assert created.status_code == 201
        assert created.json()["maxPetsAvailable"] == 0

        assert len(client.get(url).json()) == 1
        assert client.delete(f"{url}/{created.json()['id']}").status_code == 200
        assert client.get(url).json() == []

    def test_end_before_start(self, client, api_host):
        response = client.post(
            f"{BASE}/hosts/{api_host['id']}/availability",
            json={"startDate": jan(6).isoformat(), "endDate": jan(3).isoformat()},
        )
        assert response.status_code == 400


# ── Bookings ──────────────────────────────────────────


class TestBookingFlow:
    def test_quote(self, client, identity, api_host, owner, pet):
        identity.user = owner
        response = client.post(
            f"{BASE}/bookings/quote", json=booking_payload(api_host["id"], pet.id, jan(5), jan(12))
        )
        assert response.status_code == 200
        body = response.json()
        assert body["durationDays"] == 7
        assert body["basePrice"] == 315.0
        assert body["totalPrice"] == 283.5

    def test_full_lifecycle_and_review(self, client, identity, api_host, host_user, owner, pet):
        identity.user = owner
        created = client.post(
            f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(5), jan(12))
        )
        assert created.status_code == 201
        booking = created.json()
        assert booking["status"] == "pending_approval"
        assert booking["totalPrice"] == 283.5
        assert booking["durationDays"] == 7
        url = f"{BASE}/bookings/{booking['id']}"

        identity.user = host_user
        assert client.post(f"{url}/approve", json={"approve": True}).json()["status"] == "approved"

        identity.user = owner
        confirmed = client.post(f"{url}/confirm").json()
        assert confirmed["status"] == "confirmed"
        assert confirmed["paymentStatus"] == "paid"

        identity.user = host_user
        assert client.post(f"{url}/start").json()["status"] == "in_progress"
        assert client.post(f"{url}/complete").json()["status"] == "completed"

        identity.user = owner
        assert client.get(url).json()["canBeReviewed"] is True
        review = client.post(f"{BASE}/hosts/{api_host['id']}/reviews", json=review_payload(booking["id"]))
        assert review.status_code == 201
        assert review.json()["averageRating"] == 4.6
        assert client.get(url).json()["canBeReviewed"] is False

        again = client.post(f"{BASE}/hosts/{api_host['id']}/reviews", json=review_payload(booking["id"]))
        assert again.status_code == 409

        host = client.get(f"{BASE}/hosts/{api_host['id']}").json()
        assert host["rating"] == 5.0
        assert host["totalReviews"] == 1
        assert host["completionRate"] == 100.0

    def test_reject_requires_reason(self, client, identity, api_host, host_user, owner, pet):
        identity.user = owner
        booking = client.post(
            f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(5), jan(8))
        ).json()

        identity.user = host_user
        url = f"{BASE}/bookings/{booking['id']}/approve"
        assert client.post(url, json={"approve": False}).status_code == 400
        rejected = client.post(url, json={"approve": False, "rejectionReason": "Away that week"})
        assert rejected.json()["status"] == "rejected"
        assert rejected.json()["rejectionReason"] == "Away that week"

    def test_owner_cannot_approve(self, client, identity, api_host, owner, pet):
        identity.user = owner
        booking = client.post(
            f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(5), jan(8))
        ).json()
        response = client.post(f"{BASE}/bookings/{booking['id']}/approve", json={"approve": True})
        assert response.status_code == 403

    def test_stranger_cannot_view(self, client, identity, api_host, owner, pet, make_user):
        identity.user = owner
        booking = client.post(
            f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(5), jan(8))
        ).json()
        identity.user = make_user()
        assert client.get(f"{BASE}/bookings/{booking['id']}").status_code == 403

    def test_pet_double_booking_conflicts(self, client, identity, api_host, owner, pet):
        identity.user = owner
        client.post(f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(5), jan(8)))
        response = client.post(
            f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(7), jan(9))
        )
        assert response.status_code == 409

    def test_invalid_dates(self, client, identity, api_host, owner, pet):
        identity.user = owner
        response = client.post(
            f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(8), jan(8))
        )
        assert response.status_code == 400

    def test_update_reprices(self, client, identity, api_host, owner, pet):
        identity.user = owner
        booking = client.post(
            f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(5), jan(8))
        ).json()
        assert booking["totalPrice"] == 135.0

        updated = client.patch(
            f"{BASE}/bookings/{booking['id']}",
            json={"checkOutDate": jan(12).isoformat(), "specialInstructions": "Two walks a day"},
        ).json()
        assert updated["totalPrice"] == 283.5
        assert updated["specialInstructions"] == "Two walks a day"

    def test_cancel_keeps_record(self, client, identity, api_host, owner, pet):
        identity.user = owner
        booking = client.post(
            f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(5), jan(8))
        ).json()
        cancelled = client.delete(f"{BASE}/bookings/{booking['id']}")
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"
        assert cancelled.json()["cancelledBy"] == owner.id

        assert client.delete(f"{BASE}/bookings/{booking['id']}").status_code == 400

    def test_delete_host_with_bookings_deactivates(self, client, identity, api_host, host_user, owner, pet):
        identity.user = owner
        client.post(f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(5), jan(8)))

        identity.user = host_user
        response = client.delete(f"{BASE}/hosts/{api_host['id']}")
        assert response.json()["deleted"] is False
        assert client.get(f"{BASE}/hosts/{api_host['id']}").status_code == 404


class TestBookingLists:
    def test_owner_and_host_lists(self, client, identity, api_host, host_user, owner, pet, make_pet):
        identity.user = owner
        client.post(f"{BASE}/bookings", json=booking_payload(api_host["id"], pet.id, jan(5), jan(8)))
        bella = make_pet(owner, name="Bella")
        client.post(f"{BASE}/bookings", json=booking_payload(api_host["id"], bella.id, jan(9), jan(10)))

        mine = client.get(f"{BASE}/bookings/my-bookings").json()
        assert mine["total"] == 2
        assert client.get(f"{BASE}/bookings", params={"petId": bella.id}).json()["total"] == 1
        assert client.get(f"{BASE}/bookings", params={"hostId": api_host["id"]}).status_code == 403
        assert client.get(f"{BASE}/bookings/host/my-bookings").status_code == 404

        identity.user = host_user
        hosted = client.get(f"{BASE}/bookings/host/my-bookings", params={"limit": 1}).json()
        assert hosted["total"] == 2
        assert hosted["totalPages"] == 2
        assert len(hosted["bookings"]) == 1


# ── Reviews ──────────────────────────────────────────


class TestReviewEndpoints:
    @pytest.fixture
    def completed(self, service, api_host, host_user, owner, pet):
        booking = service.create_booking(
            BookingCreate(hostId=api_host["id"], petId=pet.id, checkInDate=jan(5), checkOutDate=jan(10)),
            owner,
        )
        service.decide_booking(booking.id, BookingDecision(approve=True), host_user)
        service.confirm_booking(booking.id, owner)
        service.start_stay(booking.id, host_user)
        return service.complete_stay(booking.id, host_user)

    def test_rating_out_of_range(self, client, identity, api_host, owner, completed):
        identity.user = owner
        payload = {**review_payload(completed.id), "overall": 6}
        response = client.post(f"{BASE}/hosts/{api_host['id']}/reviews", json=payload)
        assert response.status_code == 422

    def test_host_replies_once(self, client, identity, api_host, host_user, owner, completed):
        identity.user = owner
        review = client.post(
            f"{BASE}/hosts/{api_host['id']}/reviews", json=review_payload(completed.id)
        ).json()

        url = f"{BASE}/reviews/{review['id']}/response"
        assert client.post(url, json={"response": "Thanks!"}).status_code == 403

        identity.user = host_user
        first = client.post(url, json={"response": "Thanks!"})
        assert first.status_code == 200
        assert first.json()["hostResponse"] == "Thanks!"
        assert client.post(url, json={"response": "Again"}).status_code == 400

        listed = client.get(f"{BASE}/hosts/{api_host['id']}/reviews").json()
        assert [r["hostResponse"] for r in listed] == ["Thanks!"]


# ── Routing ──────────────────────────────────────────


class TestRouter:
    def test_handlers_run_in_the_threadpool(self):
        # Blocking session calls must stay off the event loop
        endpoints = [route.endpoint for route in router.routes if isinstance(route, APIRoute)]
        assert endpoints
        assert not [e.__name__ for e in endpoints if inspect.iscoroutinefunction(e)]
