"""Tests for host metrics, trust score and the super host badge."""

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from conftest import jan

from app.domain.hosting.schemas import BookingDecision, ReviewCreate
from app.domain.hosting.trust import (
    TrustScorer,
    compute_completion_rate,
    compute_rating,
    compute_response_metrics,
    host_can_become_super_host,
    trust_score,
)

CREATED = datetime(2030, 1, 1, 8, 0)


def req(status="pending_approval", approved_after=None, rejected_after=None):
    return SimpleNamespace(
        status=status,
        created_at=CREATED,
        approved_at=CREATED + timedelta(hours=approved_after) if approved_after is not None else None,
        rejected_at=CREATED + timedelta(hours=rejected_after) if rejected_after is not None else None,
    )


def host_with(**metrics):
    values = {
        "is_verified": False,
        "is_super_host": False,
        "response_rate": 92.0,
        "completion_rate": 96.0,
        "rating": 4.85,
        "total_reviews": 12,
    }
    values.update(metrics)
    return SimpleNamespace(id="host-1", **values)


# ── Response metrics ──────────────────────────────────────────


class TestResponseMetrics:
    def test_no_requests(self):
        metrics = compute_response_metrics([])
        assert metrics.response_rate == 0
        assert metrics.response_time_avg_hours is None

    def test_average_left_unset_until_first_response(self):
        metrics = compute_response_metrics([req(), req()])
        assert metrics.response_rate == 0
        assert metrics.response_time_avg_hours is None

    def test_rate_and_average(self):
        bookings = [
            req("approved", approved_after=2),
            req("rejected", rejected_after=4),
            req(),
            req(),
        ]
        metrics = compute_response_metrics(bookings)
        assert metrics.response_rate == 50.0
        assert metrics.response_time_avg_hours == 3.0


class TestCompletionRate:
    def test_no_confirmed_stays(self):
        assert compute_completion_rate([req(), req("approved"), req("cancelled")]) == 0.0

    def test_completed_over_confirmed_or_later(self):
        bookings = [req("confirmed"), req("in_progress"), req("completed"), req("completed")]
        assert compute_completion_rate(bookings) == 50.0


class TestRating:
    def test_no_reviews(self):
        summary = compute_rating([])
        assert (summary.rating, summary.total_reviews) == (0.0, 0)

    def test_mean_of_overall(self):
        reviews = [SimpleNamespace(overall=v, is_verified=True) for v in (5, 4, 4)]
        summary = compute_rating(reviews)
        assert summary.rating == 4.33
        assert summary.total_reviews == 3


# ── Trust score ──────────────────────────────────────────


class TestTrustScore:
    def test_zero_host(self):
        assert trust_score(False, False, 0, 0, 0) == 0

    def test_components(self):
        # 20 + 30 + 20*0.5 + 20*1.0 + 10*(4/5)
        assert trust_score(True, True, 50, 100, 4) == 88.0

    def test_capped_at_100(self):
        assert trust_score(True, True, 100, 100, 5) == 100


# ── Super host ──────────────────────────────────────────


class TestSuperHost:
    def test_eligible_host_gets_badge(self):
        host = host_with()
        TrustScorer(db=None).award_super_host_if_eligible(host)
        assert host.is_super_host is True

    @pytest.mark.parametrize(
        "metric,value",
        [("response_rate", 89.9), ("completion_rate", 94.0), ("rating", 4.79), ("total_reviews", 9)],
    )
    def test_one_metric_below_threshold(self, metric, value):
        host = host_with(**{metric: value})
        assert not host_can_become_super_host(host)
        TrustScorer(db=None).award_super_host_if_eligible(host)
        assert host.is_super_host is False

    def test_badge_is_never_revoked(self):
        host = host_with(rating=3.0, is_super_host=True)
        TrustScorer(db=None).award_super_host_if_eligible(host)
        assert host.is_super_host is True


# ── Recompute from history ──────────────────────────────────────────


class TestRecomputation:
    def test_recompute_is_idempotent(self, service, host, book, make_pet, owner, pet, db):
        done = book(pet, jan(5), jan(10), status="completed")
        book(make_pet(owner, name="Bella"), jan(12), jan(14))
        service.create_review(
            host.id,
            ReviewCreate(bookingId=done.id, careQuality=5, communication=4, cleanliness=5, value=4, overall=5),
            owner,
        )

        scorer = TrustScorer(db)

        def snapshot():
            scorer.refresh_response_metrics(host)
            scorer.refresh_completion_rate(host)
            scorer.refresh_rating(host)
            return (
                host.response_rate,
                host.response_time_avg_hours,
                host.completion_rate,
                host.rating,
                host.total_reviews,
                host.is_super_host,
            )

        assert snapshot() == snapshot()

    def test_lifecycle_updates_host_metrics(self, service, host, host_user, book, make_pet, owner, pet):
        first = book(pet, jan(5), jan(10))
        book(make_pet(owner, name="Bella"), jan(12), jan(14))
        assert host.response_rate == 0.0

        service.decide_booking(first.id, BookingDecision(approve=True), host_user)
        assert host.response_rate == 50.0
        assert host.response_time_avg_hours is not None

        service.confirm_booking(first.id, owner)
        assert host.completion_rate == 0.0
        service.start_stay(first.id, host_user)
        service.complete_stay(first.id, host_user)
        assert host.completion_rate == 100.0

    def test_review_updates_rating(self, service, host, book, owner, pet):
        done = book(pet, jan(5), jan(10), status="completed")
        service.create_review(
            host.id,
            ReviewCreate(bookingId=done.id, careQuality=4, communication=4, cleanliness=4, value=4, overall=4),
            owner,
        )
        assert host.rating == 4.0
        assert host.total_reviews == 1
