"""
Host trust and reputation metrics.

Every metric is recomputed from the full booking / review history of the
host instead of being incremented, so re-running a recomputation with no new
events always yields the same values.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...models_hosting import BookingStatus, PetHost
from .repository import HostingRepository

logger = logging.getLogger(__name__)

CONFIRMED_OR_LATER = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED}
)

SUPER_HOST_MIN_RESPONSE_RATE = 90.0
SUPER_HOST_MIN_RATING = 4.8
SUPER_HOST_MIN_REVIEWS = 10
SUPER_HOST_MIN_COMPLETION_RATE = 95.0

MINIMUM_REVIEWS_FOR_DISPLAY = 3


@dataclass(frozen=True)
class ResponseMetrics:
    response_rate: float
    response_time_avg_hours: Optional[float]


@dataclass(frozen=True)
class RatingSummary:
    rating: float
    total_reviews: int


def _response_timestamp(booking):
    return booking.approved_at or booking.rejected_at


def compute_response_metrics(bookings: Iterable) -> ResponseMetrics:
    """
    response_rate: share of requests answered (approved or rejected), 0-100.
    response_time_avg_hours: mean hours from request to answer, None until
    the host has answered at least once.
    """
    bookings = list(bookings)
    total = len(bookings)
    responded = [b for b in bookings if _response_timestamp(b)]

    response_rate = (len(responded) / total) * 100 if total else 0.0

    avg_hours = None
    timed = [b for b in responded if b.created_at is not None]
    if timed:
        total_hours = sum(
            (_response_timestamp(b) - b.created_at).total_seconds() / 3600 for b in timed
        )
        avg_hours = round(total_hours / len(timed), 2)

    return ResponseMetrics(response_rate=round(response_rate, 2), response_time_avg_hours=avg_hours)


def compute_completion_rate(bookings: Iterable) -> float:
    """completed / (confirmed + in_progress + completed) x 100, 0 with no confirmed stays"""
    statuses = [BookingStatus(b.status) for b in bookings]
    confirmed = sum(1 for s in statuses if s in CONFIRMED_OR_LATER)
    completed = sum(1 for s in statuses if s == BookingStatus.COMPLETED)
    if not confirmed:
        return 0.0
    return round((completed / confirmed) * 100, 2)


def compute_rating(reviews: Iterable) -> RatingSummary:
    """Mean of the ``overall`` sub-rating across verified reviews"""
    overall = [r.overall for r in reviews if r.is_verified]
    if not overall:
        return RatingSummary(rating=0.0, total_reviews=0)
    return RatingSummary(rating=round(sum(overall) / len(overall), 2), total_reviews=len(overall))


def trust_score(
    is_verified: bool,
    is_super_host: bool,
    response_rate: float,
    completion_rate: float,
    rating: float,
) -> float:
    """Display-only 0-100 composite"""
    score = 0.0
    if is_verified:
        score += 20
    if is_super_host:
        score += 30
    score += (response_rate or 0) / 100 * 20
    score += (completion_rate or 0) / 100 * 20
    score += (rating or 0) / 5 * 10
    return round(min(100.0, score), 2)


def meets_super_host_criteria(
    response_rate: float, rating: float, total_reviews: int, completion_rate: float
) -> bool:
    return (
        response_rate >= SUPER_HOST_MIN_RESPONSE_RATE
        and rating >= SUPER_HOST_MIN_RATING
        and total_reviews >= SUPER_HOST_MIN_REVIEWS
        and completion_rate >= SUPER_HOST_MIN_COMPLETION_RATE
    )


def host_trust_score(host: PetHost) -> float:
    return trust_score(
        host.is_verified, host.is_super_host, host.response_rate, host.completion_rate, host.rating
    )


def host_can_become_super_host(host: PetHost) -> bool:
    return meets_super_host_criteria(
        host.response_rate, host.rating, host.total_reviews, host.completion_rate
    )


def host_has_minimum_reviews(host: PetHost) -> bool:
    return (host.total_reviews or 0) >= MINIMUM_REVIEWS_FOR_DISPLAY


class TrustScorer:
    """Applies recomputed metrics to a host row. The caller owns the transaction."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = HostingRepository()

    def refresh_response_metrics(self, host: PetHost) -> PetHost:
        self.db.flush()
        metrics = compute_response_metrics(self.repo.list_host_bookings(self.db, host.id))
        host.response_rate = metrics.response_rate
        if metrics.response_time_avg_hours is not None:
            host.response_time_avg_hours = metrics.response_time_avg_hours
        logger.info(
            f"📊 Host {host.id} response metrics: rate={metrics.response_rate}%, "
            f"avg_hours={metrics.response_time_avg_hours}"
        )
        return host

    def refresh_completion_rate(self, host: PetHost) -> PetHost:
        self.db.flush()
        host.completion_rate = compute_completion_rate(
            self.repo.list_host_bookings(self.db, host.id)
        )
        logger.info(f"📊 Host {host.id} completion rate: {host.completion_rate}%")
        self.award_super_host_if_eligible(host)
        return host

    def refresh_rating(self, host: PetHost) -> PetHost:
        self.db.flush()
        summary = compute_rating(self.repo.list_host_reviews(self.db, host.id))
        host.rating = summary.rating
        host.total_reviews = summary.total_reviews
        logger.info(f"📊 Host {host.id} rating: {summary.rating} ({summary.total_reviews} reviews)")
        self.award_super_host_if_eligible(host)
        return host

    def award_super_host_if_eligible(self, host: PetHost) -> PetHost:
        # The badge is only ever granted here, never revoked
        if not host.is_super_host and host_can_become_super_host(host):
            host.is_super_host = True
            logger.info(f"🏆 Host {host.id} earned super host badge")
        return host
