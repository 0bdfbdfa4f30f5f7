"""Hosting router - FastAPI endpoints for hosts, bookings, calendar, reviews and photos"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...config import BOOKING_RATE_LIMIT, BOOKING_RATE_WINDOW_SECONDS, MAX_SEARCH_RADIUS_KM
from ...database import get_db
from ...models import User
from ...models_hosting import (
    BookingStatus,
    HostAvailability,
    HostingBooking,
    HostPhoto,
    HostReview,
    PetHost,
    PetSize,
    utc_now,
)
from ...rate_limiter import create_rate_limiter
from . import state_machine
from .pricing import PriceBreakdown
from .schemas import (
    AvailabilityCreate,
    AvailabilityResponse,
    BookingCreate,
    BookingDecision,
    BookingListResponse,
    BookingResponse,
    BookingUpdate,
    HostCreate,
    HostResponse,
    HostSearchResponse,
    HostUpdate,
    PhotoCreate,
    PhotoResponse,
    QuoteRequest,
    QuoteResponse,
    ReviewCreate,
    ReviewReply,
    ReviewResponse,
)
from .service import HostingService
from .trust import host_can_become_super_host, host_has_minimum_reviews, host_trust_score

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pet-hosting", tags=["Pet Hosting"])

booking_create_rate_limit = create_rate_limiter(
    limit=BOOKING_RATE_LIMIT,
    window_seconds=BOOKING_RATE_WINDOW_SECONDS,
    key_prefix="booking_create",
)

SORT_FIELDS = "^(rating|base_daily_rate|response_rate|total_reviews|created_at)$"


def get_hosting_service(db: Session = Depends(get_db)) -> HostingService:
    """Dependency injection for HostingService"""
    return HostingService(db)


# ============================================================================
# RESPONSE BUILDERS
# ============================================================================


def _photo_response(photo: HostPhoto) -> PhotoResponse:
    return PhotoResponse(
        id=photo.id,
        hostId=photo.host_id,
        photoUrl=photo.photo_url,
        caption=photo.caption,
        category=photo.category,
        isPrimary=photo.is_primary,
        createdAt=photo.created_at,
    )


def _host_response(
    host: PetHost, photos: Optional[list[HostPhoto]] = None, distance_km: Optional[float] = None
) -> HostResponse:
    return HostResponse(
        id=host.id,
        userId=host.user_id,
        bio=host.bio,
        experienceYears=host.experience_years,
        certifications=host.certifications or [],
        address=host.address,
        city=host.city,
        state=host.state,
        postalCode=host.postal_code,
        country=host.country,
        latitude=host.latitude,
        longitude=host.longitude,
        maxPets=host.max_pets,
        petSizePreferences=host.pet_size_preferences or [],
        amenities=host.amenities or [],
        servicesOffered=host.services_offered or [],
        baseDailyRate=float(host.base_daily_rate),
        sizePricingTiers=host.size_pricing_tiers or {},
        durationDiscounts=host.duration_discounts or {},
        responseRate=host.response_rate,
        completionRate=host.completion_rate,
        responseTimeAvgHours=host.response_time_avg_hours,
        rating=host.rating,
        totalReviews=host.total_reviews,
        isVerified=host.is_verified,
        isActive=host.is_active,
        isSuperHost=host.is_super_host,
        trustScore=host_trust_score(host),
        hasMinimumReviews=host_has_minimum_reviews(host),
        canBecomeSuperHost=host_can_become_super_host(host),
        distanceKm=distance_km,
        photos=[_photo_response(p) for p in photos or []],
        createdAt=host.created_at,
    )


def _booking_response(booking: HostingBooking, has_review: bool) -> BookingResponse:
    today = utc_now().date()
    return BookingResponse(
        id=booking.id,
        hostId=booking.host_id,
        petId=booking.pet_id,
        ownerId=booking.owner_id,
        checkInDate=booking.check_in_date,
        checkOutDate=booking.check_out_date,
        basePrice=float(booking.base_price),
        sizeMultiplier=booking.size_multiplier,
        durationDiscount=booking.duration_discount,
        additionalServicesFee=float(booking.additional_services_fee),
        totalPrice=float(booking.total_price),
        status=booking.status,
        paymentStatus=booking.payment_status,
        approvedAt=booking.approved_at,
        rejectedAt=booking.rejected_at,
        rejectionReason=booking.rejection_reason,
        startedAt=booking.started_at,
        completedAt=booking.completed_at,
        cancelledAt=booking.cancelled_at,
        cancelledBy=booking.cancelled_by,
        additionalServices=booking.additional_services or [],
        medicationSchedule=booking.medication_schedule or [],
        specialInstructions=booking.special_instructions,
        dietaryNeeds=booking.dietary_needs,
        durationDays=state_machine.duration_days(booking),
        canBeReviewed=state_machine.can_be_reviewed(booking, has_review),
        isOverdue=state_machine.is_overdue(booking, today),
        isUpcoming=state_machine.is_upcoming(booking, today),
        createdAt=booking.created_at,
    )


def _booking_list_response(result: dict, service: HostingService) -> BookingListResponse:
    reviewed = service.reviewed_booking_ids(result["bookings"])
    return BookingListResponse(
        bookings=[_booking_response(b, b.id in reviewed) for b in result["bookings"]],
        total=result["total"],
        page=result["page"],
        totalPages=result["total_pages"],
    )


def _availability_response(block: HostAvailability) -> AvailabilityResponse:
    return AvailabilityResponse(
        id=block.id,
        hostId=block.host_id,
        startDate=block.start_date,
        endDate=block.end_date,
        maxPetsAvailable=block.max_pets_available,
        customDailyRate=float(block.custom_daily_rate) if block.custom_daily_rate is not None else None,
        isBlocked=block.is_blocked,
    )


def _review_response(review: HostReview) -> ReviewResponse:
    ratings = [
        review.care_quality,
        review.communication,
        review.cleanliness,
        review.value,
        review.overall,
    ]
    return ReviewResponse(
        id=review.id,
        hostId=review.host_id,
        bookingId=review.booking_id,
        userId=review.user_id,
        petId=review.pet_id,
        careQuality=review.care_quality,
        communication=review.communication,
        cleanliness=review.cleanliness,
        value=review.value,
        overall=review.overall,
        averageRating=round(sum(ratings) / len(ratings), 2),
        title=review.title,
        comment=review.comment,
        reviewPhotos=review.review_photos or [],
        hostResponse=review.host_response,
        hostResponseDate=review.host_response_date,
        isVerified=review.is_verified,
        createdAt=review.created_at,
    )


def _quote_response(price: PriceBreakdown) -> QuoteResponse:
    return QuoteResponse(
        durationDays=price.duration_days,
        basePrice=float(price.base_price),
        sizeMultiplier=price.size_multiplier,
        durationDiscount=price.duration_discount,
        additionalServicesFee=float(price.additional_services_fee),
        totalPrice=float(price.total_price),
    )


# ============================================================================
# HOSTS
# ============================================================================


@router.post("/hosts", response_model=HostResponse, status_code=201)
def create_host(
    data: HostCreate,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Create a host profile for the current user"""
    return _host_response(service.create_host(data, current_user))


@router.get("/hosts", response_model=HostSearchResponse)
@router.get("/hosts/search", response_model=HostSearchResponse)
def search_hosts(
    search: Optional[str] = Query(None, description="Matches bio, city or address"),
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    verifiedOnly: bool = Query(False),
    superHostOnly: bool = Query(False),
    minRating: Optional[float] = Query(None, ge=0, le=5),
    minPrice: Optional[float] = Query(None, ge=0),
    maxPrice: Optional[float] = Query(None, ge=0),
    minResponseRate: Optional[float] = Query(None, ge=0, le=100),
    petSize: Optional[PetSize] = Query(None),
    amenities: Optional[list[str]] = Query(None),
    checkInDate: Optional[date] = Query(None),
    checkOutDate: Optional[date] = Query(None),
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    radiusKm: Optional[float] = Query(None, gt=0, le=MAX_SEARCH_RADIUS_KM),
    sortBy: str = Query("rating", pattern=SORT_FIELDS),
    sortOrder: str = Query("desc", pattern="^(asc|desc|ASC|DESC)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: HostingService = Depends(get_hosting_service),
):
    """Search active hosts with filters, date availability and location radius"""
    result = service.search_hosts(
        search=search,
        city=city,
        state=state,
        verified_only=verifiedOnly,
        super_host_only=superHostOnly,
        min_rating=minRating,
        min_price=minPrice,
        max_price=maxPrice,
        min_response_rate=minResponseRate,
        pet_size=petSize.value if petSize else None,
        amenities=amenities,
        check_in=checkInDate,
        check_out=checkOutDate,
        latitude=latitude,
        longitude=longitude,
        radius_km=radiusKm,
        sort_by=sortBy,
        sort_order=sortOrder,
        page=page,
        limit=limit,
    )
    return HostSearchResponse(
        hosts=[
            _host_response(host, service.list_photos(host.id), distance)
            for host, distance in result["hosts"]
        ],
        total=result["total"],
        page=result["page"],
        totalPages=result["total_pages"],
    )


@router.get("/hosts/user/me", response_model=HostResponse)
def get_my_host(
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Get the current user's host profile"""
    host = service.get_my_host(current_user)
    return _host_response(host, service.list_photos(host.id))


@router.get("/hosts/{host_id}", response_model=HostResponse)
def get_host(host_id: str, service: HostingService = Depends(get_hosting_service)):
    """Get a host with derived trust fields"""
    host = service.get_host(host_id)
    return _host_response(host, service.list_photos(host.id))


@router.patch("/hosts/{host_id}", response_model=HostResponse)
def update_host(
    host_id: str,
    data: HostUpdate,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    host = service.update_host(host_id, data, current_user)
    return _host_response(host, service.list_photos(host.id))


@router.delete("/hosts/{host_id}")
def delete_host(
    host_id: str,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Delete a host, or deactivate it when bookings reference it"""
    return service.delete_host(host_id, current_user)


# ============================================================================
# PHOTOS
# ============================================================================


@router.post("/hosts/{host_id}/photos", response_model=PhotoResponse, status_code=201)
def add_photo(
    host_id: str,
    data: PhotoCreate,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    return _photo_response(service.add_photo(host_id, data, current_user))


@router.delete("/hosts/{host_id}/photos/{photo_id}")
def remove_photo(
    host_id: str,
    photo_id: str,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    return service.remove_photo(host_id, photo_id, current_user)


# ============================================================================
# CALENDAR
# ============================================================================


@router.get("/hosts/{host_id}/availability", response_model=list[AvailabilityResponse])
def list_availability(host_id: str, service: HostingService = Depends(get_hosting_service)):
    return [_availability_response(b) for b in service.list_availability(host_id)]


@router.post(
    "/hosts/{host_id}/availability", response_model=AvailabilityResponse, status_code=201
)
def add_availability(
    host_id: str,
    data: AvailabilityCreate,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Block dates or override capacity on the host calendar"""
    return _availability_response(service.add_availability(host_id, data, current_user))


@router.delete("/hosts/{host_id}/availability/{availability_id}")
def remove_availability(
    host_id: str,
    availability_id: str,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    return service.remove_availability(host_id, availability_id, current_user)


# ============================================================================
# REVIEWS
# ============================================================================


@router.get("/hosts/{host_id}/reviews", response_model=list[ReviewResponse])
def list_reviews(host_id: str, service: HostingService = Depends(get_hosting_service)):
    """Reviews for a host, newest first"""
    return [_review_response(r) for r in service.list_reviews(host_id)]


@router.post("/hosts/{host_id}/reviews", response_model=ReviewResponse, status_code=201)
def create_review(
    host_id: str,
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Review a completed stay"""
    return _review_response(service.create_review(host_id, data, current_user))


@router.post("/reviews/{review_id}/response", response_model=ReviewResponse)
def respond_to_review(
    review_id: str,
    data: ReviewReply,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Host reply to a review (once)"""
    return _review_response(service.respond_to_review(review_id, data.response, current_user))


# ============================================================================
# BOOKINGS
# ============================================================================


@router.post("/bookings/quote", response_model=QuoteResponse)
def quote_booking(
    data: QuoteRequest,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Price preview, nothing is reserved"""
    return _quote_response(service.quote(data, current_user))


@router.post("/bookings", response_model=BookingResponse, status_code=201)
def create_booking(
    data: BookingCreate,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
    _: None = Depends(booking_create_rate_limit),
):
    """Request a stay at a host"""
    return _booking_response(service.create_booking(data, current_user), has_review=False)


@router.get("/bookings", response_model=BookingListResponse)
def list_bookings(
    hostId: Optional[str] = Query(None),
    ownerId: Optional[str] = Query(None),
    petId: Optional[str] = Query(None),
    status: Optional[BookingStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    result = service.list_bookings(
        current_user,
        host_id=hostId,
        owner_id=ownerId,
        pet_id=petId,
        status=status.value if status else None,
        page=page,
        limit=limit,
    )
    return _booking_list_response(result, service)


@router.get("/bookings/my-bookings", response_model=BookingListResponse)
def list_my_bookings(
    status: Optional[BookingStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Bookings the current user made as a pet owner"""
    result = service.list_my_bookings(
        current_user, status=status.value if status else None, page=page, limit=limit
    )
    return _booking_list_response(result, service)


@router.get("/bookings/host/my-bookings", response_model=BookingListResponse)
def list_my_host_bookings(
    status: Optional[BookingStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Bookings received by the current user's host profile"""
    result = service.list_my_host_bookings(
        current_user, status=status.value if status else None, page=page, limit=limit
    )
    return _booking_list_response(result, service)


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    booking = service.get_booking(booking_id, current_user)
    return _booking_response(booking, service.has_review(booking))


@router.patch("/bookings/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: str,
    data: BookingUpdate,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Edit dates or care details before confirmation"""
    return _booking_response(service.update_booking(booking_id, data, current_user), has_review=False)


@router.post("/bookings/{booking_id}/approve", response_model=BookingResponse)
def decide_booking(
    booking_id: str,
    data: BookingDecision,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Approve or reject a pending booking (host)"""
    return _booking_response(service.decide_booking(booking_id, data, current_user), has_review=False)


@router.post("/bookings/{booking_id}/confirm", response_model=BookingResponse)
def confirm_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Confirm an approved booking (owner)"""
    return _booking_response(service.confirm_booking(booking_id, current_user), has_review=False)


@router.post("/bookings/{booking_id}/start", response_model=BookingResponse)
def start_stay(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    return _booking_response(service.start_stay(booking_id, current_user), has_review=False)


@router.post("/bookings/{booking_id}/complete", response_model=BookingResponse)
def complete_stay(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    return _booking_response(service.complete_stay(booking_id, current_user), has_review=False)


@router.delete("/bookings/{booking_id}", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: HostingService = Depends(get_hosting_service),
):
    """Cancel a booking; the record is kept with status cancelled"""
    booking = service.cancel_booking(booking_id, current_user)
    return _booking_response(booking, service.has_review(booking))
