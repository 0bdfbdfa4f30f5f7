"""Hosting service - Orchestrates host profiles, bookings, calendar, reviews and photos"""

import logging
import math
from contextlib import contextmanager
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ...config import (
    DEFAULT_BASE_DAILY_RATE,
    DEFAULT_DURATION_DISCOUNTS,
    DEFAULT_SEARCH_RADIUS_KM,
    DEFAULT_SIZE_PRICING_TIERS,
    MAX_SEARCH_RADIUS_KM,
)
from ...models import Pet, User
from ...models_hosting import (
    BookingStatus,
    HostAvailability,
    HostingBooking,
    HostPhoto,
    HostReview,
    PetHost,
    utc_now,
)
from ...utils.geo import bounding_box, haversine_km
from ...utils.sanitization import sanitize_dict, sanitize_list, sanitize_string
from . import state_machine
from .availability import AvailabilityChecker, validate_stay_dates
from .errors import (
    BookingValidationError,
    ConflictError,
    ForbiddenError,
    HostingError,
    InvalidStateError,
    NotFoundError,
)
from .pricing import PriceBreakdown, calculate_price
from .repository import HostingRepository
from .schemas import (
    AvailabilityCreate,
    BookingCreate,
    BookingDecision,
    BookingUpdate,
    HostCreate,
    HostUpdate,
    PhotoCreate,
    QuoteRequest,
    ReviewCreate,
)
from .trust import TrustScorer

logger = logging.getLogger(__name__)

# Request field -> column, for host create / update
HOST_FIELDS = {
    "bio": "bio",
    "experienceYears": "experience_years",
    "certifications": "certifications",
    "address": "address",
    "city": "city",
    "state": "state",
    "postalCode": "postal_code",
    "country": "country",
    "latitude": "latitude",
    "longitude": "longitude",
    "maxPets": "max_pets",
    "petSizePreferences": "pet_size_preferences",
    "amenities": "amenities",
    "servicesOffered": "services_offered",
    "baseDailyRate": "base_daily_rate",
    "sizePricingTiers": "size_pricing_tiers",
    "durationDiscounts": "duration_discounts",
    "isActive": "is_active",
}

HOST_TEXT_COLUMNS = ("bio", "address", "city", "state", "postal_code", "country")
HOST_LIST_COLUMNS = ("certifications", "amenities", "services_offered")


def _page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


class HostingService:
    """Service layer for the pet hosting marketplace"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = HostingRepository()
        self.availability = AvailabilityChecker(db)
        self.trust = TrustScorer(db)

    @contextmanager
    def _unit_of_work(self, action: str, conflict_detail: str):
        """Commit once at the end; any failure leaves nothing behind"""
        try:
            yield
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"❌ Database rejected write while {action}: {e.orig if hasattr(e, 'orig') else e}")
            raise ConflictError(conflict_detail) from e
        except OperationalError as e:
            # Deadlock or serialization failure between concurrent requests
            self.db.rollback()
            logger.error(f"❌ Database aborted transaction while {action}: {e.orig if hasattr(e, 'orig') else e}")
            raise ConflictError(f"{conflict_detail}, please retry") from e
        except HostingError:
            self.db.rollback()
            raise

    # ========================================================================
    # LOOKUPS
    # ========================================================================

    def _require_host(self, host_id: str, lock: bool = False, active_only: bool = True) -> PetHost:
        host = self.repo.get_host(self.db, host_id, lock=lock)
        if not host or (active_only and not host.is_active):
            raise NotFoundError(f"Host with ID {host_id} not found")
        return host

    def _require_owned_host(self, host_id: str, user: User, lock: bool = False) -> PetHost:
        host = self._require_host(host_id, lock=lock, active_only=False)
        if host.user_id != user.id:
            logger.warning(f"⚠️ User {user.id} tried to manage host {host_id} they do not own")
            raise ForbiddenError("You can only manage your own host profile")
        return host

    def _require_owned_pet(self, pet_id: str, user: User, lock: bool = False) -> Pet:
        pet = self.repo.get_owned_pet(self.db, pet_id, user.id, lock=lock)
        if not pet:
            raise NotFoundError(f"Pet with ID {pet_id} not found or not owned by you")
        return pet

    def _require_booking(self, booking_id: str, lock: bool = False) -> HostingBooking:
        booking = self.repo.get_booking(self.db, booking_id, lock=lock)
        if not booking:
            raise NotFoundError(f"Booking with ID {booking_id} not found")
        return booking

    def _host_user_id(self, booking: HostingBooking) -> Optional[str]:
        host = self.repo.get_host(self.db, booking.host_id)
        return host.user_id if host else None

    def _authorize(self, action: str, booking: HostingBooking, user: User) -> None:
        try:
            state_machine.authorize(action, booking, self._host_user_id(booking), user.id)
        except ForbiddenError:
            logger.warning(f"⚠️ User {user.id} refused '{action}' on booking {booking.id}")
            raise

    # ========================================================================
    # HOSTS
    # ========================================================================

    def create_host(self, data: HostCreate, user: User) -> PetHost:
        """Create the caller's host profile (one per user)"""
        logger.info(f"📥 Creating host profile for user_id: {user.id}")

        if not self.repo.get_active_user(self.db, user.id):
            raise NotFoundError(f"User with ID {user.id} not found")

        if self.repo.get_host_by_user(self.db, user.id):
            logger.warning(f"⚠️ User {user.id} already has a host profile")
            raise ConflictError("User already has a host profile")

        host_data = self._host_columns(data.model_dump(exclude_unset=True))
        host_data.setdefault("base_daily_rate", DEFAULT_BASE_DAILY_RATE)
        if not host_data.get("size_pricing_tiers"):
            host_data["size_pricing_tiers"] = dict(DEFAULT_SIZE_PRICING_TIERS)
        if not host_data.get("duration_discounts"):
            host_data["duration_discounts"] = dict(DEFAULT_DURATION_DISCOUNTS)
        if not host_data.get("country"):
            host_data["country"] = "USA"

        with self._unit_of_work("creating host", "User already has a host profile"):
            host = self.repo.add_host(self.db, user_id=user.id, **host_data)

        self.db.refresh(host)
        logger.info(f"✅ Host {host.id} created for user {user.id}")
        return host

    def _host_columns(self, payload: dict) -> dict:
        columns = {}
        for field, value in payload.items():
            column = HOST_FIELDS.get(field)
            if column is None:
                continue
            if column in HOST_TEXT_COLUMNS:
                value = sanitize_string(value)
            elif column in HOST_LIST_COLUMNS:
                value = sanitize_list(value)
            elif column == "pet_size_preferences" and value is not None:
                value = [getattr(size, "value", size) for size in value]
            columns[column] = value
        return columns

    def get_host(self, host_id: str) -> PetHost:
        return self._require_host(host_id)

    def get_my_host(self, user: User) -> PetHost:
        host = self.repo.get_host_by_user(self.db, user.id)
        if not host:
            raise NotFoundError("You do not have a host profile")
        return host

    def update_host(self, host_id: str, data: HostUpdate, user: User) -> PetHost:
        """Update a host profile owned by the caller"""
        host = self._require_owned_host(host_id, user, lock=True)
        updates = self._host_columns(data.model_dump(exclude_unset=True))

        # Required columns keep their value when explicitly nulled
        for column in ("address", "city", "max_pets", "base_daily_rate", "size_pricing_tiers",
                       "duration_discounts", "experience_years", "country", "is_active"):
            if column in updates and updates[column] is None:
                updates.pop(column)
        for column in HOST_LIST_COLUMNS + ("pet_size_preferences",):
            if column in updates and updates[column] is None:
                updates[column] = []

        with self._unit_of_work("updating host", "Host profile could not be updated"):
            self.repo.apply_updates(self.db, host, **updates)

        self.db.refresh(host)
        logger.info(f"✅ Host {host.id} updated ({', '.join(sorted(updates)) or 'no changes'})")
        return host

    def delete_host(self, host_id: str, user: User) -> dict:
        """
        Hosts referenced by any booking are deactivated so history stays
        intact; unused hosts are removed with their photos and calendar.
        """
        host = self._require_owned_host(host_id, user, lock=True)

        if self.repo.host_has_bookings(self.db, host.id):
            with self._unit_of_work("deactivating host", "Host could not be deactivated"):
                host.is_active = False
            logger.info(f"✅ Host {host_id} deactivated (has booking history)")
            return {"message": "Host deactivated", "deleted": False}

        with self._unit_of_work("deleting host", "Host could not be deleted"):
            self.repo.delete_host(self.db, host)
        logger.info(f"✅ Host {host_id} deleted")
        return {"message": "Host deleted", "deleted": True}

    def search_hosts(
        self,
        search: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        verified_only: bool = False,
        super_host_only: bool = False,
        min_rating: Optional[float] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        min_response_rate: Optional[float] = None,
        pet_size: Optional[str] = None,
        amenities: Optional[list[str]] = None,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius_km: Optional[float] = None,
        sort_by: str = "rating",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        """
        Search active hosts.

        Column filters, blocked-calendar exclusion and a coarse bounding box
        run in SQL; JSON list containment and the exact great-circle radius
        are applied afterwards, then the result is paginated.

        Returns dict with hosts as (host, distance_km) pairs.
        """
        exclude_ids = None
        if check_in and check_out:
            if check_out <= check_in:
                raise BookingValidationError("Check-out date must be after check-in date")
            exclude_ids = self.repo.blocked_host_ids(self.db, check_in, check_out)

        use_location = latitude is not None and longitude is not None
        radius = None
        box = None
        if use_location:
            radius = min(radius_km or DEFAULT_SEARCH_RADIUS_KM, MAX_SEARCH_RADIUS_KM)
            box = bounding_box(latitude, longitude, radius)

        hosts = self.repo.search_hosts(
            self.db,
            search=search,
            city=city,
            state=state,
            is_verified=True if verified_only else None,
            is_super_host=True if super_host_only else None,
            min_rating=min_rating,
            min_price=min_price,
            max_price=max_price,
            min_response_rate=min_response_rate,
            exclude_host_ids=exclude_ids,
            bounding_box=box,
            sort_by=sort_by,
            sort_order=sort_order,
        )

        matches = []
        for host in hosts:
            if pet_size and pet_size not in (host.pet_size_preferences or []):
                continue
            if amenities and not set(amenities).issubset(host.amenities or []):
                continue
            distance = None
            if use_location:
                distance = haversine_km(latitude, longitude, host.latitude, host.longitude)
                if distance > radius:
                    continue
                distance = round(distance, 2)
            matches.append((host, distance))

        total = len(matches)
        start = (page - 1) * limit
        return {
            "hosts": matches[start : start + limit],
            "total": total,
            "page": page,
            "total_pages": _page_count(total, limit),
        }

    # ========================================================================
    # PHOTOS
    # ========================================================================

    def list_photos(self, host_id: str) -> list[HostPhoto]:
        return self.repo.list_photos(self.db, host_id)

    def add_photo(self, host_id: str, data: PhotoCreate, user: User) -> HostPhoto:
        """Attach a photo; a new primary photo demotes the previous one"""
        host = self._require_owned_host(host_id, user, lock=True)

        with self._unit_of_work("adding photo", "Photo could not be added"):
            if data.isPrimary:
                self.repo.demote_primary_photos(self.db, host.id)
            photo = self.repo.add_photo(
                self.db,
                host_id=host.id,
                photo_url=data.photoUrl,
                caption=sanitize_string(data.caption),
                category=data.category.value,
                is_primary=data.isPrimary,
            )

        self.db.refresh(photo)
        logger.info(f"✅ Photo {photo.id} added to host {host.id} (primary={photo.is_primary})")
        return photo

    def remove_photo(self, host_id: str, photo_id: str, user: User) -> dict:
        host = self._require_owned_host(host_id, user)
        photo = self.repo.get_photo(self.db, photo_id, host.id)
        if not photo:
            raise NotFoundError(f"Photo with ID {photo_id} not found")

        with self._unit_of_work("removing photo", "Photo could not be removed"):
            self.repo.delete_photo(self.db, photo)
        logger.info(f"✅ Photo {photo_id} removed from host {host_id}")
        return {"message": "Photo deleted"}

    # ========================================================================
    # CALENDAR
    # ========================================================================

    def list_availability(self, host_id: str) -> list[HostAvailability]:
        host = self._require_host(host_id)
        return self.repo.list_availability(self.db, host.id)

    def add_availability(self, host_id: str, data: AvailabilityCreate, user: User) -> HostAvailability:
        """Add a blocked period or capacity override to the host calendar"""
        host = self._require_owned_host(host_id, user, lock=True)
        if data.endDate < data.startDate:
            raise BookingValidationError("End date cannot be before start date")

        with self._unit_of_work("adding availability", "Availability could not be saved"):
            block = self.repo.add_availability(
                self.db,
                host_id=host.id,
                start_date=data.startDate,
                end_date=data.endDate,
                max_pets_available=data.maxPetsAvailable,
                custom_daily_rate=data.customDailyRate,
                is_blocked=data.isBlocked,
            )

        self.db.refresh(block)
        logger.info(
            f"✅ Availability {block.id} added to host {host.id}: {block.start_date} - {block.end_date} "
            f"(blocked={block.is_blocked}, max_pets={block.max_pets_available})"
        )
        return block

    def remove_availability(self, host_id: str, availability_id: str, user: User) -> dict:
        host = self._require_owned_host(host_id, user, lock=True)
        block = self.repo.get_availability(self.db, availability_id, host.id)
        if not block:
            raise NotFoundError(f"Availability with ID {availability_id} not found")

        with self._unit_of_work("removing availability", "Availability could not be removed"):
            self.repo.delete_availability(self.db, block)
        logger.info(f"✅ Availability {availability_id} removed from host {host_id}")
        return {"message": "Availability deleted"}

    # ========================================================================
    # BOOKINGS
    # ========================================================================

    def _price(self, host: PetHost, pet: Pet, check_in, check_out, services) -> PriceBreakdown:
        return calculate_price(
            host.base_daily_rate,
            host.size_pricing_tiers,
            host.duration_discounts,
            pet.size,
            check_in,
            check_out,
            services,
        )

    def quote(self, data: QuoteRequest, user: User) -> PriceBreakdown:
        """Price preview with the same engine used at booking time"""
        validate_stay_dates(data.checkInDate, data.checkOutDate)
        pet = self._require_owned_pet(data.petId, user)
        host = self._require_host(data.hostId)
        return self._price(host, pet, data.checkInDate, data.checkOutDate, data.additionalServices)

    def create_booking(self, data: BookingCreate, user: User) -> HostingBooking:
        """
        Request a stay.

        The pet and host rows stay locked from the conflict scan through the
        insert, so concurrent requests for the same pet or host serialize.
        """
        logger.info(
            f"📥 Booking request from user {user.id}: pet {data.petId} at host {data.hostId} "
            f"{data.checkInDate} - {data.checkOutDate}"
        )
        validate_stay_dates(data.checkInDate, data.checkOutDate, today=utc_now().date())

        with self._unit_of_work("creating booking", "The requested dates are no longer available"):
            pet = self._require_owned_pet(data.petId, user, lock=True)
            host = self._require_host(data.hostId, lock=True)

            self.availability.ensure_bookable(host, pet.id, data.checkInDate, data.checkOutDate)

            services = sanitize_list(data.additionalServices)
            price = self._price(host, pet, data.checkInDate, data.checkOutDate, services)
            booking = self.repo.add_booking(
                self.db,
                host_id=host.id,
                pet_id=pet.id,
                owner_id=user.id,
                check_in_date=data.checkInDate,
                check_out_date=data.checkOutDate,
                status=BookingStatus.PENDING_APPROVAL.value,
                additional_services=services,
                medication_schedule=[sanitize_dict(m) for m in data.medicationSchedule],
                special_instructions=sanitize_string(data.specialInstructions),
                dietary_needs=sanitize_string(data.dietaryNeeds),
                **price.as_booking_fields(),
            )

            # A new request enlarges the response-rate denominator
            self.trust.refresh_response_metrics(host)

        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking.id} created, total {booking.total_price}")
        return booking

    def get_booking(self, booking_id: str, user: User) -> HostingBooking:
        """Booking visible to its owner and to the host"""
        booking = self._require_booking(booking_id)
        if not state_machine.caller_roles(booking, self._host_user_id(booking), user.id):
            raise ForbiddenError("You can only view your own bookings or bookings for your host profile")
        return booking

    def has_review(self, booking: HostingBooking) -> bool:
        return self.repo.get_review_by_booking(self.db, booking.id) is not None

    def reviewed_booking_ids(self, bookings: list[HostingBooking]) -> set[str]:
        return self.repo.reviewed_booking_ids(self.db, [b.id for b in bookings])

    def list_bookings(
        self,
        user: User,
        host_id: Optional[str] = None,
        owner_id: Optional[str] = None,
        pet_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        """
        List bookings the caller may see. Filtering by a host requires owning
        it; otherwise the listing is scoped to the caller's own bookings.
        """
        if host_id:
            self._require_owned_host(host_id, user)
        elif owner_id and owner_id != user.id:
            raise ForbiddenError("You can only list your own bookings")
        else:
            owner_id = user.id

        bookings, total = self.repo.list_bookings(
            self.db, host_id=host_id, owner_id=owner_id, pet_id=pet_id,
            status=status, page=page, limit=limit,
        )
        return {"bookings": bookings, "total": total, "page": page, "total_pages": _page_count(total, limit)}

    def list_my_bookings(self, user: User, status: Optional[str] = None, page: int = 1, limit: int = 10) -> dict:
        return self.list_bookings(user, owner_id=user.id, status=status, page=page, limit=limit)

    def list_my_host_bookings(self, user: User, status: Optional[str] = None, page: int = 1, limit: int = 10) -> dict:
        host = self.get_my_host(user)
        return self.list_bookings(user, host_id=host.id, status=status, page=page, limit=limit)

    def decide_booking(self, booking_id: str, data: BookingDecision, user: User) -> HostingBooking:
        """Host approves or rejects a pending request"""
        with self._unit_of_work("deciding booking", "Booking could not be updated"):
            booking = self._require_booking(booking_id, lock=True)
            self._authorize("approve" if data.approve else "reject", booking, user)
            host = self._require_host(booking.host_id, lock=True, active_only=False)
            now = utc_now()

            if data.approve:
                if booking.status == BookingStatus.PENDING_APPROVAL.value:
                    # Pending requests do not hold a slot until approved
                    self.availability.check_host_availability(
                        host, booking.check_in_date, booking.check_out_date, exclude_booking_id=booking.id
                    )
                state_machine.approve(booking, now)
            else:
                state_machine.reject(booking, sanitize_string(data.rejectionReason), now)

            self.trust.refresh_response_metrics(host)

        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking_id} {booking.status} by host {host.id}")
        return booking

    def confirm_booking(self, booking_id: str, user: User) -> HostingBooking:
        """Owner confirms an approved booking; the price is frozen from here on"""
        with self._unit_of_work("confirming booking", "Booking could not be confirmed"):
            booking = self._require_booking(booking_id, lock=True)
            self._authorize("confirm", booking, user)
            state_machine.confirm(booking)
            host = self._require_host(booking.host_id, lock=True, active_only=False)
            self.trust.refresh_completion_rate(host)

        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking_id} confirmed, payment {booking.payment_status}")
        return booking

    def start_stay(self, booking_id: str, user: User) -> HostingBooking:
        with self._unit_of_work("starting stay", "Booking could not be started"):
            booking = self._require_booking(booking_id, lock=True)
            self._authorize("start", booking, user)
            state_machine.start(booking, utc_now())
            host = self._require_host(booking.host_id, lock=True, active_only=False)
            self.trust.refresh_completion_rate(host)

        self.db.refresh(booking)
        logger.info(f"✅ Stay {booking_id} started")
        return booking

    def complete_stay(self, booking_id: str, user: User) -> HostingBooking:
        with self._unit_of_work("completing stay", "Booking could not be completed"):
            booking = self._require_booking(booking_id, lock=True)
            self._authorize("complete", booking, user)
            state_machine.complete(booking, utc_now())
            host = self._require_host(booking.host_id, lock=True, active_only=False)
            self.trust.refresh_completion_rate(host)

        self.db.refresh(booking)
        logger.info(f"✅ Stay {booking_id} completed")
        return booking

    def update_booking(self, booking_id: str, data: BookingUpdate, user: User) -> HostingBooking:
        """
        Edit a booking before confirmation. New dates re-run the availability
        and pet checks (ignoring this booking) and re-price the stay.
        """
        with self._unit_of_work("updating booking", "The requested dates are no longer available"):
            booking = self._require_booking(booking_id, lock=True)
            self._authorize("update", booking, user)
            state_machine.ensure_editable(booking)

            payload = data.model_dump(exclude_unset=True)
            check_in = payload.get("checkInDate") or booking.check_in_date
            check_out = payload.get("checkOutDate") or booking.check_out_date
            dates_changed = (check_in, check_out) != (booking.check_in_date, booking.check_out_date)
            services = booking.additional_services
            if payload.get("additionalServices") is not None:
                services = sanitize_list(data.additionalServices)
            services_changed = services != booking.additional_services

            updates = {}
            if dates_changed or services_changed:
                validate_stay_dates(check_in, check_out)
                # Pet before host, the same order create_booking locks them in
                pet = self.repo.get_pet(self.db, booking.pet_id, lock=True)
                if not pet:
                    raise NotFoundError(f"Pet with ID {booking.pet_id} not found")
                host = self._require_host(booking.host_id, lock=True, active_only=False)
                if dates_changed:
                    self.availability.ensure_bookable(
                        host, pet.id, check_in, check_out, exclude_booking_id=booking.id
                    )
                price = self._price(host, pet, check_in, check_out, services)
                updates.update(price.as_booking_fields())
                updates.update(check_in_date=check_in, check_out_date=check_out, additional_services=services)

            if payload.get("medicationSchedule") is not None:
                updates["medication_schedule"] = [sanitize_dict(m) for m in data.medicationSchedule]
            if "specialInstructions" in payload:
                updates["special_instructions"] = sanitize_string(data.specialInstructions)
            if "dietaryNeeds" in payload:
                updates["dietary_needs"] = sanitize_string(data.dietaryNeeds)

            self.repo.apply_updates(self.db, booking, **updates)

        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking_id} updated ({', '.join(sorted(updates)) or 'no changes'})")
        return booking

    def cancel_booking(self, booking_id: str, user: User) -> HostingBooking:
        """Owner or host cancels any non-terminal booking"""
        with self._unit_of_work("cancelling booking", "Booking could not be cancelled"):
            booking = self._require_booking(booking_id, lock=True)
            self._authorize("cancel", booking, user)
            previous = booking.status
            state_machine.cancel(booking, user.id, utc_now())
            if previous != BookingStatus.PENDING_APPROVAL.value:
                host = self._require_host(booking.host_id, lock=True, active_only=False)
                self.trust.refresh_completion_rate(host)

        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking_id} cancelled by user {user.id} (was {previous})")
        return booking

    # ========================================================================
    # REVIEWS
    # ========================================================================

    def list_reviews(self, host_id: str) -> list[HostReview]:
        host = self._require_host(host_id, active_only=False)
        return self.repo.list_host_reviews(self.db, host.id)

    def create_review(self, host_id: str, data: ReviewCreate, user: User) -> HostReview:
        """One review per completed booking; refreshes the host rating"""
        with self._unit_of_work("creating review", "This booking has already been reviewed"):
            booking = self._require_booking(data.bookingId, lock=True)
            if booking.host_id != host_id:
                raise NotFoundError(f"Booking with ID {data.bookingId} not found for this host")
            if booking.owner_id != user.id:
                raise ForbiddenError("You can only review your own bookings")
            if booking.status != BookingStatus.COMPLETED.value:
                raise InvalidStateError("Only completed bookings can be reviewed")
            if self.repo.get_review_by_booking(self.db, booking.id):
                logger.warning(f"⚠️ Booking {booking.id} already reviewed")
                raise ConflictError("This booking has already been reviewed")

            host = self._require_host(host_id, lock=True, active_only=False)
            review = self.repo.add_review(
                self.db,
                host_id=host.id,
                booking_id=booking.id,
                user_id=user.id,
                pet_id=booking.pet_id,
                care_quality=data.careQuality,
                communication=data.communication,
                cleanliness=data.cleanliness,
                value=data.value,
                overall=data.overall,
                title=sanitize_string(data.title),
                comment=sanitize_string(data.comment),
                review_photos=data.reviewPhotos,
            )
            self.trust.refresh_rating(host)

        self.db.refresh(review)
        logger.info(f"✅ Review {review.id} created for host {host_id} (overall {review.overall})")
        return review

    def respond_to_review(self, review_id: str, response: str, user: User) -> HostReview:
        """Host answers a review once"""
        review = self.repo.get_review(self.db, review_id)
        if not review:
            raise NotFoundError(f"Review with ID {review_id} not found")
        host = self._require_host(review.host_id, active_only=False)
        if host.user_id != user.id:
            raise ForbiddenError("You can only respond to reviews of your own host profile")
        if review.host_response:
            raise InvalidStateError("This review already has a host response")

        with self._unit_of_work("responding to review", "Review could not be updated"):
            review.host_response = sanitize_string(response)
            review.host_response_date = utc_now()

        self.db.refresh(review)
        logger.info(f"✅ Host {host.id} responded to review {review_id}")
        return review
