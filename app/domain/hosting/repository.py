"""Hosting repository - Database operations for hosts, bookings, calendar, reviews and photos"""

from datetime import date
from typing import Iterable, Optional

from sqlalchemy import asc, desc, func
from sqlalchemy.orm import Session

from ...models import Pet, User
from ...models_hosting import (
    HostAvailability,
    HostingBooking,
    HostPhoto,
    HostReview,
    PetHost,
)

HOST_SORT_COLUMNS = {
    "rating": PetHost.rating,
    "base_daily_rate": PetHost.base_daily_rate,
    "response_rate": PetHost.response_rate,
    "total_reviews": PetHost.total_reviews,
    "created_at": PetHost.created_at,
}


def _status_values(statuses: Iterable) -> list[str]:
    return [getattr(s, "value", s) for s in statuses]


class HostingRepository:
    """
    Repository for hosting database operations.

    Writes only add and flush; the service commits once per operation so a
    failed request leaves nothing behind.
    """

    # ------------------------------------------------------------------
    # Collaborators (read-only)
    # ------------------------------------------------------------------

    @staticmethod
    def get_active_user(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()

    @staticmethod
    def get_owned_pet(db: Session, pet_id: str, owner_id: str, lock: bool = False) -> Optional[Pet]:
        """Active pet belonging to the owner"""
        query = db.query(Pet).filter(
            Pet.id == pet_id, Pet.owner_id == owner_id, Pet.is_active.is_(True)
        )
        if lock:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def get_pet(db: Session, pet_id: str, lock: bool = False) -> Optional[Pet]:
        query = db.query(Pet).filter(Pet.id == pet_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    # ------------------------------------------------------------------
    # Hosts
    # ------------------------------------------------------------------

    @staticmethod
    def get_host(db: Session, host_id: str, lock: bool = False) -> Optional[PetHost]:
        query = db.query(PetHost).filter(PetHost.id == host_id)
        if lock:
            # Serializes capacity checks and metric writes per host
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def get_host_by_user(db: Session, user_id: str) -> Optional[PetHost]:
        return db.query(PetHost).filter(PetHost.user_id == user_id).first()

    @staticmethod
    def add_host(db: Session, **host_data) -> PetHost:
        host = PetHost(**host_data)
        db.add(host)
        db.flush()
        return host

    @staticmethod
    def apply_updates(db: Session, obj, **updates):
        """Set the provided fields on any entity"""
        for key, value in updates.items():
            if hasattr(obj, key):
                setattr(obj, key, value)
        db.flush()
        return obj

    @staticmethod
    def host_has_bookings(db: Session, host_id: str) -> bool:
        return (
            db.query(HostingBooking.id).filter(HostingBooking.host_id == host_id).first()
            is not None
        )

    @staticmethod
    def delete_host(db: Session, host: PetHost) -> None:
        """Remove a host that no booking references, with its photos and calendar"""
        db.query(HostPhoto).filter(HostPhoto.host_id == host.id).delete(synchronize_session=False)
        db.query(HostAvailability).filter(HostAvailability.host_id == host.id).delete(
            synchronize_session=False
        )
        db.delete(host)
        db.flush()

    @staticmethod
    def search_hosts(
        db: Session,
        search: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        is_verified: Optional[bool] = None,
        is_super_host: Optional[bool] = None,
        min_rating: Optional[float] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        min_response_rate: Optional[float] = None,
        exclude_host_ids: Optional[list[str]] = None,
        bounding_box: Optional[tuple[float, float, float, float]] = None,
        sort_by: str = "rating",
        sort_order: str = "desc",
    ) -> list[PetHost]:
        """Active hosts matching the column filters, sorted"""
        query = db.query(PetHost).filter(PetHost.is_active.is_(True))

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                PetHost.bio.ilike(pattern)
                | PetHost.city.ilike(pattern)
                | PetHost.address.ilike(pattern)
            )
        if city:
            query = query.filter(PetHost.city.ilike(f"%{city}%"))
        if state:
            query = query.filter(PetHost.state.ilike(f"%{state}%"))
        if is_verified is not None:
            query = query.filter(PetHost.is_verified.is_(is_verified))
        if is_super_host is not None:
            query = query.filter(PetHost.is_super_host.is_(is_super_host))
        if min_rating is not None:
            query = query.filter(PetHost.rating >= min_rating)
        if min_price is not None:
            query = query.filter(PetHost.base_daily_rate >= min_price)
        if max_price is not None:
            query = query.filter(PetHost.base_daily_rate <= max_price)
        if min_response_rate is not None:
            query = query.filter(PetHost.response_rate >= min_response_rate)
        if exclude_host_ids:
            query = query.filter(PetHost.id.notin_(exclude_host_ids))
        if bounding_box:
            min_lat, max_lat, min_lon, max_lon = bounding_box
            query = query.filter(
                PetHost.latitude.isnot(None),
                PetHost.longitude.isnot(None),
                PetHost.latitude.between(min_lat, max_lat),
                PetHost.longitude.between(min_lon, max_lon),
            )

        column = HOST_SORT_COLUMNS.get(sort_by, PetHost.rating)
        direction = asc if sort_order.lower() == "asc" else desc
        return query.order_by(direction(column), PetHost.id).all()

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    @staticmethod
    def find_blocked_periods(
        db: Session, host_id: str, check_in: date, check_out: date
    ) -> list[HostAvailability]:
        return (
            db.query(HostAvailability)
            .filter(
                HostAvailability.host_id == host_id,
                HostAvailability.is_blocked.is_(True),
                HostAvailability.start_date < check_out,
                HostAvailability.end_date > check_in,
            )
            .all()
        )

    @staticmethod
    def find_capacity_overrides(
        db: Session, host_id: str, check_in: date, check_out: date
    ) -> list[int]:
        rows = (
            db.query(HostAvailability.max_pets_available)
            .filter(
                HostAvailability.host_id == host_id,
                HostAvailability.is_blocked.is_(False),
                HostAvailability.max_pets_available.isnot(None),
                HostAvailability.start_date < check_out,
                HostAvailability.end_date > check_in,
            )
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def blocked_host_ids(db: Session, check_in: date, check_out: date) -> list[str]:
        rows = (
            db.query(HostAvailability.host_id)
            .filter(
                HostAvailability.is_blocked.is_(True),
                HostAvailability.start_date < check_out,
                HostAvailability.end_date > check_in,
            )
            .distinct()
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def list_availability(db: Session, host_id: str) -> list[HostAvailability]:
        return (
            db.query(HostAvailability)
            .filter(HostAvailability.host_id == host_id)
            .order_by(HostAvailability.start_date)
            .all()
        )

    @staticmethod
    def get_availability(db: Session, availability_id: str, host_id: str) -> Optional[HostAvailability]:
        return (
            db.query(HostAvailability)
            .filter(HostAvailability.id == availability_id, HostAvailability.host_id == host_id)
            .first()
        )

    @staticmethod
    def add_availability(db: Session, **data) -> HostAvailability:
        block = HostAvailability(**data)
        db.add(block)
        db.flush()
        return block

    @staticmethod
    def delete_availability(db: Session, block: HostAvailability) -> None:
        db.delete(block)
        db.flush()

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    @staticmethod
    def get_booking(db: Session, booking_id: str, lock: bool = False) -> Optional[HostingBooking]:
        query = db.query(HostingBooking).filter(HostingBooking.id == booking_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def add_booking(db: Session, **booking_data) -> HostingBooking:
        booking = HostingBooking(**booking_data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def count_overlapping_host_bookings(
        db: Session,
        host_id: str,
        check_in: date,
        check_out: date,
        statuses: Iterable,
        exclude_booking_id: Optional[str] = None,
    ) -> int:
        query = db.query(func.count(HostingBooking.id)).filter(
            HostingBooking.host_id == host_id,
            HostingBooking.status.in_(_status_values(statuses)),
            HostingBooking.check_in_date < check_out,
            HostingBooking.check_out_date > check_in,
        )
        if exclude_booking_id:
            query = query.filter(HostingBooking.id != exclude_booking_id)
        return query.scalar() or 0

    @staticmethod
    def find_pet_bookings_overlapping(
        db: Session,
        pet_id: str,
        check_in: date,
        check_out: date,
        statuses: Iterable,
        exclude_booking_id: Optional[str] = None,
    ) -> list[HostingBooking]:
        query = db.query(HostingBooking).filter(
            HostingBooking.pet_id == pet_id,
            HostingBooking.status.in_(_status_values(statuses)),
            HostingBooking.check_in_date < check_out,
            HostingBooking.check_out_date > check_in,
        )
        if exclude_booking_id:
            query = query.filter(HostingBooking.id != exclude_booking_id)
        return query.all()

    @staticmethod
    def list_host_bookings(db: Session, host_id: str) -> list[HostingBooking]:
        return db.query(HostingBooking).filter(HostingBooking.host_id == host_id).all()

    @staticmethod
    def list_bookings(
        db: Session,
        host_id: Optional[str] = None,
        owner_id: Optional[str] = None,
        pet_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[HostingBooking], int]:
        query = db.query(HostingBooking)
        if host_id:
            query = query.filter(HostingBooking.host_id == host_id)
        if owner_id:
            query = query.filter(HostingBooking.owner_id == owner_id)
        if pet_id:
            query = query.filter(HostingBooking.pet_id == pet_id)
        if status:
            query = query.filter(HostingBooking.status == getattr(status, "value", status))

        total = query.count()
        bookings = (
            query.order_by(HostingBooking.check_in_date.asc(), HostingBooking.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return bookings, total

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    @staticmethod
    def get_review(db: Session, review_id: str) -> Optional[HostReview]:
        return db.query(HostReview).filter(HostReview.id == review_id).first()

    @staticmethod
    def get_review_by_booking(db: Session, booking_id: str) -> Optional[HostReview]:
        return db.query(HostReview).filter(HostReview.booking_id == booking_id).first()

    @staticmethod
    def reviewed_booking_ids(db: Session, booking_ids: list[str]) -> set[str]:
        if not booking_ids:
            return set()
        rows = (
            db.query(HostReview.booking_id).filter(HostReview.booking_id.in_(booking_ids)).all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def list_host_reviews(db: Session, host_id: str) -> list[HostReview]:
        return (
            db.query(HostReview)
            .filter(HostReview.host_id == host_id)
            .order_by(HostReview.created_at.desc())
            .all()
        )

    @staticmethod
    def add_review(db: Session, **review_data) -> HostReview:
        review = HostReview(**review_data)
        db.add(review)
        db.flush()
        return review

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------

    @staticmethod
    def list_photos(db: Session, host_id: str) -> list[HostPhoto]:
        return (
            db.query(HostPhoto)
            .filter(HostPhoto.host_id == host_id, HostPhoto.is_active.is_(True))
            .order_by(HostPhoto.is_primary.desc(), HostPhoto.created_at)
            .all()
        )

    @staticmethod
    def get_photo(db: Session, photo_id: str, host_id: str) -> Optional[HostPhoto]:
        return (
            db.query(HostPhoto)
            .filter(HostPhoto.id == photo_id, HostPhoto.host_id == host_id)
            .first()
        )

    @staticmethod
    def demote_primary_photos(db: Session, host_id: str) -> int:
        return (
            db.query(HostPhoto)
            .filter(HostPhoto.host_id == host_id, HostPhoto.is_primary.is_(True))
            .update({HostPhoto.is_primary: False}, synchronize_session="fetch")
        )

    @staticmethod
    def add_photo(db: Session, **photo_data) -> HostPhoto:
        photo = HostPhoto(**photo_data)
        db.add(photo)
        db.flush()
        return photo

    @staticmethod
    def delete_photo(db: Session, photo: HostPhoto) -> None:
        db.delete(photo)
        db.flush()
