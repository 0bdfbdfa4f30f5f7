"""
Pet Hosting Models - host profiles, reservations, calendar blocks, reviews and photos
"""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid


def utc_now() -> datetime:
    """Naive UTC timestamp, matching what the database stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BookingStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class PetSize(str, Enum):
    TINY = "tiny"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    GIANT = "giant"


class PhotoCategory(str, Enum):
    PROFILE = "profile"
    FACILITY = "facility"
    OUTDOOR_SPACE = "outdoor_space"
    INDOOR_SPACE = "indoor_space"
    AMENITIES = "amenities"


class PetHost(Base):
    """Service provider profile. At most one per user."""

    __tablename__ = "pet_hosts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)

    # Profile
    bio = Column(Text, nullable=True)
    experience_years = Column(Integer, default=0, nullable=False)
    certifications = Column(JSON, default=list, nullable=False)

    # Location
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), default="USA", nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Capacity and offering
    max_pets = Column(Integer, default=1, nullable=False)
    pet_size_preferences = Column(JSON, default=list, nullable=False)
    amenities = Column(JSON, default=list, nullable=False)
    services_offered = Column(JSON, default=list, nullable=False)

    # Pricing
    base_daily_rate = Column(Numeric(10, 2), default=30.00, nullable=False)
    size_pricing_tiers = Column(JSON, nullable=False)  # {"small": 1.0, "large": 1.5, ...}
    duration_discounts = Column(JSON, nullable=False)  # {"weekly": 0.1, "monthly": 0.2}

    # Trust metrics (recomputed from booking and review history)
    response_rate = Column(Float, default=0.0, nullable=False)  # 0-100
    completion_rate = Column(Float, default=0.0, nullable=False)  # 0-100
    response_time_avg_hours = Column(Float, nullable=True)  # unset until first response
    rating = Column(Float, default=0.0, nullable=False)  # 0-5
    total_reviews = Column(Integer, default=0, nullable=False)

    # Status
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_super_host = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime, default=utc_now, server_default=func.now(), onupdate=utc_now)


class HostingBooking(Base):
    """
    One requested stay of a pet at a host.

    The price breakdown is frozen at creation and only rewritten when the
    dates change before confirmation. Bookings are never deleted.
    """

    __tablename__ = "hosting_bookings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    host_id = Column(String(36), ForeignKey("pet_hosts.id"), nullable=False, index=True)
    pet_id = Column(String(36), ForeignKey("pets.id"), nullable=False, index=True)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    # Stay window, half-open [check_in_date, check_out_date)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)

    # Price breakdown
    base_price = Column(Numeric(10, 2), nullable=False)
    size_multiplier = Column(Float, default=1.0, nullable=False)
    duration_discount = Column(Float, default=0.0, nullable=False)
    additional_services_fee = Column(Numeric(10, 2), default=0, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    # Lifecycle
    status = Column(
        String(30), default=BookingStatus.PENDING_APPROVAL.value, nullable=False, index=True
    )
    approved_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(String(36), nullable=True)

    # Payment tracking (status flag only; no processing happens here)
    payment_status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False)

    # Care instructions
    additional_services = Column(JSON, default=list, nullable=False)
    medication_schedule = Column(JSON, default=list, nullable=False)
    special_instructions = Column(Text, nullable=True)
    dietary_needs = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime, default=utc_now, server_default=func.now(), onupdate=utc_now)


class HostAvailability(Base):
    """Calendar entry marking a host blocked or capacity-overridden for a date range"""

    __tablename__ = "host_availability"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    host_id = Column(String(36), ForeignKey("pet_hosts.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # compared half-open like stay windows
    max_pets_available = Column(Integer, nullable=True)  # set only when overriding capacity
    custom_daily_rate = Column(Numeric(10, 2), nullable=True)
    is_blocked = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime, default=utc_now, server_default=func.now(), onupdate=utc_now)


class HostReview(Base):
    """Multi-dimensional rating for exactly one completed booking"""

    __tablename__ = "host_reviews"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    host_id = Column(String(36), ForeignKey("pet_hosts.id"), nullable=False, index=True)
    booking_id = Column(
        String(36), ForeignKey("hosting_bookings.id"), unique=True, nullable=False
    )
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    pet_id = Column(String(36), ForeignKey("pets.id"), nullable=False)

    # Sub-ratings, 1-5
    care_quality = Column(Integer, nullable=False)
    communication = Column(Integer, nullable=False)
    cleanliness = Column(Integer, nullable=False)
    value = Column(Integer, nullable=False)
    overall = Column(Integer, nullable=False)

    title = Column(String(255), nullable=True)
    comment = Column(Text, nullable=True)
    review_photos = Column(JSON, default=list, nullable=False)

    # Host response (set once)
    host_response = Column(Text, nullable=True)
    host_response_date = Column(DateTime, nullable=True)

    # Moderation
    is_verified = Column(Boolean, default=True, nullable=False)
    is_helpful_count = Column(Integer, default=0, nullable=False)
    is_reported = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utc_now, server_default=func.now())
    updated_at = Column(DateTime, default=utc_now, server_default=func.now(), onupdate=utc_now)


class HostPhoto(Base):
    __tablename__ = "host_photos"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    host_id = Column(String(36), ForeignKey("pet_hosts.id"), nullable=False, index=True)
    photo_url = Column(Text, nullable=False)
    caption = Column(String(255), nullable=True)
    category = Column(String(30), nullable=False)
    is_primary = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utc_now, server_default=func.now())
