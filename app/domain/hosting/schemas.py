"""Hosting domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models_hosting import PetSize, PhotoCategory
from ...shared.validators import (
    validate_duration_discounts,
    validate_latitude,
    validate_longitude,
    validate_size_pricing_tiers,
)

# ============================================================================
# HOSTS
# ============================================================================


class HostCreate(BaseModel):
    """Schema for creating a host profile"""

    bio: Optional[str] = None
    experienceYears: int = Field(0, ge=0)
    certifications: list[str] = []
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: Optional[str] = None
    postalCode: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    maxPets: int = Field(1, ge=1)
    petSizePreferences: list[PetSize] = []
    amenities: list[str] = []
    servicesOffered: list[str] = []
    baseDailyRate: Optional[float] = Field(None, ge=0)
    sizePricingTiers: Optional[dict[str, float]] = None
    durationDiscounts: Optional[dict[str, float]] = None

    @field_validator("latitude")
    @classmethod
    def check_latitude(cls, v):
        return validate_latitude(v)

    @field_validator("longitude")
    @classmethod
    def check_longitude(cls, v):
        return validate_longitude(v)

    @field_validator("sizePricingTiers")
    @classmethod
    def check_size_pricing_tiers(cls, v):
        return validate_size_pricing_tiers(v)

    @field_validator("durationDiscounts")
    @classmethod
    def check_duration_discounts(cls, v):
        return validate_duration_discounts(v)


class HostUpdate(BaseModel):
    """Schema for updating a host profile. Only provided fields change."""

    bio: Optional[str] = None
    experienceYears: Optional[int] = Field(None, ge=0)
    certifications: Optional[list[str]] = None
    address: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = Field(None, min_length=1)
    state: Optional[str] = None
    postalCode: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    maxPets: Optional[int] = Field(None, ge=1)
    petSizePreferences: Optional[list[PetSize]] = None
    amenities: Optional[list[str]] = None
    servicesOffered: Optional[list[str]] = None
    baseDailyRate: Optional[float] = Field(None, ge=0)
    sizePricingTiers: Optional[dict[str, float]] = None
    durationDiscounts: Optional[dict[str, float]] = None
    isActive: Optional[bool] = None

    @field_validator("latitude")
    @classmethod
    def check_latitude(cls, v):
        return validate_latitude(v)

    @field_validator("longitude")
    @classmethod
    def check_longitude(cls, v):
        return validate_longitude(v)

    @field_validator("sizePricingTiers")
    @classmethod
    def check_size_pricing_tiers(cls, v):
        return validate_size_pricing_tiers(v)

    @field_validator("durationDiscounts")
    @classmethod
    def check_duration_discounts(cls, v):
        return validate_duration_discounts(v)


class PhotoCreate(BaseModel):
    photoUrl: str = Field(..., min_length=1)
    caption: Optional[str] = Field(None, max_length=255)
    category: PhotoCategory = PhotoCategory.FACILITY
    isPrimary: bool = False


class PhotoResponse(BaseModel):
    id: str
    hostId: str
    photoUrl: str
    caption: Optional[str]
    category: str
    isPrimary: bool
    createdAt: Optional[datetime] = None


class HostResponse(BaseModel):
    """Schema for host response, with derived trust fields"""

    id: str
    userId: str
    bio: Optional[str]
    experienceYears: int
    certifications: list[str]
    address: str
    city: str
    state: Optional[str]
    postalCode: Optional[str]
    country: str
    latitude: Optional[float]
    longitude: Optional[float]
    maxPets: int
    petSizePreferences: list[str]
    amenities: list[str]
    servicesOffered: list[str]
    baseDailyRate: float
    sizePricingTiers: dict[str, float]
    durationDiscounts: dict[str, float]
    responseRate: float
    completionRate: float
    responseTimeAvgHours: Optional[float]
    rating: float
    totalReviews: int
    isVerified: bool
    isActive: bool
    isSuperHost: bool
    trustScore: float
    hasMinimumReviews: bool
    canBecomeSuperHost: bool
    distanceKm: Optional[float] = None
    photos: list[PhotoResponse] = []
    createdAt: Optional[datetime] = None

    class Config:
        from_attributes = True


class HostSearchResponse(BaseModel):
    hosts: list[HostResponse]
    total: int
    page: int
    totalPages: int


class AvailabilityCreate(BaseModel):
    """Schema for a calendar block, capacity override or custom rate"""

    startDate: date
    endDate: date
    maxPetsAvailable: Optional[int] = Field(None, ge=0)
    customDailyRate: Optional[float] = Field(None, ge=0)
    isBlocked: bool = False


class AvailabilityResponse(BaseModel):
    id: str
    hostId: str
    startDate: date
    endDate: date
    maxPetsAvailable: Optional[int]
    customDailyRate: Optional[float]
    isBlocked: bool


# ============================================================================
# BOOKINGS
# ============================================================================


class BookingCreate(BaseModel):
    """Schema for requesting a stay"""

    hostId: str
    petId: str
    checkInDate: date
    checkOutDate: date
    additionalServices: list[str] = []
    medicationSchedule: list[dict] = []
    specialInstructions: Optional[str] = None
    dietaryNeeds: Optional[str] = None


class BookingUpdate(BaseModel):
    """Schema for editing a booking before confirmation"""

    checkInDate: Optional[date] = None
    checkOutDate: Optional[date] = None
    additionalServices: Optional[list[str]] = None
    medicationSchedule: Optional[list[dict]] = None
    specialInstructions: Optional[str] = None
    dietaryNeeds: Optional[str] = None


class BookingDecision(BaseModel):
    """Host decision on a pending booking"""

    approve: bool
    rejectionReason: Optional[str] = None


class BookingResponse(BaseModel):
    """Schema for booking response, with derived lifecycle fields"""

    id: str
    hostId: str
    petId: str
    ownerId: str
    checkInDate: date
    checkOutDate: date
    basePrice: float
    sizeMultiplier: float
    durationDiscount: float
    additionalServicesFee: float
    totalPrice: float
    status: str
    paymentStatus: str
    approvedAt: Optional[datetime]
    rejectedAt: Optional[datetime]
    rejectionReason: Optional[str]
    startedAt: Optional[datetime]
    completedAt: Optional[datetime]
    cancelledAt: Optional[datetime]
    cancelledBy: Optional[str]
    additionalServices: list[str]
    medicationSchedule: list[dict]
    specialInstructions: Optional[str]
    dietaryNeeds: Optional[str]
    durationDays: int
    canBeReviewed: bool
    isOverdue: bool
    isUpcoming: bool
    createdAt: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    total: int
    page: int
    totalPages: int


class QuoteRequest(BaseModel):
    """Price preview for a stay, nothing is reserved"""

    hostId: str
    petId: str
    checkInDate: date
    checkOutDate: date
    additionalServices: list[str] = []


class QuoteResponse(BaseModel):
    durationDays: int
    basePrice: float
    sizeMultiplier: float
    durationDiscount: float
    additionalServicesFee: float
    totalPrice: float


# ============================================================================
# REVIEWS
# ============================================================================


class ReviewCreate(BaseModel):
    """Schema for reviewing a completed stay"""

    bookingId: str
    careQuality: int = Field(..., ge=1, le=5)
    communication: int = Field(..., ge=1, le=5)
    cleanliness: int = Field(..., ge=1, le=5)
    value: int = Field(..., ge=1, le=5)
    overall: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = None
    reviewPhotos: list[str] = []


class ReviewReply(BaseModel):
    response: str = Field(..., min_length=1)


class ReviewResponse(BaseModel):
    id: str
    hostId: str
    bookingId: str
    userId: str
    petId: str
    careQuality: int
    communication: int
    cleanliness: int
    value: int
    overall: int
    averageRating: float
    title: Optional[str]
    comment: Optional[str]
    reviewPhotos: list[str]
    hostResponse: Optional[str]
    hostResponseDate: Optional[datetime]
    isVerified: bool
    createdAt: Optional[datetime] = None
