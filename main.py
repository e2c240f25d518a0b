import logging
import sys

from fastapi import FastAPI, HTTPException, Depends
from uuid import UUID
from typing import List
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Property
    CreatePropertyRequest, RateConfigRequest, BlockDatesRequest, PriceOverrideRequest,
    PropertyResponse, RateConfigResponse,
    # Booking
    StayRequest, CreateBookingRequest, ReasonRequest,
    BookingResponse, PricingResponse, QuoteResponse,
    # Auth
    Token, UserResponse
)
from api.dependencies import get_current_active_user, get_current_host, users_db, get_user
from api.error_handlers import booking_rejected_handler, booking_conflict_handler, conflicts_to_response
from infrastructure.security import verify_password, create_access_token
from domain.auth import User, UserRole
from config import get_settings

from application.services import PropertyService, BookingService
from infrastructure.repositories.in_memory_repositories import (
    InMemoryPropertyRepository, InMemoryBookingRepository
)
from domain.entities import Property, Booking
from domain.enums import ReservationStatus, PropertyStatus
from domain.evaluator import BookingEvaluator
from domain.exceptions import BookingRejectedError, BookingConflictError
from domain.value_objects import BookingValidationResult, PricingBreakdown, RateConfig

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stdout,
)

app = FastAPI(
    title="Stay Booking API",
    description="Short-term property booking with availability and pricing evaluation",
    version="1.0.0"
)

app.add_exception_handler(BookingRejectedError, booking_rejected_handler)
app.add_exception_handler(BookingConflictError, booking_conflict_handler)

# Initialize repositories
property_repo = InMemoryPropertyRepository()
booking_repo = InMemoryBookingRepository()

# Dependency injection
def get_property_service() -> PropertyService:
    return PropertyService(property_repo)

def get_booking_service() -> BookingService:
    evaluator = BookingEvaluator(get_settings().booking_policy())
    return BookingService(booking_repo, property_repo, evaluator)

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus enum values"""
    return {
        "values": [item.name for item in ReservationStatus],
        "description": "PENDING and APPROVED bookings occupy the calendar; CANCELLED and REJECTED do not"
    }

@app.get("/api/enums/property-status", tags=["Enum Reference"])
async def get_property_statuses():
    """Get all PropertyStatus enum values"""
    return {"values": [item.name for item in PropertyStatus]}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": user.username})
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return _user_to_response(current_user)

# ============================================================================
# PROPERTY ENDPOINTS
# ============================================================================

@app.post("/api/properties", response_model=PropertyResponse, status_code=201, tags=["Properties"])
async def create_property(
    request: CreatePropertyRequest,
    service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_host)
):
    """Register a property"""
    try:
        prop = await service.create_property(
            host_username=current_user.username,
            name=request.name,
            max_guests=request.max_guests,
            rate_config=_rate_config_from_request(request.rates),
            timezone=request.timezone or settings.default_timezone
        )
        return _property_to_response(prop)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/properties", response_model=List[PropertyResponse], tags=["Properties"])
async def list_properties(
    service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all properties"""
    properties = await service.list_properties()
    return [_property_to_response(p) for p in properties]

@app.get("/api/properties/{property_id}", response_model=PropertyResponse, tags=["Properties"])
async def get_property(
    property_id: UUID,
    service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get property by ID"""
    prop = await service.get_property(property_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    return _property_to_response(prop)

@app.put("/api/properties/{property_id}/rates", response_model=PropertyResponse, tags=["Properties"])
async def update_rates(
    property_id: UUID,
    request: RateConfigRequest,
    service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_host)
):
    """Replace a property's rate configuration"""
    await _get_managed_property(property_id, current_user, service)
    try:
        prop = await service.update_rates(property_id, _rate_config_from_request(request))
        return _property_to_response(prop)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/properties/{property_id}/blocked-dates", response_model=PropertyResponse, tags=["Properties"])
async def block_dates(
    property_id: UUID,
    request: BlockDatesRequest,
    service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_host)
):
    """Close nights on the calendar"""
    await _get_managed_property(property_id, current_user, service)
    prop = await service.block_dates(property_id, request.dates)
    return _property_to_response(prop)

@app.post("/api/properties/{property_id}/blocked-dates/release", response_model=PropertyResponse, tags=["Properties"])
async def unblock_dates(
    property_id: UUID,
    request: BlockDatesRequest,
    service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_host)
):
    """Reopen previously blocked nights"""
    await _get_managed_property(property_id, current_user, service)
    prop = await service.unblock_dates(property_id, request.dates)
    return _property_to_response(prop)

@app.put("/api/properties/{property_id}/price-overrides", response_model=PropertyResponse, tags=["Properties"])
async def set_price_override(
    property_id: UUID,
    request: PriceOverrideRequest,
    service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_host)
):
    """Set a custom rate for one night"""
    await _get_managed_property(property_id, current_user, service)
    try:
        prop = await service.set_price_override(property_id, request.night, request.price)
        return _property_to_response(prop)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/properties/{property_id}/deactivate", response_model=PropertyResponse, tags=["Properties"])
async def deactivate_property(
    property_id: UUID,
    service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_host)
):
    """Stop accepting bookings for a property"""
    await _get_managed_property(property_id, current_user, service)
    prop = await service.deactivate_property(property_id)
    return _property_to_response(prop)

@app.post("/api/properties/{property_id}/quote", response_model=QuoteResponse, tags=["Properties"])
async def quote_stay(
    property_id: UUID,
    request: StayRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Price a stay without booking it"""
    try:
        result = await service.quote(property_id, request.check_in, request.check_out, request.guests)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Property not found")
    return _result_to_quote(result)

@app.get("/api/properties/{property_id}/bookings", response_model=List[BookingResponse], tags=["Properties"])
async def list_property_bookings(
    property_id: UUID,
    property_service: PropertyService = Depends(get_property_service),
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_host)
):
    """Get all bookings for a property"""
    await _get_managed_property(property_id, current_user, property_service)
    bookings = await service.list_bookings_for_property(property_id)
    return [_booking_to_response(b) for b in bookings]

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@app.post("/api/bookings", response_model=BookingResponse, status_code=201, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Request a stay; rejections return 422, lost races return 409"""
    try:
        booking = await service.create_booking(
            property_id=request.property_id,
            guest_username=current_user.username,
            check_in=request.check_in,
            check_out=request.check_out,
            guests=request.guests
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not booking:
        raise HTTPException(status_code=404, detail="Property not found")
    return _booking_to_response(booking)

@app.get("/api/bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def list_my_bookings(
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get the current user's bookings"""
    bookings = await service.list_bookings_for_guest(current_user.username)
    return [_booking_to_response(b) for b in bookings]

@app.get("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    property_service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking by ID"""
    booking = await _get_visible_booking(booking_id, current_user, service, property_service)
    return _booking_to_response(booking)

@app.post("/api/bookings/{booking_id}/approve", response_model=BookingResponse, tags=["Bookings"])
async def approve_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    property_service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_host)
):
    """Host approves a pending booking"""
    booking = await _get_visible_booking(booking_id, current_user, service, property_service)
    await _get_managed_property(booking.property_id, current_user, property_service)
    try:
        return _booking_to_response(await service.approve_booking(booking_id))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/bookings/{booking_id}/reject", response_model=BookingResponse, tags=["Bookings"])
async def reject_booking(
    booking_id: UUID,
    request: ReasonRequest,
    service: BookingService = Depends(get_booking_service),
    property_service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_host)
):
    """Host declines a pending booking"""
    booking = await _get_visible_booking(booking_id, current_user, service, property_service)
    await _get_managed_property(booking.property_id, current_user, property_service)
    try:
        updated = await service.reject_booking(booking_id, request.reason or "Declined by host")
        return _booking_to_response(updated)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Bookings"])
async def cancel_booking(
    booking_id: UUID,
    request: ReasonRequest,
    service: BookingService = Depends(get_booking_service),
    property_service: PropertyService = Depends(get_property_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel a booking, freeing its dates"""
    await _get_visible_booking(booking_id, current_user, service, property_service)
    try:
        updated = await service.cancel_booking(booking_id, request.reason or "Guest requested cancellation")
        return _booking_to_response(updated)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

async def _get_managed_property(property_id: UUID, user: User, service: PropertyService) -> Property:
    prop = await service.get_property(property_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    if not user.can_manage(prop.host_username):
        raise HTTPException(status_code=403, detail="Not allowed to manage this property")
    return prop

async def _get_visible_booking(
    booking_id: UUID,
    user: User,
    service: BookingService,
    property_service: PropertyService
) -> Booking:
    booking = await service.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    if user.role == UserRole.ADMIN or booking.guest_username == user.username:
        return booking
    prop = await property_service.get_property(booking.property_id)
    if prop and user.can_manage(prop.host_username):
        return booking
    raise HTTPException(status_code=403, detail="Not allowed to view this booking")

def _rate_config_from_request(request: RateConfigRequest) -> RateConfig:
    return RateConfig(
        base_rate=request.base_rate,
        cleaning_fee=request.cleaning_fee,
        security_deposit=request.security_deposit,
        weekend_premium_percent=request.weekend_premium_percent,
        service_fee_rate=request.service_fee_rate,
        max_service_fee=request.max_service_fee,
        currency=request.currency or settings.default_currency
    )

def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        user_id=user.user_id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        role=user.role.value,
        disabled=user.disabled
    )

def _property_to_response(prop: Property) -> PropertyResponse:
    rates = prop.rate_config
    return PropertyResponse(
        property_id=prop.property_id,
        host_username=prop.host_username,
        name=prop.name,
        status=prop.status.value,
        max_guests=prop.max_guests,
        timezone=prop.timezone,
        rates=RateConfigResponse(
            base_rate=rates.base_rate,
            cleaning_fee=rates.cleaning_fee,
            security_deposit=rates.security_deposit,
            weekend_premium_percent=rates.weekend_premium_percent,
            service_fee_rate=rates.service_fee_rate,
            max_service_fee=rates.max_service_fee,
            currency=rates.currency
        ),
        blocked_dates=prop.blocked_dates,
        price_overrides=prop.price_overrides,
        created_at=prop.created_at,
        modified_at=prop.modified_at,
        version=prop.version
    )

def _pricing_to_response(pricing: PricingBreakdown) -> PricingResponse:
    return PricingResponse(
        nights=pricing.nights,
        subtotal=pricing.subtotal,
        service_fee=pricing.service_fee,
        cleaning_fee=pricing.cleaning_fee,
        total=pricing.total,
        security_deposit=pricing.security_deposit,
        currency=pricing.currency,
        nightly_rates=pricing.nightly_rates
    )

def _result_to_quote(result: BookingValidationResult) -> QuoteResponse:
    if result.accepted:
        return QuoteResponse(accepted=True, pricing=_pricing_to_response(result.pricing))
    return QuoteResponse(
        accepted=False,
        reasons=result.reasons,
        conflicts=conflicts_to_response(result.conflicts),
        blocked_dates=result.blocked_dates
    )

def _booking_to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        booking_id=booking.booking_id,
        booking_number=booking.booking_number,
        property_id=booking.property_id,
        guest_username=booking.guest_username,
        check_in=booking.date_range.check_in,
        check_out=booking.date_range.check_out,
        guests=booking.guests,
        pricing=_pricing_to_response(booking.pricing),
        status=booking.status.value,
        status_reason=booking.status_reason,
        created_at=booking.created_at,
        modified_at=booking.modified_at,
        version=booking.version
    )
