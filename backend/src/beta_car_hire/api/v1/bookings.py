import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from beta_car_hire.api.v1.auth import get_current_user
from beta_car_hire.core.database import get_db
from beta_car_hire.core.response_utils import create_success_response, ResponseTimer
from beta_car_hire.models import Address, User
from beta_car_hire.schemas import (
    AddressCreate, AddressResponse, BookingCancel, BookingCreate, BookingResponse, BookingWithUser, StandardResponse,
)
from beta_car_hire.services.booking_service import BookingError, BookingService

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_booking_error(error: BookingError):
    raise HTTPException(status_code=error.status_code, detail=str(error))


@router.post("/addresses", response_model=StandardResponse, status_code=status.HTTP_201_CREATED)
def create_address(
    address_data: AddressCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Save a delivery address for the current user."""
    try:
        address = Address(user_id=current_user.id, **address_data.model_dump())
        db.add(address)
        db.commit()
        db.refresh(address)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating address: {e}")
        raise

    return create_success_response(
        data=AddressResponse.model_validate(address),
        status_code=status.HTTP_201_CREATED,
        message="Address saved"
    )


@router.get("/addresses", response_model=StandardResponse)
def list_addresses(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    addresses = (
        db.query(Address)
        .filter(Address.user_id == current_user.id)
        .order_by(Address.created_at.desc())
        .all()
    )
    return create_success_response(data=[AddressResponse.model_validate(a) for a in addresses])


@router.post("/book", response_model=StandardResponse, status_code=status.HTTP_201_CREATED)
def book_car(
    booking_data: BookingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Book a car for the current user."""
    with ResponseTimer() as timer:
        if booking_data.user_id and booking_data.user_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied: You can only access your own resources"
            )

        try:
            booking = BookingService(db).create_booking(
                user_id=current_user.id,
                car_id=booking_data.car_id,
                address_id=booking_data.address_id,
                start_date=booking_data.start_date,
                end_date=booking_data.end_date,
            )
        except BookingError as e:
            _raise_booking_error(e)

    return create_success_response(
        data=BookingResponse.model_validate(booking),
        status_code=status.HTTP_201_CREATED,
        message="Booking created successfully",
        execution_time=timer.get_execution_time()
    )


@router.get("/bookings", response_model=StandardResponse)
def list_bookings(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """List the current user's bookings."""
    with ResponseTimer() as timer:
        bookings = BookingService(db).list_user_bookings(current_user.id)

    return create_success_response(
        data=[BookingWithUser.model_validate(booking) for booking in bookings],
        message=f"Retrieved {len(bookings)} bookings",
        execution_time=timer.get_execution_time()
    )


@router.post("/cancel", response_model=StandardResponse)
def cancel_booking(
    cancel_data: BookingCancel,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel one of the current user's bookings."""
    try:
        cancelled = BookingService(db).cancel_booking(cancel_data.booking_id, current_user.id)
    except BookingError as e:
        _raise_booking_error(e)

    return create_success_response(data=cancelled, message="Booking cancelled successfully")
